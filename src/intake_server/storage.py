"""LocalDocumentStorage — supporting documents on the local filesystem.

Files are written under ``UPLOAD_DIR`` using the SDK's storage-path
convention, so the relative path stored in the answer set doubles as the
on-disk location: ``<upload_dir>/<token>/<section id>/<millis>-<name>``.

Blocking file I/O runs in a worker thread via ``asyncio.to_thread`` so the
event loop keeps serving other requests.
"""

import asyncio
import logging
import time
from pathlib import Path

from intake_rulesets.attachments import build_storage_path, validate_upload
from intake_rulesets.interfaces import DocumentStorage
from intake_rulesets.models.answers import UploadedFileDescriptor

logger = logging.getLogger(__name__)

_MAX_PATH_ATTEMPTS = 16


def _write_new(target: Path, content: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    # "x" mode fails instead of truncating a file that is already there
    with target.open("xb") as f:
        f.write(content)


class LocalDocumentStorage(DocumentStorage):
    """DocumentStorage writing into a directory tree.

    Args:
        root: base directory; created on first upload
        max_bytes: per-file size limit
    """

    def __init__(self, root: str | Path, *, max_bytes: int) -> None:
        self._root = Path(root).resolve()
        self._max_bytes = max_bytes

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, path: str) -> Path:
        target = (self._root / path).resolve()
        if not target.is_relative_to(self._root):
            raise ValueError(f"Storage path escapes upload directory: {path}")
        return target

    async def upload_file(
        self, token: str, section_id: str, filename: str, content: bytes
    ) -> UploadedFileDescriptor:
        """Write a new file; never overwrites an existing upload.

        Two uploads of the same name in the same millisecond would share a
        path, so the file is created exclusively and the timestamp is
        stepped forward on a clash.
        """
        validate_upload(filename, len(content), max_bytes=self._max_bytes)
        stamp = time.time_ns() // 1_000_000
        for attempt in range(_MAX_PATH_ATTEMPTS):
            path = build_storage_path(token, section_id, filename, timestamp_ms=stamp + attempt)
            try:
                await asyncio.to_thread(_write_new, self._resolve(path), content)
                break
            except FileExistsError:
                logger.debug("Upload path taken, retrying: %s", path)
        else:
            raise ValueError(f"Upload path already exists: {path}")
        logger.info("Stored upload %s (%d bytes)", path, len(content))
        return UploadedFileDescriptor(name=filename, path=path, size=len(content))

    async def delete_file(self, path: str) -> None:
        target = self._resolve(path)
        await asyncio.to_thread(target.unlink, missing_ok=True)
        logger.info("Deleted upload %s", path)
