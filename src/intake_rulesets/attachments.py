"""Document attachment sub-model.

Each section owns exactly one list of uploaded-file descriptors, stored in
the answer set under ``"<section id>_files"`` — uploaded-file metadata is
just another answer value and is persisted with the rest of the answers.

The helpers here never mutate a list in place: adding or removing a file
builds a new list that the wizard stores as a single-key overwrite.  Byte
storage happens in a :class:`~intake_rulesets.interfaces.DocumentStorage`
implementation; the path convention it must follow is
:func:`build_storage_path`.
"""

from __future__ import annotations

import re
import time
from pathlib import PurePosixPath
from typing import Any, Mapping

from intake_rulesets.constants import ALLOWED_UPLOAD_EXTENSIONS, FILES_SUFFIX
from intake_rulesets.models.answers import UploadedFileDescriptor

_NON_ASCII_RE = re.compile(r"[^\x00-\x7F]")
# Path separators and control characters are never part of a stored name
_UNSAFE_RE = re.compile(r"[\x00-\x1f/\\]")


def files_key(section_id: str) -> str:
    """Answer key of a section's document list."""
    return f"{section_id}{FILES_SUFFIX}"


def get_files(answers: Mapping[str, Any], section_id: str) -> list[UploadedFileDescriptor]:
    """Return the descriptors stored for ``section_id`` (empty if none)."""
    raw = answers.get(files_key(section_id)) or []
    return [UploadedFileDescriptor.model_validate(item) for item in raw]


def with_file_added(
    files: list[UploadedFileDescriptor], descriptor: UploadedFileDescriptor
) -> list[dict]:
    """New list value with ``descriptor`` appended."""
    return [f.model_dump() for f in files] + [descriptor.model_dump()]


def with_file_removed(files: list[UploadedFileDescriptor], path: str) -> list[dict]:
    """New list value without any descriptor stored at ``path``."""
    return [f.model_dump() for f in files if f.path != path]


def safe_file_name(name: str) -> str:
    """Strip non-ASCII characters and path separators from an upload name."""
    cleaned = _UNSAFE_RE.sub("", _NON_ASCII_RE.sub("", name)).strip()
    return cleaned or "upload"


def build_storage_path(
    token: str,
    section_id: str,
    filename: str,
    *,
    timestamp_ms: int | None = None,
) -> str:
    """Storage key for an upload: ``<token>/<section id>/<millis>-<safe name>``.

    Namespacing by token and section lets deletions and listings be scoped
    to one client and one section.
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{token}/{section_id}/{timestamp_ms}-{safe_file_name(filename)}"


def path_belongs_to(path: str, token: str, section_id: str | None = None) -> bool:
    """True if ``path`` lives in the token's (and optionally section's) namespace."""
    parts = PurePosixPath(path).parts
    if len(parts) < 3 or ".." in parts or parts[0] != token:
        return False
    return section_id is None or parts[1] == section_id


def validate_upload(filename: str, size: int, *, max_bytes: int) -> None:
    """Reject uploads with a disallowed extension or an out-of-range size.

    Raises:
        ValueError: describing the first violated rule.
    """
    suffix = PurePosixPath(filename).suffix.lower()
    if suffix not in ALLOWED_UPLOAD_EXTENSIONS:
        raise ValueError(
            f"Unsupported file type '{suffix or filename}' "
            f"(allowed: {', '.join(sorted(ALLOWED_UPLOAD_EXTENSIONS))})"
        )
    if size <= 0:
        raise ValueError(f"Empty upload: {filename}")
    if size > max_bytes:
        raise ValueError(f"Upload too large: {filename} is {size} bytes (limit {max_bytes})")
