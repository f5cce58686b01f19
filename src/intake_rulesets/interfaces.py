"""Abstract interfaces for the wizard's external collaborators.

These ABCs define the contract that storage implementations must fulfil.
The SDK itself ships no concrete implementation; the PostgreSQL adapter
lives in ``intake_db`` and a local-disk document store in ``intake_server``.

Typical integration flow::

    backend: IntakeBackend = SqlIntakeBackend(db)
    storage: DocumentStorage = LocalDocumentStorage(upload_dir)

    wizard = await IntakeWizard.open(catalog, backend, token, storage=storage)
    wizard.answer("taxType", "Personal Only")   # schedules a persist
    step = await wizard.advance()
    await wizard.flush()                        # wait for pending saves
"""

from abc import ABC, abstractmethod
from typing import Any

from intake_rulesets.models.answers import UploadedFileDescriptor
from intake_rulesets.models.session import LoadedIntake


class IntakeBackend(ABC):
    """Storage of intake answer sets, keyed by the client-facing token."""

    @abstractmethod
    async def load_intake(self, token: str) -> LoadedIntake:
        """Resolve an access token to its stored answer set.

        Called once at session start.

        Raises
        ------
        ValueError
            ``"Intake not found: ..."`` when the token is unknown.
        """
        ...

    @abstractmethod
    async def persist_answers(
        self, token: str, answers: dict[str, Any], *, revision: int
    ) -> None:
        """Overwrite the stored answer set with ``answers`` as one document.

        Parameters
        ----------
        answers:
            The *entire* answer set, never a delta.
        revision:
            Monotonic counter assigned by the autosave bridge.  Implementations
            should ignore or reject a revision older than the one stored, so a
            late-arriving stale write cannot clobber a newer one.

        Raises on failure; the caller treats persistence as best-effort.
        """
        ...

    @abstractmethod
    async def submit_intake(self, token: str) -> None:
        """Mark the intake as submitted.  Idempotent status overwrite."""
        ...


class DocumentStorage(ABC):
    """Byte storage for uploaded supporting documents."""

    @abstractmethod
    async def upload_file(
        self, token: str, section_id: str, filename: str, content: bytes
    ) -> UploadedFileDescriptor:
        """Store ``content`` and return its descriptor.

        The descriptor's ``path`` must follow
        :func:`intake_rulesets.attachments.build_storage_path` so that files
        are namespaced ``token/section_id/...``.
        """
        ...

    @abstractmethod
    async def delete_file(self, path: str) -> None:
        """Remove the stored object at ``path``."""
        ...
