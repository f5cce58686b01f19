"""IntakeWizard — the questionnaire state machine for one client session.

The wizard holds the only mutable state of a session: the answer set and
the index of the current step.  The step index points into the *current*
active-section list, which is recomputed from the answers every time it is
needed; whenever an answer changes, the index is re-clamped so it can never
point past the end of a list that just shrank.

Transitions:

    answer(key, value)  single-key overwrite -> re-clamp -> schedule autosave
    back()              index = max(0, index - 1)
    advance()           index + 1, or submit when already on the last step

Persistence is observational: autosave runs in the background through an
:class:`~intake_rulesets.autosave.AutosaveBridge` and its outcome never
gates navigation or further edits.

Usage::

    wizard = await IntakeWizard.open(catalog, backend, token)
    wizard.answer("taxType", BUSINESS_TAX_TYPE)
    step = wizard.current_step()
    result = await wizard.advance()
"""

from __future__ import annotations

import asyncio
import logging
from types import MappingProxyType
from typing import Any, Mapping

from intake_rulesets.attachments import (
    get_files,
    path_belongs_to,
    with_file_added,
    with_file_removed,
)
from intake_rulesets.autosave import AutosaveBridge
from intake_rulesets.catalog import SectionCatalog
from intake_rulesets.constants import CONTINUE_LABEL, SUBMIT_LABEL
from intake_rulesets.interfaces import DocumentStorage, IntakeBackend
from intake_rulesets.models.answers import UploadedFileDescriptor
from intake_rulesets.models.schema import SectionDefinition
from intake_rulesets.models.session import (
    RenderMode,
    StepResult,
    SubmissionResult,
    WizardStep,
)
from intake_rulesets.resolver import active_sections
from intake_rulesets.visibility import FieldVisibilityResolver

logger = logging.getLogger(__name__)


def clamp_step_index(index: int, step_count: int) -> int:
    """Clamp ``index`` into ``[0, step_count - 1]``; 0 for an empty list."""
    return max(0, min(index, max(0, step_count - 1)))


class IntakeWizard:
    """Drives one client through the active sections of the questionnaire.

    Args:
        catalog: a loaded :class:`SectionCatalog`
        backend: intake storage collaborator (autosave + submit)
        token: the client's access token
        answers: answer set to start from (copied)
        step_index: initial position; clamped into the active list
        revision: last stored revision, continued by autosave
        storage: document storage, required only for file operations
    """

    def __init__(
        self,
        catalog: SectionCatalog,
        backend: IntakeBackend,
        token: str,
        *,
        answers: Mapping[str, Any] | None = None,
        step_index: int = 0,
        revision: int = 0,
        storage: DocumentStorage | None = None,
    ) -> None:
        self._catalog = catalog
        self._backend = backend
        self._storage = storage
        self._token = token
        self._answers: dict[str, Any] = dict(answers or {})
        self._visibility = FieldVisibilityResolver()
        self._autosave = AutosaveBridge(backend, token, revision=revision)
        self._submitted = False
        self._step_index = 0
        self._step_index = clamp_step_index(step_index, len(self.active_sections))

    @classmethod
    async def open(
        cls,
        catalog: SectionCatalog,
        backend: IntakeBackend,
        token: str,
        *,
        step_index: int = 0,
        storage: DocumentStorage | None = None,
    ) -> IntakeWizard:
        """Load the stored answers for ``token`` and start a wizard on them.

        Raises:
            ValueError: if the backend does not know the token.
        """
        loaded = await backend.load_intake(token)
        return cls(
            catalog,
            backend,
            token,
            answers=loaded.answers,
            step_index=step_index,
            revision=loaded.revision,
            storage=storage,
        )

    # ==================================================================
    # Read-only state
    # ==================================================================

    @property
    def token(self) -> str:
        return self._token

    @property
    def answers(self) -> Mapping[str, Any]:
        """Read-only view of the current answer set."""
        return MappingProxyType(self._answers)

    @property
    def autosave(self) -> AutosaveBridge:
        return self._autosave

    @property
    def submitted(self) -> bool:
        return self._submitted

    @property
    def active_sections(self) -> list[SectionDefinition]:
        """Sections currently reachable as steps, in catalog order."""
        return active_sections(self._answers, self._catalog.sections)

    @property
    def step_index(self) -> int:
        return self._step_index

    @property
    def step_count(self) -> int:
        return len(self.active_sections)

    @property
    def current_section(self) -> SectionDefinition | None:
        """Section at the current step, or None when no section is active."""
        sections = self.active_sections
        if not sections:
            return None
        return sections[self._step_index]

    @property
    def is_last_step(self) -> bool:
        count = self.step_count
        return count > 0 and self._step_index == count - 1

    # ==================================================================
    # Transitions
    # ==================================================================

    def answer(self, key: str, value: Any) -> asyncio.Task:
        """Store ``value`` under ``key`` and schedule an autosave.

        The value replaces whatever was stored (lists and records are never
        merged).  The step index is re-clamped against the new active list
        before this returns.  Must be called from a running event loop.

        Returns the autosave task; callers normally ignore it.

        Raises:
            ValueError: if ``key`` is not a field id, gating id or file-list
                key declared by the catalog.
        """
        if not self._catalog.is_answer_key(key):
            raise ValueError(f"Unknown answer key: {key}")

        self._answers = {**self._answers, key: value}
        self._reclamp()
        return self._autosave.schedule(self._answers)

    def _reclamp(self) -> None:
        count = len(self.active_sections)
        clamped = clamp_step_index(self._step_index, count)
        if clamped != self._step_index:
            logger.info(
                "Intake %s: active list now has %d steps, step index %d -> %d",
                self._token, count, self._step_index, clamped,
            )
        self._step_index = clamped

    def back(self) -> WizardStep:
        """Move one step back; no-op on the first step."""
        self._step_index = max(0, self._step_index - 1)
        return self.current_step()

    async def advance(self) -> StepResult:
        """Continue to the next step, or submit from the last one.

        With an empty active list there is nothing to continue to or submit,
        so the current (empty) step is returned unchanged.
        """
        count = self.step_count
        if count == 0:
            return self.current_step()
        if self._step_index < count - 1:
            self._step_index += 1
            return self.current_step()
        return await self.submit()

    async def submit(self) -> SubmissionResult:
        """Submit the intake.  Only valid on the last active step.

        Pending autosaves are drained first so the stored answers match what
        the client saw.  Submission is a status overwrite and may be repeated;
        failures are returned, not raised, and never retried here.

        Raises:
            ValueError: if called before the last active step.
        """
        if not self.is_last_step:
            raise ValueError(
                f"Submit is only valid on the last step "
                f"(step {self._step_index + 1} of {self.step_count})"
            )

        await self._autosave.drain()
        try:
            await self._backend.submit_intake(self._token)
        except Exception as exc:
            error = str(exc) or exc.__class__.__name__
            logger.warning("Submit failed for intake %s: %s", self._token, error)
            return SubmissionResult(success=False, error=error)

        self._submitted = True
        logger.info("Intake %s submitted", self._token)
        return SubmissionResult(success=True)

    # ==================================================================
    # Document attachments
    # ==================================================================

    async def add_file(
        self, section_id: str, filename: str, content: bytes
    ) -> UploadedFileDescriptor:
        """Upload a document and append it to the section's file list.

        The list is only updated after the storage call succeeds; a failed
        upload propagates and leaves the answers untouched.

        Raises:
            ValueError: if no storage is configured, or the section is not
                currently accepting documents.
        """
        section = self._attachable_section(section_id)
        descriptor = await self._require_storage().upload_file(
            self._token, section.id, filename, content,
        )
        files = get_files(self._answers, section.id)
        self.answer(section.files_key, with_file_added(files, descriptor))
        logger.info("Intake %s: attached %s to %s", self._token, descriptor.path, section.id)
        return descriptor

    async def remove_file(self, section_id: str, path: str) -> None:
        """Delete a document from storage, then drop it from the file list.

        Raises:
            ValueError: if no storage is configured, the section is unknown,
                or ``path`` is not one of this section's files.
        """
        try:
            section = self._catalog.get_section(section_id)
        except KeyError:
            raise ValueError(f"Section not found: {section_id}") from None
        files = get_files(self._answers, section.id)
        if not path_belongs_to(path, self._token, section.id) or all(f.path != path for f in files):
            raise ValueError(f"File not found in section {section.id}: {path}")

        await self._require_storage().delete_file(path)
        self.answer(section.files_key, with_file_removed(files, path))
        logger.info("Intake %s: removed %s from %s", self._token, path, section.id)

    def _attachable_section(self, section_id: str) -> SectionDefinition:
        for section in self.active_sections:
            if section.id == section_id:
                break
        else:
            raise ValueError(f"Section not found among active sections: {section_id}")
        if self._visibility.render_mode(section, self._answers) is not RenderMode.FIELDS_VISIBLE:
            raise ValueError(f"Uploads are only valid when section {section_id} shows its fields")
        return section

    def _require_storage(self) -> DocumentStorage:
        if self._storage is None:
            raise ValueError("Document storage is not configured")
        return self._storage

    # ==================================================================
    # Rendering
    # ==================================================================

    def current_step(self) -> WizardStep:
        """Build the view of the current step, including autosave status."""
        sections = self.active_sections
        section = sections[self._step_index] if sections else None
        is_last = bool(sections) and self._step_index == len(sections) - 1
        return WizardStep(
            step_index=self._step_index,
            step_count=len(sections),
            is_last=is_last,
            action_label=SUBMIT_LABEL if is_last else CONTINUE_LABEL,
            active_sections=[s.id for s in sections],
            section=(
                self._visibility.resolve(section, self._answers)
                if section is not None else None
            ),
            save_status=self._autosave.status,
            save_error=self._autosave.last_error,
        )

    async def flush(self) -> None:
        """Wait for all scheduled autosaves to finish."""
        await self._autosave.drain()
