"""Client endpoints — drive one intake through the wizard by access token.

The server holds no session state between requests.  Each request loads the
intake, rebuilds an :class:`IntakeWizard` positioned at the client-held
``step_index``, applies one transition, waits for the resulting autosave to
finish, and returns the new step.  ``save_status`` on the response reports
that autosave's outcome; a failed save never turns into an HTTP error.
"""

from typing import Any

from fastapi import APIRouter, Depends, File, Query, UploadFile
from pydantic import BaseModel, Field

from intake_rulesets.attachments import validate_upload
from intake_rulesets.catalog import SectionCatalog
from intake_rulesets.interfaces import DocumentStorage, IntakeBackend
from intake_rulesets.models.session import StepResult, WizardStep
from intake_rulesets.wizard import IntakeWizard

from intake_server.config import ServerSettings
from intake_server.dependencies import get_backend, get_catalog, get_settings, get_storage

router = APIRouter(prefix="/intake", tags=["intake"])


# ------------------------------------------------------------------
# Request models
# ------------------------------------------------------------------

class StepRequest(BaseModel):
    """Body for back/continue: where the client currently is."""
    step_index: int = Field(0, ge=0)


class AnswersRequest(StepRequest):
    """Body for POST /intake/{token}/answers.

    ``answers`` are applied one key at a time in the order given, exactly as
    if the client had edited each input in turn.
    """
    answers: dict[str, Any]


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

async def _open(
    token: str,
    step_index: int,
    catalog: SectionCatalog,
    backend: IntakeBackend,
    storage: DocumentStorage | None = None,
) -> IntakeWizard:
    return await IntakeWizard.open(
        catalog, backend, token, step_index=step_index, storage=storage,
    )


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("/{token}/step")
async def get_step(
    token: str,
    step_index: int = Query(0, ge=0),
    catalog: SectionCatalog = Depends(get_catalog),
    backend: IntakeBackend = Depends(get_backend),
) -> WizardStep:
    """Return the step at ``step_index`` (clamped into the active list)."""
    wizard = await _open(token, step_index, catalog, backend)
    return wizard.current_step()


@router.post("/{token}/answers")
async def submit_answers(
    token: str,
    body: AnswersRequest,
    catalog: SectionCatalog = Depends(get_catalog),
    backend: IntakeBackend = Depends(get_backend),
) -> WizardStep:
    """Coerce and store answers, then return the (possibly re-clamped) step.

    All values are validated before any is applied, so a bad value leaves
    the stored answers untouched.
    """
    coerced = {key: catalog.coerce(key, value) for key, value in body.answers.items()}

    wizard = await _open(token, body.step_index, catalog, backend)
    for key, value in coerced.items():
        wizard.answer(key, value)
    await wizard.flush()
    return wizard.current_step()


@router.post("/{token}/back")
async def go_back(
    token: str,
    body: StepRequest,
    catalog: SectionCatalog = Depends(get_catalog),
    backend: IntakeBackend = Depends(get_backend),
) -> WizardStep:
    """Move one step back; stays on the first step."""
    wizard = await _open(token, body.step_index, catalog, backend)
    return wizard.back()


@router.post("/{token}/continue")
async def go_forward(
    token: str,
    body: StepRequest,
    catalog: SectionCatalog = Depends(get_catalog),
    backend: IntakeBackend = Depends(get_backend),
) -> StepResult:
    """Continue to the next step, or submit from the last one.

    Returns a ``submitted`` result instead of a step when the client was on
    the last active section.
    """
    wizard = await _open(token, body.step_index, catalog, backend)
    return await wizard.advance()


@router.post("/{token}/files/{section_id}")
async def upload_file(
    token: str,
    section_id: str,
    step_index: int = Query(0, ge=0),
    file: UploadFile = File(...),
    catalog: SectionCatalog = Depends(get_catalog),
    backend: IntakeBackend = Depends(get_backend),
    storage: DocumentStorage = Depends(get_storage),
    settings: ServerSettings = Depends(get_settings),
) -> WizardStep:
    """Attach a supporting document to a section showing its fields.

    The body is never read past the size limit: a declared size over the
    limit is rejected up front, and the read stops one byte after it.
    """
    name = file.filename or "upload"
    limit = settings.max_upload_bytes
    if file.size is not None:
        validate_upload(name, file.size, max_bytes=limit)
    content = await file.read(limit + 1)
    validate_upload(name, len(content), max_bytes=limit)

    wizard = await _open(token, step_index, catalog, backend, storage)
    await wizard.add_file(section_id, name, content)
    await wizard.flush()
    return wizard.current_step()


@router.delete("/{token}/files")
async def delete_file(
    token: str,
    path: str = Query(...),
    step_index: int = Query(0, ge=0),
    catalog: SectionCatalog = Depends(get_catalog),
    backend: IntakeBackend = Depends(get_backend),
    storage: DocumentStorage = Depends(get_storage),
) -> WizardStep:
    """Remove a previously uploaded document.

    ``path`` must be one of the stored descriptors of this token; the owning
    section is read from the path itself.
    """
    parts = path.split("/")
    if len(parts) < 3:
        raise ValueError(f"File not found: {path}")
    wizard = await _open(token, step_index, catalog, backend, storage)
    await wizard.remove_file(parts[1], path)
    await wizard.flush()
    return wizard.current_step()
