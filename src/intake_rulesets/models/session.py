"""Step and intake models — the contract between the wizard and API callers.

These models define what the wizard returns after each transition.  They
are intentionally decoupled from the ORM models in ``intake_db`` so that API
consumers never see database internals.

Step types:
  - WizardStep: render one section of the questionnaire
  - SubmissionResult: outcome of submitting from the last step

The ``StepResult`` union covers both cases so callers can dispatch on ``type``.
"""

import enum
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from intake_rulesets.models.answers import UploadedFileDescriptor


class RenderMode(str, enum.Enum):
    """How a section's body is rendered for the current answers.

    - gating_unanswered: show only the gating prompt
    - gating_false: show the "skipped" placeholder, no fields, no uploader
    - fields_visible: show the fields (after show_if filtering) and uploader
    """

    GATING_UNANSWERED = "gating_unanswered"
    GATING_FALSE = "gating_false"
    FIELDS_VISIBLE = "fields_visible"


class FieldPayload(BaseModel):
    """Flattened field for API consumers, carrying its current answer."""

    id: str
    label: str
    type: str
    required: bool = False
    options: list[str] | None = None
    item_fields: list[str] | None = None
    placeholder: str | None = None
    description: str | None = None
    value: Any = None


class SectionView(BaseModel):
    """Everything the UI needs to render one section."""

    section_id: str
    title: str
    description: str | None = None
    category: str
    render_mode: RenderMode
    # {id, text} of the gating question, if the section has one
    gating_question: dict | None = None
    gating_answer: bool | None = None
    fields: list[FieldPayload] = Field(default_factory=list)
    # None unless render_mode is fields_visible
    files: list[UploadedFileDescriptor] | None = None
    placeholder: str | None = None


class WizardStep(BaseModel):
    """Wizard step: the section at ``step_index`` of the active list.

    ``section`` is None only when the active list is empty.
    """

    type: Literal["step"] = "step"
    step_index: int
    step_count: int
    is_last: bool
    action_label: str
    active_sections: list[str]
    section: SectionView | None = None
    # Outcome of the autosave triggered by this request, if any
    save_status: str = "idle"
    save_error: str | None = None


class SubmissionResult(BaseModel):
    """Outcome of submitting the intake from the last active step."""

    type: Literal["submitted"] = "submitted"
    success: bool
    error: str | None = None


# Callers can match on step.type to dispatch rendering logic.
StepResult = WizardStep | SubmissionResult


class LoadedIntake(BaseModel):
    """What the storage collaborator returns for a client token."""

    token: str
    answers: dict[str, Any] = Field(default_factory=dict)
    status: str = "not_started"
    # Last revision accepted by storage; autosave continues from here
    revision: int = 0


class IntakeInfo(BaseModel):
    """Public view of an intake record for staff endpoints."""

    token: str
    client_id: str
    tax_year: int
    status: str
    revision: int
    created_at: datetime
    updated_at: datetime
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None


class ReviewRow(BaseModel):
    """One (label, value) line of the staff review sheet."""

    section_id: str
    label: str
    value: str = ""
    is_header: bool = False
