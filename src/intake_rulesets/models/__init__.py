"""Public model re-exports for intake_rulesets.

Consumers should import from ``intake_rulesets.models`` rather than
reaching into sub-modules directly.
"""

# --- Schema ---
from intake_rulesets.models.schema import (
    FieldDefinition,
    FieldType,
    GatingQuestion,
    SectionCategory,
    SectionDefinition,
    ShowIf,
)

# --- Answers ---
from intake_rulesets.models.answers import (
    AnswerValue,
    UploadedFileDescriptor,
    coerce_answer,
    coerce_boolean,
    coerce_file_list,
)

# --- Session / step ---
from intake_rulesets.models.session import (
    FieldPayload,
    IntakeInfo,
    LoadedIntake,
    RenderMode,
    ReviewRow,
    SectionView,
    StepResult,
    SubmissionResult,
    WizardStep,
)

__all__ = [
    # Schema
    "FieldDefinition",
    "FieldType",
    "GatingQuestion",
    "SectionCategory",
    "SectionDefinition",
    "ShowIf",
    # Answers
    "AnswerValue",
    "UploadedFileDescriptor",
    "coerce_answer",
    "coerce_boolean",
    "coerce_file_list",
    # Session
    "FieldPayload",
    "IntakeInfo",
    "LoadedIntake",
    "RenderMode",
    "ReviewRow",
    "SectionView",
    "StepResult",
    "SubmissionResult",
    "WizardStep",
]
