"""intake_rulesets — Conditional tax-intake questionnaire SDK.

Public API:
    SectionCatalog          — loads the YAML section catalog with lookup helpers
    active_sections         — which sections are wizard steps for given answers
    FieldVisibilityResolver — render mode and visible fields of one section
    IntakeWizard            — step state machine with autosave and submit
    AutosaveBridge          — serialized fire-and-forget persistence
    build_review_rows       — staff review sheet for an answer set

Collaborator interfaces:
    IntakeBackend           — load / persist / submit answer sets by token
    DocumentStorage         — upload / delete supporting documents

Step models:
    WizardStep              — step: render one section
    SubmissionResult        — step: outcome of submitting
    StepResult              — union of both
"""

from intake_rulesets.autosave import AutosaveBridge
from intake_rulesets.catalog import SectionCatalog
from intake_rulesets.interfaces import DocumentStorage, IntakeBackend
from intake_rulesets.models.session import (
    LoadedIntake,
    RenderMode,
    SectionView,
    StepResult,
    SubmissionResult,
    WizardStep,
)
from intake_rulesets.resolver import active_sections
from intake_rulesets.review import build_review_rows
from intake_rulesets.visibility import FieldVisibilityResolver
from intake_rulesets.wizard import IntakeWizard

__all__ = [
    # Catalog & resolvers
    "SectionCatalog",
    "active_sections",
    "FieldVisibilityResolver",
    "build_review_rows",
    # Wizard
    "IntakeWizard",
    "AutosaveBridge",
    # Interfaces
    "IntakeBackend",
    "DocumentStorage",
    # Step models
    "LoadedIntake",
    "RenderMode",
    "SectionView",
    "StepResult",
    "SubmissionResult",
    "WizardStep",
]
