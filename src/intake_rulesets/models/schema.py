"""Pydantic models for the intake questionnaire catalog.

These models mirror the entries in ``v1/sections.yaml``:

  - FieldDefinition: one question, keyed by a globally unique ``id``
  - ShowIf: single-clause equality condition on another answer
  - GatingQuestion: yes/no question that switches a section's fields on/off
  - SectionDefinition: an ordered, named group of fields (one wizard step)

All models are frozen.  The catalog is loaded once at startup and never
mutated afterwards; sections are only ever filtered, never added, removed or
reordered at runtime.
"""

from typing import Any, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, model_validator

from intake_rulesets.constants import FILES_SUFFIX

FieldType = Literal[
    "text",
    "number",
    "currency",
    "date",
    "boolean",
    "textarea",
    "select",
    "repeatable-group",
]

SectionCategory = Literal["personal", "business"]


class ShowIf(BaseModel):
    """Field is visible only while ``answers[field]`` strictly equals ``value``."""

    model_config = ConfigDict(frozen=True)

    field: str
    value: Any


class FieldDefinition(BaseModel):
    """A single questionnaire field.

    ``type`` determines the value shape stored in the answer set, not the
    behaviour of the resolvers.  ``required`` is advisory metadata for the
    presentation layer; nothing in the SDK enforces it.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    type: FieldType
    required: bool = False
    placeholder: Optional[str] = None
    description: Optional[str] = None
    # Ordered allowed values, select only
    options: Optional[Tuple[str, ...]] = None
    # Keys of one record, repeatable-group only
    item_fields: Optional[Tuple[str, ...]] = None
    show_if: Optional[ShowIf] = None

    @model_validator(mode="after")
    def _chk(self):
        if self.type == "select" and not self.options:
            raise ValueError(f"select field '{self.id}' must declare options")
        if self.type == "repeatable-group" and not self.item_fields:
            raise ValueError(f"repeatable-group field '{self.id}' must declare item_fields")
        return self


class GatingQuestion(BaseModel):
    """Yes/no question stored under its own answer key ``id``."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str


class SectionDefinition(BaseModel):
    """One wizard step.

    ``category`` feeds the global business skip rule.  ``id`` doubles as the
    namespace of the section's document list (see :attr:`files_key`).
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    category: SectionCategory
    description: Optional[str] = None
    gating_question: Optional[GatingQuestion] = None
    fields: Tuple[FieldDefinition, ...] = ()

    @property
    def files_key(self) -> str:
        """Answer key holding this section's uploaded-file descriptors."""
        return f"{self.id}{FILES_SUFFIX}"

    @property
    def field_ids(self) -> List[str]:
        return [f.id for f in self.fields]
