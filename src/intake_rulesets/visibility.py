"""FieldVisibilityResolver — decides how the current section renders.

Given a section and the answer set it produces one of three render modes:

  - **gating_unanswered**: the section has a gating question whose answer is
    neither ``True`` nor ``False``; only the gating prompt is shown
  - **gating_false**: the gating answer is ``False``; a fixed "skipped"
    placeholder replaces the fields and the document uploader
  - **fields_visible**: no gating question, or the gating answer is ``True``;
    fields render in declared order, each filtered by its ``show_if`` clause,
    together with the section's document list

Visibility is a pure function of the answers.  Hidden fields keep whatever
value is stored for them; nothing here clears answers.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from intake_rulesets.attachments import get_files
from intake_rulesets.constants import SKIPPED_PLACEHOLDER
from intake_rulesets.models.schema import FieldDefinition, SectionDefinition
from intake_rulesets.models.session import FieldPayload, RenderMode, SectionView

logger = logging.getLogger(__name__)


def strict_equals(answer: Any, expected: Any) -> bool:
    """Type- and value-strict equality.

    Python already keeps ``1 != "1"`` and ``"A" != "a"``, but treats
    ``True == 1``; booleans only match booleans here.
    """
    if isinstance(answer, bool) or isinstance(expected, bool):
        return type(answer) is type(expected) and answer == expected
    return answer == expected


class FieldVisibilityResolver:
    """Resolves render mode and visible fields for one section."""

    def render_mode(
        self, section: SectionDefinition, answers: Mapping[str, Any]
    ) -> RenderMode:
        """Classify the section body from its gating answer.

        A gating id missing from the answers (or holding anything other than
        a real boolean) counts as not yet answered.
        """
        gq = section.gating_question
        if gq is None:
            return RenderMode.FIELDS_VISIBLE
        answer = answers.get(gq.id)
        if answer is True:
            return RenderMode.FIELDS_VISIBLE
        if answer is False:
            return RenderMode.GATING_FALSE
        return RenderMode.GATING_UNANSWERED

    def is_field_visible(
        self, field: FieldDefinition, answers: Mapping[str, Any]
    ) -> bool:
        """Evaluate a field's ``show_if`` clause against the answers.

        A clause referencing an unanswered (or unknown) field never matches.
        """
        if field.show_if is None:
            return True
        return strict_equals(answers.get(field.show_if.field), field.show_if.value)

    def visible_fields(
        self, section: SectionDefinition, answers: Mapping[str, Any]
    ) -> list[FieldDefinition]:
        """Fields to render, in declared order; empty unless fields are visible."""
        if self.render_mode(section, answers) is not RenderMode.FIELDS_VISIBLE:
            return []
        return [f for f in section.fields if self.is_field_visible(f, answers)]

    def resolve(
        self, section: SectionDefinition, answers: Mapping[str, Any]
    ) -> SectionView:
        """Build the full render view for ``section``."""
        mode = self.render_mode(section, answers)
        gq = section.gating_question

        view = SectionView(
            section_id=section.id,
            title=section.title,
            description=section.description,
            category=section.category,
            render_mode=mode,
            gating_question=(
                {"id": gq.id, "text": gq.text} if gq is not None else None
            ),
            gating_answer=(
                answers.get(gq.id) if gq is not None and isinstance(answers.get(gq.id), bool) else None
            ),
        )

        if mode is RenderMode.GATING_FALSE:
            view.placeholder = SKIPPED_PLACEHOLDER
        elif mode is RenderMode.FIELDS_VISIBLE:
            view.fields = [
                self._to_payload(f, answers) for f in self.visible_fields(section, answers)
            ]
            view.files = get_files(answers, section.id)

        logger.debug(
            "Resolved section %s: mode=%s, %d visible fields",
            section.id, mode.value, len(view.fields),
        )
        return view

    @staticmethod
    def _to_payload(field: FieldDefinition, answers: Mapping[str, Any]) -> FieldPayload:
        return FieldPayload(
            id=field.id,
            label=field.label,
            type=field.type,
            required=field.required,
            options=list(field.options) if field.options else None,
            item_fields=list(field.item_fields) if field.item_fields else None,
            placeholder=field.placeholder,
            description=field.description,
            value=answers.get(field.id),
        )
