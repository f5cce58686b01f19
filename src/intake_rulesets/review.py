"""Staff review sheet — the submitted answers as (label, value) rows.

Walks the active sections in wizard order.  Each section contributes a
header row followed by either a single "skipped" row (gating answered No)
or one row per field with a display-formatted value.  Hidden ``show_if``
fields are listed too: staff see every stored value, not just the ones the
client last had on screen.
"""

from __future__ import annotations

from typing import Any, Mapping

from intake_rulesets.attachments import get_files
from intake_rulesets.catalog import SectionCatalog
from intake_rulesets.constants import SKIPPED_REVIEW_VALUE
from intake_rulesets.models.schema import FieldDefinition
from intake_rulesets.models.session import RenderMode, ReviewRow
from intake_rulesets.resolver import active_sections
from intake_rulesets.visibility import FieldVisibilityResolver


def format_value(field: FieldDefinition, value: Any) -> str:
    """Render one stored answer for humans."""
    if value is None or value == "":
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if field.type == "currency":
        try:
            return f"${float(value):,.2f}"
        except (TypeError, ValueError):
            return str(value)
    if field.type == "repeatable-group" and isinstance(value, list):
        keys = field.item_fields or ()
        return "; ".join(
            ", ".join(f"{k}: {item.get(k, '')}" for k in keys)
            for item in value if isinstance(item, dict)
        )
    return str(value)


def build_review_rows(catalog: SectionCatalog, answers: Mapping[str, Any]) -> list[ReviewRow]:
    """Build the review sheet for one intake's answers."""
    visibility = FieldVisibilityResolver()
    rows: list[ReviewRow] = []

    for section in active_sections(answers, catalog.sections):
        rows.append(ReviewRow(section_id=section.id, label=section.title.upper(), is_header=True))

        mode = visibility.render_mode(section, answers)
        if mode is RenderMode.GATING_FALSE:
            rows.append(ReviewRow(section_id=section.id, label="Status", value=SKIPPED_REVIEW_VALUE))
            continue

        for f in section.fields:
            rows.append(
                ReviewRow(section_id=section.id, label=f.label, value=format_value(f, answers.get(f.id)))
            )

        files = get_files(answers, section.id)
        if files:
            rows.append(
                ReviewRow(
                    section_id=section.id,
                    label="Documents",
                    value=", ".join(f.name for f in files),
                )
            )

    return rows
