"""Active-section resolution — which catalog sections are wizard steps.

``active_sections`` filters the catalog against the current answers.  It is
pure and cheap, so callers recompute it on every answer change instead of
caching it.  Two rules apply, each per section and independently:

  1. **Business skip**: business-category sections are active only when
     ``taxType`` is exactly the business selection string.  Until the client
     answers ``taxType`` the wizard behaves as "Personal Only".
  2. **Rental special case**: ``rental_expenses`` is active only when the
     income section reports a non-empty, non-"0" ``rentalIncome``.

Gating questions never remove a section; they only change how it renders
(see :mod:`intake_rulesets.visibility`).
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from intake_rulesets.constants import (
    BUSINESS_TAX_TYPE,
    RENTAL_INCOME_FIELD,
    RENTAL_SECTION_ID,
    TAX_TYPE_FIELD,
)
from intake_rulesets.models.schema import SectionDefinition


def is_business_filer(answers: Mapping[str, Any]) -> bool:
    """True when the client selected the personal + business tax situation."""
    return answers.get(TAX_TYPE_FIELD) == BUSINESS_TAX_TYPE


def has_rental_income(answers: Mapping[str, Any]) -> bool:
    """True when ``rentalIncome`` holds a value other than blank or zero.

    Raw string answers are compared against the literals ``""`` and ``"0"``;
    coerced numeric answers are zero-checked by truthiness.
    """
    value = answers.get(RENTAL_INCOME_FIELD)
    return bool(value) and value != "0" and value != ""


def is_section_active(section: SectionDefinition, answers: Mapping[str, Any]) -> bool:
    """Apply the business and rental rules to a single section."""
    if section.category == "business" and not is_business_filer(answers):
        return False
    if section.id == RENTAL_SECTION_ID and not has_rental_income(answers):
        return False
    return True


def active_sections(
    answers: Mapping[str, Any],
    all_sections: Iterable[SectionDefinition],
) -> list[SectionDefinition]:
    """Return the sections that are currently wizard steps.

    The result is a subsequence of ``all_sections``: original relative order,
    no duplicates, nothing added.
    """
    return [s for s in all_sections if is_section_active(s, answers)]
