"""Active-section resolution against the shipped catalog.

Covers the business skip rule, the rental special case, order preservation
and the guarantee that gating answers never remove a section.
"""

import pytest

from intake_rulesets.constants import BUSINESS_TAX_TYPE
from intake_rulesets.resolver import active_sections, has_rental_income, is_business_filer

from test_wizard import ALL_SECTIONS, PERSONAL_SECTIONS


def ids(sections):
    return [s.id for s in sections]


class TestBusinessRule:
    """Business-category sections need the exact business selection."""

    def test_unanswered_is_personal(self, catalog):
        assert ids(active_sections({}, catalog.sections)) == PERSONAL_SECTIONS

    def test_personal_only(self, catalog):
        result = active_sections({"taxType": "Personal Only"}, catalog.sections)
        assert all(s.category == "personal" for s in result)

    def test_business_selection(self, catalog):
        result = active_sections({"taxType": BUSINESS_TAX_TYPE}, catalog.sections)
        business = [s.id for s in catalog.sections if s.category == "business"]
        assert set(business) <= set(ids(result))
        assert "rental_expenses" not in ids(result)

    @pytest.mark.parametrize(
        "value",
        [
            "personal + business (self-employed/freelance)",
            BUSINESS_TAX_TYPE + " ",
            "Business",
            True,
        ],
    )
    def test_near_misses_are_not_business(self, value):
        """Only the exact option string unlocks business sections."""
        assert is_business_filer({"taxType": value}) is False


class TestRentalRule:
    """rental_expenses follows the reported rental income."""

    @pytest.mark.parametrize("value", [None, "", "0", 0, 0.0, False])
    def test_no_rental_income(self, catalog, value):
        answers = {"rentalIncome": value}
        assert has_rental_income(answers) is False
        assert "rental_expenses" not in ids(active_sections(answers, catalog.sections))

    @pytest.mark.parametrize("value", ["1500", 1500.0, 0.01, "0.00"])
    def test_rental_income(self, catalog, value):
        """Any other value counts; raw "0.00" is not the literal "0"."""
        answers = {"rentalIncome": value}
        assert has_rental_income(answers) is True
        assert "rental_expenses" in ids(active_sections(answers, catalog.sections))

    def test_missing_key(self, catalog):
        assert "rental_expenses" not in ids(active_sections({}, catalog.sections))

    def test_rental_independent_of_business(self, catalog):
        personal = active_sections({"rentalIncome": 900.0}, catalog.sections)
        assert ids(personal) == [
            "tax_situation", "profile", "dependents", "income",
            "rental_expenses", "schedule_a_itemized", "other_info",
        ]


class TestStructuralProperties:
    """Properties that hold for every answer set."""

    ANSWER_SETS = [
        {},
        {"taxType": "Personal Only"},
        {"taxType": BUSINESS_TAX_TYPE},
        {"taxType": BUSINESS_TAX_TYPE, "rentalIncome": 1500.0},
        {"rentalIncome": "250", "hasDependents": False, "hasItemized": True},
    ]

    @pytest.mark.parametrize("answers", ANSWER_SETS)
    def test_deterministic(self, catalog, answers):
        assert ids(active_sections(answers, catalog.sections)) == ids(
            active_sections(dict(answers), catalog.sections)
        )

    @pytest.mark.parametrize("answers", ANSWER_SETS)
    def test_order_preserved(self, catalog, answers):
        """Result is a subsequence of the catalog with no duplicates."""
        order = {s.id: i for i, s in enumerate(catalog.sections)}
        positions = [order[s.id] for s in active_sections(answers, catalog.sections)]
        assert positions == sorted(set(positions))

    def test_every_section_for_business_with_rental(self, catalog):
        answers = {"taxType": BUSINESS_TAX_TYPE, "rentalIncome": 1500.0}
        assert ids(active_sections(answers, catalog.sections)) == ALL_SECTIONS

    @pytest.mark.parametrize("gate", [True, False, None])
    def test_gating_never_removes_sections(self, catalog, gate):
        answers = {
            "hasDependents": gate,
            "hasIncomeDocs": gate,
            "hasItemized": gate,
        }
        assert ids(active_sections(answers, catalog.sections)) == PERSONAL_SECTIONS

    def test_input_not_mutated(self, catalog):
        answers = {"taxType": BUSINESS_TAX_TYPE}
        active_sections(answers, catalog.sections)
        assert answers == {"taxType": BUSINESS_TAX_TYPE}
