"""SectionCatalog loading, validation and lookup."""

import pytest
import yaml
from pydantic import ValidationError

from intake_rulesets.catalog import SectionCatalog, find_repo_root, load_yaml

from test_wizard import ALL_SECTIONS


def _write_catalog(tmp_path, sections):
    (tmp_path / "sections.yaml").write_text(yaml.safe_dump(sections), encoding="utf-8")
    return SectionCatalog(ruleset_dir=tmp_path)


class TestShippedCatalog:
    """Consistency checks on v1/sections.yaml."""

    def test_section_order(self, catalog):
        assert [s.id for s in catalog.sections] == ALL_SECTIONS

    def test_no_dangling_references(self, catalog):
        assert catalog.validate_references() == []

    def test_rental_section_is_personal(self, catalog):
        assert catalog.get_section("rental_expenses").category == "personal"

    def test_business_sections(self, catalog):
        business = [s.id for s in catalog.sections if s.category == "business"]
        assert business == ["schedule_c_income", "business_expenses", "vehicle", "home_office"]

    def test_business_option_is_declared(self, catalog):
        from intake_rulesets.constants import BUSINESS_TAX_TYPE

        assert BUSINESS_TAX_TYPE in catalog.get_field("taxType").options

    def test_rental_income_lives_in_income(self, catalog):
        assert "rentalIncome" in [f.id for f in catalog.get_section("income").fields]
        assert catalog.get_field("rentalIncome").type == "currency"

    def test_is_answer_key(self, catalog):
        for key in ("taxType", "hasDependents", "income_files", "other_info_files"):
            assert catalog.is_answer_key(key)
        assert catalog.is_answer_key("hasRentalExpenses")
        assert not catalog.is_answer_key("unknown")

    def test_question_labels_parse_as_text(self, catalog):
        assert catalog.get_field("w2Count").label == "How many W-2 forms do you have?"
        assert catalog.get_field("notes").label == "Anything else your tax preparer should know?"
        raw = load_yaml(find_repo_root() / "v1" / "sections.yaml")
        labels = [f["label"] for s in raw for f in s.get("fields", [])]
        assert all(isinstance(label, str) and label for label in labels)

    def test_lookup_misses_raise_key_error(self, catalog):
        with pytest.raises(KeyError):
            catalog.get_section("nope")
        with pytest.raises(KeyError):
            catalog.get_field("nope")


class TestMalformedCatalog:
    """Structural problems are rejected at load time."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SectionCatalog(ruleset_dir=tmp_path).load()

    def test_not_a_list(self, tmp_path):
        cat = _write_catalog(tmp_path, {"id": "x"})
        with pytest.raises(ValueError, match="list of sections"):
            cat.load()

    def test_unknown_field_type(self, tmp_path):
        cat = _write_catalog(tmp_path, [{
            "id": "a", "title": "A", "category": "personal",
            "fields": [{"id": "f", "label": "F", "type": "slider"}],
        }])
        with pytest.raises(ValidationError):
            cat.load()

    def test_unknown_category(self, tmp_path):
        cat = _write_catalog(tmp_path, [{"id": "a", "title": "A", "category": "corporate"}])
        with pytest.raises(ValidationError):
            cat.load()

    def test_select_without_options(self):
        with pytest.raises(ValidationError, match="options"):
            SectionCatalog.from_sections([{
                "id": "a", "title": "A", "category": "personal",
                "fields": [{"id": "f", "label": "F", "type": "select"}],
            }])

    def test_group_without_item_fields(self):
        with pytest.raises(ValidationError, match="item_fields"):
            SectionCatalog.from_sections([{
                "id": "a", "title": "A", "category": "personal",
                "fields": [{"id": "f", "label": "F", "type": "repeatable-group"}],
            }])

    def test_duplicate_section_id(self):
        with pytest.raises(ValueError, match="Duplicate section id"):
            SectionCatalog.from_sections([
                {"id": "a", "title": "A", "category": "personal"},
                {"id": "a", "title": "A again", "category": "personal"},
            ])

    def test_duplicate_field_across_sections(self):
        with pytest.raises(ValueError, match="Duplicate answer key 'f'"):
            SectionCatalog.from_sections([
                {"id": "a", "title": "A", "category": "personal",
                 "fields": [{"id": "f", "label": "F", "type": "text"}]},
                {"id": "b", "title": "B", "category": "personal",
                 "fields": [{"id": "f", "label": "F", "type": "text"}]},
            ])

    def test_gating_id_collides_with_field(self):
        with pytest.raises(ValueError, match="Duplicate answer key"):
            SectionCatalog.from_sections([
                {"id": "a", "title": "A", "category": "personal",
                 "gating_question": {"id": "f", "text": "?"},
                 "fields": [{"id": "f", "label": "F", "type": "text"}]},
            ])

    def test_field_shadows_files_key(self):
        with pytest.raises(ValueError, match="collides"):
            SectionCatalog.from_sections([
                {"id": "a", "title": "A", "category": "personal",
                 "fields": [{"id": "a_files", "label": "F", "type": "text"}]},
            ])

    def test_loads_valid_file(self, tmp_path):
        cat = _write_catalog(tmp_path, [
            {"id": "a", "title": "A", "category": "personal",
             "fields": [{"id": "f", "label": "F", "type": "text"}]},
        ])
        cat.load()
        assert [s.id for s in cat.sections] == ["a"]
        assert cat.get_field("f").label == "F"


class TestReferenceValidation:
    """Dangling references are reported, not raised."""

    def test_unknown_show_if_target(self):
        cat = SectionCatalog.from_sections([
            {"id": "a", "title": "A", "category": "personal",
             "fields": [{"id": "f", "label": "F", "type": "text",
                         "show_if": {"field": "ghost", "value": "x"}}]},
        ])
        problems = cat.validate_references()
        assert len(problems) == 1
        assert "ghost" in problems[0]

    def test_show_if_value_not_an_option(self):
        cat = SectionCatalog.from_sections([
            {"id": "a", "title": "A", "category": "personal",
             "fields": [
                 {"id": "pick", "label": "P", "type": "select", "options": ["No", "Yes"]},
                 {"id": "f", "label": "F", "type": "text",
                  "show_if": {"field": "pick", "value": "Maybe"}},
             ]},
        ])
        assert "not an option" in cat.validate_references()[0]

    def test_dangling_reference_only_warns_on_load(self, tmp_path, caplog):
        cat = _write_catalog(tmp_path, [
            {"id": "a", "title": "A", "category": "personal",
             "fields": [{"id": "f", "label": "F", "type": "text",
                         "show_if": {"field": "ghost", "value": "x"}}]},
        ])
        with caplog.at_level("WARNING", logger="intake_rulesets.catalog"):
            cat.load()
        assert "ghost" in caplog.text


class TestCoerce:
    """catalog.coerce dispatches on the kind of answer key."""

    def test_field(self, catalog):
        assert catalog.coerce("rentalIncome", "$1,500") == 1500.0

    def test_gating(self, catalog):
        assert catalog.coerce("hasDependents", "yes") is True
        assert catalog.coerce("hasDependents", None) is None

    def test_files(self, catalog):
        value = [{"name": "a.pdf", "path": "t/income/1-a.pdf", "size": 1}]
        assert catalog.coerce("income_files", value) == value

    def test_unknown(self, catalog):
        with pytest.raises(ValueError, match="Unknown answer key"):
            catalog.coerce("nope", 1)
