"""SectionCatalog — loads the questionnaire from ``v1/sections.yaml``.

This is the single source of truth for the questionnaire schema at runtime.
The catalog is loaded once at startup and provides lookup by section id,
field id, and answer key.

Usage::

    catalog = SectionCatalog()      # defaults to v1/ relative to repo root
    catalog.load()                  # parse the YAML

    section = catalog.get_section("income")
    field = catalog.get_field("rentalIncome")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Optional

import yaml

from intake_rulesets.models.answers import coerce_answer, coerce_boolean, coerce_file_list
from intake_rulesets.models.schema import FieldDefinition, GatingQuestion, SectionDefinition

logger = logging.getLogger(__name__)

SECTIONS_FILE = "sections.yaml"


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def find_repo_root(start: Optional[Path] = None) -> Path:
    """Walk upwards from *start* to find the repo root (dir with pyproject.toml or .git).

    Falls back to cwd if no marker is found.
    """
    p = (start or Path(__file__).resolve()).parent
    for parent in [p, *p.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent
    return Path.cwd()


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


# ---------------------------------------------------------------------------
# SectionCatalog
# ---------------------------------------------------------------------------

class SectionCatalog:
    """Loads the section catalog from ``v1/`` and provides typed lookup.

    Attributes populated after :meth:`load`:

        sections        — tuple[SectionDefinition], in wizard order
        fields          — dict[field id, FieldDefinition]
        gating          — dict[gating id, GatingQuestion]
    """

    def __init__(self, ruleset_dir: str | Path | None = None) -> None:
        if ruleset_dir is None:
            ruleset_dir = find_repo_root() / "v1"
        self._base = Path(ruleset_dir)

        # Populated by load()
        self.sections: tuple[SectionDefinition, ...] = ()
        self.fields: dict[str, FieldDefinition] = {}
        self.gating: dict[str, GatingQuestion] = {}
        self._by_id: dict[str, SectionDefinition] = {}
        # field id / gating id -> owning section id
        self._owner: dict[str, str] = {}
        self._files_keys: frozenset[str] = frozenset()

    @classmethod
    def from_sections(cls, sections: Iterable[SectionDefinition | dict]) -> SectionCatalog:
        """Build a catalog from in-memory definitions (no YAML involved)."""
        catalog = cls(ruleset_dir=Path.cwd())
        catalog._index(
            [s if isinstance(s, SectionDefinition) else SectionDefinition(**s) for s in sections]
        )
        return catalog

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Parse ``sections.yaml`` into typed models.

        Call this once at startup.  Raises ``FileNotFoundError`` if the YAML
        file is missing and ``ValueError`` for a malformed catalog (duplicate
        ids, unknown field types, select fields without options).  Dangling
        cross-references are only logged; see :meth:`validate_references`.
        """
        raw_sections = load_yaml(self._base / SECTIONS_FILE)
        if not isinstance(raw_sections, list):
            raise ValueError(f"{SECTIONS_FILE} must contain a list of sections")

        self._index([SectionDefinition(**raw) for raw in raw_sections])

        for problem in self.validate_references():
            logger.warning("Section catalog: %s", problem)

        logger.info(
            "SectionCatalog loaded: %d sections, %d fields, %d gating questions",
            len(self.sections),
            len(self.fields),
            len(self.gating),
        )

    def _index(self, sections: list[SectionDefinition]) -> None:
        """Build lookup tables, rejecting any id collision in the flat namespace."""
        by_id: dict[str, SectionDefinition] = {}
        fields: dict[str, FieldDefinition] = {}
        gating: dict[str, GatingQuestion] = {}
        owner: dict[str, str] = {}

        for section in sections:
            if section.id in by_id:
                raise ValueError(f"Duplicate section id '{section.id}'")
            by_id[section.id] = section

            keys: list[str] = [f.id for f in section.fields]
            if section.gating_question is not None:
                keys.append(section.gating_question.id)
                gating[section.gating_question.id] = section.gating_question
            for key in keys:
                if key in owner:
                    raise ValueError(
                        f"Duplicate answer key '{key}' in sections "
                        f"'{owner[key]}' and '{section.id}'"
                    )
                owner[key] = section.id
            for f in section.fields:
                fields[f.id] = f

        # Synthetic file-list keys must not shadow a declared key either
        for section in sections:
            if section.files_key in owner:
                raise ValueError(
                    f"Answer key '{section.files_key}' collides with the "
                    f"document list of section '{section.id}'"
                )

        self.sections = tuple(sections)
        self.fields = fields
        self.gating = gating
        self._by_id = by_id
        self._owner = owner
        self._files_keys = frozenset(s.files_key for s in sections)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_references(self) -> list[str]:
        """Return a description of every dangling cross-reference.

        Checks that each ``show_if.field`` names a known answer key.  The
        resolvers tolerate dangling references (the condition simply never
        matches), so this is a consistency check for tests and start-up
        logging, not a hard failure.
        """
        problems: list[str] = []
        for section in self.sections:
            for f in section.fields:
                if f.show_if is None:
                    continue
                if f.show_if.field not in self._owner:
                    problems.append(
                        f"field '{f.id}' in section '{section.id}' has show_if "
                        f"on unknown field '{f.show_if.field}'"
                    )
                elif f.show_if.field == f.id:
                    problems.append(f"field '{f.id}' has show_if on itself")
                else:
                    target = self.fields.get(f.show_if.field)
                    if (
                        target is not None
                        and target.type == "select"
                        and f.show_if.value not in (target.options or ())
                    ):
                        problems.append(
                            f"field '{f.id}' has show_if value {f.show_if.value!r} "
                            f"that is not an option of '{target.id}'"
                        )
        return problems

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def get_section(self, section_id: str) -> SectionDefinition:
        """Look up a section by id.

        Raises:
            KeyError: if the section is not in the catalog.
        """
        return self._by_id[section_id]

    def get_field(self, field_id: str) -> FieldDefinition:
        """Look up a field by id.

        Raises:
            KeyError: if the field is not in the catalog.
        """
        return self.fields[field_id]

    def is_answer_key(self, key: str) -> bool:
        return key in self._owner or key in self._files_keys

    def coerce(self, key: str, value: Any) -> Any:
        """Coerce a raw client value for ``key`` to its canonical shape.

        Raises:
            ValueError: if ``key`` is unknown or the value does not fit.
        """
        if key in self.fields:
            return coerce_answer(self.fields[key], value)
        if key in self.gating:
            return None if value is None else coerce_boolean(key, value)
        if key in self._files_keys:
            return coerce_file_list(key, value)
        raise ValueError(f"Unknown answer key: {key}")
