"""Reference data endpoints — the section catalog and supported field types.

Read-only endpoints that expose the catalog loaded from ``v1/sections.yaml``.
They don't require authentication since the questionnaire layout is not
client data.
"""

from fastapi import APIRouter, Depends

from intake_rulesets.catalog import SectionCatalog
from intake_rulesets.constants import FIELD_TYPES

from intake_server.dependencies import get_catalog

router = APIRouter(prefix="/reference", tags=["reference"])


@router.get("/sections")
def list_sections(
    catalog: SectionCatalog = Depends(get_catalog),
) -> list[dict]:
    """Return every section definition in wizard order."""
    return [section.model_dump(exclude_none=True) for section in catalog.sections]


@router.get("/field-types")
def list_field_types() -> list[str]:
    """Return the field types a section may declare."""
    return list(FIELD_TYPES)
