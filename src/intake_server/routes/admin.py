"""Staff endpoints — create intakes, inspect them, review submissions.

Protected by the ``ADMIN_API_KEY`` setting.  Every request must include an
``X-Admin-Key`` header whose value matches the configured key.  Returns 401
if missing, 403 if wrong or not configured.
"""

import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from intake_db.models.enums import IntakeStatus
from intake_db.models.intake import Intake
from intake_db.repository import IntakeRepository
from intake_rulesets.catalog import SectionCatalog
from intake_rulesets.models.session import IntakeInfo, ReviewRow
from intake_rulesets.review import build_review_rows

from intake_server.dependencies import (
    get_catalog,
    get_db,
    get_repository,
    require_admin_key,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin_key)],
)


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class CreateIntakeRequest(BaseModel):
    """Body for POST /admin/intakes."""
    client_id: str = Field(..., min_length=1)
    tax_year: int = Field(..., ge=2000, le=2100)


class ReviewSheet(BaseModel):
    """Response body for the review endpoint."""
    info: IntakeInfo
    rows: list[ReviewRow]


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _to_info(intake: Intake) -> IntakeInfo:
    return IntakeInfo(
        token=intake.token,
        client_id=intake.client_id,
        tax_year=intake.tax_year,
        status=str(IntakeStatus(intake.status).value),
        revision=intake.revision,
        created_at=intake.created_at,
        updated_at=intake.updated_at,
        submitted_at=intake.submitted_at,
        reviewed_at=intake.reviewed_at,
    )


async def _require(db: AsyncSession, repo: IntakeRepository, token: str) -> Intake:
    intake = await repo.get_by_token(db, token)
    if intake is None:
        raise ValueError(f"Intake not found: token={token}")
    return intake


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/intakes", status_code=201)
async def create_intake(
    body: CreateIntakeRequest,
    db: AsyncSession = Depends(get_db),
    repo: IntakeRepository = Depends(get_repository),
) -> IntakeInfo:
    """Create an empty intake and return it with its client access token."""
    intake = await repo.create_intake(
        db, client_id=body.client_id, tax_year=body.tax_year,
    )
    logger.info("Created intake for client=%s year=%d", body.client_id, body.tax_year)
    return _to_info(intake)


@router.get("/intakes/{token}")
async def get_intake(
    token: str,
    db: AsyncSession = Depends(get_db),
    repo: IntakeRepository = Depends(get_repository),
) -> IntakeInfo:
    """Return lifecycle metadata of one intake."""
    return _to_info(await _require(db, repo, token))


@router.get("/clients/{client_id}/intakes")
async def list_client_intakes(
    client_id: str,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    repo: IntakeRepository = Depends(get_repository),
) -> list[IntakeInfo]:
    """List a client's intakes, most recent tax year first."""
    intakes = await repo.list_by_client(db, client_id, limit=limit, offset=offset)
    return [_to_info(i) for i in intakes]


@router.get("/intakes/{token}/review")
async def review_intake(
    token: str,
    db: AsyncSession = Depends(get_db),
    repo: IntakeRepository = Depends(get_repository),
    catalog: SectionCatalog = Depends(get_catalog),
) -> ReviewSheet:
    """Return the review sheet: every active section with its answers."""
    intake = await _require(db, repo, token)
    return ReviewSheet(
        info=_to_info(intake),
        rows=build_review_rows(catalog, intake.data or {}),
    )


@router.post("/intakes/{token}/reviewed")
async def mark_reviewed(
    token: str,
    db: AsyncSession = Depends(get_db),
    repo: IntakeRepository = Depends(get_repository),
) -> IntakeInfo:
    """Sign off a submitted intake."""
    intake = await _require(db, repo, token)
    status = IntakeStatus(intake.status)
    if status not in (IntakeStatus.SUBMITTED, IntakeStatus.REVIEWED):
        raise ValueError(
            f"Only submitted intakes can be reviewed (token={token}, status={status.value})"
        )
    intake = await repo.mark_reviewed(db, intake)
    return _to_info(intake)
