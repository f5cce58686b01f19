"""Async CRUD repository for Intake.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries.  Methods call ``flush()`` but never ``commit()``.

The repository deliberately avoids business-logic validation — that belongs
in the SDK and server layers.  It *does* enforce the one storage invariant
the wizard relies on: an answer-set write carrying an older revision than
the stored one is dropped rather than applied.
"""

import secrets
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from intake_db.models.enums import IntakeStatus
from intake_db.models.intake import Intake

# 32 random bytes -> 43 URL-safe characters
_TOKEN_BYTES = 32


def generate_token() -> str:
    """Return a fresh unguessable client access token."""
    return secrets.token_urlsafe(_TOKEN_BYTES)


class IntakeRepository:
    """Async read/write operations on the ``intakes`` table."""

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_intake(
        self,
        db: AsyncSession,
        *,
        client_id: str,
        tax_year: int,
        data: dict[str, Any] | None = None,
    ) -> Intake:
        """Insert a new intake row with a generated token and return it.

        The caller must ``await db.commit()`` to persist.
        """
        intake = Intake(
            client_id=client_id,
            tax_year=tax_year,
            token=generate_token(),
            status=IntakeStatus.NOT_STARTED,
            data=dict(data or {}),
            revision=0,
        )
        db.add(intake)
        await db.flush()  # Populate defaults (id, timestamps)
        return intake

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_token(self, db: AsyncSession, token: str) -> Intake | None:
        """Fetch an intake by its client access token."""
        stmt = select(Intake).where(Intake.token == token)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_client(
        self,
        db: AsyncSession,
        client_id: str,
        *,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Intake]:
        """List a client's intakes, most recent tax year first."""
        stmt = (
            select(Intake)
            .where(Intake.client_id == client_id)
            .order_by(Intake.tax_year.desc(), Intake.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Update — answer set
    # ------------------------------------------------------------------

    async def save_data(
        self,
        db: AsyncSession,
        token: str,
        data: dict[str, Any],
        *,
        revision: int,
    ) -> bool:
        """Overwrite the answer set if ``revision`` is newer than the stored one.

        Runs as a single conditional ``UPDATE`` so two writers cannot both
        win.  The first save also moves ``not_started`` to ``in_progress``.

        Returns True if the row was updated, False if the token is unknown
        or the stored revision is already at least ``revision``.
        """
        stmt = (
            update(Intake)
            .where(Intake.token == token, Intake.revision < revision)
            .values(
                data=data,
                revision=revision,
                status=case(
                    (
                        Intake.status == IntakeStatus.NOT_STARTED.value,
                        IntakeStatus.IN_PROGRESS.value,
                    ),
                    else_=Intake.status,
                ),
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        await db.flush()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Update — lifecycle
    # ------------------------------------------------------------------

    async def mark_submitted(self, db: AsyncSession, intake: Intake) -> Intake:
        """Set status to ``submitted``.

        Idempotent: submitting twice only refreshes ``submitted_at``.
        """
        now = datetime.now(timezone.utc)
        intake.status = IntakeStatus.SUBMITTED
        intake.submitted_at = now
        intake.updated_at = now
        await db.flush()
        return intake

    async def mark_reviewed(self, db: AsyncSession, intake: Intake) -> Intake:
        """Set status to ``reviewed`` (staff sign-off)."""
        now = datetime.now(timezone.utc)
        intake.status = IntakeStatus.REVIEWED
        intake.reviewed_at = now
        intake.updated_at = now
        await db.flush()
        return intake
