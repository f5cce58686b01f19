"""SqlIntakeBackend — the wizard's storage collaborator on PostgreSQL.

Wraps :class:`IntakeRepository` behind the SDK's :class:`IntakeBackend`
interface.  One instance is bound to one ``AsyncSession`` for the duration
of a request; the autosave bridge serializes its calls so the session is
never used concurrently.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from intake_db.models.enums import IntakeStatus
from intake_db.models.intake import Intake
from intake_db.repository import IntakeRepository
from intake_rulesets.interfaces import IntakeBackend
from intake_rulesets.models.session import LoadedIntake

logger = logging.getLogger(__name__)


class SqlIntakeBackend(IntakeBackend):
    """IntakeBackend backed by the ``intakes`` table."""

    def __init__(
        self, db: AsyncSession, repo: IntakeRepository | None = None
    ) -> None:
        self._db = db
        self._repo = repo or IntakeRepository()

    async def _require(self, token: str) -> Intake:
        intake = await self._repo.get_by_token(self._db, token)
        if intake is None:
            raise ValueError(f"Intake not found: token={token}")
        return intake

    async def load_intake(self, token: str) -> LoadedIntake:
        intake = await self._require(token)
        return LoadedIntake(
            token=intake.token,
            answers=dict(intake.data or {}),
            status=str(IntakeStatus(intake.status).value),
            revision=intake.revision,
        )

    async def persist_answers(
        self, token: str, answers: dict[str, Any], *, revision: int
    ) -> None:
        applied = await self._repo.save_data(
            self._db, token, answers, revision=revision
        )
        if not applied:
            # Either the token vanished or a newer revision is already stored
            await self._require(token)
            raise ValueError(
                f"Rejected stale revision {revision} for intake token={token}"
            )
        logger.debug("Saved intake token=%s revision=%d", token, revision)

    async def submit_intake(self, token: str) -> None:
        intake = await self._require(token)
        await self._repo.mark_submitted(self._db, intake)
        logger.info("Intake submitted: token=%s", token)
