"""intake_db — PostgreSQL persistence layer for tax intakes.

This package provides the ORM model, async engine factory, repository and
the ``IntakeBackend`` adapter the wizard persists through.  It is designed
to be consumed by the FastAPI server.
"""

from intake_db.backend import SqlIntakeBackend
from intake_db.engine import dispose_engine, get_engine, get_session_factory, session_scope
from intake_db.models.enums import IntakeStatus
from intake_db.models.intake import Intake
from intake_db.repository import IntakeRepository

__all__ = [
    "Intake",
    "IntakeStatus",
    "get_engine",
    "get_session_factory",
    "session_scope",
    "dispose_engine",
    "IntakeRepository",
    "SqlIntakeBackend",
]
