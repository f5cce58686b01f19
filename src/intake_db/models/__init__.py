"""ORM models for intake_db."""

from intake_db.models.base import Base
from intake_db.models.enums import IntakeStatus
from intake_db.models.intake import Intake

__all__ = ["Base", "IntakeStatus", "Intake"]
