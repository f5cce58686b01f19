"""Intake ORM model — one row per client questionnaire.

The whole answer set lives in a single JSONB column and is overwritten as
one document on every save.  ``revision`` is the counter stamped by the
autosave bridge; the repository only accepts a write whose revision is
newer than the stored one.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from intake_db.models.base import Base
from intake_db.models.enums import IntakeStatus


class Intake(Base):
    """One row per intake.

    A client may have one intake per tax year; each is reached by its
    unguessable ``token``.
    """

    __tablename__ = "intakes"

    # --- Primary key ---
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # --- Identity ---
    # Firm-side client reference
    client_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    tax_year: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    # Client-facing access token (URL-safe)
    token: Mapped[str] = mapped_column(String(64), nullable=False)

    # --- Lifecycle ---
    status: Mapped[IntakeStatus] = mapped_column(
        # Store as the lowercase string value, not the Python name
        String(20),
        nullable=False,
        default=IntakeStatus.NOT_STARTED,
        index=True,
    )

    # --- Answer set ---
    # Flat dict keyed by field id / gating id / "<section>_files"
    data: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )
    revision: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    # --- Timestamps ---
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    submitted_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    # --- Table-level constraints ---
    __table_args__ = (
        UniqueConstraint("token", name="uq_intake_token"),
        CheckConstraint("revision >= 0", name="ck_revision_non_negative"),
        CheckConstraint(
            "status NOT IN ('submitted', 'reviewed') OR submitted_at IS NOT NULL",
            name="ck_submitted_has_timestamp",
        ),
        # --- Indexes ---
        Index("ix_client_tax_year", "client_id", "tax_year"),
        Index("ix_data_gin", "data", postgresql_using="gin"),
    )

    def __repr__(self) -> str:
        return (
            f"<Intake(id={self.id!s}, client={self.client_id!r}, "
            f"year={self.tax_year}, status={self.status!r}, "
            f"revision={self.revision})>"
        )
