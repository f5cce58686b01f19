"""Create intakes table.

Initial migration: one row per client questionnaire, the whole answer set
in a JSONB ``data`` column guarded by a ``revision`` counter.

Revision ID: 20261019_intakes
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

# revision identifiers, used by Alembic.
revision = "20261019_intakes"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "intakes",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        # Identity
        sa.Column("client_id", sa.Text, nullable=False),
        sa.Column("tax_year", sa.SmallInteger, nullable=False),
        sa.Column("token", sa.String(64), nullable=False),
        # Lifecycle
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'not_started'"),
        ),
        # Answer set
        sa.Column(
            "data",
            JSONB,
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "revision",
            sa.Integer,
            nullable=False,
            server_default=sa.text("0"),
        ),
        # Timestamps
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("submitted_at", TIMESTAMP(timezone=True), nullable=True),
        sa.Column("reviewed_at", TIMESTAMP(timezone=True), nullable=True),
        # Table-level constraints
        sa.UniqueConstraint("token", name="uq_intake_token"),
        sa.CheckConstraint("revision >= 0", name="ck_revision_non_negative"),
        sa.CheckConstraint(
            "status NOT IN ('submitted', 'reviewed') OR submitted_at IS NOT NULL",
            name="ck_submitted_has_timestamp",
        ),
    )

    # --- Indexes ---
    op.create_index("ix_intakes_client_id", "intakes", ["client_id"])
    op.create_index("ix_intakes_status", "intakes", ["status"])
    op.create_index("ix_client_tax_year", "intakes", ["client_id", "tax_year"])
    op.create_index("ix_data_gin", "intakes", ["data"], postgresql_using="gin")


def downgrade() -> None:
    op.drop_table("intakes")
