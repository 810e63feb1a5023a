"""Initial schema — medication_schedules.

Revision ID: 001_medication_schedules
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_medication_schedules"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "medication_schedules",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("medication_id", sa.BigInteger, nullable=False),
        sa.Column("cycle_type", sa.SmallInteger, nullable=False, server_default="0"),
        sa.Column("times_of_day", sa.String(512), nullable=False, server_default=""),
        sa.Column("days_of_week_mask", sa.Integer, nullable=False, server_default="0"),
        sa.Column("day_of_month", sa.Integer, nullable=False, server_default="0"),
        sa.Column("interval_days", sa.Integer, nullable=False, server_default="0"),
        sa.Column("start_instant", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("next_trigger_instant", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("enabled", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("updated_at", sa.BigInteger, nullable=False, server_default="0"),
    )
    op.create_index(
        "ix_medication_schedules_medication_id",
        "medication_schedules", ["medication_id"],
    )
    op.create_index(
        "ix_medication_schedules_enabled_next",
        "medication_schedules", ["enabled", "next_trigger_instant"],
    )


def downgrade() -> None:
    op.drop_index("ix_medication_schedules_enabled_next", "medication_schedules")
    op.drop_index("ix_medication_schedules_medication_id", "medication_schedules")
    op.drop_table("medication_schedules")
