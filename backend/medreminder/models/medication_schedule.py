"""MedicationSchedule ORM — persists one reminder rule for a medication.

Invariants:
    - id is an autoincrement integer primary key assigned on insert
    - medication_id references an external medication record (not owned here)
    - cycle_type is the CycleType small-integer tag; unused cycle columns hold 0
    - All instants are epoch millis; next_trigger_instant=0 means "none"

Design Decisions:
    - Flat columns mirror the mobile client's table so exported data maps 1:1
    - times_of_day as compact "HH:MM,..." text: parsed defensively on read
    - No DB-level FK to medications: medication storage lives outside this package,
      medication_id is indexed for query-by-medication instead
"""

from sqlalchemy import BigInteger, Boolean, Index, Integer, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from medreminder.db.base import Base


class MedicationSchedule(Base):
    """Schedule rule row — decoded into core ScheduleRule by the repository."""
    __tablename__ = "medication_schedules"
    __table_args__ = (
        Index("ix_medication_schedules_medication_id", "medication_id"),
        Index("ix_medication_schedules_enabled_next", "enabled", "next_trigger_instant"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    medication_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    cycle_type: Mapped[int] = mapped_column(
        SmallInteger, nullable=False, default=0,
    )
    times_of_day: Mapped[str] = mapped_column(
        String(512), nullable=False, default="",
    )
    days_of_week_mask: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    day_of_month: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    interval_days: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    start_instant: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0,
    )
    next_trigger_instant: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0,
    )
    enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True,
    )
    created_at: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0,
    )
    updated_at: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0,
    )
