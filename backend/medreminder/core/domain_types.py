"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - ScheduleId, MedicationId wrap ints assigned by storage — never mix them up
    - CycleType values are the persisted small-integer tags (0-3), never renumbered
    - Weekday bits: Monday = 1<<6 ... Sunday = 1<<0 (persisted mask convention)

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - IntEnum for tags: the enum value is exactly the stored column value
"""

from enum import IntEnum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

ScheduleId = NewType("ScheduleId", int)
MedicationId = NewType("MedicationId", int)


# ─── Value Types ─────────────────────────────────────────────────

EpochMillis = NewType("EpochMillis", int)       # 0 = unset

NO_TRIGGER = EpochMillis(0)


# ─── Enums ───────────────────────────────────────────────────────

class CycleType(IntEnum):
    """Repetition pattern families — maps to DB `cycle_type` column."""
    DAILY = 0
    WEEKLY = 1
    MONTHLY = 2
    EVERY_N_DAYS = 3


class Weekday(IntEnum):
    """Weekday bits of days_of_week_mask, highest bit first."""
    MONDAY = 1 << 6
    TUESDAY = 1 << 5
    WEDNESDAY = 1 << 4
    THURSDAY = 1 << 3
    FRIDAY = 1 << 2
    SATURDAY = 1 << 1
    SUNDAY = 1 << 0


ALL_WEEKDAYS_MASK = 0b1111111
