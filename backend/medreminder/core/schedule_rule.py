"""Schedule Rule — immutable reminder rule entity with a closed cycle variant.

Invariants:
    - Each cycle variant carries only the fields it needs (no invalid combinations)
    - times_of_day is always a sorted, deduplicated tuple (normalized on construction)
    - UnrecognizedCycle only appears when decoding an unknown stored tag; it keeps
      the tag so re-persisting does not lose data, and never yields an occurrence
    - next_trigger_at=None is persisted as 0 (and 0 decodes back to None)
    - rule_from_columns(rule_to_columns(r)) reproduces r (minus id)

Design Decisions:
    - Frozen dataclasses: the calculator reads rules, mutations go through
      dataclasses.replace() in the lifecycle manager
    - Row codec lives in core (pure) so the repository stays a thin mapper
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, time

from medreminder.core.calendar_math import from_epoch_millis, to_epoch_millis
from medreminder.core.domain_types import (
    ALL_WEEKDAYS_MASK, NO_TRIGGER, CycleType, MedicationId, ScheduleId,
)
from medreminder.core.times_of_day import format_times_of_day, parse_times_of_day


# ─── Cycle Variants ──────────────────────────────────────────────

@dataclass(frozen=True)
class DailyCycle:
    """Every day at each time of day."""


@dataclass(frozen=True)
class WeeklyCycle:
    """Selected weekdays (Weekday bit mask) at each time of day."""
    days_mask: int


@dataclass(frozen=True)
class MonthlyCycle:
    """One day per month (1-31, clamped to month length)."""
    day_of_month: int


@dataclass(frozen=True)
class EveryNDaysCycle:
    """Every interval_days days counted from anchor's local date (None = today)."""
    interval_days: int
    anchor: datetime | None = None


@dataclass(frozen=True)
class UnrecognizedCycle:
    """Stored tag this version does not understand."""
    tag: int


Cycle = DailyCycle | WeeklyCycle | MonthlyCycle | EveryNDaysCycle | UnrecognizedCycle


def cycle_tag(cycle: Cycle) -> int:
    """Persisted small-integer tag for a cycle variant."""
    match cycle:
        case DailyCycle():
            return CycleType.DAILY
        case WeeklyCycle():
            return CycleType.WEEKLY
        case MonthlyCycle():
            return CycleType.MONTHLY
        case EveryNDaysCycle():
            return CycleType.EVERY_N_DAYS
        case UnrecognizedCycle(tag=tag):
            return tag
    raise TypeError(f"not a cycle: {cycle!r}")


# ─── Entity ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class ScheduleRule:
    """A medication's reminder rule — pure value, no IO."""
    medication_id: MedicationId
    cycle: Cycle
    times_of_day: tuple[time, ...] = field(default=())
    enabled: bool = True
    id: ScheduleId | None = None
    next_trigger_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self):
        object.__setattr__(
            self, "times_of_day", parse_times_of_day(self.times_of_day),
        )


# ─── Row Codec ───────────────────────────────────────────────────

def _millis_or_zero(instant: datetime | None) -> int:
    return to_epoch_millis(instant) if instant is not None else NO_TRIGGER


def _instant_or_none(millis: int | None) -> datetime | None:
    return from_epoch_millis(millis) if millis and millis > 0 else None


def rule_to_columns(rule: ScheduleRule) -> dict:
    """Flatten a rule into persisted column values (id excluded)."""
    days_mask = day_of_month = interval_days = start_instant = 0
    match rule.cycle:
        case WeeklyCycle(days_mask=mask):
            days_mask = mask & ALL_WEEKDAYS_MASK
        case MonthlyCycle(day_of_month=dom):
            day_of_month = dom
        case EveryNDaysCycle(interval_days=n, anchor=anchor):
            interval_days = n
            start_instant = _millis_or_zero(anchor)
    return {
        "medication_id": rule.medication_id,
        "cycle_type": int(cycle_tag(rule.cycle)),
        "times_of_day": format_times_of_day(rule.times_of_day),
        "days_of_week_mask": days_mask,
        "day_of_month": day_of_month,
        "interval_days": interval_days,
        "start_instant": start_instant,
        "next_trigger_instant": _millis_or_zero(rule.next_trigger_at),
        "enabled": rule.enabled,
        "created_at": _millis_or_zero(rule.created_at),
        "updated_at": _millis_or_zero(rule.updated_at),
    }


def _cycle_from_columns(columns: Mapping) -> Cycle:
    tag = columns.get("cycle_type")
    if tag == CycleType.DAILY:
        return DailyCycle()
    if tag == CycleType.WEEKLY:
        return WeeklyCycle(days_mask=columns.get("days_of_week_mask") or 0)
    if tag == CycleType.MONTHLY:
        return MonthlyCycle(day_of_month=columns.get("day_of_month") or 0)
    if tag == CycleType.EVERY_N_DAYS:
        return EveryNDaysCycle(
            interval_days=columns.get("interval_days") or 0,
            anchor=_instant_or_none(columns.get("start_instant")),
        )
    return UnrecognizedCycle(tag=-1 if tag is None else int(tag))


def rule_from_columns(columns: Mapping) -> ScheduleRule:
    """Rebuild a rule from persisted column values."""
    schedule_id = columns.get("id")
    return ScheduleRule(
        id=ScheduleId(schedule_id) if schedule_id is not None else None,
        medication_id=MedicationId(columns["medication_id"]),
        cycle=_cycle_from_columns(columns),
        times_of_day=parse_times_of_day(columns.get("times_of_day")),
        enabled=bool(columns.get("enabled", True)),
        next_trigger_at=_instant_or_none(columns.get("next_trigger_instant")),
        created_at=_instant_or_none(columns.get("created_at")),
        updated_at=_instant_or_none(columns.get("updated_at")),
    )
