"""Schedule Schemas — Pydantic models validating user input before it becomes a rule.

Invariants:
    - Drafts are discriminated on cycle_type ("daily" | "weekly" | "monthly" | "every_n_days")
    - times_of_day must contain at least one valid "HH:MM" entry; invalid entries
      are dropped, not reported (same defensive parsing as the core)
    - weekly drafts need at least one weekday; monthly day_of_month is 1-31;
      every-N-days interval_days >= 1
    - to_rule() produces an unsaved ScheduleRule (id=None, next_trigger_at=None)

Design Decisions:
    - Validation lives at the boundary: the lifecycle manager and calculator tolerate
      whatever the store holds and never re-validate
    - Weekday names over raw masks at the boundary; the mask is a storage detail
"""

from datetime import date, datetime, time
from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from medreminder.core.calendar_math import at_time_of_day, resolve_zone
from medreminder.core.domain_types import MedicationId, Weekday
from medreminder.core.schedule_rule import (
    DailyCycle, EveryNDaysCycle, MonthlyCycle, ScheduleRule, UnrecognizedCycle,
    WeeklyCycle, cycle_tag,
)
from medreminder.core.times_of_day import format_times_of_day, parse_times_of_day

WeekdayName = Literal[
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
]


class _DraftBase(BaseModel):
    medication_id: int = Field(ge=1)
    times_of_day: list[str] = Field(min_length=1)
    enabled: bool = True

    @field_validator("times_of_day")
    @classmethod
    def keep_valid_times(cls, v: list[str]) -> list[str]:
        parsed = parse_times_of_day(v)
        if not parsed:
            raise ValueError("at least one time of day like 08:00 is required")
        return format_times_of_day(parsed).split(",")

    def _rule(self, cycle) -> ScheduleRule:
        return ScheduleRule(
            medication_id=MedicationId(self.medication_id),
            cycle=cycle,
            times_of_day=parse_times_of_day(self.times_of_day),
            enabled=self.enabled,
        )


class DailyScheduleDraft(_DraftBase):
    cycle_type: Literal["daily"] = "daily"

    def to_rule(self, zone_name: str | None = None) -> ScheduleRule:
        return self._rule(DailyCycle())


class WeeklyScheduleDraft(_DraftBase):
    cycle_type: Literal["weekly"] = "weekly"
    days_of_week: list[WeekdayName] = Field(min_length=1)

    def to_rule(self, zone_name: str | None = None) -> ScheduleRule:
        mask = 0
        for name in self.days_of_week:
            mask |= Weekday[name.upper()]
        return self._rule(WeeklyCycle(days_mask=mask))


class MonthlyScheduleDraft(_DraftBase):
    cycle_type: Literal["monthly"] = "monthly"
    day_of_month: int = Field(ge=1, le=31)

    def to_rule(self, zone_name: str | None = None) -> ScheduleRule:
        return self._rule(MonthlyCycle(day_of_month=self.day_of_month))


class EveryNDaysScheduleDraft(_DraftBase):
    cycle_type: Literal["every_n_days"] = "every_n_days"
    interval_days: int = Field(ge=1, le=365)
    start_date: date | None = None

    def to_rule(self, zone_name: str | None = None) -> ScheduleRule:
        """start_date becomes the local-midnight anchor in zone_name (None = system zone)."""
        anchor = None
        if self.start_date is not None:
            anchor = at_time_of_day(self.start_date, time(0, 0), resolve_zone(zone_name))
        return self._rule(EveryNDaysCycle(interval_days=self.interval_days, anchor=anchor))


ScheduleDraft = Annotated[
    DailyScheduleDraft | WeeklyScheduleDraft | MonthlyScheduleDraft | EveryNDaysScheduleDraft,
    Field(discriminator="cycle_type"),
]

_draft_adapter: TypeAdapter[ScheduleDraft] = TypeAdapter(ScheduleDraft)


def parse_schedule_draft(data: dict) -> ScheduleDraft:
    """Validate raw input into the matching draft model (raises pydantic.ValidationError)."""
    return _draft_adapter.validate_python(data)


# ─── Read Model ──────────────────────────────────────────────

class ScheduleView(BaseModel):
    """Flat, JSON-friendly view of a stored rule."""
    id: int | None
    medication_id: int
    cycle_type: int
    times_of_day: list[str]
    days_of_week: list[WeekdayName] = Field(default_factory=list)
    day_of_month: int | None = None
    interval_days: int | None = None
    start_instant: datetime | None = None
    enabled: bool
    next_trigger_at: datetime | None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_rule(cls, rule: ScheduleRule) -> "ScheduleView":
        extra: dict = {}
        match rule.cycle:
            case WeeklyCycle(days_mask=mask):
                extra["days_of_week"] = [
                    day.name.lower() for day in Weekday if mask & day
                ]
            case MonthlyCycle(day_of_month=dom):
                extra["day_of_month"] = dom
            case EveryNDaysCycle(interval_days=n, anchor=anchor):
                extra["interval_days"] = n
                extra["start_instant"] = anchor
            case DailyCycle() | UnrecognizedCycle():
                pass
        times = format_times_of_day(rule.times_of_day)
        return cls(
            id=rule.id,
            medication_id=rule.medication_id,
            cycle_type=int(cycle_tag(rule.cycle)),
            times_of_day=times.split(",") if times else [],
            enabled=rule.enabled,
            next_trigger_at=rule.next_trigger_at,
            created_at=rule.created_at,
            updated_at=rule.updated_at,
            **extra,
        )
