"""Occurrence Calculator — next reminder instant for a rule, pure and deterministic.

Invariants:
    - Same (rule, now, zone) always yields the same result: the stored
      next_trigger_at is a cache that can be recomputed after any restart
    - A returned instant is strictly greater than now; equality is not "future",
      so the instant that just fired is never returned again
    - Disabled rules, empty time sets, empty weekly masks and unrecognized cycles
      yield None — an expected outcome, never an exception
    - Results are aware UTC datetimes

Design Decisions:
    - Time-zone anchored: wall-clock times are interpreted in the zone passed in at
      every computation, so 08:00 stays 08:00 local across DST changes
    - Day scanning uses calendar dates, not 24h steps: DST days are 23h/25h long
    - Every-N-days counts whole calendar days from the anchor's local date; when
      now precedes the anchor day, the anchor day is the next cycle day
"""

from datetime import date, datetime, time, timezone, tzinfo

from medreminder.core.calendar_math import (
    add_days, add_months, anchor_day_in_month, at_time_of_day,
    from_epoch_millis, local_date, to_epoch_millis, weekday_bit,
)
from medreminder.core.domain_types import ALL_WEEKDAYS_MASK, NO_TRIGGER
from medreminder.core.schedule_rule import (
    DailyCycle, EveryNDaysCycle, MonthlyCycle, ScheduleRule, WeeklyCycle,
)

_DAYS_PER_WEEK = 7


def _first_slot_after(
    day: date, times: tuple[time, ...], zone: tzinfo, after: datetime,
) -> datetime | None:
    for t in times:
        slot = at_time_of_day(day, t, zone)
        if slot > after:
            return slot
    return None


def _earliest_slot(day: date, times: tuple[time, ...], zone: tzinfo) -> datetime:
    return at_time_of_day(day, times[0], zone)


def _next_daily(times, zone, now, today) -> datetime:
    return (
        _first_slot_after(today, times, zone, now)
        or _earliest_slot(add_days(today, 1), times, zone)
    )


def _next_weekly(days_mask: int, times, zone, now, today) -> datetime | None:
    mask = days_mask & ALL_WEEKDAYS_MASK
    if not mask:
        return None
    for offset in range(_DAYS_PER_WEEK):
        day = add_days(today, offset)
        if weekday_bit(day) & mask:
            slot = _first_slot_after(day, times, zone, now)
            if slot is not None:
                return slot
    # Only today's weekday is active and its slots have passed: one week later.
    for offset in range(_DAYS_PER_WEEK, 2 * _DAYS_PER_WEEK):
        day = add_days(today, offset)
        if weekday_bit(day) & mask:
            return _earliest_slot(day, times, zone)
    return None


def _next_monthly(day_of_month: int, times, zone, now, today) -> datetime:
    this_month = anchor_day_in_month(today.year, today.month, day_of_month)
    slot = _first_slot_after(this_month, times, zone, now)
    if slot is not None:
        return slot
    following = add_months(today.replace(day=1), 1)
    next_month = anchor_day_in_month(following.year, following.month, day_of_month)
    return _earliest_slot(next_month, times, zone)


def _next_every_n_days(
    interval_days: int, anchor: datetime | None, times, zone, now, today,
) -> datetime:
    interval = max(1, interval_days)
    start = local_date(anchor, zone) if anchor is not None else today
    if today < start:
        return _earliest_slot(start, times, zone)
    elapsed_cycles = (today - start).days // interval
    current = add_days(start, elapsed_cycles * interval)
    return (
        _first_slot_after(current, times, zone, now)
        or _earliest_slot(add_days(current, interval), times, zone)
    )


def compute_next_occurrence(
    rule: ScheduleRule, now: datetime, zone: tzinfo,
) -> datetime | None:
    """Next trigger instant strictly after now, or None when not computable."""
    times = rule.times_of_day
    if not rule.enabled or not times:
        return None
    now = now.astimezone(timezone.utc)
    today = local_date(now, zone)

    match rule.cycle:
        case DailyCycle():
            return _next_daily(times, zone, now, today)
        case WeeklyCycle(days_mask=mask):
            return _next_weekly(mask, times, zone, now, today)
        case MonthlyCycle(day_of_month=dom):
            return _next_monthly(dom, times, zone, now, today)
        case EveryNDaysCycle(interval_days=n, anchor=anchor):
            return _next_every_n_days(n, anchor, times, zone, now, today)
        case _:
            return None


def compute_next_epoch_millis(rule: ScheduleRule, now_millis: int, zone: tzinfo) -> int:
    """Epoch-millis form of compute_next_occurrence; 0 means "no next occurrence"."""
    nxt = compute_next_occurrence(rule, from_epoch_millis(now_millis), zone)
    return to_epoch_millis(nxt) if nxt is not None else NO_TRIGGER
