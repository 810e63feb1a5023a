"""Occurrence Calculator — next trigger instant per cycle type, pure and deterministic.

Invariants:
    - Returned instant is strictly after now (equality is not "future")
    - Disabled / empty-times / empty-mask / unrecognized rules yield None
    - Wall-clock times follow the zone across DST changes

Design Decisions:
    - All wall-clock fixtures in Europe/Berlin; 2026-03-10 is a Tuesday, DST starts
      2026-03-29 (02:00 → 03:00)
"""

from datetime import datetime, timezone

from medreminder.core.calendar_math import to_epoch_millis
from medreminder.core.domain_types import NO_TRIGGER, MedicationId, Weekday
from medreminder.core.occurrence import (
    compute_next_epoch_millis, compute_next_occurrence,
)
from medreminder.core.schedule_rule import (
    DailyCycle, EveryNDaysCycle, MonthlyCycle, ScheduleRule, UnrecognizedCycle,
    WeeklyCycle,
)

from fakes import BERLIN, berlin


def _rule(cycle, times="08:00,20:00", enabled=True) -> ScheduleRule:
    return ScheduleRule(
        medication_id=MedicationId(1), cycle=cycle, times_of_day=times,
        enabled=enabled,
    )


def _next(rule, now):
    return compute_next_occurrence(rule, now, BERLIN)


# ─── Daily ───────────────────────────────────────────────────────

def test_daily_returns_later_slot_same_day():
    assert _next(_rule(DailyCycle()), berlin(2026, 3, 10, 8, 30)) == berlin(2026, 3, 10, 20, 0)


def test_daily_rolls_over_to_first_slot_tomorrow():
    assert _next(_rule(DailyCycle()), berlin(2026, 3, 10, 20, 30)) == berlin(2026, 3, 11, 8, 0)


def test_daily_before_first_slot_returns_first_slot():
    assert _next(_rule(DailyCycle()), berlin(2026, 3, 10, 6, 0)) == berlin(2026, 3, 10, 8, 0)


def test_daily_slot_equal_to_now_is_not_future():
    assert _next(_rule(DailyCycle()), berlin(2026, 3, 10, 20, 0)) == berlin(2026, 3, 11, 8, 0)


def test_daily_times_are_sorted_before_use():
    rule = _rule(DailyCycle(), times="20:00,08:00,12:15")
    assert _next(rule, berlin(2026, 3, 10, 9, 0)) == berlin(2026, 3, 10, 12, 15)


def test_result_is_utc_instant():
    result = _next(_rule(DailyCycle()), berlin(2026, 3, 10, 8, 30))
    assert result.tzinfo == timezone.utc
    assert result == datetime(2026, 3, 10, 19, 0, tzinfo=timezone.utc)


def test_daily_keeps_wall_clock_across_dst_start():
    # CET (+1) on the 28th, CEST (+2) on the 29th: 08:00 local is 06:00 UTC
    result = _next(_rule(DailyCycle(), times="08:00"), berlin(2026, 3, 28, 9, 0))
    assert result == datetime(2026, 3, 29, 6, 0, tzinfo=timezone.utc)


def test_daily_slot_in_dst_gap_shifts_forward():
    # 02:30 does not exist on 2026-03-29 in Berlin; it fires at 03:30 CEST
    result = _next(_rule(DailyCycle(), times="02:30"), berlin(2026, 3, 28, 12, 0))
    assert result == datetime(2026, 3, 29, 1, 30, tzinfo=timezone.utc)


def test_now_in_other_zone_is_compared_as_instant():
    now_utc = datetime(2026, 3, 10, 7, 30, tzinfo=timezone.utc)  # 08:30 Berlin
    assert _next(_rule(DailyCycle()), now_utc) == berlin(2026, 3, 10, 20, 0)


# ─── Weekly ──────────────────────────────────────────────────────

def test_weekly_picks_next_active_weekday():
    rule = _rule(WeeklyCycle(Weekday.MONDAY | Weekday.WEDNESDAY), times="09:00")
    assert _next(rule, berlin(2026, 3, 10, 10, 0)) == berlin(2026, 3, 11, 9, 0)


def test_weekly_today_active_with_remaining_slot():
    rule = _rule(WeeklyCycle(Weekday.TUESDAY), times="09:00")
    assert _next(rule, berlin(2026, 3, 10, 8, 0)) == berlin(2026, 3, 10, 9, 0)


def test_weekly_only_today_active_and_passed_goes_one_week_later():
    rule = _rule(WeeklyCycle(Weekday.TUESDAY), times="09:00")
    assert _next(rule, berlin(2026, 3, 10, 10, 0)) == berlin(2026, 3, 17, 9, 0)


def test_weekly_tie_on_active_day_moves_to_later_slot():
    rule = _rule(WeeklyCycle(Weekday.WEDNESDAY), times="09:00,21:00")
    assert _next(rule, berlin(2026, 3, 11, 9, 0)) == berlin(2026, 3, 11, 21, 0)


def test_weekly_sunday_bit():
    rule = _rule(WeeklyCycle(Weekday.SUNDAY), times="10:00")
    assert _next(rule, berlin(2026, 3, 10, 10, 0)) == berlin(2026, 3, 15, 10, 0)


def test_weekly_empty_mask_yields_none():
    assert _next(_rule(WeeklyCycle(0)), berlin(2026, 3, 10, 10, 0)) is None


# ─── Monthly ─────────────────────────────────────────────────────

def test_monthly_day_31_clamps_to_end_of_february():
    rule = _rule(MonthlyCycle(31), times="08:00")
    assert _next(rule, berlin(2026, 2, 10, 12, 0)) == berlin(2026, 2, 28, 8, 0)


def test_monthly_day_31_clamps_to_leap_day():
    rule = _rule(MonthlyCycle(31), times="08:00")
    assert _next(rule, berlin(2028, 2, 10, 12, 0)) == berlin(2028, 2, 29, 8, 0)


def test_monthly_day_31_in_thirty_day_month():
    rule = _rule(MonthlyCycle(31), times="08:00")
    assert _next(rule, berlin(2026, 4, 1, 12, 0)) == berlin(2026, 4, 30, 8, 0)


def test_monthly_anchor_passed_goes_to_next_month():
    rule = _rule(MonthlyCycle(5), times="08:00")
    assert _next(rule, berlin(2026, 3, 10, 12, 0)) == berlin(2026, 4, 5, 8, 0)


def test_monthly_after_clamped_anchor_reclamps_next_month():
    rule = _rule(MonthlyCycle(31), times="08:00")
    assert _next(rule, berlin(2026, 2, 28, 9, 0)) == berlin(2026, 3, 31, 8, 0)


def test_monthly_later_slot_on_anchor_day():
    rule = _rule(MonthlyCycle(15))
    assert _next(rule, berlin(2026, 3, 15, 12, 0)) == berlin(2026, 3, 15, 20, 0)


def test_monthly_december_rolls_into_january():
    rule = _rule(MonthlyCycle(1), times="08:00")
    assert _next(rule, berlin(2026, 12, 2, 8, 0)) == berlin(2027, 1, 1, 8, 0)


# ─── Every N days ────────────────────────────────────────────────

def test_every_n_days_exact_slot_on_cycle_day_is_skipped():
    rule = _rule(EveryNDaysCycle(3, anchor=berlin(2026, 3, 1)))
    assert _next(rule, berlin(2026, 3, 4, 8, 0)) == berlin(2026, 3, 4, 20, 0)


def test_every_n_days_last_slot_tie_moves_to_next_cycle():
    rule = _rule(EveryNDaysCycle(3, anchor=berlin(2026, 3, 1)))
    assert _next(rule, berlin(2026, 3, 4, 20, 0)) == berlin(2026, 3, 7, 8, 0)


def test_every_n_days_between_cycle_days():
    rule = _rule(EveryNDaysCycle(3, anchor=berlin(2026, 3, 1)))
    assert _next(rule, berlin(2026, 3, 5, 10, 0)) == berlin(2026, 3, 7, 8, 0)


def test_every_n_days_before_anchor_returns_anchor_day():
    rule = _rule(EveryNDaysCycle(3, anchor=berlin(2026, 3, 20)))
    assert _next(rule, berlin(2026, 3, 10, 10, 0)) == berlin(2026, 3, 20, 8, 0)


def test_every_n_days_anchor_is_normalized_to_midnight():
    rule = _rule(EveryNDaysCycle(3, anchor=berlin(2026, 3, 1, 15, 45)))
    assert _next(rule, berlin(2026, 3, 4, 7, 0)) == berlin(2026, 3, 4, 8, 0)


def test_every_n_days_without_anchor_counts_from_today():
    rule = _rule(EveryNDaysCycle(2))
    assert _next(rule, berlin(2026, 3, 10, 7, 0)) == berlin(2026, 3, 10, 8, 0)
    assert _next(rule, berlin(2026, 3, 10, 21, 0)) == berlin(2026, 3, 12, 8, 0)


def test_every_n_days_interval_below_one_behaves_daily():
    rule = _rule(EveryNDaysCycle(0, anchor=berlin(2026, 3, 1)))
    assert _next(rule, berlin(2026, 3, 10, 21, 0)) == berlin(2026, 3, 11, 8, 0)


def test_every_n_days_counts_calendar_days_across_dst():
    rule = _rule(EveryNDaysCycle(2, anchor=berlin(2026, 3, 28)), times="08:00")
    assert _next(rule, berlin(2026, 3, 28, 9, 0)) == berlin(2026, 3, 30, 8, 0)


# ─── None results and parsing ────────────────────────────────────

def test_disabled_rule_yields_none():
    assert _next(_rule(DailyCycle(), enabled=False), berlin(2026, 3, 10, 8, 0)) is None


def test_empty_times_yield_none():
    assert _next(_rule(DailyCycle(), times=""), berlin(2026, 3, 10, 8, 0)) is None


def test_only_malformed_times_yield_none():
    assert _next(_rule(DailyCycle(), times="25:00,ab,12:60"), berlin(2026, 3, 10, 8, 0)) is None


def test_malformed_entries_are_dropped_valid_kept():
    rule = _rule(DailyCycle(), times="nope, 09:15 ,7:61")
    assert _next(rule, berlin(2026, 3, 10, 8, 0)) == berlin(2026, 3, 10, 9, 15)


def test_unrecognized_cycle_yields_none():
    assert _next(_rule(UnrecognizedCycle(tag=9)), berlin(2026, 3, 10, 8, 0)) is None


# ─── Properties ──────────────────────────────────────────────────

def test_same_inputs_same_output():
    rule = _rule(EveryNDaysCycle(4, anchor=berlin(2026, 1, 3)))
    now = berlin(2026, 3, 10, 13, 37)
    assert _next(rule, now) == _next(rule, now)


def test_result_always_strictly_after_now():
    cycles = [
        DailyCycle(),
        WeeklyCycle(Weekday.TUESDAY | Weekday.SATURDAY),
        MonthlyCycle(10),
        EveryNDaysCycle(3, anchor=berlin(2026, 3, 1)),
    ]
    nows = [berlin(2026, 3, 10, h, m) for h, m in ((0, 0), (8, 0), (19, 59), (20, 0), (23, 59))]
    for cycle in cycles:
        for now in nows:
            assert _next(_rule(cycle), now) > now


def test_epoch_millis_form_matches_datetime_form():
    rule = _rule(DailyCycle())
    now = berlin(2026, 3, 10, 8, 30)
    millis = compute_next_epoch_millis(rule, to_epoch_millis(now), BERLIN)
    assert millis == to_epoch_millis(berlin(2026, 3, 10, 20, 0))


def test_epoch_millis_form_uses_zero_for_none():
    rule = _rule(DailyCycle(), times="")
    assert compute_next_epoch_millis(rule, to_epoch_millis(berlin(2026, 3, 10)), BERLIN) == NO_TRIGGER
