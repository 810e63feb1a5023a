"""Calendar Math — immutable date/time helpers for occurrence computation.

Invariants:
    - Every function is pure: inputs are never mutated, new values are returned
    - Instants returned by at_time_of_day() are aware and in UTC
    - Wall-clock times that do not exist (DST spring-forward gap) are shifted
      forward by the gap; ambiguous times (fall-back) resolve to the first one
    - Epoch millis round-trip exactly (integer arithmetic, no float timestamps)

Design Decisions:
    - dateutil.relativedelta(day=N) for month clamping: day 31 in February lands on
      the 28th/29th without hand-written month tables
    - dateutil.tz over fixed offsets: tz.gettz(None) is the DST-aware system zone,
      datetime.astimezone() alone would freeze today's offset
    - Comparisons are done on UTC instants: aware datetimes sharing one tzinfo
      compare by wall time, which is wrong across DST changes
"""

from calendar import monthrange
from datetime import date, datetime, time, timedelta, timezone, tzinfo

from dateutil import tz
from dateutil.relativedelta import relativedelta

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MILLI = timedelta(milliseconds=1)


def resolve_zone(name: str | None = None) -> tzinfo:
    """IANA zone by name, or the system local zone when name is None."""
    zone = tz.gettz(name)
    if zone is None:
        raise ValueError(f"unknown time zone: {name}")
    return zone


def to_epoch_millis(instant: datetime) -> int:
    return (instant - EPOCH) // _ONE_MILLI


def from_epoch_millis(millis: int) -> datetime:
    return EPOCH + timedelta(milliseconds=millis)


def local_date(instant: datetime, zone: tzinfo) -> date:
    """Calendar date of an instant as seen in zone."""
    return instant.astimezone(zone).date()


def local_midnight(instant: datetime, zone: tzinfo) -> datetime:
    """Start of the local day containing instant, as a UTC instant."""
    return at_time_of_day(local_date(instant, zone), time(0, 0), zone)


def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)


def add_months(day: date, months: int) -> date:
    return day + relativedelta(months=months)


def at_time_of_day(day: date, time_of_day: time, zone: tzinfo) -> datetime:
    """Instant at which the wall clock in zone shows time_of_day on day."""
    local = datetime.combine(day, time_of_day.replace(second=0, microsecond=0), tzinfo=zone)
    local = tz.resolve_imaginary(local)
    return local.astimezone(timezone.utc)


def weekday_bit(day: date) -> int:
    """Mask bit for day's weekday: Monday = 1<<6 ... Sunday = 1<<0."""
    return 1 << (6 - day.weekday())


def days_in_month(year: int, month: int) -> int:
    return monthrange(year, month)[1]


def anchor_day_in_month(year: int, month: int, day_of_month: int) -> date:
    """day_of_month within (year, month), clamped down to the month's last day."""
    day_of_month = min(max(day_of_month, 1), 31)
    return date(year, month, 1) + relativedelta(day=day_of_month)
