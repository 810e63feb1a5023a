"""Times of Day — defensive codec for the compact "HH:MM[,HH:MM...]" list.

Invariants:
    - parse_times_of_day() never raises: malformed or out-of-range entries are dropped
    - Result is deduplicated and sorted ascending
    - Accepted range: hour 0-23, minute 0-59; seconds are never stored

Design Decisions:
    - Accepts a CSV string, an iterable of "H:MM" strings, or datetime.time values,
      so callers and the row codec share one normalization path
"""

from collections.abc import Iterable
from datetime import time


def _parse_entry(entry: object) -> time | None:
    if isinstance(entry, time):
        return entry.replace(second=0, microsecond=0, tzinfo=None)
    if not isinstance(entry, str):
        return None
    parts = entry.strip().split(":")
    if len(parts) != 2:
        return None
    try:
        hour, minute = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if 0 <= hour < 24 and 0 <= minute < 60:
        return time(hour, minute)
    return None


def parse_times_of_day(raw: str | Iterable[str | time] | None) -> tuple[time, ...]:
    """Parse times of day, silently discarding anything unusable."""
    if not raw:
        return ()
    entries = raw.split(",") if isinstance(raw, str) else raw
    parsed = {t for t in (_parse_entry(e) for e in entries) if t is not None}
    return tuple(sorted(parsed))


def format_times_of_day(times: Iterable[time]) -> str:
    return ",".join(f"{t.hour:02d}:{t.minute:02d}" for t in times)
