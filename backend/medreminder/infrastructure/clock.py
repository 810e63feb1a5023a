"""Clock — the one place that reads wall time.

Design Decisions:
    - Injected as a plain callable: tests pass a frozen or stepping clock
"""

from collections.abc import Callable
from datetime import datetime, timezone

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    return datetime.now(timezone.utc)
