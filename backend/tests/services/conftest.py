"""Service test fixtures — recording alarm port, bounded pool, lifecycle manager.

Invariants:
    - The alarm port is a recorder: lifecycle tests assert arm/cancel calls, not timers
    - The clock is frozen (root conftest) so next-trigger values are exact
    - Pool drained on teardown so no operation outlives its engine
"""

import pytest

from medreminder.services.schedule_lifecycle import ScheduleLifecycleManager
from medreminder.services.task_pool import BoundedTaskPool

from fakes import RecordingAlarmPort


@pytest.fixture
def alarms():
    return RecordingAlarmPort()


@pytest.fixture
async def pool():
    pool = BoundedTaskPool(max_workers=2)
    yield pool
    await pool.drain()


@pytest.fixture
def manager(repository, alarms, pool, zone, clock):
    return ScheduleLifecycleManager(
        repository, alarms, pool, zone, clock=clock, snooze_minutes=10,
    )
