"""Root conftest — shared test configuration and the file-backed test store.

Invariants:
    - Tests never touch a developer's real reminder store
    - Every test gets a fresh SQLite database file under tmp_path

Design Decisions:
    - File database over :memory: — aiosqlite connections to :memory: do not share
      tables across pooled connections
"""

import os

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from medreminder.infrastructure.database import DatabaseSessionManager
from medreminder.infrastructure.schedule_repository import SqlScheduleRepository

from fakes import BERLIN, FrozenClock, berlin

os.environ.setdefault(
    "MEDREMINDER_DATABASE_URL",
    "sqlite+aiosqlite:///./test-medreminder.db",
)
os.environ.setdefault("MEDREMINDER_LOG_FORMAT", "text")


@pytest.fixture
def zone():
    return BERLIN


@pytest.fixture
def clock():
    """Tuesday 2026-03-10 08:30 Berlin (CET, before the DST switch)."""
    return FrozenClock(berlin(2026, 3, 10, 8, 30))


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'schedules.db'}", echo=False,
    )
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_manager(test_engine):
    manager = DatabaseSessionManager(engine=test_engine)
    await manager.create_schema()
    return manager


@pytest.fixture
def repository(db_manager):
    return SqlScheduleRepository(db_manager)
