"""Initial Migration — verifies the Alembic revision matches the ORM table.

Design Decisions:
    - Runs upgrade()/downgrade() through alembic Operations on a sync SQLite engine;
      env.py is exercised by deployments, not here
"""

import importlib.util
from pathlib import Path

import pytest
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect

from medreminder.models.medication_schedule import MedicationSchedule

_VERSIONS = Path(__file__).resolve().parents[2] / "alembic" / "versions"


def _load_revision():
    path = _VERSIONS / "001_medication_schedules.py"
    spec = importlib.util.spec_from_file_location("revision_001", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def sync_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'migrated.db'}")
    yield engine
    engine.dispose()


def _run(engine, step):
    with engine.begin() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            step()


def test_upgrade_creates_orm_columns_and_indexes(sync_engine):
    revision = _load_revision()
    _run(sync_engine, revision.upgrade)

    inspector = inspect(sync_engine)
    columns = {c["name"] for c in inspector.get_columns("medication_schedules")}
    assert columns == set(MedicationSchedule.__table__.columns.keys())

    indexes = {ix["name"] for ix in inspector.get_indexes("medication_schedules")}
    assert indexes == {idx.name for idx in MedicationSchedule.__table__.indexes}


def test_downgrade_drops_table(sync_engine):
    revision = _load_revision()
    _run(sync_engine, revision.upgrade)
    _run(sync_engine, revision.downgrade)

    assert "medication_schedules" not in inspect(sync_engine).get_table_names()


def test_revision_is_root():
    revision = _load_revision()
    assert revision.revision == "001_medication_schedules"
    assert revision.down_revision is None
