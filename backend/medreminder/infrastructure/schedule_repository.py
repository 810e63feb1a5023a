"""SQL Schedule Repository — ScheduleRepository implemented over async SQLAlchemy.

Invariants:
    - Returns core ScheduleRule values, never ORM rows (rows don't leak past this module)
    - Every write commits in its own session; failures roll back and surface as DatabaseError
    - Mutations on missing ids return False instead of raising — callers decide
    - update() keeps the stored created_at when the rule carries none
    - list_for_medication: newest first; list_enabled: soonest next trigger first

Design Decisions:
    - Column mapping delegated to core.schedule_rule codec: one place knows the layout
    - Bulk UPDATE statements for set_enabled/update_next_trigger: no read-modify-write
"""

import logging
from datetime import datetime

from sqlalchemy import delete, select, update

from medreminder.core.calendar_math import to_epoch_millis
from medreminder.core.domain_types import NO_TRIGGER, MedicationId, ScheduleId
from medreminder.core.schedule_rule import (
    ScheduleRule, rule_from_columns, rule_to_columns,
)
from medreminder.infrastructure.database import DatabaseSessionManager
from medreminder.models.medication_schedule import MedicationSchedule

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id", "medication_id", "cycle_type", "times_of_day", "days_of_week_mask",
    "day_of_month", "interval_days", "start_instant", "next_trigger_instant",
    "enabled", "created_at", "updated_at",
)


def _to_rule(row: MedicationSchedule) -> ScheduleRule:
    return rule_from_columns({name: getattr(row, name) for name in _COLUMNS})


def _millis(instant: datetime | None) -> int:
    return to_epoch_millis(instant) if instant is not None else NO_TRIGGER


class SqlScheduleRepository:
    """Schedule rule persistence backed by the medication_schedules table."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def insert(self, rule: ScheduleRule) -> ScheduleId:
        async with self._db.session() as session:
            row = MedicationSchedule(**rule_to_columns(rule))
            session.add(row)
            await session.commit()
            await session.refresh(row)
            logger.debug(
                "Schedule inserted",
                extra={"schedule_id": row.id, "medication_id": row.medication_id},
            )
            return ScheduleId(row.id)

    async def update(self, rule: ScheduleRule) -> bool:
        if rule.id is None:
            return False
        values = rule_to_columns(rule)
        if rule.created_at is None:
            del values["created_at"]
        async with self._db.session() as session:
            result = await session.execute(
                update(MedicationSchedule)
                .where(MedicationSchedule.id == rule.id)
                .values(**values),
            )
            await session.commit()
            return result.rowcount > 0

    async def get(self, schedule_id: ScheduleId) -> ScheduleRule | None:
        async with self._db.session() as session:
            row = await session.get(MedicationSchedule, schedule_id)
            return _to_rule(row) if row is not None else None

    async def delete(self, schedule_id: ScheduleId) -> bool:
        async with self._db.session() as session:
            result = await session.execute(
                delete(MedicationSchedule).where(MedicationSchedule.id == schedule_id),
            )
            await session.commit()
            return result.rowcount > 0

    async def set_enabled(
        self, schedule_id: ScheduleId, enabled: bool,
        next_trigger_at: datetime | None, updated_at: datetime,
    ) -> bool:
        async with self._db.session() as session:
            result = await session.execute(
                update(MedicationSchedule)
                .where(MedicationSchedule.id == schedule_id)
                .values(
                    enabled=enabled,
                    next_trigger_instant=_millis(next_trigger_at),
                    updated_at=_millis(updated_at),
                ),
            )
            await session.commit()
            return result.rowcount > 0

    async def update_next_trigger(
        self, schedule_id: ScheduleId, next_trigger_at: datetime | None,
        updated_at: datetime,
    ) -> bool:
        async with self._db.session() as session:
            result = await session.execute(
                update(MedicationSchedule)
                .where(MedicationSchedule.id == schedule_id)
                .values(
                    next_trigger_instant=_millis(next_trigger_at),
                    updated_at=_millis(updated_at),
                ),
            )
            await session.commit()
            return result.rowcount > 0

    async def list_for_medication(
        self, medication_id: MedicationId,
    ) -> list[ScheduleRule]:
        async with self._db.session() as session:
            result = await session.execute(
                select(MedicationSchedule)
                .where(MedicationSchedule.medication_id == medication_id)
                .order_by(
                    MedicationSchedule.created_at.desc(),
                    MedicationSchedule.id.desc(),
                ),
            )
            return [_to_rule(row) for row in result.scalars().all()]

    async def list_enabled(self) -> list[ScheduleRule]:
        async with self._db.session() as session:
            result = await session.execute(
                select(MedicationSchedule)
                .where(MedicationSchedule.enabled.is_(True))
                .order_by(
                    MedicationSchedule.next_trigger_instant.asc(),
                    MedicationSchedule.id.asc(),
                ),
            )
            return [_to_rule(row) for row in result.scalars().all()]
