"""Application Wiring — builds the scheduling engine from settings, explicitly.

Invariants:
    - Every collaborator (database, repository, alarm port, pool, manager) is
      constructed here and owned by one ReminderApplication — no module singletons
    - start() recovers alarm state from the store (reschedule_all) when configured:
      the store is authoritative, pending alarms are a cache
    - stop() closes the alarm port first (pending alarms cancelled, running handlers
      awaited), then drains the pool, then closes the DB: nothing outlives stop()
    - A failing on_reminder handler never prevents the following occurrence from
      being armed

Design Decisions:
    - lifespan() async context manager mirrors a web app's startup/shutdown hook:
      logging configured once, resources released on exit
    - Fired alarms go to the caller's on_reminder handler; with auto_advance the
      following occurrence is armed right after, using the fired instant as floor
"""

import logging
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine

from medreminder.config import Settings, get_settings
from medreminder.core.calendar_math import resolve_zone
from medreminder.core.domain_types import ScheduleId
from medreminder.core.repository_protocols import AlarmPayload, AlarmPort
from medreminder.infrastructure.alarm_port import LoopAlarmPort
from medreminder.infrastructure.clock import Clock, system_clock
from medreminder.infrastructure.database import DatabaseSessionManager
from medreminder.infrastructure.observability import setup_logging
from medreminder.infrastructure.schedule_repository import SqlScheduleRepository
from medreminder.schemas.schedule import ScheduleView, parse_schedule_draft
from medreminder.services.schedule_lifecycle import ScheduleLifecycleManager
from medreminder.services.task_pool import BoundedTaskPool

logger = logging.getLogger(__name__)

ReminderHandler = Callable[[AlarmPayload], Awaitable[None]]


class ReminderApplication:
    """Owns the scheduling engine's resources for one process."""

    def __init__(
        self,
        settings: Settings | None = None,
        on_reminder: ReminderHandler | None = None,
        clock: Clock = system_clock,
        alarm_port: AlarmPort | None = None,
        engine: AsyncEngine | None = None,
    ):
        self.settings = settings or get_settings()
        self.zone = resolve_zone(self.settings.schedule_timezone)
        self.db = DatabaseSessionManager(
            self.settings.database_url,
            pool_size=self.settings.database_pool_size,
            max_overflow=self.settings.database_max_overflow,
            engine=engine,
        )
        self.repository = SqlScheduleRepository(self.db)
        self.pool = BoundedTaskPool(self.settings.max_concurrent_operations)
        self._on_reminder = on_reminder
        self.alarm_port = alarm_port or LoopAlarmPort(self._dispatch_alarm, clock)
        self.lifecycle = ScheduleLifecycleManager(
            self.repository,
            self.alarm_port,
            self.pool,
            self.zone,
            clock=clock,
            snooze_minutes=self.settings.snooze_minutes,
        )

    async def start(self) -> None:
        if self.settings.create_schema_on_startup:
            await self.db.create_schema()
        if self.settings.reschedule_on_startup:
            await self.lifecycle.reschedule_all()

    async def stop(self) -> None:
        if isinstance(self.alarm_port, LoopAlarmPort):
            await self.alarm_port.close()
        await self.pool.drain()
        await self.db.dispose()

    async def create_schedule(self, data: dict) -> ScheduleId:
        """Validate raw input and create the rule (pydantic.ValidationError on bad input)."""
        draft = parse_schedule_draft(data)
        return await self.lifecycle.create(draft.to_rule(self.settings.schedule_timezone))

    async def describe(self, schedule_id: ScheduleId) -> ScheduleView | None:
        rule = await self.lifecycle.get(schedule_id)
        return ScheduleView.from_rule(rule) if rule is not None else None

    async def _dispatch_alarm(self, payload: AlarmPayload) -> None:
        try:
            if self._on_reminder is not None:
                await self._on_reminder(payload)
            else:
                logger.info(
                    "Reminder due",
                    extra={
                        "schedule_id": payload.schedule_id,
                        "medication_id": payload.medication_id,
                    },
                )
        finally:
            if self.settings.auto_advance:
                await self.lifecycle.advance(
                    payload.schedule_id, after=payload.trigger_at,
                )


@asynccontextmanager
async def lifespan(
    settings: Settings | None = None,
    on_reminder: ReminderHandler | None = None,
) -> AsyncGenerator[ReminderApplication, None]:
    """Startup/shutdown lifecycle."""
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format)
    app = ReminderApplication(settings, on_reminder)
    await app.start()
    logger.info("MedReminder started")
    try:
        yield app
    finally:
        logger.info("MedReminder shutting down")
        await app.stop()
