"""Loop Alarm Port — process-local AlarmPort backed by asyncio tasks.

Invariants:
    - At most one pending registration per schedule id: arm() replaces, never adds
    - cancel() for an unknown id is a no-op
    - A fired registration is removed before the handler runs, so the handler may
      re-arm the same schedule id
    - Handler exceptions are logged, never propagated into the event loop
    - close() cancels pending registrations and awaits handlers already running;
      arm() after close() is ignored, so nothing is scheduled past shutdown

Design Decisions:
    - Best-effort like an OS alarm: delivery happens when the loop gets to it, and
      instants already in the past fire immediately
    - Delay measured with the injected clock at arm time; a suspended process
      delivers late rather than never (callers recompute on next start anyway)
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from medreminder.core.domain_types import MedicationId, ScheduleId
from medreminder.core.repository_protocols import AlarmPayload
from medreminder.infrastructure.clock import Clock, system_clock

logger = logging.getLogger(__name__)

AlarmHandler = Callable[[AlarmPayload], Awaitable[None]]


class LoopAlarmPort:
    """Arms one-shot wake-ups on the running event loop."""

    def __init__(self, handler: AlarmHandler, clock: Clock = system_clock):
        self._handler = handler
        self._clock = clock
        self._pending: dict[ScheduleId, tuple[asyncio.Task, AlarmPayload]] = {}
        self._firing: set[asyncio.Task] = set()
        self._closed = False

    @property
    def pending(self) -> dict[ScheduleId, datetime]:
        """Schedule id -> armed trigger instant."""
        return {sid: payload.trigger_at for sid, (_, payload) in self._pending.items()}

    async def arm(
        self, schedule_id: ScheduleId, trigger_at: datetime,
        medication_id: MedicationId,
    ) -> None:
        if self._closed:
            logger.debug(
                "Alarm port closed, arm ignored",
                extra={"schedule_id": schedule_id, "trigger_at": trigger_at},
            )
            return
        self._drop(schedule_id)
        payload = AlarmPayload(schedule_id, medication_id, trigger_at)
        task = asyncio.get_running_loop().create_task(
            self._fire_at(payload), name=f"alarm-{schedule_id}",
        )
        self._pending[schedule_id] = (task, payload)
        logger.debug(
            "Alarm armed",
            extra={"schedule_id": schedule_id, "trigger_at": trigger_at},
        )

    async def cancel(self, schedule_id: ScheduleId) -> None:
        if self._drop(schedule_id):
            logger.debug("Alarm cancelled", extra={"schedule_id": schedule_id})

    async def close(self) -> None:
        """Cancel pending registrations, then wait for them and for running handlers."""
        self._closed = True
        tasks = [task for task, _ in self._pending.values()]
        self._pending.clear()
        for task in tasks:
            task.cancel()
        current = asyncio.current_task()
        tasks.extend(task for task in self._firing if task is not current)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _drop(self, schedule_id: ScheduleId) -> bool:
        entry = self._pending.pop(schedule_id, None)
        if entry is None:
            return False
        entry[0].cancel()
        return True

    async def _fire_at(self, payload: AlarmPayload) -> None:
        delay = (payload.trigger_at - self._clock()).total_seconds()
        if delay > 0:
            await asyncio.sleep(delay)
        task = asyncio.current_task()
        entry = self._pending.get(payload.schedule_id)
        if entry is not None and entry[0] is task:
            del self._pending[payload.schedule_id]
        self._firing.add(task)
        try:
            await self._deliver(payload)
        finally:
            self._firing.discard(task)

    async def _deliver(self, payload: AlarmPayload) -> None:
        logger.info(
            "Alarm fired",
            extra={
                "schedule_id": payload.schedule_id,
                "medication_id": payload.medication_id,
                "trigger_at": payload.trigger_at,
            },
        )
        try:
            await self._handler(payload)
        except Exception:
            logger.error(
                "Alarm handler failed",
                extra={"schedule_id": payload.schedule_id},
                exc_info=True,
            )
