"""Schedule Lifecycle Manager — create/update/disable rules and keep alarms in step.

Invariants:
    - Every mutation recomputes next_trigger_at from "now" via the pure calculator;
      a previously stored value is never trusted
    - Persist first, then arm/cancel: a Store failure leaves the alarm untouched
    - At most one alarm registration per schedule id; an unschedulable or disabled
      rule has none (cancel instead of arm)
    - Mutations run on the injected BoundedTaskPool keyed by schedule id, so
      operations on one id apply in submission order (last submitted wins)
    - disable() is idempotent: unknown or already-disabled ids are not errors

Design Decisions:
    - Public mutators return asyncio.Task: callers await the result or fire and forget
    - Errors are logged with their code and re-raised through the task
    - advance() takes the fired instant as a floor so an early wake-up never
      re-arms the slot that just fired
"""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timedelta, tzinfo

from medreminder.core.domain_types import MedicationId, ScheduleId
from medreminder.core.errors import (
    ErrorContext, MedReminderError, ResourceNotFoundError, ScheduleValidationError,
)
from medreminder.core.occurrence import compute_next_occurrence
from medreminder.core.repository_protocols import AlarmPort, ScheduleRepository
from medreminder.core.schedule_rule import ScheduleRule
from medreminder.infrastructure.clock import Clock, system_clock
from medreminder.services.task_pool import BoundedTaskPool

logger = logging.getLogger(__name__)


def _not_found(schedule_id: ScheduleId, operation: str) -> ResourceNotFoundError:
    return ResourceNotFoundError(
        "Schedule", str(schedule_id),
        ErrorContext(schedule_id=schedule_id, operation=operation),
    )


class ScheduleLifecycleManager:
    """Orchestrates calculator → store → alarm port for every rule mutation."""

    def __init__(
        self,
        repository: ScheduleRepository,
        alarm_port: AlarmPort,
        pool: BoundedTaskPool,
        zone: tzinfo,
        clock: Clock = system_clock,
        snooze_minutes: int = 10,
    ):
        self._repository = repository
        self._alarms = alarm_port
        self._pool = pool
        self._zone = zone
        self._clock = clock
        self.snooze_minutes = snooze_minutes

    # ─── Mutations (run on the pool) ─────────────────────────────

    def create(self, rule: ScheduleRule):
        """Insert a new rule and arm its first occurrence. Task result: new id."""
        return self._pool.submit(self._guarded, "create", self._create, rule)

    def update(self, rule: ScheduleRule):
        """Replace a stored rule, recompute from now and re-arm. Task result: id."""
        if rule.id is None:
            raise ScheduleValidationError("Cannot update a rule without an id", "id")
        return self._pool.submit(
            self._guarded, "update", self._update, rule, key=rule.id,
        )

    def disable(self, schedule_id: ScheduleId):
        """Soft-remove: enabled=False, no next trigger, alarm cancelled."""
        return self._pool.submit(
            self._guarded, "disable", self._disable, schedule_id, key=schedule_id,
        )

    def enable(self, schedule_id: ScheduleId):
        """Re-enable and recompute. Task result: next trigger or None."""
        return self._pool.submit(
            self._guarded, "enable", self._enable, schedule_id, key=schedule_id,
        )

    def snooze(self, schedule_id: ScheduleId, minutes: int | None = None):
        """Postpone the pending reminder to now + minutes. Task result: new trigger."""
        minutes = self.snooze_minutes if minutes is None else minutes
        if minutes < 1:
            raise ScheduleValidationError("Snooze must be at least one minute", "minutes")
        return self._pool.submit(
            self._guarded, "snooze", self._snooze, schedule_id, minutes,
            key=schedule_id,
        )

    def advance(self, schedule_id: ScheduleId, after: datetime | None = None):
        """Compute and arm the occurrence following one that fired."""
        return self._pool.submit(
            self._guarded, "advance", self._advance, schedule_id, after,
            key=schedule_id,
        )

    def delete(self, schedule_id: ScheduleId):
        """Hard delete plus cancel. Task result: True when a row was removed."""
        return self._pool.submit(
            self._guarded, "delete", self._delete, schedule_id, key=schedule_id,
        )

    def reschedule_all(self):
        """Recompute and re-arm every enabled rule. Task result: number armed."""
        return self._pool.spawn(self._reschedule_all)

    # ─── Queries ─────────────────────────────────────────────────

    async def get(self, schedule_id: ScheduleId) -> ScheduleRule | None:
        return await self._repository.get(schedule_id)

    async def list_for_medication(self, medication_id: MedicationId) -> list[ScheduleRule]:
        return await self._repository.list_for_medication(medication_id)

    async def list_enabled(self) -> list[ScheduleRule]:
        return await self._repository.list_enabled()

    # ─── Operation bodies ────────────────────────────────────────

    async def _guarded(self, operation: str, fn, *args):
        try:
            return await fn(*args)
        except MedReminderError as e:
            logger.error(
                f"Schedule {operation} failed: {e.message}",
                extra={
                    "error_code": e.code,
                    "operation": operation,
                    "schedule_id": e.context.schedule_id,
                },
            )
            raise

    async def _create(self, rule: ScheduleRule) -> ScheduleId:
        now = self._clock()
        rule = replace(rule, id=None, created_at=rule.created_at or now, updated_at=now)
        rule = replace(rule, next_trigger_at=compute_next_occurrence(rule, now, self._zone))
        schedule_id = await self._repository.insert(rule)
        await self._sync_alarm(schedule_id, rule.medication_id, rule.next_trigger_at)
        logger.info(
            "Schedule created",
            extra={
                "schedule_id": schedule_id,
                "medication_id": rule.medication_id,
                "trigger_at": rule.next_trigger_at,
            },
        )
        return schedule_id

    async def _update(self, rule: ScheduleRule) -> ScheduleId:
        now = self._clock()
        rule = replace(rule, updated_at=now)
        rule = replace(rule, next_trigger_at=compute_next_occurrence(rule, now, self._zone))
        if not await self._repository.update(rule):
            raise _not_found(rule.id, "update")
        await self._sync_alarm(rule.id, rule.medication_id, rule.next_trigger_at)
        logger.info(
            "Schedule updated",
            extra={"schedule_id": rule.id, "trigger_at": rule.next_trigger_at},
        )
        return rule.id

    async def _disable(self, schedule_id: ScheduleId) -> None:
        found = await self._repository.set_enabled(
            schedule_id, False, None, self._clock(),
        )
        await self._alarms.cancel(schedule_id)
        if found:
            logger.info("Schedule disabled", extra={"schedule_id": schedule_id})

    async def _enable(self, schedule_id: ScheduleId) -> datetime | None:
        rule = await self._repository.get(schedule_id)
        if rule is None:
            raise _not_found(schedule_id, "enable")
        now = self._clock()
        nxt = compute_next_occurrence(replace(rule, enabled=True), now, self._zone)
        await self._repository.set_enabled(schedule_id, True, nxt, now)
        await self._sync_alarm(schedule_id, rule.medication_id, nxt)
        logger.info(
            "Schedule enabled",
            extra={"schedule_id": schedule_id, "trigger_at": nxt},
        )
        return nxt

    async def _snooze(self, schedule_id: ScheduleId, minutes: int) -> datetime | None:
        rule = await self._repository.get(schedule_id)
        if rule is None:
            raise _not_found(schedule_id, "snooze")
        if not rule.enabled:
            return None
        now = self._clock()
        nxt = now + timedelta(minutes=minutes)
        await self._repository.update_next_trigger(schedule_id, nxt, now)
        await self._alarms.arm(schedule_id, nxt, rule.medication_id)
        logger.info(
            "Schedule snoozed",
            extra={"schedule_id": schedule_id, "trigger_at": nxt},
        )
        return nxt

    async def _advance(
        self, schedule_id: ScheduleId, after: datetime | None,
        missing_ok: bool = False,
    ) -> datetime | None:
        rule = await self._repository.get(schedule_id)
        if rule is None:
            if missing_ok:
                return None
            raise _not_found(schedule_id, "advance")
        now = self._clock()
        reference = max(now, after) if after is not None else now
        nxt = compute_next_occurrence(rule, reference, self._zone)
        await self._repository.update_next_trigger(schedule_id, nxt, now)
        await self._sync_alarm(schedule_id, rule.medication_id, nxt)
        return nxt

    async def _delete(self, schedule_id: ScheduleId) -> bool:
        deleted = await self._repository.delete(schedule_id)
        await self._alarms.cancel(schedule_id)
        if deleted:
            logger.info("Schedule deleted", extra={"schedule_id": schedule_id})
        return deleted

    async def _reschedule_all(self) -> int:
        rules = await self._pool.submit(self._repository.list_enabled)
        tasks = [
            self._pool.submit(
                self._guarded, "reschedule", self._advance, rule.id, None, True,
                key=rule.id,
            )
            for rule in rules
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            raise failures[0]
        armed = sum(1 for r in results if r is not None)
        logger.info("Schedules rescheduled", extra={"count": armed})
        return armed

    async def _sync_alarm(
        self, schedule_id: ScheduleId, medication_id: MedicationId,
        next_trigger_at: datetime | None,
    ) -> None:
        if next_trigger_at is None:
            await self._alarms.cancel(schedule_id)
        else:
            await self._alarms.arm(schedule_id, next_trigger_at, medication_id)
