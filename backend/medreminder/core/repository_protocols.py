"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection
    - AlarmPort.arm() replaces any pending registration for the same schedule id;
      cancel() is a no-op when nothing is pending

Design Decisions:
    - Protocol over ABC: structural subtyping, tests pass plain fakes
    - Async in Protocol: boundary methods are async because implementations do IO,
      but the occurrence calculator that feeds them is never async itself
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from medreminder.core.domain_types import MedicationId, ScheduleId
from medreminder.core.schedule_rule import ScheduleRule


@dataclass(frozen=True)
class AlarmPayload:
    """Delivered to the alarm handler when a registration fires."""
    schedule_id: ScheduleId
    medication_id: MedicationId
    trigger_at: datetime


class ScheduleRepository(Protocol):
    """Contract for schedule rule persistence — implemented by shell."""
    async def insert(self, rule: ScheduleRule) -> ScheduleId: ...
    async def update(self, rule: ScheduleRule) -> bool: ...
    async def get(self, schedule_id: ScheduleId) -> ScheduleRule | None: ...
    async def delete(self, schedule_id: ScheduleId) -> bool: ...
    async def set_enabled(
        self, schedule_id: ScheduleId, enabled: bool,
        next_trigger_at: datetime | None, updated_at: datetime,
    ) -> bool: ...
    async def update_next_trigger(
        self, schedule_id: ScheduleId, next_trigger_at: datetime | None,
        updated_at: datetime,
    ) -> bool: ...
    async def list_for_medication(
        self, medication_id: MedicationId,
    ) -> list[ScheduleRule]: ...
    async def list_enabled(self) -> list[ScheduleRule]: ...


class AlarmPort(Protocol):
    """Contract for the external wake-up mechanism — best-effort, no exactness."""
    async def arm(
        self, schedule_id: ScheduleId, trigger_at: datetime,
        medication_id: MedicationId,
    ) -> None: ...
    async def cancel(self, schedule_id: ScheduleId) -> None: ...
