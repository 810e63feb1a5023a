"""Bounded Task Pool — runs lifecycle operations off the caller's task.

Invariants:
    - At most max_workers operations execute at once (semaphore-bounded)
    - Operations submitted with the same key run one at a time, in submission order
    - Operations with different keys (or no key) are independent
    - Exceptions surface through the returned task, never swallowed

Design Decisions:
    - Explicitly constructed and injected: no process-wide executor
    - Key lock acquired before the semaphore: a queued same-key operation never
      occupies a worker slot while waiting for its predecessor
    - Tasks start in creation order (call_soon FIFO) and asyncio.Lock wakes waiters
      FIFO, which is what makes per-key ordering hold
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BoundedTaskPool:
    """Semaphore-bounded asyncio task pool with per-key serialization."""

    def __init__(self, max_workers: int = 4):
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.max_workers = max_workers
        self._semaphore = asyncio.Semaphore(max_workers)
        self._key_locks: dict[Hashable, asyncio.Lock] = {}
        self._key_waiters: dict[Hashable, int] = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def submit(
        self,
        fn: Callable[..., Awaitable[T]],
        *args: Any,
        key: Hashable | None = None,
    ) -> "asyncio.Task[T]":
        """Schedule fn(*args) on the pool; await the returned task for its result."""
        return self._track(self._run(key, fn, args))

    def spawn(self, fn: Callable[..., Awaitable[T]], *args: Any) -> "asyncio.Task[T]":
        """Tracked task that holds no worker slot — for coordinators that fan out via submit()."""
        return self._track(fn(*args))

    def _track(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every submitted operation to finish (errors stay on their tasks)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run(self, key, fn, args):
        if key is None:
            async with self._semaphore:
                return await fn(*args)
        lock = self._key_locks.setdefault(key, asyncio.Lock())
        self._key_waiters[key] = self._key_waiters.get(key, 0) + 1
        try:
            async with lock:
                async with self._semaphore:
                    return await fn(*args)
        finally:
            self._key_waiters[key] -= 1
            if not self._key_waiters[key]:
                del self._key_waiters[key]
                del self._key_locks[key]
