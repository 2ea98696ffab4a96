# src/taskcard/card/write_serializer.py

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator

from .models import TaskId


class WriteSerializer:
    """
    Single-flight writes per task id.

    Cards of the same board share one instance, so every write to a given
    task (toggle or subtask save) waits for the previous one to resolve.
    With enabled=False the lock is skipped and writes may resolve in any order.
    """

    def __init__(self, *, enabled: bool = True) -> None:
        self.enabled = enabled
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, task_id: TaskId) -> asyncio.Lock:
        key = str(task_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def pending(self, task_id: TaskId) -> bool:
        lock = self._locks.get(str(task_id))
        return lock is not None and lock.locked()

    @contextlib.asynccontextmanager
    async def slot(self, task_id: TaskId) -> AsyncIterator[None]:
        if not self.enabled:
            yield
            return
        async with self._lock_for(task_id):
            yield
