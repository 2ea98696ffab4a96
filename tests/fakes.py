# tests/fakes.py

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from taskcard.card.models import Task
from taskcard.errors import PersistenceError


class FakeGateway:
    """
    In-memory TaskGateway for card tests.

    - Captures every update for assertions
    - fail_next() makes the next write raise
    - hold_next() parks the next write until the returned event is set
    """

    def __init__(self) -> None:
        self.calls: list[tuple[Any, dict[str, Any]]] = []
        self._errors: list[Exception] = []
        self._gates: list[asyncio.Event] = []

    def fail_next(self, error: Exception | None = None) -> None:
        self._errors.append(error or PersistenceError("store unavailable"))

    def hold_next(self) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates.append(gate)
        return gate

    async def update(self, task_id: Any, fields: dict[str, Any]) -> None:
        self.calls.append((task_id, fields))
        gate = self._gates.pop(0) if self._gates else None
        if gate is not None:
            await gate.wait()
        if self._errors:
            raise self._errors.pop(0)


@dataclass(slots=True)
class RecordingOwner:
    """OwnerCallback that just remembers what it was given."""

    updates: list[Task] = field(default_factory=list)

    def update_task(self, task: Task) -> None:
        self.updates.append(task)


@dataclass(slots=True)
class FakeComments:
    shown: list[Task] = field(default_factory=list)
    hidden: int = 0
    on_close: Any = None

    def show(self, task: Task, on_close) -> None:
        self.shown.append(task)
        self.on_close = on_close

    def hide(self) -> None:
        self.hidden += 1
