# src/taskcard/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the card core.

The core depends on Protocols instead of concrete implementations.
This keeps the store (SQLite / Supabase) and the owner swappable and makes testing easier.
"""

from collections.abc import Callable
from typing import Any, Awaitable, Protocol

from ..card.models import Task, TaskId

TaskFields = dict[str, Any]
# Partial update payload: any of subtasks, updated_at, title, due_date, priority,
# assigned_to, related_customer, tags (record-shaped values, see Task.to_record).


class TaskGateway(Protocol):
    """
    Partial-update access to the authoritative task record.

    update() raises PersistenceError when the write did not happen (or the
    result could not be confirmed). No concurrency token is sent or checked.
    """

    def update(self, task_id: TaskId, fields: TaskFields) -> Awaitable[None]: ...


class TaskRepo(TaskGateway, Protocol):
    """Gateway plus the reads/inserts the board needs."""

    def fetch(self, task_id: TaskId) -> Awaitable[Task | None]: ...
    def list_tasks(self) -> Awaitable[list[Task]]: ...
    def create_task(self, *, title: str, **fields: Any) -> Awaitable[Task]: ...


class OwnerCallback(Protocol):
    """The board side of a card: receives every committed task value exactly once."""

    def update_task(self, task: Task) -> None: ...


class CommentsPanel(Protocol):
    """
    Comments collaborator.

    The card only opens and closes it; nothing flows back into the card
    except the close callback.
    """

    def show(self, task: Task, on_close: Callable[[], None]) -> None: ...
    def hide(self) -> None: ...
