# src/taskcard/card/models.py

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)

TaskId = str | int


class Priority(StrEnum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def from_db(cls, raw: str | None) -> Priority:
        if not raw:
            return cls.MEDIUM
        try:
            return cls(raw)
        except ValueError:
            return cls.MEDIUM


class CardMode(StrEnum):
    """Exactly one of these is active for a card at any time."""

    VIEWING = "viewing"
    EDITING_TASK = "editing_task"
    EDITING_SUBTASKS = "editing_subtasks"


class Accent(StrEnum):
    """Border accent of a card; what a presentation colours it with is up to it."""

    DONE = "done"
    TOP = "top"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def card_accent(priority: Priority, top_priority: bool, completed_column: bool = False) -> Accent:
    # Completed column beats top priority, which beats plain priority.
    if completed_column:
        return Accent.DONE
    if top_priority:
        return Accent.TOP
    return Accent(priority.value.lower())


def utc_now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def as_list(value: Any) -> list[Any]:
    """
    Normalize a stored value into a list.

    Stores are loose about list columns: a list stays a list, a single scalar
    becomes a one-element list, None becomes [].
    """
    if isinstance(value, (list, tuple)):
        return list(value)
    if value is not None:
        return [value]
    return []


def split_csv(text: str | None) -> tuple[str, ...]:
    """
    "a, b,,  c, a" -> ("a", "b", "c")

    Pieces are trimmed, empty pieces dropped, duplicates dropped (first one wins).
    """
    out: list[str] = []
    seen: set[str] = set()
    for piece in (text or "").split(","):
        piece = piece.strip()
        if piece and piece not in seen:
            seen.add(piece)
            out.append(piece)
    return tuple(out)


def join_csv(items: Iterable[str]) -> str:
    return ", ".join(items)


@dataclass(frozen=True, slots=True)
class Subtask:
    id: str
    text: str
    completed: bool = False

    @classmethod
    def from_record(cls, raw: dict[str, Any]) -> Subtask:
        return cls(
            id=str(raw.get("id")),
            text=str(raw.get("text") or ""),
            completed=bool(raw.get("completed", False)),
        )

    def to_record(self) -> dict[str, Any]:
        return {"id": self.id, "text": self.text, "completed": self.completed}


def _fresh_id(base: str, taken: set[str]) -> str:
    n = 2
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"


def subtasks_from_records(raw: Any) -> tuple[Subtask, ...]:
    """
    Parse a stored subtask list.

    A repeated id keeps the first entry as is; later entries get a fresh
    "<id>-<n>" id so nothing is dropped on the next write-back.
    """
    parsed: list[Subtask] = []
    for item in as_list(raw):
        if isinstance(item, Subtask):
            parsed.append(item)
        elif isinstance(item, dict):
            parsed.append(Subtask.from_record(item))
        else:
            logger.warning("Skipping malformed subtask record: %r", item)

    taken = {st.id for st in parsed}
    seen: set[str] = set()
    out: list[Subtask] = []
    for st in parsed:
        if st.id in seen:
            new_id = _fresh_id(st.id, taken)
            logger.warning("Duplicate subtask id=%s re-keyed as %s", st.id, new_id)
            taken.add(new_id)
            st = replace(st, id=new_id)
        seen.add(st.id)
        out.append(st)
    return tuple(out)


def subtasks_to_records(subtasks: Iterable[Subtask]) -> list[dict[str, Any]]:
    return [st.to_record() for st in subtasks]


def progress_percent(subtasks: Iterable[Subtask]) -> int:
    """Completed share in whole percent, half rounded up; 0 for an empty list."""
    items = list(subtasks)
    if not items:
        return 0
    done = sum(1 for st in items if st.completed)
    return int(math.floor(100 * done / len(items) + 0.5))


@dataclass(frozen=True, slots=True)
class Task:
    """
    Authoritative task value.

    The card never mutates one of these; every committed change produces a new
    Task (dataclasses.replace) that is handed to the owner.
    """

    id: TaskId
    title: str
    due_date: str = ""
    priority: Priority = Priority.MEDIUM
    top_priority: bool = False
    assigned_to: tuple[str, ...] = ()
    related_customer: str | None = None
    tags: tuple[str, ...] = ()
    subtasks: tuple[Subtask, ...] = ()
    updated_at: str | None = None

    @classmethod
    def from_record(cls, raw: dict[str, Any]) -> Task:
        customer = raw.get("related_customer")
        return cls(
            id=raw["id"],
            title=str(raw.get("title") or ""),
            due_date=str(raw.get("due_date") or ""),
            priority=Priority.from_db(raw.get("priority")),
            top_priority=bool(raw.get("top_priority", False)),
            assigned_to=tuple(str(x) for x in as_list(raw.get("assigned_to"))),
            related_customer=str(customer) if customer else None,
            tags=tuple(str(x) for x in as_list(raw.get("tags"))),
            subtasks=subtasks_from_records(raw.get("subtasks")),
            updated_at=raw.get("updated_at"),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "due_date": self.due_date,
            "priority": self.priority.value,
            "top_priority": self.top_priority,
            "assigned_to": list(self.assigned_to),
            "related_customer": self.related_customer,
            "tags": list(self.tags),
            "subtasks": subtasks_to_records(self.subtasks),
            "updated_at": self.updated_at,
        }


@dataclass(slots=True)
class TaskEditDraft:
    """Editable projection of a Task, as the field editor presents it (list fields as text)."""

    title: str
    due_date: str
    priority: Priority
    assigned_to: str
    related_customer: str
    tags: str

    @classmethod
    def from_task(cls, task: Task) -> TaskEditDraft:
        return cls(
            title=task.title,
            due_date=task.due_date,
            priority=task.priority,
            assigned_to=join_csv(task.assigned_to),
            related_customer=task.related_customer or "",
            tags=join_csv(task.tags),
        )


EDITABLE_FIELDS: tuple[str, ...] = (
    "title",
    "due_date",
    "priority",
    "assigned_to",
    "related_customer",
    "tags",
)


@dataclass(slots=True)
class CardState:
    """
    Per-card mutable state: current mode plus both draft buffers.

    Owned by CardController and lent to the editors by reference.
    """

    task: Task
    mode: CardMode = CardMode.VIEWING
    subtasks: list[Subtask] = field(default_factory=list)
    task_draft: TaskEditDraft | None = None

    def __post_init__(self) -> None:
        if not self.subtasks:
            self.subtasks = list(self.task.subtasks)
