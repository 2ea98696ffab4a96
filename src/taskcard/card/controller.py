# src/taskcard/card/controller.py

from __future__ import annotations

"""
Card controller.

Owns the per-card state (mode + both draft buffers), applies the
reconciliation rule when a new authoritative task arrives, and routes
commits to the gateway.

Modes:
- VIEWING          -> begin_task_edit() / begin_subtask_edit(), toggles allowed
- EDITING_TASK     -> save_task_edits() / cancel_task_edit() back to VIEWING
- EDITING_SUBTASKS -> save_subtasks() / cancel_subtask_edit() back to VIEWING

Reconciliation:
- outside EDITING_SUBTASKS every authoritative subtask sequence replaces the draft
- inside EDITING_SUBTASKS it is ignored; the local draft wins on save
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import StrEnum

from ..core.ports import CommentsPanel, OwnerCallback, TaskGateway
from ..errors import ModeError
from .field_editor import TaskFieldEditor
from .models import (
    Accent,
    CardMode,
    CardState,
    Priority,
    Subtask,
    Task,
    TaskEditDraft,
    card_accent,
    join_csv,
    progress_percent,
    subtasks_to_records,
    utc_now_iso,
)
from .subtask_editor import SubtaskEditor, SubtaskIdFactory, toggled
from .write_serializer import WriteSerializer

logger = logging.getLogger(__name__)


class OutcomeStatus(StrEnum):
    COMMITTED = "committed"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Outcome:
    """
    Result of an intent that may write.

    REJECTED means nothing was attempted (blank text, wrong mode, unknown id).
    FAILED carries the gateway error; local state was left as it was.
    """

    status: OutcomeStatus
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.COMMITTED


COMMITTED = Outcome(OutcomeStatus.COMMITTED)
REJECTED = Outcome(OutcomeStatus.REJECTED)


@dataclass(frozen=True, slots=True)
class CardView:
    """Read-only snapshot for whatever renders the card."""

    mode: CardMode
    draggable_id: str
    index: int
    title: str
    due_date: str
    priority: Priority
    top_priority: bool
    assigned_to: str
    related_customer: str | None
    tags: str
    subtasks: tuple[Subtask, ...]
    progress: int
    comments_open: bool
    task_draft: TaskEditDraft | None
    last_error: str | None
    write_pending: bool
    accent: Accent


class CardController:
    def __init__(
        self,
        task: Task,
        gateway: TaskGateway,
        owner: OwnerCallback,
        *,
        index: int = 0,
        completed_column: bool = False,
        serializer: WriteSerializer | None = None,
        comments: CommentsPanel | None = None,
        ids: SubtaskIdFactory | None = None,
        clock: Callable[[], str] = utc_now_iso,
    ) -> None:
        self.state = CardState(task=task, subtasks=list(task.subtasks))
        self.subtask_editor = SubtaskEditor(self.state, ids)
        self.field_editor = TaskFieldEditor(self.state)
        self.index = index
        self.completed_column = completed_column
        self.comments_open = False
        self.last_error: Exception | None = None

        self._gateway = gateway
        self._owner = owner
        self._serializer = serializer or WriteSerializer()
        self._comments = comments
        self._clock = clock
        self._edit_session = 0

    # ---- read side ----

    @property
    def mode(self) -> CardMode:
        return self.state.mode

    @property
    def task(self) -> Task:
        return self.state.task

    @property
    def subtasks(self) -> tuple[Subtask, ...]:
        return tuple(self.state.subtasks)

    @property
    def progress(self) -> int:
        return progress_percent(self.state.subtasks)

    @property
    def draggable_id(self) -> str:
        return str(self.state.task.id)

    def place(self, index: int) -> None:
        """Called by the drag/drop coordinator; the card only forwards it."""
        self.index = index

    def view(self) -> CardView:
        task = self.state.task
        return CardView(
            mode=self.state.mode,
            draggable_id=self.draggable_id,
            index=self.index,
            title=task.title,
            due_date=task.due_date,
            priority=task.priority,
            top_priority=task.top_priority,
            assigned_to=join_csv(task.assigned_to),
            related_customer=task.related_customer,
            tags=join_csv(task.tags),
            subtasks=self.subtasks,
            progress=self.progress,
            comments_open=self.comments_open,
            task_draft=replace(self.state.task_draft) if self.state.task_draft else None,
            last_error=str(self.last_error) if self.last_error else None,
            write_pending=self._serializer.pending(task.id),
            accent=card_accent(task.priority, task.top_priority, self.completed_column),
        )

    # ---- reconciliation ----

    def receive(self, task: Task) -> None:
        """A new authoritative value arrived from the owner."""
        self.state.task = task
        if self.state.mode == CardMode.EDITING_SUBTASKS:
            if tuple(self.state.subtasks) != task.subtasks:
                logger.debug("task=%s: external subtasks ignored while editing", task.id)
            return
        self.state.subtasks = list(task.subtasks)

    # ---- task field editing ----

    def begin_task_edit(self) -> TaskEditDraft:
        self._transition(CardMode.VIEWING, CardMode.EDITING_TASK)
        return self.field_editor.start()

    def set_field(self, field_name: str, value: str) -> None:
        self._require(CardMode.EDITING_TASK)
        self.field_editor.set(field_name, value)

    def save_task_edits(self) -> Task:
        self._require(CardMode.EDITING_TASK)
        task = self.field_editor.commit()
        self.state.task = task
        self._transition(CardMode.EDITING_TASK, CardMode.VIEWING)
        self._owner.update_task(task)
        return task

    def cancel_task_edit(self) -> None:
        self._require(CardMode.EDITING_TASK)
        self.field_editor.cancel()
        self._transition(CardMode.EDITING_TASK, CardMode.VIEWING)

    # ---- subtask editing ----

    def begin_subtask_edit(self) -> None:
        self._transition(CardMode.VIEWING, CardMode.EDITING_SUBTASKS)
        self._edit_session += 1

    def add_subtask(self, text: str) -> Subtask | None:
        self._require(CardMode.EDITING_SUBTASKS)
        return self.subtask_editor.add(text)

    def remove_subtask(self, subtask_id: str) -> None:
        self._require(CardMode.EDITING_SUBTASKS)
        self.subtask_editor.remove(subtask_id)

    def edit_subtask_text(self, subtask_id: str, text: str) -> None:
        self._require(CardMode.EDITING_SUBTASKS)
        self.subtask_editor.edit_text(subtask_id, text)

    def move_subtask_up(self, index: int) -> None:
        self._require(CardMode.EDITING_SUBTASKS)
        self.subtask_editor.move_up(index)

    def move_subtask_down(self, index: int) -> None:
        self._require(CardMode.EDITING_SUBTASKS)
        self.subtask_editor.move_down(index)

    def cancel_subtask_edit(self) -> None:
        self._require(CardMode.EDITING_SUBTASKS)
        self.state.subtasks = list(self.state.task.subtasks)
        self._transition(CardMode.EDITING_SUBTASKS, CardMode.VIEWING)

    async def save_subtasks(self) -> Outcome:
        """
        Write the whole draft sequence in one partial update.

        On failure the draft and the mode stay as they are so nothing typed is lost.
        If the edit session that issued the save has been cancelled by the time
        the write resolves, the result is applied like any authoritative update.
        """
        self._require(CardMode.EDITING_SUBTASKS)
        task_id = self.state.task.id
        session = self._edit_session
        snapshot = tuple(self.state.subtasks)

        async with self._serializer.slot(task_id):
            updated_at = self._clock()
            fields = {"subtasks": subtasks_to_records(snapshot), "updated_at": updated_at}
            try:
                await self._gateway.update(task_id, fields)
            except Exception as e:
                logger.exception("Saving subtasks failed task=%s", task_id)
                self.last_error = e
                return Outcome(OutcomeStatus.FAILED, e)

            task = replace(self.state.task, subtasks=snapshot, updated_at=updated_at)
            self.last_error = None
            if self.state.mode == CardMode.EDITING_SUBTASKS and self._edit_session == session:
                self.state.task = task
                self.state.subtasks = list(snapshot)
                self._transition(CardMode.EDITING_SUBTASKS, CardMode.VIEWING)
            else:
                self.receive(task)

        self._owner.update_task(task)
        return COMMITTED

    # ---- immediate writes ----

    async def toggle_completion(self, subtask_id: str) -> Outcome:
        """
        Flip one subtask's completion and write it right away.

        Only allowed while viewing. The new sequence is computed after the
        write slot is acquired, from whatever the previous write left behind.
        """
        if self.state.mode != CardMode.VIEWING:
            logger.debug("Toggle rejected in mode=%s", self.state.mode.value)
            return REJECTED

        task_id = self.state.task.id
        async with self._serializer.slot(task_id):
            base = self.state.task.subtasks
            if not any(st.id == subtask_id for st in base):
                return REJECTED

            new_subtasks = tuple(toggled(base, subtask_id))
            updated_at = self._clock()
            fields = {"subtasks": subtasks_to_records(new_subtasks), "updated_at": updated_at}
            try:
                await self._gateway.update(task_id, fields)
            except Exception as e:
                logger.exception("Toggling subtask failed task=%s subtask=%s", task_id, subtask_id)
                self.last_error = e
                return Outcome(OutcomeStatus.FAILED, e)

            task = replace(self.state.task, subtasks=new_subtasks, updated_at=updated_at)
            self.state.task = task
            # Same rule as receive(): an open subtask draft is not overwritten.
            if self.state.mode != CardMode.EDITING_SUBTASKS:
                self.state.subtasks = list(new_subtasks)
            self.last_error = None

        self._owner.update_task(task)
        return COMMITTED

    # ---- pointer intents / comments ----

    def click(self) -> None:
        """Single click toggles the comments panel, but only while viewing."""
        if self.state.mode != CardMode.VIEWING:
            return
        if self.comments_open:
            self.close_comments()
        else:
            self.open_comments()

    def double_click(self) -> bool:
        if self.state.mode != CardMode.VIEWING:
            return False
        self.begin_task_edit()
        return True

    def open_comments(self) -> None:
        if self.comments_open:
            return
        self.comments_open = True
        if self._comments is not None:
            self._comments.show(self.state.task, self.close_comments)

    def close_comments(self) -> None:
        if not self.comments_open:
            return
        self.comments_open = False
        if self._comments is not None:
            self._comments.hide()

    # ---- helpers ----

    def _require(self, mode: CardMode) -> None:
        if self.state.mode != mode:
            raise ModeError(f"Expected mode {mode.value}, card is {self.state.mode.value}")

    def _transition(self, expected: CardMode, target: CardMode) -> None:
        self._require(expected)
        self.state.mode = target
        logger.debug("task=%s mode %s -> %s", self.state.task.id, expected.value, target.value)
