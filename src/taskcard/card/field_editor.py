# src/taskcard/card/field_editor.py

from __future__ import annotations

import logging
from dataclasses import replace

from .models import EDITABLE_FIELDS, CardState, Priority, Task, TaskEditDraft, split_csv

logger = logging.getLogger(__name__)


class TaskFieldEditor:
    """
    Field-level edits over the task draft.

    commit() only produces the new Task value; writing task fields to the store
    is the owner's job (see TaskBoard.persist_fields).
    """

    def __init__(self, state: CardState) -> None:
        self._state = state

    def start(self) -> TaskEditDraft:
        self._state.task_draft = TaskEditDraft.from_task(self._state.task)
        return self._state.task_draft

    def set(self, field_name: str, value: str) -> None:
        draft = self._require_draft()
        if field_name not in EDITABLE_FIELDS:
            raise ValueError(f"Unknown task field: {field_name}")
        if field_name == "priority":
            setattr(draft, field_name, Priority(value))
            return
        setattr(draft, field_name, value)

    def commit(self) -> Task:
        draft = self._require_draft()
        customer = draft.related_customer.strip()
        task = replace(
            self._state.task,
            title=draft.title,
            due_date=draft.due_date,
            priority=draft.priority,
            assigned_to=split_csv(draft.assigned_to),
            related_customer=customer or None,
            tags=split_csv(draft.tags),
        )
        self._state.task_draft = None
        return task

    def cancel(self) -> None:
        self._state.task_draft = None

    def _require_draft(self) -> TaskEditDraft:
        if self._state.task_draft is None:
            raise ValueError("No task draft; call start() first")
        return self._state.task_draft
