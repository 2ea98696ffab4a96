# src/taskcard/card/subtask_editor.py

"""
Subtask draft editing.

Everything here works on CardState.subtasks only. Nothing is written anywhere
until CardController.save_subtasks() commits the whole sequence.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import replace

from .models import CardState, Subtask

logger = logging.getLogger(__name__)


class SubtaskIdFactory:
    """
    Time-derived subtask ids (epoch milliseconds as text).

    Ids are strictly increasing for the lifetime of the factory, so two adds in
    the same millisecond still get distinct ids.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._last = 0

    def next_id(self, taken: set[str] | None = None) -> str:
        candidate = max(int(self._clock() * 1000), self._last + 1)
        taken = taken or set()
        while str(candidate) in taken:
            candidate += 1
        self._last = candidate
        return str(candidate)


class SubtaskEditor:
    def __init__(self, state: CardState, ids: SubtaskIdFactory | None = None) -> None:
        self._state = state
        self._ids = ids or SubtaskIdFactory()

    def add(self, text: str) -> Subtask | None:
        """Append a new open subtask. Blank text is rejected (returns None, nothing changes)."""
        text = (text or "").strip()
        if not text:
            logger.debug("Rejected blank subtask for task=%s", self._state.task.id)
            return None
        taken = {st.id for st in self._state.subtasks}
        st = Subtask(id=self._ids.next_id(taken), text=text, completed=False)
        self._state.subtasks.append(st)
        return st

    def remove(self, subtask_id: str) -> None:
        self._state.subtasks[:] = [st for st in self._state.subtasks if st.id != subtask_id]

    def edit_text(self, subtask_id: str, text: str) -> None:
        # No trim and no blank check here (unlike add).
        self._state.subtasks[:] = [
            replace(st, text=text) if st.id == subtask_id else st for st in self._state.subtasks
        ]

    def move_up(self, index: int) -> None:
        items = self._state.subtasks
        if index <= 0 or index >= len(items):
            return
        items[index - 1], items[index] = items[index], items[index - 1]

    def move_down(self, index: int) -> None:
        items = self._state.subtasks
        if index < 0 or index >= len(items) - 1:
            return
        items[index], items[index + 1] = items[index + 1], items[index]


def toggled(subtasks: list[Subtask] | tuple[Subtask, ...], subtask_id: str) -> list[Subtask]:
    return [replace(st, completed=not st.completed) if st.id == subtask_id else st for st in subtasks]
