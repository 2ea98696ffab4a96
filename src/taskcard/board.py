# src/taskcard/board.py

from __future__ import annotations

import logging
from dataclasses import replace

from .card.controller import CardController
from .card.models import Task, utc_now_iso
from .card.write_serializer import WriteSerializer
from .core.ports import CommentsPanel, TaskRepo

logger = logging.getLogger(__name__)


class TaskBoard:
    """
    Owner of task values.

    Cards report committed changes through update_task(); the board keeps the
    new value and pushes it back to every card showing that task, which is
    where the cards' reconciliation rule kicks in.
    """

    def __init__(self, repo: TaskRepo, *, serialize_writes: bool = True) -> None:
        self.repo = repo
        self.tasks: dict[str, Task] = {}
        self.serializer = WriteSerializer(enabled=serialize_writes)
        self._cards: dict[str, list[CardController]] = {}

    def order(self) -> list[Task]:
        return list(self.tasks.values())

    def get(self, task_id: object) -> Task | None:
        return self.tasks.get(str(task_id))

    async def load(self) -> int:
        tasks = await self.repo.list_tasks()
        for task in tasks:
            self.update_task(task)
        logger.info("Board loaded %s tasks", len(tasks))
        return len(tasks)

    async def refresh(self, task_id: object) -> Task | None:
        """Re-read one task from the store and push it to its cards."""
        task = await self.repo.fetch(task_id)
        if task is None:
            return None
        self.update_task(task)
        return task

    async def create(self, title: str) -> Task:
        task = await self.repo.create_task(title=title)
        self.update_task(task)
        return task

    def card_for(self, task_id: object, *, comments: CommentsPanel | None = None) -> CardController:
        task = self.get(task_id)
        if task is None:
            raise KeyError(f"Unknown task: {task_id}")
        key = str(task.id)
        card = CardController(
            task,
            self.repo,
            self,
            index=list(self.tasks).index(key),
            serializer=self.serializer,
            comments=comments,
        )
        self._cards.setdefault(key, []).append(card)
        return card

    def detach(self, card: CardController) -> None:
        cards = self._cards.get(card.draggable_id, [])
        if card in cards:
            cards.remove(card)

    # ---- OwnerCallback ----

    def update_task(self, task: Task) -> None:
        key = str(task.id)
        self.tasks[key] = task
        for card in list(self._cards.get(key, [])):
            card.receive(task)

    async def persist_fields(self, task: Task) -> None:
        """Owner-side save path for task-field edits (cards never write these themselves)."""
        fields = task.to_record()
        fields.pop("id")
        fields.pop("subtasks")
        fields.pop("top_priority")
        fields["updated_at"] = utc_now_iso()
        await self.repo.update(task.id, fields)
        self.update_task(replace(task, updated_at=fields["updated_at"]))
