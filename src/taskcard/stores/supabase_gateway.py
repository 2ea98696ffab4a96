# src/taskcard/stores/supabase_gateway.py

from __future__ import annotations

import asyncio
import logging
from typing import Any

from supabase import Client, create_client

from ..card.models import Task, TaskId, subtasks_to_records, utc_now_iso
from ..errors import PersistenceError

logger = logging.getLogger(__name__)


def _data_or_raise(res: Any, fallback_msg: str, task_id: TaskId | None = None) -> list[dict[str, Any]]:
    """
    PostgREST answers an update that matched no row (or was hidden by RLS)
    with an empty list, so empty data counts as a failed write.
    """
    data = getattr(res, "data", None)
    if not data:
        raise PersistenceError(fallback_msg, task_id=task_id)
    return data if isinstance(data, list) else [data]


class SupabaseGateway:
    """
    TaskRepo backed by a Supabase table.

    supabase-py's sync client is used; every request runs in a worker thread
    so the card's event loop is never blocked.
    """

    def __init__(self, client: Client, table: str = "tasks") -> None:
        self._client = client
        self._table = table

    @classmethod
    def from_settings(cls, settings) -> SupabaseGateway:
        url = (settings.supabase_url or "").rstrip("/")
        key = settings.supabase_key or ""
        if not url or not key:
            raise RuntimeError("Supabase backend needs TASKCARD_SUPABASE_URL and TASKCARD_SUPABASE_KEY")
        return cls(create_client(url, key), table=settings.supabase_table)

    # ---- blocking calls ----

    def _update_sync(self, task_id: TaskId, fields: dict[str, Any]) -> None:
        try:
            res = self._client.table(self._table).update(fields).eq("id", task_id).execute()
        except Exception as e:
            raise PersistenceError(f"Supabase update failed: {e}", task_id=task_id) from e
        _data_or_raise(res, f"Task {task_id} not updated", task_id)

    def _fetch_sync(self, task_id: TaskId) -> Task | None:
        try:
            res = self._client.table(self._table).select("*").eq("id", task_id).limit(1).execute()
        except Exception as e:
            raise PersistenceError(f"Supabase select failed: {e}", task_id=task_id) from e
        data = getattr(res, "data", None) or []
        return Task.from_record(data[0]) if data else None

    def _list_sync(self) -> list[Task]:
        try:
            res = self._client.table(self._table).select("*").order("id").execute()
        except Exception as e:
            raise PersistenceError(f"Supabase select failed: {e}") from e
        return [Task.from_record(r) for r in (getattr(res, "data", None) or [])]

    def _insert_sync(self, payload: dict[str, Any]) -> Task:
        try:
            res = self._client.table(self._table).insert(payload).execute()
        except Exception as e:
            raise PersistenceError(f"Supabase insert failed: {e}") from e
        return Task.from_record(_data_or_raise(res, "Cannot create task")[0])

    # ---- TaskRepo ----

    async def update(self, task_id: TaskId, fields: dict[str, Any]) -> None:
        logger.debug("Supabase update task=%s fields=%s", task_id, sorted(fields))
        await asyncio.to_thread(self._update_sync, task_id, fields)

    async def fetch(self, task_id: TaskId) -> Task | None:
        return await asyncio.to_thread(self._fetch_sync, task_id)

    async def list_tasks(self) -> list[Task]:
        return await asyncio.to_thread(self._list_sync)

    async def create_task(self, *, title: str, **fields: Any) -> Task:
        payload: dict[str, Any] = {"title": title.strip(), "updated_at": utc_now_iso(), **fields}
        payload.setdefault("subtasks", subtasks_to_records(()))
        return await asyncio.to_thread(self._insert_sync, payload)
