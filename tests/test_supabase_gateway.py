# tests/test_supabase_gateway.py

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from taskcard.errors import PersistenceError
from taskcard.stores.supabase_gateway import SupabaseGateway


class FakeQuery:
    """Records the PostgREST builder chain and returns canned data on execute()."""

    def __init__(self, client: FakeClient) -> None:
        self._client = client
        self.ops: list[tuple[str, Any]] = []

    def __getattr__(self, name: str):
        def step(*args: Any, **kwargs: Any) -> FakeQuery:
            self.ops.append((name, args))
            return self

        return step

    def execute(self) -> SimpleNamespace:
        if self._client.error is not None:
            raise self._client.error
        return SimpleNamespace(data=self._client.data)


class FakeClient:
    def __init__(self, data: Any = None, error: Exception | None = None) -> None:
        self.data = data
        self.error = error
        self.queries: list[tuple[str, FakeQuery]] = []

    def table(self, name: str) -> FakeQuery:
        q = FakeQuery(self)
        self.queries.append((name, q))
        return q


@pytest.mark.asyncio
async def test_update_sends_partial_payload_keyed_by_id() -> None:
    client = FakeClient(data=[{"id": "t1"}])
    gw = SupabaseGateway(client, table="board_tasks")

    fields = {"subtasks": [], "updated_at": "2026-01-01T00:00:00Z"}
    await gw.update("t1", fields)

    table, q = client.queries[0]
    assert table == "board_tasks"
    assert q.ops == [("update", (fields,)), ("eq", ("id", "t1"))]


@pytest.mark.asyncio
async def test_update_with_no_matching_row_fails() -> None:
    gw = SupabaseGateway(FakeClient(data=[]))
    with pytest.raises(PersistenceError):
        await gw.update("t1", {"updated_at": "x"})


@pytest.mark.asyncio
async def test_client_errors_become_persistence_errors() -> None:
    gw = SupabaseGateway(FakeClient(error=RuntimeError("network down")))
    with pytest.raises(PersistenceError) as exc:
        await gw.update("t1", {"updated_at": "x"})
    assert exc.value.task_id == "t1"


@pytest.mark.asyncio
async def test_fetch_normalizes_record() -> None:
    row = {"id": "t1", "title": "Call", "assigned_to": "ana", "subtasks": None, "priority": "Low"}
    gw = SupabaseGateway(FakeClient(data=[row]))

    task = await gw.fetch("t1")
    assert task is not None
    assert task.assigned_to == ("ana",)
    assert task.subtasks == ()


def test_from_settings_requires_credentials() -> None:
    settings = SimpleNamespace(supabase_url="", supabase_key="", supabase_table="tasks")
    with pytest.raises(RuntimeError):
        SupabaseGateway.from_settings(settings)
