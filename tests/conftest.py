# tests/conftest.py

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from types import SimpleNamespace

import pytest

from taskcard.card.controller import CardController
from taskcard.card.models import Subtask, Task
from taskcard.cli.bootstrap import create_initial_state
from taskcard.core.state import AppState

from .fakes import FakeGateway, RecordingOwner

FIXED_TS = "2026-01-01T00:00:00.000Z"


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and AppState.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment.
    """
    return SimpleNamespace(
        app_name="taskcard-test",
        log_level="DEBUG",
        backend="sqlite",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        supabase_url="",
        supabase_key="",
        supabase_table="tasks",
        serialize_writes=True,
    )


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def owner() -> RecordingOwner:
    return RecordingOwner()


@pytest.fixture()
def task() -> Task:
    return Task(
        id="t1",
        title="Quarterly report",
        due_date="2026-03-31",
        assigned_to=("ana", "bo"),
        tags=("finance",),
        subtasks=(Subtask(id="1", text="a", completed=False),),
    )


@pytest.fixture()
def card(task: Task, gateway: FakeGateway, owner: RecordingOwner) -> CardController:
    return CardController(task, gateway, owner, clock=lambda: FIXED_TS)


@pytest.fixture()
def state(settings: SimpleNamespace) -> Iterator[AppState]:
    """AppState wired to a real SQLite store in tmp_path."""
    app_state = create_initial_state(settings=settings)
    yield app_state
    app_state.close()
