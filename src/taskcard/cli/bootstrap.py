# src/taskcard/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- picks the task store backend (SQLite or Supabase),
- wires the board into AppState and loads it.
"""

from __future__ import annotations

import logging

from ..board import TaskBoard
from ..config import get_settings
from ..core.ports import TaskRepo
from ..core.state import AppState
from ..stores.sqlite_store import SqliteGateway, SqliteTaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_repo(settings) -> TaskRepo:
    if settings.backend == "supabase":
        from ..stores.supabase_gateway import SupabaseGateway

        logger.info("Using Supabase backend table=%s", settings.supabase_table)
        return SupabaseGateway.from_settings(settings)

    return SqliteGateway(SqliteTaskStore(settings.tasks_db_path))


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings and load the board.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    board = TaskBoard(create_repo(settings), serialize_writes=settings.serialize_writes)
    state = AppState(settings=settings, board=board)
    state.run(board.load())
    return state
