# src/taskcard/stores/sqlite_store.py

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import sqlite3
from pathlib import Path
from typing import Any

from ..card.models import Priority, Task, TaskId, utc_now_iso
from ..errors import PersistenceError

logger = logging.getLogger(__name__)

# Columns a partial update may touch; list-like values are stored as JSON text.
_JSON_COLUMNS = ("assigned_to", "tags", "subtasks")
_UPDATABLE_COLUMNS = (
    "title",
    "due_date",
    "priority",
    "top_priority",
    "assigned_to",
    "related_customer",
    "tags",
    "subtasks",
    "updated_at",
)


class SqliteTaskStore:
    """
    SQLite task record store.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("SqliteTaskStore ready db=%s total=%s", self._db_path, self.count_tasks())

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.DatabaseError):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    due_date TEXT NOT NULL DEFAULT '',
                    priority TEXT NOT NULL DEFAULT 'Medium',
                    top_priority INTEGER NOT NULL DEFAULT 0,
                    assigned_to TEXT NOT NULL DEFAULT '[]',
                    related_customer TEXT,
                    tags TEXT NOT NULL DEFAULT '[]',
                    subtasks TEXT NOT NULL DEFAULT '[]',
                    updated_at TEXT
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("SqliteTaskStore migration: added column %s", name)

            add_col("due_date", "TEXT NOT NULL DEFAULT ''")
            add_col("priority", "TEXT NOT NULL DEFAULT 'Medium'")
            add_col("top_priority", "INTEGER NOT NULL DEFAULT 0")
            add_col("assigned_to", "TEXT NOT NULL DEFAULT '[]'")
            add_col("related_customer", "TEXT")
            add_col("tags", "TEXT NOT NULL DEFAULT '[]'")
            add_col("subtasks", "TEXT NOT NULL DEFAULT '[]'")
            add_col("updated_at", "TEXT")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _to_column(name: str, value: Any) -> Any:
        if name in _JSON_COLUMNS:
            return json.dumps(value if value is not None else [], ensure_ascii=False)
        if name == "top_priority":
            return 1 if value else 0
        if name == "priority" and isinstance(value, Priority):
            return value.value
        return value

    @staticmethod
    def _json_list(s: str | None) -> Any:
        if not s:
            return []
        try:
            return json.loads(s)
        except ValueError:
            logger.warning("Unreadable JSON column value %r; using []", s)
            return []

    def _row_to_task(self, row: sqlite3.Row) -> Task:
        return Task.from_record(
            {
                "id": int(row["id"]),
                "title": row["title"],
                "due_date": row["due_date"],
                "priority": row["priority"],
                "top_priority": bool(row["top_priority"]),
                "assigned_to": self._json_list(row["assigned_to"]),
                "related_customer": row["related_customer"],
                "tags": self._json_list(row["tags"]),
                "subtasks": self._json_list(row["subtasks"]),
                "updated_at": row["updated_at"],
            }
        )

    # ---- public API ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)
        finally:
            conn.close()

    def add_task(
        self,
        *,
        title: str,
        due_date: str = "",
        priority: Priority | str = Priority.MEDIUM,
        top_priority: bool = False,
        assigned_to: list[str] | tuple[str, ...] = (),
        related_customer: str | None = None,
        tags: list[str] | tuple[str, ...] = (),
        subtasks: list[dict[str, Any]] | None = None,
    ) -> int:
        if not title or not title.strip():
            raise ValueError("title is required")

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO tasks(
                    title, due_date, priority, top_priority,
                    assigned_to, related_customer, tags, subtasks, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    title.strip(),
                    due_date,
                    Priority.from_db(str(priority)).value,
                    1 if top_priority else 0,
                    self._to_column("assigned_to", list(assigned_to)),
                    related_customer,
                    self._to_column("tags", list(tags)),
                    self._to_column("subtasks", subtasks or []),
                    utc_now_iso(),
                ),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for tasks insert")
            logger.debug("Task added id=%s title=%s", rowid, title)
            return int(rowid)
        finally:
            conn.close()

    def get_task(self, task_id: TaskId) -> Task | None:
        try:
            key = int(task_id)
        except (TypeError, ValueError):
            return None
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (key,)).fetchone()
            return self._row_to_task(row) if row else None
        finally:
            conn.close()

    def list_tasks(self) -> list[Task]:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM tasks ORDER BY id ASC").fetchall()
            return [self._row_to_task(r) for r in rows]
        finally:
            conn.close()

    def update_task_fields(self, task_id: TaskId, fields: dict[str, Any]) -> None:
        """
        Partial update keyed by id. Only the given columns change.

        Raises PersistenceError for unknown columns, unknown ids and SQLite errors.
        """
        unknown = set(fields) - set(_UPDATABLE_COLUMNS)
        if unknown:
            raise PersistenceError(f"Cannot update fields: {sorted(unknown)}", task_id=task_id)
        if not fields:
            return

        names = [n for n in _UPDATABLE_COLUMNS if n in fields]
        assignments = ", ".join(f"{n} = ?" for n in names)
        params = [self._to_column(n, fields[n]) for n in names]
        try:
            params.append(int(task_id))
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Invalid task id {task_id!r}", task_id=task_id) from e

        conn = self._get_conn()
        try:
            cur = conn.execute(f"UPDATE tasks SET {assignments} WHERE id = ?", params)
            conn.commit()
            if cur.rowcount != 1:
                raise PersistenceError(f"Task {task_id} not found", task_id=task_id)
        except sqlite3.Error as e:
            raise PersistenceError(f"SQLite update failed: {e}", task_id=task_id) from e
        finally:
            conn.close()


class SqliteGateway:
    """Async TaskRepo over a SqliteTaskStore (blocking calls run in a worker thread)."""

    def __init__(self, store: SqliteTaskStore) -> None:
        self.store = store

    async def update(self, task_id: TaskId, fields: dict[str, Any]) -> None:
        await asyncio.to_thread(self.store.update_task_fields, task_id, fields)

    async def fetch(self, task_id: TaskId) -> Task | None:
        return await asyncio.to_thread(self.store.get_task, task_id)

    async def list_tasks(self) -> list[Task]:
        return await asyncio.to_thread(self.store.list_tasks)

    async def create_task(self, *, title: str, **fields: Any) -> Task:
        task_id = await asyncio.to_thread(lambda: self.store.add_task(title=title, **fields))
        task = await self.fetch(task_id)
        if task is None:
            raise PersistenceError("Task created but not found", task_id=task_id)
        return task
