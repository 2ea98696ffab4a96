# src/taskcard/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (Supabase keys are only checked when that backend is chosen).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKCARD"
BACKENDS = ("sqlite", "supabase")

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Storage ----
    backend: str
    data_dir: Path
    tasks_db_path: Path

    # ---- Supabase ----
    supabase_url: str
    supabase_key: str
    supabase_table: str

    # ---- Card behaviour ----
    serialize_writes: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskcard")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        backend = _env(_k("BACKEND"), "sqlite").strip().lower()
        if backend not in BACKENDS:
            backend = "sqlite"

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskcard"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")

        # Accept the plain SUPABASE_* names too (same as other Supabase tooling).
        supabase_url = (_first_env(_k("SUPABASE_URL"), "SUPABASE_URL", default="") or "").strip()
        supabase_key = (_first_env(_k("SUPABASE_KEY"), "SUPABASE_KEY", default="") or "").strip()
        supabase_table = _env(_k("SUPABASE_TABLE"), "tasks")

        serialize_writes = _env_bool(_k("SERIALIZE_WRITES"), True)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            backend=backend,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            supabase_url=supabase_url,
            supabase_key=supabase_key,
            supabase_table=supabase_table,
            serialize_writes=serialize_writes,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
