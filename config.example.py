# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets (Supabase keys belong in .env, which is gitignored).

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TASKCARD_APP_NAME": "App display name (default: taskcard).",
    "TASKCARD_LOG_LEVEL": "Console logging level (default: INFO).",
    # Storage
    "TASKCARD_BACKEND": "Task store backend: sqlite or supabase (default: sqlite).",
    "TASKCARD_DATA_DIR": "Local data directory for logs and SQLite (default: .local/taskcard).",
    "TASKCARD_TASKS_DB_PATH": "SQLite path (default: <data_dir>/tasks.sqlite3).",
    # Supabase (only read when TASKCARD_BACKEND=supabase)
    "TASKCARD_SUPABASE_URL": "Supabase project URL (falls back to SUPABASE_URL).",
    "TASKCARD_SUPABASE_KEY": "Supabase API key (falls back to SUPABASE_KEY).",
    "TASKCARD_SUPABASE_TABLE": "Table holding task records (default: tasks).",
    # Card behaviour
    "TASKCARD_SERIALIZE_WRITES": "Queue writes per task id so toggles resolve in order (default: true).",
}
