# src/taskcard/errors.py

from __future__ import annotations


class CardError(Exception):
    """Base error for the task card core."""


class ModeError(CardError):
    """An intent was issued in a mode that does not accept it."""


class PersistenceError(CardError):
    """A write to (or read from) the authoritative store failed."""

    def __init__(self, message: str, *, task_id: object | None = None) -> None:
        super().__init__(message)
        self.task_id = task_id
