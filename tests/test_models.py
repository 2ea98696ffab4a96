# tests/test_models.py

from __future__ import annotations

import pytest

from taskcard.card.models import (
    Accent,
    Priority,
    Subtask,
    Task,
    TaskEditDraft,
    card_accent,
    join_csv,
    progress_percent,
    split_csv,
)


@pytest.mark.parametrize(
    "text",
    [
        "",
        "ana",
        "ana, bo",
        " ana ,bo,, ,carl ",
        "x,x, x",
        ",,,",
        "tag one, tag two ,tag one",
    ],
)
def test_split_csv_reparse_is_stable(text: str) -> None:
    first = split_csv(text)
    again = split_csv(join_csv(first))
    assert set(again) == set(first)
    assert all(p and p == p.strip() for p in first)


def test_split_csv_trims_and_drops_empty_pieces() -> None:
    assert split_csv(" ana ,, bo , ") == ("ana", "bo")
    assert split_csv(None) == ()


def test_progress_percent() -> None:
    assert progress_percent([]) == 0

    four = [Subtask(id=str(i), text=f"s{i}", completed=(i == 0)) for i in range(4)]
    assert progress_percent(four) == 25

    # 1/8 = 12.5% rounds half up, like the board's display
    eight = [Subtask(id=str(i), text="s", completed=(i == 0)) for i in range(8)]
    assert progress_percent(eight) == 13


def test_task_from_record_normalizes_loose_values() -> None:
    task = Task.from_record(
        {
            "id": 7,
            "title": "Call",
            "priority": "Urgent",
            "assigned_to": "ana",
            "tags": None,
            "related_customer": "",
            "subtasks": [
                {"id": 1, "text": "a", "completed": True},
                {"id": 1, "text": "dup", "completed": False},
                {"id": 2, "text": "b"},
            ],
        }
    )

    assert task.priority == Priority.MEDIUM
    assert task.assigned_to == ("ana",)
    assert task.tags == ()
    assert task.related_customer is None
    assert [st.id for st in task.subtasks] == ["1", "1-2", "2"]
    assert [st.text for st in task.subtasks] == ["a", "dup", "b"]
    assert task.subtasks[0].completed is True
    assert task.subtasks[2].completed is False


def test_task_record_round_trip_keeps_subtask_order() -> None:
    task = Task(
        id=3,
        title="t",
        subtasks=(Subtask("b", "second"), Subtask("a", "first", True)),
    )
    again = Task.from_record(task.to_record())
    assert again == task


def test_edit_draft_joins_list_fields() -> None:
    task = Task(id=1, title="t", assigned_to=("ana", "bo"), tags=("x",))
    draft = TaskEditDraft.from_task(task)
    assert draft.assigned_to == "ana, bo"
    assert draft.tags == "x"
    assert draft.related_customer == ""


def test_duplicate_rekey_skips_ids_already_in_the_record() -> None:
    task = Task.from_record(
        {
            "id": 1,
            "title": "t",
            "subtasks": [{"id": "1", "text": "a"}, {"id": "1-2", "text": "b"}, {"id": "1", "text": "c"}],
        }
    )
    assert [st.id for st in task.subtasks] == ["1", "1-2", "1-3"]


def test_card_accent_order() -> None:
    assert card_accent(Priority.LOW, True, completed_column=True) == Accent.DONE
    assert card_accent(Priority.LOW, True) == Accent.TOP
    assert card_accent(Priority.HIGH, False) == Accent.HIGH
    assert card_accent(Priority.MEDIUM, False) == Accent.MEDIUM
