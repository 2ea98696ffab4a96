# src/taskcard/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable

from ..card.controller import CardController, CardView, Outcome, OutcomeStatus
from ..card.models import CardMode
from ..core.state import AppState
from ..errors import CardError, PersistenceError

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            return handler(state, args)
        except (CardError, ValueError, KeyError) as e:
            return f"Cannot do that: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def render_card(view: CardView) -> str:
    star = " *" if view.top_priority else ""
    lines = [f"#{view.draggable_id} [{view.index}] {view.title}{star}  ({view.mode.value}, {view.accent.value})"]

    if view.task_draft is not None:
        d = view.task_draft
        lines += [
            f"  title: {d.title}",
            f"  due_date: {d.due_date}",
            f"  priority: {d.priority.value}",
            f"  assigned_to: {d.assigned_to}",
            f"  related_customer: {d.related_customer}",
            f"  tags: {d.tags}",
        ]
    else:
        lines += [
            f"  Due: {view.due_date}",
            f"  Priority: {view.priority.value}",
            f"  Assigned: {view.assigned_to}",
        ]
        if view.related_customer:
            lines.append(f"  Customer: {view.related_customer}")
        lines.append(f"  Tags: {view.tags}")

    if view.mode == CardMode.EDITING_TASK:
        return "\n".join(lines)

    title = "Edit Subtasks" if view.mode == CardMode.EDITING_SUBTASKS else "Subtasks"
    lines.append(f"  {title}:")
    if not view.subtasks:
        lines.append("    No subtasks")
    for n, st in enumerate(view.subtasks, start=1):
        mark = "x" if st.completed else " "
        lines.append(f"    {n}. [{mark}] {st.text}  (id={st.id})")
    if view.subtasks and view.mode == CardMode.VIEWING:
        lines.append(f"  Progress: {view.progress}%")
    if view.comments_open:
        lines.append("  (comments open)")
    if view.write_pending:
        lines.append("  (saving...)")
    if view.last_error:
        lines.append(f"  Last error: {view.last_error}")
    return "\n".join(lines)


def _card(state: AppState) -> CardController:
    if state.card is None:
        raise KeyError("no card open, use /open <task id>")
    return state.card


def _index(args: list[str]) -> int:
    """1-based position from the user -> 0-based index."""
    if not args:
        raise ValueError("position required")
    return int(args[0]) - 1


def _describe(outcome: Outcome, done: str) -> str:
    if outcome.status == OutcomeStatus.COMMITTED:
        return done
    if outcome.status == OutcomeStatus.REJECTED:
        return "Nothing changed."
    return f"Write failed: {outcome.error}"


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_list(state: AppState, args: list[str]) -> str:
    tasks = state.board.order()
    if not tasks:
        return "No tasks. Use /new <title>."
    return "\n".join(f"  {t.id}. {t.title}  ({len(t.subtasks)} subtasks)" for t in tasks)


def cmd_new(state: AppState, args: list[str]) -> str:
    title = " ".join(args).strip()
    if not title:
        return "Usage: /new <title>"
    task = state.run(state.board.create(title))
    return f"Created task {task.id}."


def cmd_open(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /open <task id>"
    if state.card is not None:
        state.card.close_comments()
        state.board.detach(state.card)
    state.card = state.board.card_for(args[0], comments=ConsoleCommentsPanel())
    return render_card(state.card.view())


def cmd_show(state: AppState, args: list[str]) -> str:
    return render_card(_card(state).view())


def cmd_edit(state: AppState, args: list[str]) -> str:
    card = _card(state)
    card.begin_task_edit()
    return render_card(card.view())


def cmd_set(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /set <field> <value>"
    card = _card(state)
    card.set_field(args[0], " ".join(args[1:]))
    return render_card(card.view())


def cmd_subtasks(state: AppState, args: list[str]) -> str:
    card = _card(state)
    card.begin_subtask_edit()
    return render_card(card.view())


def cmd_save(state: AppState, args: list[str]) -> str:
    card = _card(state)
    if card.mode == CardMode.EDITING_TASK:
        task = card.save_task_edits()
        try:
            state.run(state.board.persist_fields(task))
        except PersistenceError as e:
            logger.error("Persisting task fields failed task=%s: %s", task.id, e)
            return f"Saved on the board, but the store write failed: {e}"
        return "Task saved."
    if card.mode == CardMode.EDITING_SUBTASKS:
        return _describe(state.run(card.save_subtasks()), "Subtasks saved.")
    return "Nothing to save."


def cmd_cancel(state: AppState, args: list[str]) -> str:
    card = _card(state)
    if card.mode == CardMode.EDITING_TASK:
        card.cancel_task_edit()
    elif card.mode == CardMode.EDITING_SUBTASKS:
        card.cancel_subtask_edit()
    else:
        return "Nothing to cancel."
    return render_card(card.view())


def cmd_add(state: AppState, args: list[str]) -> str:
    card = _card(state)
    st = card.add_subtask(" ".join(args))
    return f"Added {st.id}." if st else "Subtask text is empty."


def cmd_rm(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <subtask id>"
    _card(state).remove_subtask(args[0])
    return render_card(_card(state).view())


def cmd_text(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /text <subtask id> <text>"
    _card(state).edit_subtask_text(args[0], " ".join(args[1:]))
    return render_card(_card(state).view())


def cmd_up(state: AppState, args: list[str]) -> str:
    _card(state).move_subtask_up(_index(args))
    return render_card(_card(state).view())


def cmd_down(state: AppState, args: list[str]) -> str:
    _card(state).move_subtask_down(_index(args))
    return render_card(_card(state).view())


def cmd_toggle(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /toggle <subtask id>"
    card = _card(state)
    return _describe(state.run(card.toggle_completion(args[0])), f"Progress: {card.progress}%")


def cmd_reload(state: AppState, args: list[str]) -> str:
    card = _card(state)
    task = state.run(state.board.refresh(card.task.id))
    if task is None:
        return "Task no longer exists in the store."
    return render_card(card.view())


def cmd_comments(state: AppState, args: list[str]) -> str:
    card = _card(state)
    card.click()
    return "Comments open." if card.comments_open else "Comments closed."


class ConsoleCommentsPanel:
    """Stand-in comments collaborator for the console: just announces itself."""

    def __init__(self) -> None:
        self.task = None
        self._on_close = None

    def show(self, task, on_close) -> None:
        self.task = task
        self._on_close = on_close
        logger.info("Comments panel opened for task=%s", task.id)

    def hide(self) -> None:
        logger.info("Comments panel closed")
        self.task = None
        self._on_close = None


registry.register("help", cmd_help, "Show this help message.", aliases=["h", "?"])
registry.register("list", cmd_list, "List tasks on the board.", aliases=["ls"])
registry.register("new", cmd_new, "Create a task: /new <title>.")
registry.register("open", cmd_open, "Open a task card: /open <task id>.")
registry.register("show", cmd_show, "Show the open card.")
registry.register("edit", cmd_edit, "Start editing task fields.")
registry.register("set", cmd_set, "Set a draft field: /set <field> <value>.")
registry.register("subtasks", cmd_subtasks, "Start editing the subtask list.", aliases=["st"])
registry.register("add", cmd_add, "Add a subtask to the draft: /add <text>.")
registry.register("rm", cmd_rm, "Remove a draft subtask: /rm <subtask id>.")
registry.register("text", cmd_text, "Change subtask text: /text <subtask id> <text>.")
registry.register("up", cmd_up, "Move a draft subtask up: /up <position>.")
registry.register("down", cmd_down, "Move a draft subtask down: /down <position>.")
registry.register("save", cmd_save, "Save the current edit.")
registry.register("cancel", cmd_cancel, "Discard the current edit.")
registry.register("toggle", cmd_toggle, "Toggle a subtask's completion: /toggle <subtask id>.", aliases=["t"])
registry.register("reload", cmd_reload, "Re-read the open task from the store.")
registry.register("comments", cmd_comments, "Toggle the comments panel.", aliases=["c"])
