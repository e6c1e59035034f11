# src/todo_reminders/cli/commands.py

from __future__ import annotations

import inspect
import logging
import re
from collections import Counter
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import cast

from ..core.state import AppState
from ..tasks.due_state import classify
from ..tasks.task_models import DueState, Task, utc_now

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

_RELATIVE_RE = re.compile(r"^\+(\d+)([mhd])$")
_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_UNITS = {"m": "minutes", "h": "hours", "d": "days"}


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

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

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
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
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def parse_when(tokens: list[str], now: datetime | None = None) -> tuple[datetime, int]:
    """
    Parse a due time from the head of `tokens`.

    Accepted forms (local time unless an offset is given):
      +30m | +2h | +1d
      HH:MM                 today
      YYYY-MM-DD HH:MM      two tokens
      2026-10-20T14:00      any ISO-8601 timestamp

    Returns (due_at in UTC, number of tokens consumed).
    """
    if not tokens:
        raise ValueError("missing due time")

    now = utc_now() if now is None else now
    local_now = now.astimezone()
    head = tokens[0]

    m = _RELATIVE_RE.match(head)
    if m:
        try:
            delta = timedelta(**{_UNITS[m.group(2)]: int(m.group(1))})
            return (now + delta).astimezone(UTC), 1
        except OverflowError as e:
            raise ValueError("due time out of range") from e

    m = _CLOCK_RE.match(head)
    if m:
        due = local_now.replace(hour=int(m.group(1)), minute=int(m.group(2)), second=0, microsecond=0)
        return due.astimezone(UTC), 1

    if _DATE_RE.match(head):
        if len(tokens) < 2 or not _CLOCK_RE.match(tokens[1]):
            raise ValueError("expected HH:MM after the date")
        ts = datetime.fromisoformat(f"{head}T{tokens[1].zfill(5)}")
        return ts.astimezone().astimezone(UTC), 2

    try:
        ts = datetime.fromisoformat(head)
    except ValueError as e:
        raise ValueError(f"cannot understand due time {head!r}") from e
    if ts.tzinfo is None:
        ts = ts.astimezone()
    return ts.astimezone(UTC), 1


def _fmt_local(ts: datetime) -> str:
    return ts.astimezone().strftime("%d %b %H:%M")


def _render_task(index: int, task: Task, now: datetime) -> str:
    state = classify(task, now)
    mark = "x" if task.is_completed else " "
    return f"  {index}. [{mark}] {task.title}  (due {_fmt_local(task.due_at)}) - {state.label}"


def _pick(tasks: list[Task], raw: str) -> Task | None:
    try:
        idx = int(raw)
    except ValueError:
        return None
    if idx < 1 or idx > len(tasks):
        return None
    return tasks[idx - 1]


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_list(state: AppState, args: list[str]) -> str:
    tasks = state.task_store.tasks()
    if not tasks:
        return "No tasks yet. Use /add <when> <title>."
    now = utc_now()
    lines = ["Tasks:"]
    lines.extend(_render_task(i, t, now) for i, t in enumerate(tasks, start=1))
    return "\n".join(lines)


def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /add +2h Buy milk
    /add 18:30 Call mom
    /add 2026-10-20 09:00 Dentist
    """
    if len(args) < 2:
        return "Usage: /add <when> <title>  (when: +30m, +2h, HH:MM, YYYY-MM-DD HH:MM)"

    try:
        due_at, used = parse_when(args)
        task = state.task_store.add(" ".join(args[used:]), due_at)
    except ValueError as e:
        return f"Cannot add task: {e}."

    state_now = classify(task, utc_now())
    if state_now == DueState.OVERDUE and emit is not None:
        emit("Heads up: that due time is already in the past.")
    label = state_now.label
    return f"Added: {task.title} (due {_fmt_local(task.due_at)}) - {label}"


def cmd_done(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /done <n>  (n as shown by /list)"

    task = _pick(state.task_store.tasks(), args[0])
    if task is None:
        return f"No task #{args[0]}. Use /list to see task numbers."

    updated = state.task_store.toggle_completion(task.id)
    if updated is None:
        return f"No task #{args[0]}."
    return f"{'Completed' if updated.is_completed else 'Reopened'}: {updated.title}"


def cmd_delete(state: AppState, args: list[str]) -> str:
    """
    /delete 2 3           -> delete completed tasks #2 and #3
    /delete 2 --force     -> delete #2 even if it is not completed
    """
    force = "--force" in args
    picks = [a for a in args if a != "--force"]
    if not picks:
        return "Usage: /delete <n...> [--force]"

    tasks = state.task_store.tasks()
    chosen: list[Task] = []
    for raw in picks:
        task = _pick(tasks, raw)
        if task is None:
            return f"No task #{raw}. Use /list to see task numbers."
        if task not in chosen:
            chosen.append(task)

    unfinished = [t for t in chosen if not t.is_completed]
    if unfinished and not force:
        names = ", ".join(t.title for t in unfinished)
        return f"Not completed yet: {names}. Repeat with --force to delete anyway."

    removed = state.task_store.delete(t.id for t in chosen)
    return f"Deleted {len(removed)} task(s)."


def cmd_pending(state: AppState, args: list[str]) -> str:
    pending = state.notifications.pending()
    if not pending:
        return "No pending notifications."
    lines = ["Pending notifications:"]
    for req in pending:
        when = "now" if req.fire_at is None else _fmt_local(req.fire_at)
        lines.append(f"  {when}  {req.title}: {req.body}")
    return "\n".join(lines)


def cmd_status(state: AppState, args: list[str]) -> str:
    now = utc_now()
    counts = Counter(classify(t, now) for t in state.task_store.tasks())
    watch = "ON" if getattr(state.settings, "due_watch_enabled", False) else "OFF"
    return (
        "Status:\n"
        f"  Tasks: {sum(counts.values())} "
        f"(pending {counts[DueState.PENDING]}, near due {counts[DueState.NEAR_DUE]}, "
        f"overdue {counts[DueState.OVERDUE]}, completed {counts[DueState.COMPLETED]})\n"
        f"  Pending notifications: {len(state.notifications.pending())}\n"
        f"  Due watch: {watch}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="List tasks with their due state.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add <when> <title>.")
registry.register("done", cmd_done, help_text="Toggle completion: /done <n>.", aliases=["toggle"])
registry.register("delete", cmd_delete, help_text="Delete tasks: /delete <n...> [--force].", aliases=["rm"])
registry.register("pending", cmd_pending, help_text="Show notifications waiting to fire.")
registry.register("status", cmd_status, help_text="Show task counts and notification status.")
