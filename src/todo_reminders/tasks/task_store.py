# src/todo_reminders/tasks/task_store.py

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from ..core.ports import KeyValueStore
from .task_models import Task, utc_now
from .task_scheduler import NotificationScheduler

logger = logging.getLogger(__name__)

TASKS_KEY = "tasks"


def _parse_due(raw: Any) -> datetime:
    if not isinstance(raw, str):
        raise ValueError(f"dueDate must be an ISO-8601 string, got {type(raw).__name__}")
    ts = datetime.fromisoformat(raw)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts


def tasks_to_json(tasks: Iterable[Task]) -> str:
    return json.dumps(
        [
            {
                "id": t.id,
                "title": t.title,
                "isCompleted": t.is_completed,
                "dueDate": t.due_at.isoformat(),
            }
            for t in tasks
        ],
        ensure_ascii=False,
    )


def tasks_from_json(raw: str) -> list[Task]:
    """Decode the persisted blob. Raises ValueError on anything malformed."""
    try:
        data = json.loads(raw)
    except RecursionError as e:
        raise ValueError("tasks blob is nested too deeply") from e
    if not isinstance(data, list):
        raise ValueError("tasks blob must be a JSON list")

    out: list[Task] = []
    for item in data:
        if not isinstance(item, dict):
            raise ValueError("task record must be a JSON object")
        try:
            task_id = item["id"]
            title = item["title"]
            is_completed = item["isCompleted"]
            due_raw = item["dueDate"]
        except KeyError as e:
            raise ValueError(f"task record is missing {e.args[0]!r}") from e

        if not isinstance(task_id, str) or not isinstance(title, str) or not isinstance(is_completed, bool):
            raise ValueError("task record has fields of the wrong type")

        out.append(Task(id=task_id, title=title, due_at=_parse_due(due_raw), is_completed=is_completed))
    return out


class TaskStore:
    """
    Ordered in-memory task collection backed by a single key-value slot.

    - insertion order is display order
    - every mutation rewrites the whole collection, then reconciles alerts
      of the affected tasks through the scheduler
    - Task records are frozen; callers get the records, never the list

    Not thread-safe: callers serialize access (see AppState.lock).
    """

    def __init__(
        self,
        kv: KeyValueStore,
        scheduler: NotificationScheduler,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._kv = kv
        self._scheduler = scheduler
        self._clock = clock
        self._tasks: list[Task] = []

    def __len__(self) -> int:
        return len(self._tasks)

    # ---- persistence ----

    def load(self) -> list[Task]:
        """
        Restore the collection from storage.

        Absent or corrupt data is not an error: the store starts empty.
        """
        try:
            raw = self._kv.get(TASKS_KEY)
        except Exception:
            logger.warning("Failed to read tasks; starting empty.", exc_info=True)
            raw = None

        tasks: list[Task] = []
        if raw:
            try:
                tasks = tasks_from_json(raw)
            except ValueError:
                logger.warning("Stored tasks are corrupt; starting empty.", exc_info=True)
                tasks = []

        self._tasks = tasks
        logger.info("TaskStore loaded total=%s", len(self._tasks))
        return list(self._tasks)

    def _save(self) -> None:
        try:
            self._kv.set(TASKS_KEY, tasks_to_json(self._tasks))
        except Exception:
            logger.exception("Failed to persist tasks (total=%s); change kept in memory only.", len(self._tasks))

    # ---- queries ----

    def tasks(self) -> list[Task]:
        return list(self._tasks)

    def get(self, task_id: str) -> Task | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    # ---- mutations ----

    def add(self, title: str, due_at: datetime) -> Task:
        if not title or not title.strip():
            raise ValueError("title is required")
        if due_at.tzinfo is None or due_at.utcoffset() is None:
            raise ValueError("due_at must be timezone-aware")

        task = Task(id=str(uuid.uuid4()).upper(), title=title.strip(), due_at=due_at)
        self._tasks.append(task)
        self._save()
        logger.debug("Task added id=%s due_at=%s", task.id, task.due_at.isoformat())

        self._scheduler.reconcile(task, self._clock())
        return task

    def toggle_completion(self, task_id: str) -> Task | None:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                break
        else:
            logger.debug("toggle_completion: unknown task id=%s", task_id)
            return None

        task = replace(t, is_completed=not t.is_completed)
        self._tasks[i] = task
        self._save()
        logger.info("Task %s -> %s", task.id, "completed" if task.is_completed else "reopened")

        # Completed: cancels everything. Reopened: re-plans from the current time.
        self._scheduler.reconcile(task, self._clock())
        return task

    def delete(self, task_ids: Iterable[str]) -> list[Task]:
        wanted = set(task_ids)
        removed = [t for t in self._tasks if t.id in wanted]
        if not removed:
            logger.debug("delete: no known ids in %s", sorted(wanted))
            return []

        self._tasks = [t for t in self._tasks if t.id not in wanted]
        self._save()

        for t in removed:
            self._scheduler.cancel_all(t.id)
        logger.info("Deleted %d task(s).", len(removed))
        return removed

    def reconcile_all(self, now: datetime | None = None) -> None:
        """Re-plan alerts for every task (startup re-arm)."""
        now = self._clock() if now is None else now
        for t in self._tasks:
            self._scheduler.reconcile(t, now)
