# src/todo_reminders/tasks/due_state.py

"""
Due-state classification.

Pure functions of (task, now). `now` is always passed in so callers decide
which clock to use; nothing here reads the wall clock.
"""

from __future__ import annotations

from datetime import datetime

from .task_models import NEAR_DUE_WINDOW, DueState, Task


def _require_aware(now: datetime) -> None:
    if now.tzinfo is None or now.utcoffset() is None:
        raise ValueError("now must be timezone-aware")


def is_overdue(task: Task, now: datetime) -> bool:
    _require_aware(now)
    return not task.is_completed and task.due_at < now


def is_near_due(task: Task, now: datetime) -> bool:
    if task.is_completed or is_overdue(task, now):
        return False
    remaining = task.due_at - now
    return remaining.total_seconds() > 0 and remaining <= NEAR_DUE_WINDOW


def classify(task: Task, now: datetime) -> DueState:
    """
    Precedence:
      1) completed
      2) overdue   (due_at < now)
      3) near_due  (0 < due_at - now <= 1h)
      4) pending   (everything else, including due_at == now)
    """
    _require_aware(now)
    if task.is_completed:
        return DueState.COMPLETED
    if is_overdue(task, now):
        return DueState.OVERDUE
    if is_near_due(task, now):
        return DueState.NEAR_DUE
    return DueState.PENDING
