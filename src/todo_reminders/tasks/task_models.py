# src/todo_reminders/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum

NEAR_DUE_WINDOW = timedelta(hours=1)


def utc_now() -> datetime:
    return datetime.now(UTC)


class DueState(StrEnum):
    """
    Derived urgency of a task.

    Never stored: recomputed from the wall clock on every read.
    """

    COMPLETED = "completed"
    OVERDUE = "overdue"
    NEAR_DUE = "near_due"
    PENDING = "pending"

    @property
    def label(self) -> str:
        return _STATE_LABELS[self]


_STATE_LABELS = {
    DueState.COMPLETED: "Completed",
    DueState.OVERDUE: "Overdue",
    DueState.NEAR_DUE: "Near Due",
    DueState.PENDING: "Pending",
}


class AlertKind(StrEnum):
    OVERDUE = "overdue"
    NEAR_DUE = "near_due"
    DUE = "due"


def alert_identifier(task_id: str, kind: AlertKind) -> str:
    """Notification identifier for (task, kind); at most one outstanding per pair."""
    if kind == AlertKind.OVERDUE:
        return f"{task_id}-overdue"
    if kind == AlertKind.NEAR_DUE:
        return f"{task_id}-nearDue"
    return task_id


def alert_identifiers(task_id: str) -> list[str]:
    return [alert_identifier(task_id, kind) for kind in (AlertKind.DUE, AlertKind.OVERDUE, AlertKind.NEAR_DUE)]


@dataclass(frozen=True, slots=True)
class Task:
    id: str
    title: str
    due_at: datetime
    is_completed: bool = False


@dataclass(frozen=True, slots=True)
class NotificationRequest:
    """
    One notification the scheduler wants delivered.

    fire_at=None means "as soon as the notification service can deliver it".
    """

    identifier: str
    title: str
    body: str
    fire_at: datetime | None = None

    @property
    def immediate(self) -> bool:
        return self.fire_at is None
