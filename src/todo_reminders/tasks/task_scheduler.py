# src/todo_reminders/tasks/task_scheduler.py

from __future__ import annotations

"""
Notification scheduler.

Given a task and the current time, decides which alerts must exist and when
they fire, then replaces whatever was previously issued for that task:
- cancel all three identifiers of the task
- stop if the task is completed
- issue the alerts that match the task's due state

Delivery (timers, banners) belongs to the notification service, not the
scheduler. The scheduler only runs on task mutations, so a task that becomes
overdue purely by time passing is noticed on the next mutation, or by the
optional due watch at the bottom of this module.
"""

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from ..core.ports import NotificationService
from .due_state import classify
from .task_models import (
    NEAR_DUE_WINDOW,
    AlertKind,
    DueState,
    NotificationRequest,
    Task,
    alert_identifier,
    alert_identifiers,
    utc_now,
)

if TYPE_CHECKING:
    from .task_store import TaskStore

logger = logging.getLogger(__name__)

OVERDUE_TITLE = "Task Overdue"
APPROACHING_TITLE = "Task Approaching"
DUE_TITLE = "Task Due"


def floor_to_minute(ts: datetime) -> datetime:
    return ts.replace(second=0, microsecond=0)


def _overdue_alert(task: Task) -> NotificationRequest:
    return NotificationRequest(
        identifier=alert_identifier(task.id, AlertKind.OVERDUE),
        title=OVERDUE_TITLE,
        body=f"{task.title} is overdue!",
    )


def _near_due_alert(task: Task, fire_at: datetime | None) -> NotificationRequest:
    body = f"{task.title} is due soon!" if fire_at is None else f"{task.title} is due in 1 hour!"
    return NotificationRequest(
        identifier=alert_identifier(task.id, AlertKind.NEAR_DUE),
        title=APPROACHING_TITLE,
        body=body,
        fire_at=None if fire_at is None else floor_to_minute(fire_at),
    )


def _due_alert(task: Task) -> NotificationRequest:
    return NotificationRequest(
        identifier=alert_identifier(task.id, AlertKind.DUE),
        title=DUE_TITLE,
        body=f"{task.title} is due now!",
        fire_at=floor_to_minute(task.due_at),
    )


def plan_alerts(task: Task, now: datetime) -> list[NotificationRequest]:
    """
    The alerts a task should have outstanding at `now`.

    - completed: none
    - overdue:   immediate overdue alert
    - near_due:  immediate near-due alert, plus the due alert if due_at is still ahead
    - pending:   near-due alert at due_at - 1h and due alert at due_at,
                 each only if strictly in the future
    """
    state = classify(task, now)

    if state == DueState.COMPLETED:
        return []

    if state == DueState.OVERDUE:
        return [_overdue_alert(task)]

    out: list[NotificationRequest] = []

    if state == DueState.NEAR_DUE:
        out.append(_near_due_alert(task, None))
        if task.due_at > now:
            out.append(_due_alert(task))
        return out

    near_due_at = task.due_at - NEAR_DUE_WINDOW
    if near_due_at > now:
        out.append(_near_due_alert(task, near_due_at))
    if task.due_at > now:
        out.append(_due_alert(task))
    return out


class NotificationScheduler:
    """Issues create/cancel instructions for task alerts to a NotificationService."""

    def __init__(self, notifications: NotificationService) -> None:
        self._notifications = notifications

    def cancel_all(self, task_id: str) -> None:
        identifiers = alert_identifiers(task_id)
        try:
            self._notifications.cancel(identifiers)
        except Exception:
            logger.exception("cancel failed task_id=%s", task_id)

    def reconcile(self, task: Task, now: datetime) -> list[NotificationRequest]:
        """
        Replace the outstanding alerts of `task` with the ones it needs at `now`.

        Returns the requests handed to the notification service. Failures of the
        service are logged and dropped; nothing is retried.
        """
        self.cancel_all(task.id)

        requests = plan_alerts(task, now)
        for req in requests:
            try:
                self._notifications.schedule(
                    identifier=req.identifier,
                    title=req.title,
                    body=req.body,
                    fire_at=req.fire_at,
                )
            except Exception:
                logger.exception("schedule failed identifier=%s", req.identifier)

        logger.debug(
            "Reconciled task id=%s state=%s alerts=%s",
            task.id,
            classify(task, now).value,
            [r.identifier for r in requests],
        )
        return requests


async def run_due_watch(
        store: TaskStore,
        scheduler: NotificationScheduler,
        *,
        lock: threading.RLock | None = None,
        interval_seconds: float = 30.0,
        clock: Callable[[], datetime] = utc_now,
) -> None:
    """
    Periodic re-evaluation of due states.

    Every interval_seconds:
    - classify every task (under `lock`, the same lock the console holds
      while it mutates the store)
    - reconcile tasks that turned overdue since the previous tick

    The first tick only records a baseline. Tasks added between ticks are
    compared against their state at the previous tick. Near-due transitions
    are left alone: the near-due alert scheduled at due_at - 1h already
    covers them.

    To stop the watch, cancel the coroutine/task.
    """
    sleep_s = max(0.5, float(interval_seconds))
    last_seen: dict[str, DueState] | None = None
    last_tick: datetime | None = None

    while True:
        now = clock()
        ctx = lock if lock is not None else contextlib.nullcontext()

        try:
            with ctx:
                current: dict[str, DueState] = {}
                for task in store.tasks():
                    state = classify(task, now)
                    current[task.id] = state

                    if last_seen is None or last_tick is None:
                        continue
                    prev = last_seen.get(task.id)
                    if prev is None:
                        # Added since the previous tick: judge it as of that tick.
                        prev = classify(task, last_tick)
                    if prev != state and state == DueState.OVERDUE:
                        logger.info("Task %s became overdue; reconciling", task.id)
                        scheduler.reconcile(task, now)

                last_seen = current
                last_tick = now
        except Exception:
            logger.exception("due watch tick failed")

        await asyncio.sleep(sleep_s)
