# src/todo_reminders/notifications/center.py

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from datetime import datetime

from ..tasks.task_models import NotificationRequest

logger = logging.getLogger(__name__)


class LocalNotificationCenter:
    """
    In-process NotificationService.

    Holds pending requests keyed by identifier until the dispatcher pops them.
    Requests live in memory only, so they are lost on exit; the app re-arms
    them from the task list at startup.

    Thread-safety:
    - the console thread schedules/cancels, the dispatcher thread pops
    """

    def __init__(self) -> None:
        self._pending: dict[str, NotificationRequest] = {}
        self._lock = threading.Lock()

    def schedule(
        self,
        *,
        identifier: str,
        title: str,
        body: str,
        fire_at: datetime | None = None,
    ) -> None:
        req = NotificationRequest(identifier=identifier, title=title, body=body, fire_at=fire_at)
        with self._lock:
            replaced = identifier in self._pending
            self._pending[identifier] = req
        logger.debug(
            "Notification scheduled id=%s fire_at=%s replaced=%s",
            identifier,
            "now" if fire_at is None else fire_at.isoformat(),
            replaced,
        )

    def cancel(self, identifiers: Iterable[str]) -> None:
        with self._lock:
            removed = [i for i in identifiers if self._pending.pop(i, None) is not None]
        if removed:
            logger.debug("Notifications cancelled: %s", removed)

    def pending(self) -> list[NotificationRequest]:
        with self._lock:
            items = list(self._pending.values())
        return sorted(items, key=_fire_sort_key)

    def pop_due(self, now: datetime) -> list[NotificationRequest]:
        """Remove and return requests that should fire at `now` (immediate ones first)."""
        with self._lock:
            due = [r for r in self._pending.values() if r.fire_at is None or r.fire_at <= now]
            for r in due:
                del self._pending[r.identifier]
        return sorted(due, key=_fire_sort_key)


def _fire_sort_key(req: NotificationRequest) -> tuple[int, float]:
    if req.fire_at is None:
        return (0, 0.0)
    return (1, req.fire_at.timestamp())
