# src/todo_reminders/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..notifications.center import LocalNotificationCenter
from ..tasks.task_scheduler import NotificationScheduler
from ..tasks.task_store import TaskStore


@dataclass
class AppState:
    """
    Everything a connector needs, wired once in cli/bootstrap.py.

    `lock` serializes every TaskStore mutation and read; background jobs must
    hold it before touching the store.
    """

    settings: Any
    task_store: TaskStore
    scheduler: NotificationScheduler
    notifications: LocalNotificationCenter

    lock: threading.RLock = field(default_factory=threading.RLock)
