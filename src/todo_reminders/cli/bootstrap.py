# src/todo_reminders/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires storage, notification center, scheduler and task store into AppState,
- restores the task list and re-arms alerts lost with the previous process.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..notifications.center import LocalNotificationCenter
from ..storage.kv_store import SqliteKeyValueStore
from ..tasks.task_scheduler import NotificationScheduler
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    center = LocalNotificationCenter()
    scheduler = NotificationScheduler(center)
    store = TaskStore(SqliteKeyValueStore(settings.tasks_db_path), scheduler)

    store.load()
    if settings.rearm_on_start:
        store.reconcile_all()
        logger.info("Re-armed alerts: %d pending.", len(center.pending()))

    return AppState(
        settings=settings,
        task_store=store,
        scheduler=scheduler,
        notifications=center,
    )
