# tests/conftest.py

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from todo_reminders.core.state import AppState
from todo_reminders.notifications.center import LocalNotificationCenter
from todo_reminders.tasks.task_scheduler import NotificationScheduler
from todo_reminders.tasks.task_store import TaskStore

from .fakes import FakeClock, InMemoryKeyValueStore, RecordingNotifications


@pytest.fixture()
def now() -> datetime:
    # Whole minute, so scheduled fire times are not affected by minute flooring.
    return datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


@pytest.fixture()
def clock(now: datetime) -> FakeClock:
    return FakeClock(now)


@pytest.fixture()
def notifications() -> RecordingNotifications:
    return RecordingNotifications()


@pytest.fixture()
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture()
def scheduler(notifications: RecordingNotifications) -> NotificationScheduler:
    return NotificationScheduler(notifications)


@pytest.fixture()
def store(kv: InMemoryKeyValueStore, scheduler: NotificationScheduler, clock: FakeClock) -> TaskStore:
    return TaskStore(kv, scheduler, clock=clock)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI modules.

    A SimpleNamespace rather than the real config keeps tests independent of
    the process environment.
    """
    return SimpleNamespace(
        app_name="todo-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        dispatch_interval_seconds=0.01,
        rearm_on_start=True,
        due_watch_enabled=False,
        due_watch_interval_seconds=0.01,
    )


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """AppState wired with the real in-process notification center and an in-memory slot."""
    center = LocalNotificationCenter()
    scheduler = NotificationScheduler(center)
    return AppState(
        settings=settings,
        task_store=TaskStore(InMemoryKeyValueStore(), scheduler),
        scheduler=scheduler,
        notifications=center,
    )
