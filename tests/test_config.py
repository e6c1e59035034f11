# tests/test_config.py

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path
from types import SimpleNamespace

import pytest

from todo_reminders.cli.bootstrap import create_initial_state
from todo_reminders.config import Settings


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "TODO_APP_NAME",
        "TODO_DATA_DIR",
        "TODO_TASKS_DB_PATH",
        "TODO_DISPATCH_INTERVAL_SECONDS",
        "TODO_DUE_WATCH_ENABLED",
    ):
        monkeypatch.delenv(name, raising=False)

    s = Settings.from_env()
    assert s.app_name == "todo-reminders"
    assert s.tasks_db_path == Path(".local/todo") / "tasks.sqlite3"
    assert s.dispatch_interval_seconds == 5.0
    assert s.due_watch_enabled is False


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TODO_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TODO_DISPATCH_INTERVAL_SECONDS", "not-a-number")
    monkeypatch.setenv("TODO_DUE_WATCH_ENABLED", "yes")
    monkeypatch.setenv("TODO_DUE_WATCH_INTERVAL_SECONDS", "12.5")
    monkeypatch.delenv("TODO_TASKS_DB_PATH", raising=False)

    s = Settings.from_env()
    assert s.data_dir == tmp_path
    assert s.tasks_db_path == tmp_path / "tasks.sqlite3"
    assert s.dispatch_interval_seconds == 5.0
    assert s.due_watch_enabled is True
    assert s.due_watch_interval_seconds == 12.5


def test_bootstrap_restores_tasks_and_rearms(settings: SimpleNamespace) -> None:
    first = create_initial_state(settings=settings)
    first.task_store.add("Dentist", datetime.now(UTC) + timedelta(hours=3))
    assert len(first.notifications.pending()) == 2

    second = create_initial_state(settings=settings)
    assert [t.title for t in second.task_store.tasks()] == ["Dentist"]
    assert len(second.notifications.pending()) == 2

    settings.rearm_on_start = False
    third = create_initial_state(settings=settings)
    assert len(third.task_store) == 1
    assert third.notifications.pending() == []
