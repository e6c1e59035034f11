# tests/test_due_state.py

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from todo_reminders.tasks.due_state import classify, is_near_due, is_overdue
from todo_reminders.tasks.task_models import DueState, Task


def _task(due: datetime, done: bool = False) -> Task:
    return Task(id="T1", title="Write report", due_at=due, is_completed=done)


@pytest.mark.parametrize("offset", [timedelta(days=-3), timedelta(0), timedelta(minutes=5), timedelta(days=3)])
def test_completed_wins_regardless_of_due(now: datetime, offset: timedelta) -> None:
    assert classify(_task(now + offset, done=True), now) == DueState.COMPLETED


def test_past_due_is_overdue(now: datetime) -> None:
    task = _task(now - timedelta(seconds=1))
    assert classify(task, now) == DueState.OVERDUE
    assert is_overdue(task, now)
    assert not is_near_due(task, now)


@pytest.mark.parametrize("offset", [timedelta(seconds=1), timedelta(minutes=30), timedelta(hours=1)])
def test_within_an_hour_is_near_due(now: datetime, offset: timedelta) -> None:
    assert classify(_task(now + offset), now) == DueState.NEAR_DUE


@pytest.mark.parametrize("offset", [timedelta(hours=1, seconds=1), timedelta(days=2)])
def test_further_out_is_pending(now: datetime, offset: timedelta) -> None:
    assert classify(_task(now + offset), now) == DueState.PENDING


def test_due_exactly_now_is_pending(now: datetime) -> None:
    # Neither overdue (not strictly before now) nor near due (zero time left).
    assert classify(_task(now), now) == DueState.PENDING


def test_naive_now_is_rejected(now: datetime) -> None:
    with pytest.raises(ValueError):
        classify(_task(now), now.replace(tzinfo=None))


def test_labels() -> None:
    assert DueState.NEAR_DUE.label == "Near Due"
    assert DueState.OVERDUE.label == "Overdue"
