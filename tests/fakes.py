# tests/fakes.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from todo_reminders.core.ports import NotificationPresenter
from todo_reminders.tasks.task_models import NotificationRequest


class InMemoryKeyValueStore:
    """Dict-backed KeyValueStore; can be told to fail reads or writes."""

    def __init__(self, data: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(data or {})
        self.fail_get = False
        self.fail_set = False
        self.writes = 0

    def get(self, key: str) -> str | None:
        if self.fail_get:
            raise OSError("storage unavailable")
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.fail_set:
            raise OSError("disk full")
        self.writes += 1
        self.data[key] = value


class RecordingNotifications:
    """
    Fake NotificationService.

    - `pending` mirrors what a real service would have outstanding
    - `calls` keeps every schedule/cancel call for assertions
    """

    def __init__(self) -> None:
        self.pending: dict[str, NotificationRequest] = {}
        self.calls: list[tuple[str, object]] = []
        self.fail = False

    def schedule(
        self,
        *,
        identifier: str,
        title: str,
        body: str,
        fire_at: datetime | None = None,
    ) -> None:
        if self.fail:
            raise RuntimeError("notification service down")
        req = NotificationRequest(identifier=identifier, title=title, body=body, fire_at=fire_at)
        self.calls.append(("schedule", req))
        self.pending[identifier] = req

    def cancel(self, identifiers: Iterable[str]) -> None:
        if self.fail:
            raise RuntimeError("notification service down")
        ids = list(identifiers)
        self.calls.append(("cancel", ids))
        for i in ids:
            self.pending.pop(i, None)

    def cancelled_ids(self) -> list[str]:
        out: list[str] = []
        for name, arg in self.calls:
            if name == "cancel":
                out.extend(arg)  # type: ignore[arg-type]
        return out


@dataclass(slots=True)
class FakePresenter(NotificationPresenter):
    shown: list[NotificationRequest] = field(default_factory=list)
    fail_first: bool = False

    async def present(self, request: NotificationRequest) -> None:
        if self.fail_first:
            self.fail_first = False
            raise RuntimeError("banner failed")
        self.shown.append(request)


class FakeClock:
    """Manually advanced clock, used wherever the code accepts `clock=`."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now
