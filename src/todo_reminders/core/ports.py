# src/todo_reminders/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The task store and scheduler depend on Protocols instead of concrete
implementations, so the notification backend and the storage slot can be
swapped out (and faked in tests).
"""

from collections.abc import Iterable
from datetime import datetime
from typing import TYPE_CHECKING, Awaitable, Protocol

if TYPE_CHECKING:
    from ..tasks.task_models import NotificationRequest


class NotificationService(Protocol):
    """
    Best-effort notification backend.

    Both calls are fire-and-forget: the caller never learns whether a
    request was actually delivered.
    - fire_at=None means immediate delivery
    - scheduling an identifier that is already pending replaces it
    - cancelling an unknown identifier is a no-op
    """

    def schedule(
            self,
            *,
            identifier: str,
            title: str,
            body: str,
            fire_at: datetime | None = None,
    ) -> None: ...

    def cancel(self, identifiers: Iterable[str]) -> None: ...


class NotificationPresenter(Protocol):
    """Connector-side port: how a delivered notification reaches the user."""

    def present(self, request: NotificationRequest) -> Awaitable[None]: ...


class KeyValueStore(Protocol):
    """A flat string slot store (one blob per key)."""

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
