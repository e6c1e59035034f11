# src/todo_reminders/notifications/dispatcher.py

from __future__ import annotations

"""
Notification delivery.

A small polling loop that pops due requests from the local notification
center and hands them to a presenter (console banner, etc.). Runs on its own
event loop in a background thread, next to the optional due watch, so the
blocking console REPL keeps the main thread.
"""

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from ..core.ports import NotificationPresenter
from ..core.state import AppState
from ..tasks.task_models import utc_now
from ..tasks.task_scheduler import run_due_watch
from .center import LocalNotificationCenter

logger = logging.getLogger(__name__)


async def run_notification_dispatcher(
        center: LocalNotificationCenter,
        presenter: NotificationPresenter,
        *,
        interval_seconds: float = 5.0,
        clock: Callable[[], datetime] = utc_now,
) -> None:
    """
    Every interval_seconds:
    - pop requests whose fire time is immediate or <= now
    - present them one by one

    A failed presentation is logged and dropped (best-effort, no retry).
    To stop the dispatcher, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(interval_seconds))

    while True:
        try:
            due = center.pop_due(clock())
        except Exception:
            logger.exception("pop_due failed")
            due = []

        for req in due:
            try:
                await presenter.present(req)
                logger.info("Notification delivered id=%s", req.identifier)
            except Exception:
                logger.exception("present failed id=%s", req.identifier)

        await asyncio.sleep(sleep_s)


async def _run_background(
        state: AppState,
        presenter: NotificationPresenter,
        stop_event: asyncio.Event,
) -> None:
    settings = state.settings
    jobs = [
        asyncio.create_task(
            run_notification_dispatcher(
                state.notifications,
                presenter,
                interval_seconds=settings.dispatch_interval_seconds,
            )
        )
    ]

    if settings.due_watch_enabled:
        jobs.append(
            asyncio.create_task(
                run_due_watch(
                    state.task_store,
                    state.scheduler,
                    lock=state.lock,
                    interval_seconds=settings.due_watch_interval_seconds,
                )
            )
        )
        logger.info("Due watch enabled (every %ss).", settings.due_watch_interval_seconds)

    try:
        await stop_event.wait()
    finally:
        for job in jobs:
            job.cancel()
        for job in jobs:
            with contextlib.suppress(asyncio.CancelledError):
                await job
        logger.info("Notification services stopped.")


@dataclass
class BackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal background stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_notifications_in_background(
        state: AppState,
        presenter: NotificationPresenter,
) -> BackgroundRunner | None:
    """Start delivery (and the due watch, if enabled) on a private event loop in a daemon thread."""
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(_run_background(state, presenter, stop_event))
        except Exception:
            logger.exception("Notification thread crashed.")
        finally:
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="notifications", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Notification thread did not initialize properly.")
        return None

    logger.info("Notification background thread started.")
    return BackgroundRunner(thread=t, loop=loop, stop_event=stop_event)
