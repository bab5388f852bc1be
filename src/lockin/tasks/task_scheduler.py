# src/lockin/tasks/task_scheduler.py

"""
Reminder scheduler.

A small polling loop that:
- reads the current task list from an injected source,
- finds tasks whose reminder has just come due,
- shows one alert per (task id, reminder instant) through an injected sink.

The loop only runs while notification permission is granted.
It never modifies tasks.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from ..core.ports import NotificationSink, TaskSource
from .task_models import Task

logger = logging.getLogger(__name__)

ALERT_TITLE = "Lock in bro"
DEFAULT_INTERVAL_SECONDS = 10.0
DEFAULT_WINDOW_SECONDS = 60.0


class PermissionState(StrEnum):
    UNSUPPORTED = "unsupported"
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"

    @classmethod
    def from_host(cls, raw: str | None) -> PermissionState:
        try:
            state = cls(str(raw))
        except ValueError:
            return cls.DEFAULT
        # "unsupported" is derived from the sink capability, never reported by it.
        return cls.DEFAULT if state is cls.UNSUPPORTED else state


@dataclass(slots=True, frozen=True)
class ReminderAlert:
    """What the scheduler wants to show for one due task."""

    task: Task
    key: tuple[str, int]
    title: str
    body: str


def build_alert(task: Task) -> ReminderAlert | None:
    """Alert for a task that is eligible for notifications, else None."""
    if task.completed or not task.notify_enabled:
        return None
    reminder_ms = task.reminder_ms
    if reminder_ms is None:
        return None
    return ReminderAlert(
        task=task,
        key=(task.id, reminder_ms),
        title=ALERT_TITLE,
        body=f"Don't forget to complete: {task.text}",
    )


def is_due(reminder_ms: int, now_ms: int, window_ms: int) -> bool:
    """True when the reminder lies in the half-open window (now - window, now]."""
    return now_ms - window_ms < reminder_ms <= now_ms


class ReminderScheduler:
    """
    Permission-gated reminder poller.

    Notified pairs live in memory only: after a restart a task that is still
    inside its due window may alert again.

    To stop the loop, call stop() (or cancel the task returned by start()).
    """

    def __init__(
        self,
        source: TaskSource,
        sink: NotificationSink,
        *,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._source = source
        self._sink = sink
        self._interval_s = max(0.01, float(interval_seconds))
        self._window_ms = int(max(0.0, float(window_seconds)) * 1000)
        self._clock = clock
        self._notified: set[tuple[str, int]] = set()
        self._runner: asyncio.Task[None] | None = None
        self._permission = PermissionState.DEFAULT
        self.refresh_permission()

    # ---- permission ----

    @property
    def permission_state(self) -> PermissionState:
        return self._permission

    def refresh_permission(self) -> PermissionState:
        """Read the host permission (startup query). Never prompts."""
        try:
            if not self._sink.is_supported():
                if self._permission is not PermissionState.UNSUPPORTED:
                    logger.info("Notifications are not supported by this host")
                self._permission = PermissionState.UNSUPPORTED
            else:
                self._permission = PermissionState.from_host(self._sink.current_permission())
        except Exception:
            logger.exception("Reading notification permission failed")
            self._permission = PermissionState.UNSUPPORTED
        self._sync_runner()
        return self._permission

    async def request_permission(self) -> bool:
        """
        Ask the host for permission. Call only in response to a user action.

        Returns True if permission ended up granted.
        """
        if self._permission is PermissionState.UNSUPPORTED:
            return False
        try:
            result = await self._sink.request_permission()
        except Exception:
            logger.exception("Error requesting notification permission")
            return False
        self._permission = PermissionState.from_host(result)
        logger.info("Notification permission -> %s", self._permission.value)
        self._sync_runner()
        return self._permission is PermissionState.GRANTED

    # ---- polling ----

    @property
    def notified(self) -> frozenset[tuple[str, int]]:
        return frozenset(self._notified)

    @property
    def running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    def check_reminders(self, now: float | None = None) -> list[Task]:
        """
        One tick: alert every eligible task whose reminder came due in the last window.

        Returns the tasks alerted during this call.
        """
        now_ts = self._clock() if now is None else now
        now_ms = int(now_ts * 1000)

        try:
            tasks = self._source.tasks
        except Exception:
            logger.exception("Reading tasks for reminders failed")
            return []

        fired: list[Task] = []
        for task in tasks:
            try:
                alert = build_alert(task)
            except Exception:
                # One malformed task must not stop the others (or the loop).
                logger.exception("Skipping task with unreadable reminder task_id=%s", getattr(task, "id", None))
                continue
            if alert is None or alert.key in self._notified:
                continue
            if not is_due(alert.key[1], now_ms, self._window_ms):
                continue
            try:
                self._sink.notify(title=alert.title, body=alert.body)
            except Exception:
                logger.exception("Error showing notification task_id=%s", task.id)
                continue
            self._notified.add(alert.key)
            fired.append(task)
            logger.info("Reminder shown task_id=%s", task.id)
        return fired

    async def run(self) -> None:
        """
        Poll while permission is granted: once immediately, then every interval.

        Returns as soon as the permission state is anything but granted.
        """
        logger.debug("Reminder loop started interval=%.2fs", self._interval_s)
        try:
            while self._permission is PermissionState.GRANTED:
                self.check_reminders()
                await asyncio.sleep(self._interval_s)
        finally:
            logger.debug("Reminder loop stopped")

    def start(self) -> asyncio.Task[None] | None:
        """Start the background loop if permission is granted. Needs a running event loop."""
        if self.running:
            return self._runner
        if self._permission is not PermissionState.GRANTED:
            return None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; reminder loop not started")
            return None
        self._runner = loop.create_task(self.run(), name="reminder-scheduler")
        return self._runner

    async def stop(self) -> None:
        runner, self._runner = self._runner, None
        if runner is None or runner.done():
            return
        runner.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await runner

    def _sync_runner(self) -> None:
        if self._permission is PermissionState.GRANTED:
            self.start()
        elif self.running and self._runner is not None:
            self._runner.cancel()
            self._runner = None
