# src/lockin/connectors/console_notifier.py

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Callable
from datetime import datetime

logger = logging.getLogger(__name__)

_VALID = ("default", "granted", "denied")


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


class ConsoleNotificationSink:
    """
    NotificationSink for a terminal session.

    - alerts are printed to stdout with a terminal bell
    - the permission prompt is a y/N question, read in a worker thread so the
      event loop keeps running while the user decides
    - permission lives for the session only; the starting value comes from settings
    """

    def __init__(
        self,
        *,
        supported: bool = True,
        permission: str = "default",
        ask: Callable[[str], str] = input,
        write: Callable[[str], None] | None = None,
    ) -> None:
        self._supported = supported
        self._permission = permission if permission in _VALID else "default"
        self._ask = ask
        self._write = write or self._print

    @staticmethod
    def _print(text: str) -> None:
        bell = "\a" if sys.stdout.isatty() else ""
        print(f"{bell}{text}", flush=True)

    def is_supported(self) -> bool:
        return self._supported

    def current_permission(self) -> str:
        return self._permission

    async def request_permission(self) -> str:
        if not self._supported:
            return "denied"
        if self._permission != "default":
            # Same as a browser: once decided, asking again does not prompt.
            return self._permission
        answer = await asyncio.to_thread(self._ask, "Allow reminder alerts in this terminal? [y/N] ")
        self._permission = "granted" if answer.strip().lower() in ("y", "yes") else "denied"
        logger.debug("Console notification permission -> %s", self._permission)
        return self._permission

    def notify(self, *, title: str, body: str) -> None:
        if self._permission != "granted":
            raise RuntimeError("notification permission not granted")
        self._write(f"[{_ts_local()}] [{title}] {body}")
