# src/lockin/core/ports.py

"""
Ports (interfaces) used by the core.

The store and the scheduler depend on Protocols instead of host APIs.
This keeps the durable store and the alert channel swappable and makes testing easier.
"""

from __future__ import annotations

from typing import Any, Awaitable, Protocol


class KeyValueStore(Protocol):
    """
    Synchronous, scope-local string store (localStorage-like).

    Implementations may raise on any call (disabled store, full disk, quota).
    KeyValueBridge translates those failures into StorageError subclasses.
    """

    def get_item(self, key: str) -> str | None: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...


class NotificationSink(Protocol):
    """
    Host-side alert channel.

    current_permission() and request_permission() return one of
    "default", "granted" or "denied".
    """

    def is_supported(self) -> bool: ...
    def current_permission(self) -> str: ...
    def request_permission(self) -> Awaitable[str]: ...
    def notify(self, *, title: str, body: str) -> None: ...


class TaskSource(Protocol):
    """Read side of the task store, as seen by the reminder scheduler."""

    @property
    def tasks(self) -> list[Any]: ...
