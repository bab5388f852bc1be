# src/lockin/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local (gitignored) data directory exists,
- wires the key-value backend, task store, profile and reminder scheduler into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..connectors.console_notifier import ConsoleNotificationSink
from ..core.ports import KeyValueStore, NotificationSink
from ..core.state import AppState
from ..storage.bridge import KeyValueBridge
from ..storage.memory_kv import InMemoryKeyValueStore
from ..storage.sqlite_kv import SQLiteKeyValueStore
from ..tasks.profile import UserProfile
from ..tasks.task_scheduler import ReminderScheduler
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def create_key_value_store(settings) -> KeyValueStore:
    """
    Build the durable store from settings.

    If the SQLite file cannot be opened, fall back to an in-memory store so the
    app still works for this session.
    """
    if settings.storage_backend == "memory":
        return InMemoryKeyValueStore(quota_bytes=settings.storage_quota_bytes)
    try:
        return SQLiteKeyValueStore(
            settings.storage_path,
            scope=settings.storage_scope,
            quota_bytes=settings.storage_quota_bytes,
        )
    except Exception:
        logger.exception("Cannot open storage at %s; changes will not survive a restart", settings.storage_path)
        return InMemoryKeyValueStore(quota_bytes=settings.storage_quota_bytes)


def create_initial_state(*, settings=None, sink: NotificationSink | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and the alert sink) injectable makes the app easier to test.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    settings.data_dir.mkdir(parents=True, exist_ok=True)

    bridge = KeyValueBridge(create_key_value_store(settings))
    if not bridge.probe():
        logger.warning("Storage probe failed; tasks may not be saved")

    tasks = TaskStore(bridge)
    profile = UserProfile(bridge, default_username=settings.default_username)

    if sink is None:
        sink = ConsoleNotificationSink(
            supported=settings.notifications_supported,
            permission=settings.notification_permission,
        )
    scheduler = ReminderScheduler(
        tasks,
        sink,
        interval_seconds=settings.reminder_poll_seconds,
        window_seconds=settings.reminder_window_seconds,
    )

    return AppState(
        settings=settings,
        bridge=bridge,
        tasks=tasks,
        profile=profile,
        scheduler=scheduler,
    )
