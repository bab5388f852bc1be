# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from lockin.cli.bootstrap import create_initial_state
from lockin.core.state import AppState
from lockin.storage.bridge import KeyValueBridge
from lockin.storage.memory_kv import InMemoryKeyValueStore

from .fakes import FakeNotificationSink


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and the commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment.
    """
    return SimpleNamespace(
        app_name="lockin-test",
        log_level="DEBUG",
        log_file_max_bytes=0,
        log_file_backups=0,
        data_dir=tmp_path,
        storage_backend="sqlite",
        storage_path=tmp_path / "storage.sqlite3",
        storage_scope="test",
        storage_quota_bytes=0,
        default_username="User",
        reminder_poll_seconds=10.0,
        reminder_window_seconds=60.0,
        default_reminder_minutes=30,
        notifications_supported=True,
        notification_permission="default",
    )


@pytest.fixture()
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture()
def bridge(kv: InMemoryKeyValueStore) -> KeyValueBridge:
    return KeyValueBridge(kv)


@pytest.fixture()
def sink() -> FakeNotificationSink:
    return FakeNotificationSink()


@pytest.fixture()
def state(settings: SimpleNamespace, sink: FakeNotificationSink) -> AppState:
    """
    AppState wired through the real composition root.

    NOTE: the SQLite key-value store is real (tmp file); only the alert sink is fake.
    """
    return create_initial_state(settings=settings, sink=sink)
