# tests/test_persisted_cell.py

from __future__ import annotations

from lockin.storage.bridge import KeyValueBridge
from lockin.storage.cell import PersistedCell
from lockin.storage.errors import (
    CorruptedValueError,
    StorageQuotaError,
    StorageUnavailableError,
    StorageVerificationError,
)
from lockin.storage.memory_kv import InMemoryKeyValueStore

from .fakes import BrokenKeyValueStore, TruncatingKeyValueStore


def test_loads_initial_when_absent_and_does_not_write(bridge: KeyValueBridge, kv: InMemoryKeyValueStore) -> None:
    cell = PersistedCell(bridge, "counter", 0)
    assert cell.value == 0
    assert kv.get_item("counter") is None


def test_set_persists_and_reloads(bridge: KeyValueBridge) -> None:
    cell = PersistedCell(bridge, "prefs", {"theme": "dark"})
    assert cell.set({"theme": "light"}) is True
    assert bridge.get("prefs") == '{"theme": "light"}'

    again = PersistedCell(bridge, "prefs", {})
    assert again.value == {"theme": "light"}


def test_updater_receives_previous_value(bridge: KeyValueBridge) -> None:
    cell = PersistedCell(bridge, "counter", 1)
    cell.set(lambda prev: prev + 1)
    cell.set(lambda prev: prev * 10)
    assert cell.value == 20
    assert bridge.get("counter") == "20"


def test_corrupted_value_is_removed_and_reported(bridge: KeyValueBridge, kv: InMemoryKeyValueStore) -> None:
    kv.set_item("prefs", "{not json")
    errors: list[Exception] = []

    cell = PersistedCell(bridge, "prefs", {"fallback": True}, on_error=errors.append)

    assert cell.value == {"fallback": True}
    assert kv.get_item("prefs") is None
    assert len(errors) == 1
    assert isinstance(errors[0], CorruptedValueError)


def test_verification_mismatch_keeps_memory_value() -> None:
    bridge = KeyValueBridge(TruncatingKeyValueStore(limit=5))
    errors: list[Exception] = []
    cell = PersistedCell(bridge, "name", "x", on_error=errors.append)

    assert cell.set("a rather long value") is False
    assert cell.value == "a rather long value"
    assert len(errors) == 1
    assert isinstance(errors[0], StorageVerificationError)
    assert errors[0].key == "name"


def test_quota_error_goes_to_on_error() -> None:
    bridge = KeyValueBridge(InMemoryKeyValueStore(quota_bytes=8))
    errors: list[Exception] = []
    cell = PersistedCell(bridge, "k", "", on_error=errors.append)

    assert cell.set("way too long for the quota") is False
    assert cell.value == "way too long for the quota"
    assert isinstance(errors[0], StorageQuotaError)


def test_unavailable_store_degrades_to_memory_and_reports_once() -> None:
    bridge = KeyValueBridge(BrokenKeyValueStore())
    errors: list[Exception] = []

    cell = PersistedCell(bridge, "counter", 5, on_error=errors.append)
    assert cell.value == 5
    cell.set(6)
    cell.set(7)

    assert cell.value == 7
    assert len(errors) == 1
    assert isinstance(errors[0], StorageUnavailableError)


def test_failing_error_handler_does_not_escape() -> None:
    def explode(_: Exception) -> None:
        raise RuntimeError("handler bug")

    bridge = KeyValueBridge(TruncatingKeyValueStore(limit=1))
    cell = PersistedCell(bridge, "k", "", on_error=explode)
    assert cell.set("abc") is False
    assert cell.value == "abc"


def test_custom_codec(bridge: KeyValueBridge) -> None:
    cell = PersistedCell(
        bridge,
        "tags",
        ["a"],
        serialize=lambda v: ",".join(v),
        deserialize=lambda s: s.split(","),
    )
    cell.set(["a", "b"])
    assert bridge.get("tags") == "a,b"
    assert PersistedCell(bridge, "tags", [], serialize=",".join, deserialize=lambda s: s.split(",")).value == [
        "a",
        "b",
    ]
