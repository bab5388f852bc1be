# src/lockin/storage/memory_kv.py

from __future__ import annotations

from .errors import StorageQuotaError, StorageUnavailableError


class InMemoryKeyValueStore:
    """
    Process-local key-value store.

    Used when durable storage is switched off and as the default test backend.
    quota_bytes > 0 caps the summed size of keys and values, like a browser quota.
    """

    def __init__(self, *, quota_bytes: int = 0, disabled: bool = False) -> None:
        self._data: dict[str, str] = {}
        self.quota_bytes = max(0, int(quota_bytes))
        self.disabled = disabled

    def _check(self) -> None:
        if self.disabled:
            raise StorageUnavailableError("in-memory store is disabled")

    def _used_without(self, key: str) -> int:
        return sum(len(k) + len(v) for k, v in self._data.items() if k != key)

    def get_item(self, key: str) -> str | None:
        self._check()
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._check()
        if self.quota_bytes and self._used_without(key) + len(key) + len(value) > self.quota_bytes:
            raise StorageQuotaError(
                f"quota of {self.quota_bytes} bytes exceeded writing {key!r}", key=key
            )
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._check()
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        self._check()
        return list(self._data)

    def clear(self) -> None:
        self._check()
        self._data.clear()
