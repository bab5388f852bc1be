# src/lockin/storage/bridge.py

from __future__ import annotations

import logging
import sqlite3
import time

from ..core.ports import KeyValueStore
from .errors import StorageError, StorageQuotaError, StorageUnavailableError

logger = logging.getLogger(__name__)

PROBE_KEY = "__storage_test__"


class KeyValueBridge:
    """
    Thin wrapper around a KeyValueStore.

    Every backend failure leaves here as a StorageError subclass, so callers
    only need to handle one exception family:
    - sqlite3.OperationalError / OSError -> StorageUnavailableError
    - MemoryError                         -> StorageQuotaError
    - anything else                       -> StorageError

    StorageError raised by the backend itself is passed through unchanged.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._unavailable_reported = False

    @property
    def store(self) -> KeyValueStore:
        return self._store

    @staticmethod
    def _translate(op: str, key: str, exc: Exception) -> StorageError:
        if isinstance(exc, StorageError):
            return exc
        msg = f"{op}({key!r}) failed: {exc}"
        if isinstance(exc, (sqlite3.OperationalError, sqlite3.DatabaseError, OSError)):
            text = str(exc).lower()
            if "full" in text or "quota" in text:
                return StorageQuotaError(msg, key=key)
            return StorageUnavailableError(msg, key=key)
        if isinstance(exc, MemoryError):
            return StorageQuotaError(msg, key=key)
        return StorageError(msg, key=key)

    def get(self, key: str) -> str | None:
        try:
            value = self._store.get_item(key)
        except Exception as e:
            raise self._translate("get", key, e) from e
        if value is not None and not isinstance(value, str):
            raise StorageError(f"get({key!r}) returned {type(value).__name__}, expected str", key=key)
        return value

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"storage values must be str, got {type(value).__name__}")
        try:
            self._store.set_item(key, value)
        except Exception as e:
            raise self._translate("set", key, e) from e

    def remove(self, key: str) -> None:
        try:
            self._store.remove_item(key)
        except Exception as e:
            raise self._translate("remove", key, e) from e

    def probe(self) -> bool:
        """Write, read back and remove a throwaway value. True if the store round-trips."""
        payload = f"test-{int(time.time() * 1000)}"
        try:
            self.set(PROBE_KEY, payload)
            got = self.get(PROBE_KEY)
            self.remove(PROBE_KEY)
        except StorageError as e:
            logger.warning("Storage probe failed: %s", e)
            return False
        if got != payload:
            logger.warning("Storage probe mismatch: expected %r, got %r", payload, got)
            return False
        logger.debug("Storage probe ok")
        return True

    def mark_unavailable(self, exc: StorageError) -> bool:
        """
        Remember that the store is unavailable.

        Returns True only the first time, so the degradation is reported once per bridge.
        """
        if self._unavailable_reported:
            logger.debug("Storage still unavailable: %s", exc)
            return False
        self._unavailable_reported = True
        logger.warning("Storage unavailable, continuing in memory only: %s", exc)
        return True
