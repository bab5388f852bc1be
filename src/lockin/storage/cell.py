# src/lockin/storage/cell.py

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from .bridge import KeyValueBridge
from .errors import CorruptedValueError, StorageError, StorageUnavailableError, StorageVerificationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

ErrorHandler = Callable[[Exception], None]


def _log_error(error: Exception) -> None:
    logger.error("Persisted state error: %s", error)


class PersistedCell(Generic[T]):
    """
    A typed value bound to one storage key.

    Load (constructor):
    - stored string present -> deserialize it
    - deserialize fails     -> remove the corrupted entry, report, use `initial`
    - nothing stored        -> use `initial`
    Nothing is written during load and the constructor never raises.

    Save (set / persist):
    - the in-memory value changes first and is never rolled back
    - serialize -> bridge.set -> bridge.get -> compare with what was written
    - any failure or mismatch goes to on_error; the caller is not interrupted

    An unavailable store is reported once per bridge; afterwards the cell keeps
    working in memory only.
    """

    def __init__(
        self,
        bridge: KeyValueBridge,
        key: str,
        initial: T,
        *,
        serialize: Callable[[T], str] | None = None,
        deserialize: Callable[[str], T] | None = None,
        on_error: ErrorHandler | None = None,
    ) -> None:
        self._bridge = bridge
        self._key = key
        self._serialize: Callable[[T], str] = serialize or json.dumps
        self._deserialize: Callable[[str], T] = deserialize or json.loads
        self._on_error: ErrorHandler = on_error or _log_error
        self._value: T = self._load(initial)

    @property
    def key(self) -> str:
        return self._key

    @property
    def value(self) -> T:
        return self._value

    def _report(self, error: Exception) -> None:
        if isinstance(error, StorageUnavailableError) and not self._bridge.mark_unavailable(error):
            return
        try:
            self._on_error(error)
        except Exception:
            logger.exception("on_error handler failed for key %r", self._key)

    def _load(self, initial: T) -> T:
        try:
            stored = self._bridge.get(self._key)
        except StorageError as e:
            logger.debug("Load failed for key %r, using initial value", self._key)
            self._report(e)
            return initial

        if not stored:
            return initial

        try:
            return self._deserialize(stored)
        except Exception as e:
            logger.warning("Discarding corrupted value for key %r: %s", self._key, e)
            try:
                self._bridge.remove(self._key)
            except StorageError as remove_err:
                self._report(remove_err)
            err = CorruptedValueError(f"Could not decode stored value for key {self._key!r}: {e}", key=self._key)
            err.__cause__ = e
            self._report(err)
            return initial

    def set(self, new_value: T | Callable[[T], T]) -> bool:
        """
        Replace the value (or apply an updater to the previous one) and persist it.

        Returns True if the write was verified, False if it was reported to on_error.
        """
        if callable(new_value):
            updater: Callable[[T], T] = new_value  # type: ignore[assignment]
            self._value = updater(self._value)
        else:
            self._value = new_value
        return self.persist()

    def persist(self) -> bool:
        try:
            serialized = self._serialize(self._value)
            self._bridge.set(self._key, serialized)
            stored = self._bridge.get(self._key)
            if stored != serialized:
                raise StorageVerificationError(self._key, serialized, stored)
        except Exception as e:
            self._report(e)
            return False
        logger.debug("Saved state to key %r (%d chars)", self._key, len(serialized))
        return True


def passthrough(value: Any) -> str:
    """Codec for string cells stored as-is."""
    return str(value)
