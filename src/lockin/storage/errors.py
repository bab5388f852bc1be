# src/lockin/storage/errors.py

from __future__ import annotations


class StorageError(Exception):
    """Base class for durable key-value storage failures."""

    def __init__(self, message: str, *, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


class StorageUnavailableError(StorageError):
    """The backing store is disabled, missing or cannot be opened."""


class StorageQuotaError(StorageError):
    """A write was refused because the store ran out of space."""


class StorageVerificationError(StorageError):
    """The value read back after a write differs from the value written."""

    def __init__(self, key: str, expected: str, actual: str | None) -> None:
        super().__init__(
            f"Value verification failed for key {key!r}: "
            f"expected {len(expected)} chars, got {'nothing' if actual is None else f'{len(actual)} chars'}",
            key=key,
        )
        self.expected = expected
        self.actual = actual


class CorruptedValueError(StorageError):
    """A stored value could not be decoded and was discarded."""
