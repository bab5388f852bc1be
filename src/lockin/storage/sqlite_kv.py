# src/lockin/storage/sqlite_kv.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from pathlib import Path

from .errors import StorageQuotaError

logger = logging.getLogger(__name__)


class SQLiteKeyValueStore:
    """
    SQLite key-value store partitioned by scope.

    One table holds every scope; a store instance only ever sees rows of its own
    scope (the equivalent of a browser origin).

    Quota:
    - quota_bytes > 0 limits sum(len(key) + len(value)) within the scope
    - a write that would exceed it raises StorageQuotaError and stores nothing

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(
        self,
        db_path: str | Path = "lockin.sqlite3",
        *,
        scope: str = "default",
        quota_bytes: int = 0,
    ) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self.scope = scope
        self.quota_bytes = max(0, int(quota_bytes))
        self._ensure_schema()
        logger.info(
            "SQLiteKeyValueStore ready db=%s scope=%s quota=%s",
            self._db_path,
            self.scope,
            self.quota_bytes or "none",
        )

    @property
    def db_path(self) -> Path:
        return self._db_path

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    scope TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT NOT NULL,
                    PRIMARY KEY (scope, key)
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def _used_bytes(self, conn: sqlite3.Connection, *, excluding: str) -> int:
        cur = conn.execute(
            "SELECT COALESCE(SUM(LENGTH(key) + LENGTH(value)), 0) FROM kv WHERE scope = ? AND key != ?",
            (self.scope, excluding),
        )
        (n,) = cur.fetchone()
        return int(n)

    # ---- KeyValueStore ----

    def get_item(self, key: str) -> str | None:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "SELECT value FROM kv WHERE scope = ? AND key = ?",
                (self.scope, key),
            )
            row = cur.fetchone()
            return None if row is None else str(row[0])
        finally:
            conn.close()

    def set_item(self, key: str, value: str) -> None:
        conn = self._get_conn()
        try:
            if self.quota_bytes:
                used = self._used_bytes(conn, excluding=key)
                if used + len(key) + len(value) > self.quota_bytes:
                    raise StorageQuotaError(
                        f"quota of {self.quota_bytes} bytes exceeded writing {key!r} "
                        f"(used={used}, needed={len(key) + len(value)})",
                        key=key,
                    )
            conn.execute(
                """
                INSERT INTO kv(scope, key, value) VALUES (?, ?, ?)
                ON CONFLICT(scope, key) DO UPDATE SET value = excluded.value
                """,
                (self.scope, key, value),
            )
            conn.commit()
            logger.debug("kv set scope=%s key=%s len=%d", self.scope, key, len(value))
        finally:
            conn.close()

    def remove_item(self, key: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM kv WHERE scope = ? AND key = ?", (self.scope, key))
            conn.commit()
        finally:
            conn.close()

    def keys(self) -> list[str]:
        conn = self._get_conn()
        try:
            cur = conn.execute("SELECT key FROM kv WHERE scope = ? ORDER BY key", (self.scope,))
            return [str(r[0]) for r in cur.fetchall()]
        finally:
            conn.close()
