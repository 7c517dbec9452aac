# src/cache/sqlite_store.py - v3
"""SQLite-based key-value store (CACHE_BACKEND=sqlite).

Uses stdlib sqlite3; suited to caches holding many image artifacts.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from pmdesigner.cache.base_cache_store import BaseCacheStore, StorageQuotaExceeded, entry_size

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_entries (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    size INTEGER NOT NULL,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""


def _is_disk_full(error: sqlite3.OperationalError) -> bool:
    if getattr(error, "sqlite_errorname", None) == "SQLITE_FULL":
        return True
    return "database or disk is full" in str(error)


class SqliteCacheStore(BaseCacheStore):
    """SQLite-backed store with byte-size accounting per row."""

    def __init__(self, db_path: Path | str, capacity_bytes: int | None = None) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._capacity = capacity_bytes
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    def get(self, key: str) -> str | None:
        row = self._conn.execute(
            "SELECT value FROM kv_entries WHERE key = ?", (key,)
        ).fetchone()
        return None if row is None else row[0]

    def set(self, key: str, value: str) -> None:
        size = entry_size(key, value)
        if self._capacity is not None:
            row = self._conn.execute(
                "SELECT COALESCE(SUM(size), 0) FROM kv_entries WHERE key != ?", (key,)
            ).fetchone()
            required = row[0] + size
            if required > self._capacity:
                raise StorageQuotaExceeded(key, required, self._capacity)
        try:
            self._conn.execute(
                """INSERT OR REPLACE INTO kv_entries (key, value, size)
                   VALUES (?, ?, ?)""",
                (key, value, size),
            )
            self._conn.commit()
        except sqlite3.OperationalError as e:
            self._conn.rollback()
            if _is_disk_full(e):
                raise StorageQuotaExceeded(key, size) from e
            raise

    def remove(self, key: str) -> None:
        self._conn.execute("DELETE FROM kv_entries WHERE key = ?", (key,))
        self._conn.commit()

    def keys(self) -> list[str]:
        return [row[0] for row in self._conn.execute("SELECT key FROM kv_entries")]

    def used_bytes(self) -> int:
        row = self._conn.execute("SELECT COALESCE(SUM(size), 0) FROM kv_entries").fetchone()
        return row[0]

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
