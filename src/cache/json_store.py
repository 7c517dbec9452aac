# src/cache/json_store.py - v3
"""JSON file-based key-value store (default CACHE_BACKEND=json).

Stores each entry as an individual JSON file under CACHE_ROOT. Entries are
written to a temporary file first, so a failed write keeps the old value.
"""

from __future__ import annotations

import errno
import json
import logging
from pathlib import Path

from pmdesigner.cache.base_cache_store import BaseCacheStore, StorageQuotaExceeded, entry_size

logger = logging.getLogger(__name__)

_DISK_FULL_ERRNOS = frozenset({errno.ENOSPC, errno.EDQUOT})


class JsonCacheStore(BaseCacheStore):
    """File-based store using one JSON file per key."""

    def __init__(self, cache_root: Path | str, capacity_bytes: int | None = None) -> None:
        self._root = Path(cache_root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)
        self._capacity = capacity_bytes

    def get(self, key: str) -> str | None:
        record = self._read(self._entry_path(key))
        return None if record is None else record["value"]

    def set(self, key: str, value: str) -> None:
        path = self._entry_path(key)
        if self._capacity is not None:
            current = self._read(path)
            old_size = entry_size(key, current["value"]) if current else 0
            required = self.used_bytes() - old_size + entry_size(key, value)
            if required > self._capacity:
                raise StorageQuotaExceeded(key, required, self._capacity)
        tmp_path = path.with_suffix(".tmp")
        try:
            tmp_path.write_text(
                json.dumps({"key": key, "value": value}, ensure_ascii=False),
                encoding="utf-8",
            )
            tmp_path.replace(path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            if e.errno in _DISK_FULL_ERRNOS:
                raise StorageQuotaExceeded(key, entry_size(key, value)) from e
            raise

    def remove(self, key: str) -> None:
        path = self._entry_path(key)
        if path.exists():
            path.unlink()

    def keys(self) -> list[str]:
        keys: list[str] = []
        if not self._root.is_dir():
            return keys
        for path in self._root.glob("*.json"):
            record = self._read(path)
            if record is not None:
                keys.append(record["key"])
        return keys

    def used_bytes(self) -> int:
        total = 0
        for path in self._root.glob("*.json"):
            record = self._read(path)
            if record is not None:
                total += entry_size(record["key"], record["value"])
        return total

    def _read(self, path: Path) -> dict[str, str] | None:
        if not path.exists():
            return None
        try:
            record = json.loads(path.read_text(encoding="utf-8"))
            if isinstance(record, dict) and "key" in record and "value" in record:
                return record
            logger.warning("Malformed cache file %s", path.name)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to read cache file %s: %s", path.name, e)
        return None

    def _entry_path(self, key: str) -> Path:
        """Return file path for a cache key."""
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self._root / f"{safe_key}.json"
