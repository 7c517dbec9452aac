# src/cache/memory_store.py - v1
"""In-process key-value store (CACHE_BACKEND=memory)."""

from __future__ import annotations

from pmdesigner.cache.base_cache_store import BaseCacheStore, StorageQuotaExceeded, entry_size


class MemoryCacheStore(BaseCacheStore):
    """Dict-backed store with an optional byte capacity."""

    def __init__(self, capacity_bytes: int | None = None) -> None:
        self._data: dict[str, str] = {}
        self._capacity = capacity_bytes
        self._used = 0

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        old = self._data.get(key)
        old_size = entry_size(key, old) if old is not None else 0
        new_used = self._used - old_size + entry_size(key, value)
        if self._capacity is not None and new_used > self._capacity:
            raise StorageQuotaExceeded(key, new_used, self._capacity)
        self._data[key] = value
        self._used = new_used

    def remove(self, key: str) -> None:
        old = self._data.pop(key, None)
        if old is not None:
            self._used -= entry_size(key, old)

    def keys(self) -> list[str]:
        return list(self._data)

    def used_bytes(self) -> int:
        return self._used
