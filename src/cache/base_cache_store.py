# src/cache/base_cache_store.py - v3
"""Abstract key-value store interface backing the result cache.

Synchronous get/set/remove by string key with a finite capacity; a write
that would exceed the capacity raises StorageQuotaExceeded and leaves the
store unchanged.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class StorageQuotaExceeded(Exception):
    """A write was rejected because the store is full.

    ``capacity`` is None when the limit is the underlying disk rather than
    a configured byte budget.
    """

    def __init__(self, key: str, required: int, capacity: int | None = None):
        self.key = key
        self.required = required
        self.capacity = capacity
        if capacity is None:
            message = f"Storing '{key}' needs {required} bytes, no space left on device"
        else:
            message = f"Storing '{key}' needs {required} bytes, capacity is {capacity} bytes"
        super().__init__(message)


def entry_size(key: str, value: str) -> int:
    """Bytes accounted against capacity for one entry."""
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class BaseCacheStore(ABC):
    """Unified interface for key-value storage backends."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value (overwrite).

        Raises:
            StorageQuotaExceeded: The write would exceed capacity.
        """

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove a key; missing keys are ignored."""

    @abstractmethod
    def keys(self) -> list[str]:
        """List all stored keys."""

    def keys_with_prefix(self, prefix: str) -> list[str]:
        return [k for k in self.keys() if k.startswith(prefix)]

    def used_bytes(self) -> int:
        """Bytes currently accounted against capacity."""
        total = 0
        for key in self.keys():
            value = self.get(key)
            if value is not None:
                total += entry_size(key, value)
        return total
