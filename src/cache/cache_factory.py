# src/cache/cache_factory.py - v3
"""Factory for key-value store instantiation."""

from __future__ import annotations

from pmdesigner.cache.base_cache_store import BaseCacheStore
from pmdesigner.config.settings import Settings


class UnsupportedBackendError(ValueError):
    """Raised when CACHE_BACKEND names no known store."""


def create_cache_store(settings: Settings | None = None) -> BaseCacheStore:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to an in-memory store.

    Returns:
        Configured BaseCacheStore implementation.
    """
    backend = "memory" if settings is None else settings.cache_backend
    capacity = None if settings is None else settings.cache_max_bytes

    if backend == "memory":
        from pmdesigner.cache.memory_store import MemoryCacheStore
        return MemoryCacheStore(capacity_bytes=capacity)

    if backend == "json":
        from pmdesigner.cache.json_store import JsonCacheStore
        return JsonCacheStore(cache_root=settings.cache_root, capacity_bytes=capacity)

    if backend == "sqlite":
        from pmdesigner.cache.sqlite_store import SqliteCacheStore
        db_path = settings.cache_root.expanduser() / "pmdesigner_cache.db"
        return SqliteCacheStore(db_path=db_path, capacity_bytes=capacity)

    raise UnsupportedBackendError(f"Unsupported cache backend: {backend!r}")
