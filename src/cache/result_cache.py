# src/cache/result_cache.py - v2
"""Expiring, content-addressed cache of generated artifacts.

Entries are keyed by request fingerprint only (never by caller) and hold at
most one artifact per fingerprint; the last write wins. Expired entries read
as misses and are purged opportunistically after successful writes. Caching
is an optimization: a rejected or failed write is logged and dropped.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Callable

from pydantic import ValidationError

from pmdesigner.cache.base_cache_store import BaseCacheStore, StorageQuotaExceeded
from pmdesigner.cache.models import CachedArtifact, CacheStats, RequestFingerprint

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY = timedelta(days=7)
DEFAULT_KEY_PREFIX = "pm_designer_image_"

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResultCache:
    """Fingerprint → artifact cache over a key-value store."""

    def __init__(
        self,
        store: BaseCacheStore,
        expiry: timedelta = DEFAULT_EXPIRY,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        clock: Clock = _utcnow,
    ) -> None:
        self._store = store
        self._expiry = expiry
        self._prefix = key_prefix
        self._clock = clock

    @property
    def store_backend(self) -> BaseCacheStore:
        return self._store

    def lookup(self, fingerprint: RequestFingerprint) -> CachedArtifact | None:
        """Return the cached artifact, or None on miss or expiry."""
        key = fingerprint.key(self._prefix)
        artifact = self._load(key)
        if artifact is None:
            logger.debug("Cache miss %s", key)
            return None
        if artifact.is_expired(self._clock()):
            logger.debug("Cache entry %s expired", key)
            return None
        logger.debug("Cache hit %s", key)
        return artifact

    def store(
        self,
        fingerprint: RequestFingerprint,
        payload: str,
        *,
        prompt: str = "",
    ) -> CachedArtifact | None:
        """Store an artifact under its fingerprint (best effort).

        Returns:
            The stored artifact, or None when the backend rejected the write.
        """
        key = fingerprint.key(self._prefix)
        artifact = CachedArtifact(
            fingerprint_digest=fingerprint.digest,
            payload=payload,
            created_at=self._clock(),
            expires_after=self._expiry,
            prompt=prompt,
            aspect_ratio=fingerprint.aspect_ratio,
        )
        try:
            self._store.set(key, artifact.model_dump_json())
        except StorageQuotaExceeded as e:
            removed = self._purge_quietly()
            logger.warning(
                "Cache write for %s rejected (%s); purged %d expired entries",
                key, e, removed,
            )
            return None
        except (OSError, sqlite3.Error) as e:
            logger.warning("Cache write for %s failed: %s", key, e)
            return None

        self._purge_quietly()
        return artifact

    def purge_expired(self) -> int:
        """Remove expired and unreadable entries. Returns the count removed."""
        now = self._clock()
        removed = 0
        for key in self._store.keys_with_prefix(self._prefix):
            artifact = self._load(key)
            if artifact is None or artifact.is_expired(now):
                self._store.remove(key)
                removed += 1
        if removed:
            logger.info("Cleaned up %d expired cache entries", removed)
        return removed

    def _purge_quietly(self) -> int:
        try:
            return self.purge_expired()
        except (OSError, sqlite3.Error) as e:
            logger.warning("Purging expired cache entries failed: %s", e)
            return 0

    def clear(self) -> int:
        """Remove every cached artifact. Returns the count removed."""
        keys = self._store.keys_with_prefix(self._prefix)
        for key in keys:
            self._store.remove(key)
        logger.info("Cleared %d cached artifacts", len(keys))
        return len(keys)

    def stats(self) -> CacheStats:
        now = self._clock()
        stats = CacheStats()
        for key in self._store.keys_with_prefix(self._prefix):
            raw = self._store.get(key)
            if raw is None:
                continue
            stats.count += 1
            stats.total_bytes += len(raw.encode("utf-8"))
            artifact = self._load(key)
            if artifact is None or artifact.is_expired(now):
                stats.expired += 1
        return stats

    def _load(self, key: str) -> CachedArtifact | None:
        raw = self._store.get(key)
        if raw is None:
            return None
        try:
            return CachedArtifact.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Unreadable cache entry %s: %s", key, e)
            return None
