# src/cache/models.py - v2
"""Cache domain models: RequestFingerprint, CachedArtifact, CacheStats."""

from __future__ import annotations

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict


class RequestFingerprint(BaseModel):
    """Content-derived cache address of a generation request."""

    model_config = ConfigDict(frozen=True)

    digest: str
    aspect_ratio: str
    reference_digest: str | None = None

    def key(self, prefix: str = "") -> str:
        """Storage key for this fingerprint."""
        return f"{prefix}{self.digest}"


class CachedArtifact(BaseModel):
    """A previously generated artifact (e.g. an image data URI)."""

    fingerprint_digest: str
    payload: str
    created_at: datetime
    expires_after: timedelta
    prompt: str = ""
    aspect_ratio: str = ""

    def is_expired(self, now: datetime) -> bool:
        return now - self.created_at > self.expires_after


class CacheStats(BaseModel):
    """Count and serialized size of cached artifacts."""

    count: int = 0
    total_bytes: int = 0
    expired: int = 0
