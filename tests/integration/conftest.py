# tests/integration/conftest.py - v8
"""Shared fixtures for integration tests.

Integration tests run the real executor, retry loop, normalizer, validators
and cache stores end to end. Only the generative service is replaced, by a
scripted client that answers from a queue and records every request.
"""

from __future__ import annotations

from typing import Any

import pytest

from pmdesigner.llm.base_client import BaseGenerativeClient
from pmdesigner.llm.models import GenerationRequest, GenerationResult


# =====================================================================
#  SCRIPTED GENERATIVE CLIENT - no network required
# =====================================================================


class ScriptedClient(BaseGenerativeClient):
    """Generative client answering from a queue.

    Text and image requests have separate queues. Queued exceptions are
    raised in order, queued results are returned. Image requests fall back
    to ``default_image`` once their queue is empty.
    """

    def __init__(self, default_image: GenerationResult | None = None):
        self._queue: list[GenerationResult | BaseException] = []
        self._image_queue: list[GenerationResult | BaseException] = []
        self._default_image = default_image
        self.requests: list[GenerationRequest] = []

    def push(self, *items: GenerationResult | BaseException) -> None:
        self._queue.extend(items)

    def push_image(self, *items: GenerationResult | BaseException) -> None:
        self._image_queue.extend(items)

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        self.requests.append(request)
        queue = self._image_queue if request.wants_image else self._queue
        if queue:
            item = queue.pop(0)
            if isinstance(item, BaseException):
                raise item
            return item
        if request.wants_image and self._default_image is not None:
            return self._default_image
        raise AssertionError(f"Unexpected request for model {request.model}")

    @property
    def provider_name(self) -> str:
        return "scripted"

    def image_requests(self) -> list[GenerationRequest]:
        return [r for r in self.requests if r.wants_image]


class StatusError(Exception):
    """Service error carrying an HTTP-like status."""

    def __init__(self, status: int, message: str = ""):
        super().__init__(message or f"status {status}")
        self.status = status


@pytest.fixture
def scripted_client(make_image_result) -> ScriptedClient:
    return ScriptedClient(default_image=make_image_result())


@pytest.fixture
def status_error() -> type[StatusError]:
    return StatusError


@pytest.fixture
def file_settings(tmp_path) -> Any:
    """Settings with a per-test cache directory."""
    from pmdesigner.config.settings import Settings

    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "google_api_key": "AIza" + "x" * 35,
            "text_initial_delay_s": 0.0,
            "image_initial_delay_s": 0.0,
            "cache_backend": "json",
            "cache_root": tmp_path / "cache",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make
