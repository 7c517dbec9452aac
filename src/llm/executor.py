# src/llm/executor.py - v1
"""Single-shot request execution against a generative client.

One outbound call per invocation: no retries, no caching and no error
classification. Transport and service errors propagate untouched so the
retry loop can inspect them.
"""

from __future__ import annotations

import logging

from pmdesigner.llm.base_client import BaseGenerativeClient
from pmdesigner.llm.models import GenerationRequest, GenerationResult

logger = logging.getLogger(__name__)


class EmptyResponseError(Exception):
    """The service answered but carried no usable payload."""

    def __init__(self, model: str, expected: str):
        self.model = model
        self.expected = expected
        super().__init__(f"Model '{model}' returned no {expected} payload")


class RequestExecutor:
    """Issue exactly one request per call."""

    def __init__(self, client: BaseGenerativeClient) -> None:
        self._client = client

    @property
    def client(self) -> BaseGenerativeClient:
        return self._client

    async def execute(self, request: GenerationRequest) -> GenerationResult:
        """Send the request and return the provider's normalized result."""
        logger.debug(
            "Calling %s model=%s parts=%d image=%s",
            self._client.provider_name,
            request.model,
            len(request.parts),
            request.wants_image,
        )
        result = await self._client.generate(request)
        logger.debug("Model %s answered in %dms", request.model, result.latency_ms)
        return result

    async def execute_text(self, request: GenerationRequest) -> str:
        """Return the raw text payload.

        Raises:
            EmptyResponseError: The response carried no text.
        """
        result = await self.execute(request)
        if not result.text:
            raise EmptyResponseError(request.model, "text")
        return result.text

    async def execute_image(self, request: GenerationRequest) -> str:
        """Return the first generated image as a data URI.

        Raises:
            EmptyResponseError: No candidate carried inline image data.
        """
        result = await self.execute(request)
        if not result.images:
            raise EmptyResponseError(request.model, "image")
        return result.images[0].to_data_uri()
