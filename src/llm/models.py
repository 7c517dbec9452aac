# src/llm/models.py - v2
"""Generative-service request and response types.

InlinePart, GenerationRequest, GeneratedImage, GenerationResult.
"""

from __future__ import annotations

import base64
from typing import Any

from pydantic import BaseModel, Field


class InlinePart(BaseModel):
    """Binary payload embedded in a request (e.g. a product photo)."""

    mime_type: str
    data: bytes

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class GenerationRequest(BaseModel):
    """A fully-formed request for a single generative call."""

    model: str
    prompt: str
    system_instruction: str | None = None
    parts: list[InlinePart] = Field(default_factory=list)
    response_mime_type: str | None = None
    aspect_ratio: str | None = None
    image_size: str | None = None
    thinking_budget: int | None = None

    @property
    def wants_image(self) -> bool:
        return self.aspect_ratio is not None


class GeneratedImage(BaseModel):
    """Inline image returned by the service."""

    mime_type: str = "image/png"
    data: bytes

    def to_data_uri(self) -> str:
        """Render as ``data:<mime>;base64,<payload>``."""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


class GenerationResult(BaseModel):
    """Normalized response from the generative service."""

    text: str | None = None
    images: list[GeneratedImage] = Field(default_factory=list)
    model: str
    latency_ms: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    raw_response: Any = None
