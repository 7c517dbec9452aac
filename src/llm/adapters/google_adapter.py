# src/llm/adapters/google_adapter.py - v2
"""Google Gemini adapter implementing BaseGenerativeClient.

Uses the google-genai SDK async surface (client.aio). Supports inline image
parts, JSON response hints, thinking budgets and image output with an
aspect-ratio config.
"""

from __future__ import annotations

import time
from typing import Any

from pmdesigner.llm.base_client import BaseGenerativeClient
from pmdesigner.llm.models import GeneratedImage, GenerationRequest, GenerationResult


class GoogleGenAIAdapter(BaseGenerativeClient):
    """Google Gemini adapter."""

    def __init__(self, api_key: str = "", **kwargs: Any):
        self._api_key = api_key
        self._client: Any = None

    def _get_client(self) -> Any:
        if self._client is None:
            from google import genai

            self._client = genai.Client(api_key=self._api_key)
        return self._client

    def _build_config(self, request: GenerationRequest) -> Any:
        from google.genai import types

        config: dict[str, Any] = {}
        if request.system_instruction:
            config["system_instruction"] = request.system_instruction
        if request.response_mime_type:
            config["response_mime_type"] = request.response_mime_type
        if request.thinking_budget is not None:
            config["thinking_config"] = types.ThinkingConfig(
                thinking_budget=request.thinking_budget
            )
        if request.wants_image:
            config["response_modalities"] = ["IMAGE", "TEXT"]
            config["image_config"] = types.ImageConfig(
                aspect_ratio=request.aspect_ratio,
                image_size=request.image_size,
            )
        return types.GenerateContentConfig(**config)

    def _build_contents(self, request: GenerationRequest) -> list[Any]:
        from google.genai import types

        contents: list[Any] = [
            types.Part.from_bytes(data=part.data, mime_type=part.mime_type)
            for part in request.parts
        ]
        contents.append(types.Part.from_text(text=request.prompt))
        return contents

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        client = self._get_client()

        t0 = time.monotonic()
        resp = await client.aio.models.generate_content(
            model=request.model,
            contents=self._build_contents(request),
            config=self._build_config(request),
        )
        latency = int((time.monotonic() - t0) * 1000)

        images: list[GeneratedImage] = []
        text_chunks: list[str] = []
        for candidate in getattr(resp, "candidates", None) or []:
            content = getattr(candidate, "content", None)
            for part in getattr(content, "parts", None) or []:
                inline = getattr(part, "inline_data", None)
                if inline is not None and inline.data:
                    images.append(
                        GeneratedImage(
                            mime_type=inline.mime_type or "image/png",
                            data=inline.data,
                        )
                    )
                elif getattr(part, "text", None) and not getattr(part, "thought", False):
                    text_chunks.append(part.text)
            # Only the first candidate is used.
            break

        usage = getattr(resp, "usage_metadata", None)
        return GenerationResult(
            text="".join(text_chunks) or None,
            images=images,
            model=request.model,
            latency_ms=latency,
            input_tokens=(getattr(usage, "prompt_token_count", 0) or 0) if usage else 0,
            output_tokens=(getattr(usage, "candidates_token_count", 0) or 0) if usage else 0,
            raw_response=resp,
        )

    @property
    def provider_name(self) -> str:
        return "google"
