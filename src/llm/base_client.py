# src/llm/base_client.py - v2
"""Abstract generative client interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pmdesigner.llm.models import GenerationRequest, GenerationResult


class BaseGenerativeClient(ABC):
    """Unified interface for text+image generative providers."""

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Issue exactly one call to the provider.

        Provider errors propagate unchanged; callers classify them.
        """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (e.g. google)."""
