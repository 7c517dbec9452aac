# src/pipeline/workflow.py - v2
"""MarketingPipeline: entry point wiring client, stages, imagery and cache.

Each method is one independent invocation; callers decide the order
(director -> planner -> images -> market analysis -> content strategy)
and may run invocations concurrently.
"""

from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from typing import Mapping, Sequence

from pmdesigner.cache.result_cache import ResultCache
from pmdesigner.config.settings import Settings
from pmdesigner.core.language import LanguageMode
from pmdesigner.core.models import (
    ContentPlan,
    ContentStrategy,
    DirectorOutput,
    MarketAnalysis,
    MarketingRoute,
    ProductAnalysis,
)
from pmdesigner.llm.base_client import BaseGenerativeClient
from pmdesigner.llm.errors import ClassifiedError, ErrorKind
from pmdesigner.llm.executor import RequestExecutor
from pmdesigner.llm.models import InlinePart
from pmdesigner.logging.context import run_context
from pmdesigner.pipeline.imagery import ImageGenerator, ImageJob
from pmdesigner.pipeline.stages.analyst import ContentStrategistStage, MarketAnalystStage
from pmdesigner.pipeline.stages.director import DirectorStage
from pmdesigner.pipeline.stages.planner import PlannerStage

logger = logging.getLogger(__name__)

_MISSING_KEY = {
    LanguageMode.ZH_TW: "找不到 API 金鑰。請在設定中輸入您的 Gemini API Key。",
    LanguageMode.EN: "No API key found. Enter your Gemini API key in settings.",
}


def resolve_api_key(explicit_key: str | None, settings: Settings) -> str:
    """Pick the API key: explicit value first, then settings.

    Raises:
        ClassifiedError: AUTH kind when neither source has a key.
    """
    for candidate in (explicit_key, settings.google_api_key):
        if candidate and candidate.strip():
            return candidate.strip()

    language = LanguageMode(settings.language_mode)
    raise ClassifiedError(
        ErrorKind.AUTH,
        "No API key provided and GOOGLE_API_KEY is not set",
        _MISSING_KEY[language],
    )


class MarketingPipeline:
    """Generation workflow for one product."""

    def __init__(
        self,
        settings: Settings,
        client: BaseGenerativeClient,
        cache: ResultCache | None = None,
    ) -> None:
        self._settings = settings
        self._executor = RequestExecutor(client)
        self._cache = cache
        self._director = DirectorStage(self._executor, settings)
        self._planner = PlannerStage(self._executor, settings)
        self._analyst = MarketAnalystStage(self._executor, settings)
        self._strategist = ContentStrategistStage(self._executor, settings)
        self._images = ImageGenerator(self._executor, settings, cache)
        self.run_id = uuid.uuid4().hex[:12]

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        api_key: str | None = None,
        *,
        configure_logging: bool = True,
    ) -> MarketingPipeline:
        """Build the pipeline with the Google adapter and the configured cache.

        Raises:
            ClassifiedError: AUTH kind when no API key is available.
        """
        from pmdesigner.cache.cache_factory import create_cache_store
        from pmdesigner.llm.adapters.google_adapter import GoogleGenAIAdapter
        from pmdesigner.logging.logger import setup_logging

        if configure_logging:
            setup_logging(
                level=settings.log_level,
                log_format=settings.log_format,
                log_file=settings.log_file,
                rotation=settings.log_rotation,
                retention=settings.log_retention,
            )

        client = GoogleGenAIAdapter(api_key=resolve_api_key(api_key, settings))

        cache = None
        if settings.cache_enabled:
            cache = ResultCache(
                create_cache_store(settings),
                expiry=timedelta(days=settings.cache_expiry_days),
                key_prefix=settings.cache_key_prefix,
            )
        logger.info(
            "Pipeline ready (language=%s, cache=%s)",
            LanguageMode(settings.language_mode).value,
            settings.cache_backend if cache is not None else "disabled",
        )
        return cls(settings, client, cache)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def cache(self) -> ResultCache | None:
        return self._cache

    async def analyze_product(
        self,
        image: str | InlinePart,
        product_name: str = "",
        brand_context: str = "",
    ) -> DirectorOutput:
        with run_context(self.run_id):
            return await self._director.analyze(image, product_name, brand_context)

    async def plan_content(
        self,
        route: MarketingRoute,
        analysis: ProductAnalysis,
        reference_copy: str = "",
        brand_context: str = "",
        product_image: str | None = None,
    ) -> ContentPlan:
        with run_context(self.run_id):
            return await self._planner.plan(
                route, analysis, reference_copy, brand_context, product_image
            )

    async def analyze_market(
        self,
        product_name: str,
        route: MarketingRoute,
        product_image: str | None = None,
    ) -> MarketAnalysis:
        with run_context(self.run_id):
            return await self._analyst.analyze(product_name, route, product_image)

    async def plan_content_strategy(
        self,
        analysis: MarketAnalysis,
        product_name: str,
        route: MarketingRoute,
        image_descriptions: Mapping[str, str] | None = None,
    ) -> ContentStrategy:
        with run_context(self.run_id):
            return await self._strategist.strategize(
                analysis, product_name, route, image_descriptions
            )

    async def generate_image(
        self,
        prompt: str,
        aspect_ratio: str | None = None,
        reference_image: str | None = None,
    ) -> str:
        with run_context(self.run_id):
            return await self._images.generate(prompt, aspect_ratio, reference_image)

    async def generate_images(
        self, jobs: Sequence[ImageJob]
    ) -> list[str | ClassifiedError]:
        with run_context(self.run_id):
            return await self._images.generate_many(jobs)
