# src/pipeline/stages/analyst.py - v1
"""Phases 3 and 4: market analysis and content strategy."""

from __future__ import annotations

from typing import Mapping

from pmdesigner.core.language import LanguageMode
from pmdesigner.core.models import ContentStrategy, MarketAnalysis, MarketingRoute
from pmdesigner.media.encoding import parse_data_uri
from pmdesigner.pipeline.base_stage import StructuredStage, reject_invalid_input
from pmdesigner.pipeline.prompts import (
    CONTENT_STRATEGIST_SYSTEM_PROMPT,
    MARKET_ANALYST_SYSTEM_PROMPT,
    content_strategy_prompt,
    market_analysis_prompt,
)
from pmdesigner.validation.inputs import validate_product_name
from pmdesigner.validation.validators import (
    validate_content_strategy,
    validate_market_analysis,
)


class MarketAnalystStage(StructuredStage[MarketAnalysis]):
    """Market positioning, competitors and buyer personas."""

    @property
    def name(self) -> str:
        return "market_analyst"

    @property
    def system_prompt(self) -> str:
        return MARKET_ANALYST_SYSTEM_PROMPT

    def validate(self, data: object, language: LanguageMode) -> MarketAnalysis:
        return validate_market_analysis(data, language)

    async def analyze(
        self,
        product_name: str,
        route: MarketingRoute,
        product_image: str | None = None,
    ) -> MarketAnalysis:
        language = self.language
        reject_invalid_input(
            [validate_product_name(product_name, self._settings.product_name_max, language)],
            language,
        )
        parts = []
        if product_image:
            part = parse_data_uri(product_image)
            if part is not None:
                parts.append(part)
        return await self.run(market_analysis_prompt(product_name, route), parts)


class ContentStrategistStage(StructuredStage[ContentStrategy]):
    """SEO topics, interactive elements, CTAs and page-builder prompts.

    The page-builder prompts are long multi-line strings that models often
    emit with raw line breaks, so both prompt arrays are rebuilt before
    parsing.
    """

    string_array_keys = ("aiStudioPrompts", "gammaPrompts")

    @property
    def name(self) -> str:
        return "content_strategist"

    @property
    def system_prompt(self) -> str:
        return CONTENT_STRATEGIST_SYSTEM_PROMPT

    def validate(self, data: object, language: LanguageMode) -> ContentStrategy:
        return validate_content_strategy(data, language)

    async def strategize(
        self,
        analysis: MarketAnalysis,
        product_name: str,
        route: MarketingRoute,
        image_descriptions: Mapping[str, str] | None = None,
    ) -> ContentStrategy:
        """Build the content strategy.

        Args:
            analysis: Result of the market analysis stage.
            product_name: Product name.
            route: Selected marketing route.
            image_descriptions: Generated image file name -> purpose, listed
                in the prompt so the page prompts can reference the files.
        """
        language = self.language
        reject_invalid_input(
            [validate_product_name(product_name, self._settings.product_name_max, language)],
            language,
        )
        prompt = content_strategy_prompt(product_name, route, analysis, image_descriptions)
        return await self.run(prompt)
