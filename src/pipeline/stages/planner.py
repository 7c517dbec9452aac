# src/pipeline/stages/planner.py - v1
"""Phase 2: content plan for the selected marketing route."""

from __future__ import annotations

from pmdesigner.core.language import LanguageMode
from pmdesigner.core.models import ContentPlan, MarketingRoute, ProductAnalysis
from pmdesigner.media.encoding import parse_data_uri
from pmdesigner.pipeline.base_stage import StructuredStage, reject_invalid_input
from pmdesigner.pipeline.prompts import CONTENT_PLANNER_SYSTEM_PROMPT, planner_prompt
from pmdesigner.validation.inputs import validate_brand_context, validate_reference_copy
from pmdesigner.validation.validators import validate_content_plan


class PlannerStage(StructuredStage[ContentPlan]):
    """Turn a marketing route into an ordered image suite."""

    @property
    def name(self) -> str:
        return "planner"

    @property
    def system_prompt(self) -> str:
        return CONTENT_PLANNER_SYSTEM_PROMPT

    def validate(self, data: object, language: LanguageMode) -> ContentPlan:
        return validate_content_plan(data, language)

    async def plan(
        self,
        route: MarketingRoute,
        analysis: ProductAnalysis,
        reference_copy: str = "",
        brand_context: str = "",
        product_image: str | None = None,
    ) -> ContentPlan:
        """Generate the content plan.

        The product image, when given as a valid data URI, is attached so
        the plan can describe the real product; a malformed one is skipped.
        """
        language = self.language
        reject_invalid_input(
            [
                validate_reference_copy(
                    reference_copy, self._settings.reference_copy_max, language
                ),
                validate_brand_context(
                    brand_context, self._settings.brand_context_max, language
                ),
            ],
            language,
        )

        parts = []
        if product_image:
            part = parse_data_uri(product_image)
            if part is not None:
                parts.append(part)

        prompt = planner_prompt(route, analysis, reference_copy, brand_context, language)
        return await self.run(prompt, parts)
