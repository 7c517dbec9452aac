# src/core/models.py - v2
"""Shared Pydantic domain models for every pipeline stage result.

No module redefines these types; all imports come from core.models.
Field bounds here are the structural contract each AI response must meet
before it is handed back to a caller.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ContentItemType = Literal["main_white", "main_lifestyle", "story_slide"]
ContentRatio = Literal["1:1", "9:16", "16:9"]
ImageAspectRatio = Literal["1:1", "9:16", "16:9", "3:4", "4:3"]

CONTENT_ITEM_TYPES: tuple[str, ...] = ("main_white", "main_lifestyle", "story_slide")
CONTENT_RATIOS: tuple[str, ...] = ("1:1", "9:16", "16:9")

_Phrase = Annotated[str, Field(min_length=5)]
_Keyword = Annotated[str, Field(min_length=1)]


class CamelModel(BaseModel):
    """Base for records whose wire format uses camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# === PHASE 1: DIRECTOR ===


class ProductAnalysis(BaseModel):
    """What the director saw in the product photo."""

    name: str = Field(min_length=1)
    visual_description: str = Field(min_length=5)
    key_features_zh: str = Field(min_length=5)


class PromptData(BaseModel):
    """One concept image prompt with its localized summary."""

    prompt_en: str = Field(min_length=20)
    summary_zh: str = ""


class MarketingRoute(BaseModel):
    """A creative direction proposed by the director."""

    route_name: str = Field(min_length=1, max_length=50)
    headline_zh: str = Field(min_length=1, max_length=100)
    subhead_zh: str = Field(min_length=1, max_length=200)
    style_brief_zh: str = Field(min_length=5)
    target_audience_zh: str | None = None
    visual_elements_zh: str | None = None
    image_prompts: list[PromptData] = Field(min_length=1, max_length=10)


class DirectorOutput(BaseModel):
    """Phase 1 result: product analysis plus marketing routes."""

    product_analysis: ProductAnalysis
    marketing_routes: list[MarketingRoute] = Field(min_length=1, max_length=10)


# === PHASE 2: CONTENT PLAN ===


class ContentItem(BaseModel):
    """A single slide/image in the content suite."""

    id: str = Field(min_length=1)
    type: ContentItemType
    ratio: ContentRatio
    title_zh: str = Field(min_length=1, max_length=100)
    copy_zh: str = Field(min_length=1, max_length=500)
    visual_prompt_en: str = Field(min_length=20, max_length=1000)
    visual_summary_zh: str = Field(default="", max_length=200)


class ContentPlan(BaseModel):
    """Phase 2 result: the ordered content suite."""

    plan_name: str = Field(min_length=1, max_length=200)
    items: list[ContentItem] = Field(min_length=1, max_length=20)


# === PHASE 3: MARKET ANALYSIS ===


class ProductCoreValue(CamelModel):
    main_features: list[_Phrase] = Field(min_length=3, max_length=10)
    core_advantages: list[_Phrase] = Field(min_length=3, max_length=10)
    pain_points_solved: list[_Phrase] = Field(min_length=3, max_length=10)


class MarketPositioning(CamelModel):
    cultural_insights: str = Field(min_length=50, max_length=500)
    consumer_habits: str = Field(min_length=50, max_length=500)
    language_nuances: str = Field(min_length=20, max_length=300)
    search_trends: list[_Keyword] = Field(min_length=3, max_length=15)


class Competitor(CamelModel):
    brand_name: str = Field(min_length=1, max_length=100)
    marketing_strategy: str = Field(min_length=20, max_length=300)
    advantages: list[_Phrase] = Field(min_length=2, max_length=10)
    weaknesses: list[_Phrase] = Field(min_length=2, max_length=10)


class BuyerPersona(CamelModel):
    name: str = Field(min_length=1, max_length=50)
    demographics: str = Field(min_length=20, max_length=300)
    interests: list[_Keyword] = Field(min_length=3, max_length=15)
    pain_points: list[_Phrase] = Field(min_length=2, max_length=10)
    search_keywords: list[_Keyword] = Field(min_length=3, max_length=15)


class MarketAnalysis(CamelModel):
    """Phase 3 result: value proposition, positioning, competitors, personas."""

    product_core_value: ProductCoreValue
    market_positioning: MarketPositioning
    competitors: list[Competitor] = Field(min_length=2, max_length=5)
    buyer_personas: list[BuyerPersona] = Field(min_length=2, max_length=5)


# === PHASE 4: CONTENT STRATEGY ===


class SEOGuidance(CamelModel):
    keyword_density: str = Field(min_length=1, max_length=20)
    semantic_keywords: list[_Keyword] = Field(min_length=3, max_length=15)
    internal_links: list[_Keyword] = Field(min_length=2, max_length=10)
    external_links: list[_Keyword] = Field(min_length=2, max_length=10)


class ContentTopic(CamelModel):
    title: str = Field(min_length=5, max_length=100)
    description: str = Field(min_length=50, max_length=500)
    focus_keyword: str = Field(min_length=1, max_length=50)
    long_tail_keywords: list[_Keyword] = Field(min_length=3, max_length=15)
    seo_guidance: SEOGuidance


class InteractiveElement(CamelModel):
    type: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=20, max_length=300)


class ContentStrategy(CamelModel):
    """Phase 4 result: SEO topics, interactive elements, CTAs and page prompts."""

    content_topics: list[ContentTopic] = Field(min_length=2, max_length=5)
    interactive_elements: list[InteractiveElement] = Field(min_length=1, max_length=5)
    cta_suggestions: list[Annotated[str, Field(min_length=3, max_length=50)]] = Field(
        min_length=2, max_length=5
    )
    ai_studio_prompts: list[Annotated[str, Field(min_length=100, max_length=2000)]] = Field(
        min_length=2, max_length=5
    )
    gamma_prompts: list[str] = Field(default_factory=list)
