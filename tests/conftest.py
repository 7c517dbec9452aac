# tests/conftest.py - v2
"""Shared test fixtures for all unit and integration tests.

Provides settings without .env interference, a scripted generative client,
sample stage documents and cache fixtures. No network access: every call to
the generative service is mocked.
"""

from __future__ import annotations

import base64
import json
from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock

import pytest

from pmdesigner.cache.memory_store import MemoryCacheStore
from pmdesigner.cache.result_cache import ResultCache
from pmdesigner.config.settings import Settings
from pmdesigner.core.models import MarketingRoute, ProductAnalysis
from pmdesigner.llm.base_client import BaseGenerativeClient
from pmdesigner.llm.models import GeneratedImage, GenerationResult

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24
PNG_DATA_URI = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


class FakeClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


def text_result(payload: Any, model: str = "gemini-2.5-flash") -> GenerationResult:
    """GenerationResult carrying ``payload`` as text (dicts are JSON-encoded)."""
    text = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
    return GenerationResult(text=text, model=model)


def image_result(data: bytes = PNG_BYTES) -> GenerationResult:
    return GenerationResult(
        images=[GeneratedImage(mime_type="image/png", data=data)],
        model="gemini-3-pro-image-preview",
    )


# === FIXTURES: Helpers ===


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def png_data_uri() -> str:
    """Small PNG payload as a data URI."""
    return PNG_DATA_URI


@pytest.fixture
def make_text_result():
    return text_result


@pytest.fixture
def make_image_result():
    return image_result


# === FIXTURES: Settings ===


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from .env, with zero retry delays."""
    return Settings(
        _env_file=None,
        google_api_key="AIza" + "x" * 35,
        text_initial_delay_s=0.0,
        image_initial_delay_s=0.0,
        cache_backend="memory",
    )


@pytest.fixture
def en_settings() -> Settings:
    return Settings(
        _env_file=None,
        google_api_key="AIza" + "x" * 35,
        language_mode="en",
        text_initial_delay_s=0.0,
        image_initial_delay_s=0.0,
        cache_backend="memory",
    )


# === FIXTURES: Generative client ===


@pytest.fixture
def mock_client() -> BaseGenerativeClient:
    """Generative client whose ``generate`` is an AsyncMock.

    Tests script it via ``mock_client.generate.return_value`` or
    ``mock_client.generate.side_effect``.
    """
    client = AsyncMock(spec=BaseGenerativeClient)
    client.provider_name = "mock"
    return client


# === FIXTURES: Cache ===


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_cache(clock: FakeClock) -> ResultCache:
    return ResultCache(MemoryCacheStore(), clock=clock)


# === FIXTURES: Sample documents ===


@pytest.fixture
def director_payload() -> dict[str, Any]:
    """A director response that validates without repair."""
    return {
        "product_analysis": {
            "name": "Horizon 保溫瓶",
            "visual_description": "Matte silver bottle with a black strap",
            "key_features_zh": "雙層真空保溫，十二小時保冷",
        },
        "marketing_routes": [
            {
                "route_name": "城市通勤",
                "headline_zh": "一瓶陪你走過整天",
                "subhead_zh": "輕量設計，通勤好夥伴",
                "style_brief_zh": "明亮都會風格，自然光",
                "target_audience_zh": "上班族",
                "visual_elements_zh": "捷運、咖啡廳",
                "image_prompts": [
                    {
                        "prompt_en": "A silver insulated bottle on a cafe table, morning light",
                        "summary_zh": "咖啡廳晨光",
                    }
                ],
            }
        ],
    }


@pytest.fixture
def content_plan_payload() -> dict[str, Any]:
    return {
        "plan_name": "城市通勤企劃",
        "items": [
            {
                "id": "img_1_white",
                "type": "main_white",
                "ratio": "1:1",
                "title_zh": "主圖",
                "copy_zh": "十二小時保冷",
                "visual_prompt_en": "Silver bottle on a pure white background, studio light",
                "visual_summary_zh": "白底主圖",
            },
            {
                "id": "img_3_hook",
                "type": "story_slide",
                "ratio": "9:16",
                "title_zh": "開場",
                "copy_zh": "你的水還是冰的嗎？",
                "visual_prompt_en": "Commuter holding a silver bottle in a crowded train",
                "visual_summary_zh": "通勤開場",
            },
        ],
    }


@pytest.fixture
def market_payload() -> dict[str, Any]:
    persona = {
        "name": "小美",
        "demographics": "28 歲，台北上班族，月收入五萬，通勤時間約一小時",
        "interests": ["咖啡", "瑜珈", "露營"],
        "painPoints": ["飲料很快變溫", "水瓶太重不好帶"],
        "searchKeywords": ["保溫瓶推薦", "輕量水瓶", "通勤水壺"],
    }
    competitor = {
        "brandName": "Brand A",
        "marketingStrategy": "Influencer marketing focused on outdoor lifestyle",
        "advantages": ["知名度高的品牌", "通路非常廣泛"],
        "weaknesses": ["價格相對偏高", "款式較為老舊"],
    }
    return {
        "productCoreValue": {
            "mainFeatures": ["雙層真空保溫", "一體成形瓶身", "防漏瓶蓋設計"],
            "coreAdvantages": ["重量比同級輕", "保冷時間更長", "瓶口易於清洗"],
            "painPointsSolved": ["飲料不再變溫", "包包不再漏水", "清洗不再困難"],
        },
        "marketPositioning": {
            "culturalInsights": "台灣消費者重視隨身飲品，手搖飲文化盛行，外出自備容器的環保意識逐年提高，保溫瓶已成為日常必需品，夏季時對保冰效果的需求特別明顯，冬季則重視保溫。",
            "consumerHabits": "多數消費者在電商平台比價後購買，重視開箱評價與實際使用心得，並且偏好有保固與售後服務的品牌商品，促銷檔期如雙十一時購買意願最高。",
            "languageNuances": "文案宜親切口語，多用生活情境描述，避免過度專業術語，可適度加入流行用語。",
            "searchTrends": ["保溫瓶", "冰霸杯", "環保杯"],
        },
        "competitors": [competitor, {**competitor, "brandName": "Brand B"}],
        "buyerPersonas": [persona, {**persona, "name": "阿明"}],
    }


def _ai_studio_prompt(n: int) -> str:
    return (
        f"Build landing page section {n} for the Horizon bottle.\n"
        "Use a hero image, a headline in Traditional Chinese and a short list "
        "of benefits with icons, then a call-to-action button."
    )


@pytest.fixture
def strategy_payload() -> dict[str, Any]:
    topic = {
        "title": "通勤族保溫瓶挑選指南",
        "description": "從保溫時間、重量、容量與清洗便利性四個面向，比較市面上常見的通勤保溫瓶，幫助上班族找到最適合自己的選擇，並附上實際使用一週的心得紀錄。",
        "focusKeyword": "保溫瓶推薦",
        "longTailKeywords": ["通勤保溫瓶推薦", "輕量保溫瓶", "保溫瓶容量"],
        "seoGuidance": {
            "keywordDensity": "1-2%",
            "semanticKeywords": ["真空保溫", "不鏽鋼", "隨行杯"],
            "internalLinks": ["/products/horizon", "/blog/care"],
            "externalLinks": ["https://example.org/a", "https://example.org/b"],
        },
    }
    return {
        "contentTopics": [topic, {**topic, "title": "保溫瓶清洗保養全攻略"}],
        "interactiveElements": [
            {"type": "quiz", "description": "A short quiz that recommends a bottle size"}
        ],
        "ctaSuggestions": ["立即選購", "加入購物車"],
        "aiStudioPrompts": [_ai_studio_prompt(1), _ai_studio_prompt(2)],
        "gammaPrompts": ["Create a 5-slide deck introducing Horizon"],
    }


@pytest.fixture
def route(director_payload: dict[str, Any]) -> MarketingRoute:
    return MarketingRoute.model_validate(director_payload["marketing_routes"][0])


@pytest.fixture
def product_analysis(director_payload: dict[str, Any]) -> ProductAnalysis:
    return ProductAnalysis.model_validate(director_payload["product_analysis"])
