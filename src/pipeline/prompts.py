# src/pipeline/prompts.py - v2
"""System instructions and user-prompt builders for each pipeline stage.

System instructions describe the JSON shape each stage must return; the
builders render the per-request context (product, route, prior results).
"""

from __future__ import annotations

import json
from typing import Mapping

from pmdesigner.core.language import LanguageMode, extract_english_elements
from pmdesigner.core.models import MarketAnalysis, MarketingRoute, ProductAnalysis

DIRECTOR_SYSTEM_PROMPT = """\
You are a visual marketing director for e-commerce brands.
Study the product photo and the brand information, then propose distinct
marketing routes for the product.

Respond with JSON only, in this shape:
{
  "product_analysis": {
    "name": "<product name>",
    "visual_description": "<what the product looks like>",
    "key_features_zh": "<key selling points, Traditional Chinese>"
  },
  "marketing_routes": [
    {
      "route_name": "<short route name>",
      "headline_zh": "<headline>",
      "subhead_zh": "<subheading>",
      "style_brief_zh": "<visual style brief>",
      "target_audience_zh": "<target audience>",
      "visual_elements_zh": "<key visual elements>",
      "image_prompts": [
        {"prompt_en": "<detailed English image prompt>", "summary_zh": "<one-line summary>"}
      ]
    }
  ]
}
Return exactly 3 marketing routes, each with 3 image prompts.
"""

CONTENT_PLANNER_SYSTEM_PROMPT = """\
You are a content planner for e-commerce product listings.
Turn the selected marketing route into an ordered image suite: two main
images (a white-background product shot, then a lifestyle shot) followed by
story slides in this order: hook, problem, solution, features, trust, cta.

Respond with JSON only, in this shape:
{
  "plan_name": "<plan name>",
  "items": [
    {
      "id": "img_1_white",
      "type": "main_white | main_lifestyle | story_slide",
      "ratio": "1:1 | 9:16 | 16:9",
      "title_zh": "<slide title>",
      "copy_zh": "<marketing copy shown on the image>",
      "visual_prompt_en": "<detailed English image prompt>",
      "visual_summary_zh": "<short visual summary>"
    }
  ]
}
Main images use ratio 1:1; story slides use 9:16.
"""

MARKET_ANALYST_SYSTEM_PROMPT = """\
You are a market analyst specializing in the Taiwan e-commerce market.
Analyze the product and the selected marketing route.

Respond with JSON only, in this shape:
{
  "productCoreValue": {
    "mainFeatures": ["..."], "coreAdvantages": ["..."], "painPointsSolved": ["..."]
  },
  "marketPositioning": {
    "culturalInsights": "...", "consumerHabits": "...",
    "languageNuances": "...", "searchTrends": ["..."]
  },
  "competitors": [
    {"brandName": "...", "marketingStrategy": "...", "advantages": ["..."], "weaknesses": ["..."]}
  ],
  "buyerPersonas": [
    {"name": "...", "demographics": "...", "interests": ["..."],
     "painPoints": ["..."], "searchKeywords": ["..."]}
  ]
}
Give 3 to 10 entries for each core-value list, 2 to 5 competitors and
2 to 5 buyer personas.
"""

CONTENT_STRATEGIST_SYSTEM_PROMPT = """\
You are a content strategist and SEO specialist.
Build a content strategy from the market analysis.

Respond with JSON only, in this shape:
{
  "contentTopics": [
    {"title": "...", "description": "...", "focusKeyword": "...",
     "longTailKeywords": ["..."],
     "seoGuidance": {"keywordDensity": "1-2%", "semanticKeywords": ["..."],
                     "internalLinks": ["..."], "externalLinks": ["..."]}}
  ],
  "interactiveElements": [{"type": "...", "description": "..."}],
  "ctaSuggestions": ["..."],
  "aiStudioPrompts": ["<complete landing-page build prompt>"],
  "gammaPrompts": ["<complete presentation build prompt>"]
}
Give 2 to 5 content topics, 1 to 5 interactive elements, 2 to 5 CTAs and
2 to 5 AI Studio prompts of at least 100 characters each.
"""

REFERENCE_IMAGE_RULES = "\n".join(
    [
        "CRITICAL - Reference image rules (you MUST follow):",
        "1. PRODUCT COLORS: The product must use ONLY the colors visible on the "
        "product in the reference image.",
        "2. LOGO & BRAND: Any logo, label or text ON the product must be "
        "replicated EXACTLY as in the reference image.",
        "3. NO INVENTED COLORS: Do not add colors to the product that are not "
        "present in the reference image.",
    ]
)

TRADITIONAL_CHINESE_TEXT_RULE = (
    "CRITICAL: All rendered text must be in Traditional Chinese characters. "
    "Do NOT generate English marketing copy, testimonials, or button text."
)

_NOT_PROVIDED = "未提供"


def director_prompt(product_name: str, brand_context: str) -> str:
    return (
        f"產品名稱: {product_name or _NOT_PROVIDED}\n"
        f"品牌/背景資訊: {brand_context or _NOT_PROVIDED}\n"
        "請根據上述資訊與圖片，執行視覺行銷總監的分析任務。"
    )


def language_note(brand_context: str, language: LanguageMode) -> str:
    """Copy-language instruction for the planner (empty in English mode)."""
    if LanguageMode(language) is not LanguageMode.ZH_TW:
        return ""
    elements = extract_english_elements(brand_context)
    if elements.has_english_slogan or elements.has_english_brand_name:
        return (
            "注意：品牌資訊中包含英文元素"
            f"（Slogan: {', '.join(elements.english_slogans)}，"
            f"品牌名稱: {', '.join(elements.english_brand_names)}）。"
            "可保留英文元素，但其他必須使用繁體中文。"
        )
    return "注意：所有行銷文案都必須使用繁體中文。"


def planner_prompt(
    route: MarketingRoute,
    analysis: ProductAnalysis,
    reference_copy: str,
    brand_context: str,
    language: LanguageMode,
) -> str:
    lines = [
        f"選定策略路線: {route.route_name}",
        f"主標題: {route.headline_zh}",
        f"風格: {route.style_brief_zh}",
        f"產品名稱: {analysis.name}",
        f"產品特點: {analysis.key_features_zh}",
        f"參考文案/競品資訊: {reference_copy or '無'}",
    ]
    note = language_note(brand_context, language)
    if note:
        lines.append(note)
    lines.append("請生成 8 張圖的完整內容企劃 (JSON)。")
    return "\n".join(lines)


def _route_lines(route: MarketingRoute) -> list[str]:
    return [
        "選定的行銷策略路線:",
        f"- 路線名稱: {route.route_name}",
        f"- 主標題: {route.headline_zh}",
        f"- 副標題: {route.subhead_zh}",
        f"- 視覺風格: {route.style_brief_zh}",
    ]


def market_analysis_prompt(product_name: str, route: MarketingRoute) -> str:
    lines = [f"產品名稱: {product_name}", "", *_route_lines(route)]
    lines.append(f"- 目標客群: {route.target_audience_zh or '未指定'}")
    lines.append(f"- 視覺元素: {route.visual_elements_zh or '未指定'}")
    lines += ["", "請根據以上資訊生成完整的市場分析報告 (JSON)。"]
    return "\n".join(lines)


def image_mapping_text(image_descriptions: Mapping[str, str] | None) -> str:
    """List generated image files and their purposes, or "" when none."""
    if not image_descriptions:
        return ""
    lines = ["Phase 2 已生成的圖片檔名及其用途："]
    lines += [
        f"- {filename}: {description or '產品圖片'}"
        for filename, description in image_descriptions.items()
    ]
    lines.append("請在生成提示詞時，根據內容主題智能選擇合適的圖片，並在提示詞中明確指定圖片檔名。")
    return "\n".join(lines)


def content_strategy_prompt(
    product_name: str,
    route: MarketingRoute,
    analysis: MarketAnalysis,
    image_descriptions: Mapping[str, str] | None = None,
) -> str:
    analysis_json = json.dumps(
        analysis.model_dump(by_alias=True), ensure_ascii=False, indent=2
    )
    lines = [
        f"產品名稱: {product_name}",
        "",
        *_route_lines(route),
        "",
        "市場分析結果:",
        analysis_json,
    ]
    mapping = image_mapping_text(image_descriptions)
    if mapping:
        lines += ["", mapping]
    lines += ["", "請根據以上市場分析結果生成專業的內容策略與 SEO 優化方案 (JSON)。"]
    return "\n".join(lines)


def enhance_image_prompt(
    prompt: str,
    *,
    has_reference: bool,
    language: LanguageMode,
    color_hint: str = "",
) -> str:
    """Wrap an image prompt with reference-image and text-language rules.

    ``color_hint`` (the reference palette) is placed between the reference
    rules and the prompt; it is ignored without a reference image.
    """
    enhanced = prompt
    if has_reference:
        sections = [REFERENCE_IMAGE_RULES, color_hint, prompt]
        enhanced = "\n\n".join(s for s in sections if s)
    if LanguageMode(language) is LanguageMode.ZH_TW:
        enhanced = f"{enhanced}\n\n{TRADITIONAL_CHINESE_TEXT_RULE}"
    return enhanced
