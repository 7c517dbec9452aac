# src/validation/validators.py - v1
"""Validate parsed model output against the stage result models.

Each validator tries strict validation first. On failure it applies one
repair pass to a deep copy of the input (conservative defaults for missing
values, never rewriting present values) and validates again. A second
failure raises a VALIDATION ClassifiedError listing every unmet constraint.
Inputs are never mutated.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, TypeVar

from pydantic import BaseModel, ValidationError

from pmdesigner.core.language import LanguageMode
from pmdesigner.core.models import (
    ContentPlan,
    ContentStrategy,
    DirectorOutput,
    MarketAnalysis,
)
from pmdesigner.llm.errors import FieldViolation, validation_error

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)
RepairFn = Callable[[dict[str, Any], LanguageMode], dict[str, Any]]

# === Positional conventions of the content plan prompt ===

# The planner prompt asks for two main images followed by story slides.
STORY_SLIDE_ROLES: tuple[str, ...] = ("hook", "problem", "solution", "features", "trust")
FINAL_STORY_ROLE = "cta"
MAIN_ITEM_CATEGORIES: dict[str, str] = {
    "main_white": "white",
    "main_lifestyle": "lifestyle",
}

_PLACEHOLDERS: dict[LanguageMode, dict[str, str]] = {
    LanguageMode.ZH_TW: {"item_title": "項目 {n}", "plan_name": "內容企劃"},
    LanguageMode.EN: {"item_title": "Item {n}", "plan_name": "Content Plan"},
}

_USER_MESSAGES: dict[LanguageMode, dict[str, str]] = {
    LanguageMode.ZH_TW: {
        "director output": "AI 回應的視覺策略格式不正確，請再試一次。",
        "content plan": "內容企劃格式不正確，請再試一次。",
        "market analysis": "市場分析格式不正確，請再試一次。如問題持續發生，請聯繫技術支援。",
        "content strategy": "內容策略格式不正確，請再試一次。如問題持續發生，請聯繫技術支援。",
    },
    LanguageMode.EN: {
        "director output": "The visual strategy returned by the AI was malformed. Please try again.",
        "content plan": "The content plan was malformed. Please try again.",
        "market analysis": "The market analysis was malformed. Please try again; contact support if it persists.",
        "content strategy": "The content strategy was malformed. Please try again; contact support if it persists.",
    },
}


def infer_item_type(index: int) -> str:
    """Item type implied by position: main white, main lifestyle, then slides."""
    if index == 0:
        return "main_white"
    if index == 1:
        return "main_lifestyle"
    return "story_slide"


def infer_ratio(item_type: str) -> str:
    """Story slides are vertical; main images are square."""
    return "9:16" if item_type == "story_slide" else "1:1"


def story_slide_role(index: int) -> str:
    if index < len(STORY_SLIDE_ROLES):
        return STORY_SLIDE_ROLES[index]
    return FINAL_STORY_ROLE


def item_category(item_type: object, index: int) -> str:
    if item_type == "story_slide":
        return story_slide_role(index)
    if isinstance(item_type, str) and item_type in MAIN_ITEM_CATEGORIES:
        return MAIN_ITEM_CATEGORIES[item_type]
    return "item"


def synthesize_item_id(index: int, item_type: object) -> str:
    """Stable id from position and category, e.g. ``img_3_solution``."""
    return f"img_{index + 1}_{item_category(item_type, index)}"


# === Repair primitives ===


def _is_missing(obj: dict[str, Any], key: str) -> bool:
    value = obj.get(key)
    return value is None or value == ""


def _ensure_list(obj: dict[str, Any], key: str) -> list[Any]:
    if not isinstance(obj.get(key), list):
        obj[key] = []
    return obj[key]


def _ensure_object(obj: dict[str, Any], key: str, default: dict[str, Any]) -> dict[str, Any]:
    if not isinstance(obj.get(key), dict):
        obj[key] = copy.deepcopy(default)
    return obj[key]


def _dicts(items: list[Any]) -> list[tuple[int, dict[str, Any]]]:
    return [(i, item) for i, item in enumerate(items) if isinstance(item, dict)]


# === Per-result repair passes ===


def repair_director_output(data: dict[str, Any], language: LanguageMode) -> dict[str, Any]:
    _ensure_object(
        data,
        "product_analysis",
        {"name": "", "visual_description": "", "key_features_zh": ""},
    )
    for _, route in _dicts(_ensure_list(data, "marketing_routes")):
        for _, prompt in _dicts(_ensure_list(route, "image_prompts")):
            if _is_missing(prompt, "summary_zh"):
                prompt["summary_zh"] = ""
    return data


def repair_content_plan(data: dict[str, Any], language: LanguageMode) -> dict[str, Any]:
    placeholders = _PLACEHOLDERS[language]

    for index, item in _dicts(_ensure_list(data, "items")):
        if _is_missing(item, "type"):
            item["type"] = infer_item_type(index)
        if _is_missing(item, "ratio"):
            item["ratio"] = infer_ratio(item["type"])
        if _is_missing(item, "id"):
            item["id"] = synthesize_item_id(index, item["type"])
        if _is_missing(item, "title_zh"):
            item["title_zh"] = placeholders["item_title"].format(n=index + 1)
        if _is_missing(item, "visual_summary_zh"):
            item["visual_summary_zh"] = ""

    if _is_missing(data, "plan_name"):
        data["plan_name"] = placeholders["plan_name"]
    return data


def repair_market_analysis(data: dict[str, Any], language: LanguageMode) -> dict[str, Any]:
    core_value = _ensure_object(
        data,
        "productCoreValue",
        {"mainFeatures": [], "coreAdvantages": [], "painPointsSolved": []},
    )
    for key in ("mainFeatures", "coreAdvantages", "painPointsSolved"):
        _ensure_list(core_value, key)

    positioning = _ensure_object(
        data,
        "marketPositioning",
        {
            "culturalInsights": "",
            "consumerHabits": "",
            "languageNuances": "",
            "searchTrends": [],
        },
    )
    _ensure_list(positioning, "searchTrends")

    _ensure_list(data, "competitors")
    _ensure_list(data, "buyerPersonas")
    return data


def repair_content_strategy(data: dict[str, Any], language: LanguageMode) -> dict[str, Any]:
    for key in (
        "contentTopics",
        "interactiveElements",
        "ctaSuggestions",
        "aiStudioPrompts",
        "gammaPrompts",
    ):
        _ensure_list(data, key)
    return data


# === Validation driver ===


def _format_path(loc: tuple[int | str, ...]) -> str:
    return ".".join(str(part) for part in loc)


def collect_violations(exc: ValidationError) -> list[FieldViolation]:
    """Flatten a pydantic error into path + message pairs."""
    return [FieldViolation(_format_path(err["loc"]), err["msg"]) for err in exc.errors()]


def validate_with_repair(
    model: type[M],
    data: object,
    repair: RepairFn,
    *,
    label: str,
    language: LanguageMode = LanguageMode.ZH_TW,
) -> M:
    """Validate, repair once on failure, validate again.

    Args:
        model: Result model to validate against.
        data: Parsed JSON value.
        repair: Repair pass applied to a deep copy of ``data``.
        label: Result name used in messages.
        language: Language for placeholders and the user message.

    Returns:
        Validated model instance.

    Raises:
        ClassifiedError: VALIDATION kind when repair did not converge.
    """
    language = LanguageMode(language)
    user_message = _USER_MESSAGES[language].get(label)

    try:
        return model.model_validate(data)
    except ValidationError as first:
        first_error = first

    if not isinstance(data, dict):
        violations = collect_violations(first_error)
        raise validation_error(
            f"{label} is not a JSON object: {type(data).__name__}",
            violations,
            language=language,
            user_message=user_message,
            original_error=first_error,
        ) from first_error

    logger.debug(
        "%s failed strict validation (%d errors), attempting repair",
        label, first_error.error_count(),
    )
    repaired = repair(copy.deepcopy(data), language)

    try:
        result = model.model_validate(repaired)
    except ValidationError as second:
        violations = collect_violations(second)
        details = "\n".join(str(v) for v in violations)
        logger.error("%s validation failed after repair:\n%s", label, details)
        raise validation_error(
            f"{label} validation failed:\n{details}",
            violations,
            language=language,
            user_message=user_message,
            original_error=second,
        ) from second

    logger.warning("%s repaired after failed validation", label)
    return result


def validate_director_output(
    data: object, language: LanguageMode = LanguageMode.ZH_TW
) -> DirectorOutput:
    return validate_with_repair(
        DirectorOutput, data, repair_director_output,
        label="director output", language=language,
    )


def validate_content_plan(
    data: object, language: LanguageMode = LanguageMode.ZH_TW
) -> ContentPlan:
    return validate_with_repair(
        ContentPlan, data, repair_content_plan,
        label="content plan", language=language,
    )


def validate_market_analysis(
    data: object, language: LanguageMode = LanguageMode.ZH_TW
) -> MarketAnalysis:
    return validate_with_repair(
        MarketAnalysis, data, repair_market_analysis,
        label="market analysis", language=language,
    )


def validate_content_strategy(
    data: object, language: LanguageMode = LanguageMode.ZH_TW
) -> ContentStrategy:
    return validate_with_repair(
        ContentStrategy, data, repair_content_strategy,
        label="content strategy", language=language,
    )
