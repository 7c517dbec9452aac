# src/validation/inputs.py - v1
"""User input checks run before any request is issued."""

from __future__ import annotations

from dataclasses import dataclass

from pmdesigner.core.language import LanguageMode

API_KEY_MIN_LENGTH = 20
API_KEY_PREFIX = "AIza"


@dataclass(frozen=True)
class InputCheck:
    """Outcome of a single input check."""

    valid: bool
    error: str | None = None


_OK = InputCheck(valid=True)

_MESSAGES: dict[LanguageMode, dict[str, str]] = {
    LanguageMode.ZH_TW: {
        "api_key_empty": "API Key 不能為空",
        "api_key_short": "API Key 長度不足，請確認是否正確",
        "api_key_prefix": "API Key 格式不正確，Gemini API Key 應以 AIza 開頭",
        "product_name_empty": "產品名稱不能為空",
        "product_name_long": "產品名稱不能超過 {limit} 個字元",
        "brand_context_long": "品牌資訊不能超過 {limit} 個字元",
        "reference_copy_long": "參考文案不能超過 {limit} 個字元",
    },
    LanguageMode.EN: {
        "api_key_empty": "The API key must not be empty",
        "api_key_short": "The API key is too short; please check it",
        "api_key_prefix": "Invalid API key format; Gemini API keys start with AIza",
        "product_name_empty": "The product name must not be empty",
        "product_name_long": "The product name must not exceed {limit} characters",
        "brand_context_long": "Brand information must not exceed {limit} characters",
        "reference_copy_long": "Reference copy must not exceed {limit} characters",
    },
}


def _fail(language: LanguageMode, key: str, **fmt: object) -> InputCheck:
    return InputCheck(valid=False, error=_MESSAGES[LanguageMode(language)][key].format(**fmt))


def validate_api_key(key: str, language: LanguageMode = LanguageMode.ZH_TW) -> InputCheck:
    """Check the shape of a Gemini API key (presence, length, prefix)."""
    if not key or not key.strip():
        return _fail(language, "api_key_empty")
    if len(key) < API_KEY_MIN_LENGTH:
        return _fail(language, "api_key_short")
    if not key.startswith(API_KEY_PREFIX):
        return _fail(language, "api_key_prefix")
    return _OK


def validate_product_name(
    name: str, limit: int = 100, language: LanguageMode = LanguageMode.ZH_TW
) -> InputCheck:
    if not name or not name.strip():
        return _fail(language, "product_name_empty")
    if len(name) > limit:
        return _fail(language, "product_name_long", limit=limit)
    return _OK


def validate_brand_context(
    context: str, limit: int = 5000, language: LanguageMode = LanguageMode.ZH_TW
) -> InputCheck:
    if len(context) > limit:
        return _fail(language, "brand_context_long", limit=limit)
    return _OK


def validate_reference_copy(
    copy_text: str, limit: int = 10000, language: LanguageMode = LanguageMode.ZH_TW
) -> InputCheck:
    if len(copy_text) > limit:
        return _fail(language, "reference_copy_long", limit=limit)
    return _OK
