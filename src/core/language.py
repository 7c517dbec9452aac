# src/core/language.py - v1
"""Output language mode and brand-context language helpers."""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, Field


class LanguageMode(str, Enum):
    """Language used for user-facing copy and messages."""

    ZH_TW = "zh-TW"
    EN = "en"


class EnglishElements(BaseModel):
    """English fragments found in a (mostly Chinese) brand context."""

    english_slogans: list[str] = Field(default_factory=list)
    english_brand_names: list[str] = Field(default_factory=list)

    @property
    def has_english_slogan(self) -> bool:
        return bool(self.english_slogans)

    @property
    def has_english_brand_name(self) -> bool:
        return bool(self.english_brand_names)


# Capitalized phrase of 2-6 words, e.g. "Just Do It".
_SLOGAN_PATTERN = re.compile(r"\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+){1,5})\b")
_BRAND_NAME_PATTERN = re.compile(
    r"(?:品牌名稱|品牌|Brand Name|Brand)[:：]\s*([A-Z][a-zA-Z ]+)",
    re.IGNORECASE,
)


def extract_english_elements(brand_context: str) -> EnglishElements:
    """Detect English slogans and an English brand name in brand context.

    Args:
        brand_context: Free-form brand information entered by the user.

    Returns:
        EnglishElements with detected slogans and brand names.
    """
    if not brand_context or not brand_context.strip():
        return EnglishElements()

    slogans = _SLOGAN_PATTERN.findall(brand_context)
    match = _BRAND_NAME_PATTERN.search(brand_context)
    brand_names = [match.group(1).strip()] if match else []

    return EnglishElements(english_slogans=slogans, english_brand_names=brand_names)
