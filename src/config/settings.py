# src/config/settings.py - v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings. The settings object
is passed explicitly to pipeline entry points; nothing reads configuration
from ambient state deeper in the call stack.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pmdesigner.core.language import LanguageMode

if TYPE_CHECKING:
    from pmdesigner.llm.retry import RetryPolicy


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Generative service ===
    google_api_key: str = ""
    language_mode: LanguageMode = LanguageMode.ZH_TW

    director_model: str = "gemini-2.5-flash"
    text_model: str = "gemini-2.5-flash"
    image_model: str = "gemini-3-pro-image-preview"
    image_size: str = "1K"
    default_aspect_ratio: str = "3:4"
    thinking_budget: int = 1024

    # === Retry ===
    text_max_retries: int = 3
    text_initial_delay_s: float = 2.0
    image_max_retries: int = 5
    image_initial_delay_s: float = 5.0
    retry_backoff_factor: float = 2.0

    # === Cache ===
    cache_enabled: bool = True
    cache_backend: Literal["memory", "json", "sqlite"] = "json"
    cache_root: Path = Path("~/.pmdesigner/cache")
    cache_key_prefix: str = "pm_designer_image_"
    cache_expiry_days: int = 7
    cache_max_bytes: int = 50 * 1024 * 1024

    # === Input limits ===
    max_image_size_mb: int = 10
    product_name_max: int = 100
    brand_context_max: int = 5000
    reference_copy_max: int = 10000

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("text_max_retries", "image_max_retries")
    @classmethod
    def validate_retries(cls, v: int) -> int:  # noqa: N805
        if v < 0:
            raise ValueError("retry counts must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.text_initial_delay_s < 0 or self.image_initial_delay_s < 0:
            errors.append("Retry initial delays must be >= 0")

        if self.retry_backoff_factor < 1.0:
            errors.append("RETRY_BACKOFF_FACTOR must be >= 1.0")

        if self.cache_enabled and self.cache_expiry_days <= 0:
            errors.append("CACHE_EXPIRY_DAYS must be > 0 when the cache is enabled")

        if self.cache_max_bytes <= 0:
            errors.append("CACHE_MAX_BYTES must be > 0")

        if self.max_image_size_mb <= 0:
            errors.append("MAX_IMAGE_SIZE_MB must be > 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def text_retry_policy(self) -> RetryPolicy:
        """Retry policy for text (JSON) generation calls."""
        from pmdesigner.llm.retry import RetryPolicy

        return RetryPolicy(
            max_retries=self.text_max_retries,
            initial_delay_s=self.text_initial_delay_s,
            backoff_factor=self.retry_backoff_factor,
        )

    @property
    def image_retry_policy(self) -> RetryPolicy:
        """Retry policy for image generation calls (longer budget)."""
        from pmdesigner.llm.retry import RetryPolicy

        return RetryPolicy(
            max_retries=self.image_max_retries,
            initial_delay_s=self.image_initial_delay_s,
            backoff_factor=self.retry_backoff_factor,
        )

    @property
    def max_image_size_bytes(self) -> int:
        return self.max_image_size_mb * 1024 * 1024


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-run config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
