# src/pipeline/base_stage.py - v1
"""Shared flow for stages that return a validated JSON document.

request -> retry(executor) -> normalize -> parse -> validate/repair.
Any failure leaves the stage as a ClassifiedError.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Generic, Sequence, TypeVar

from pydantic import BaseModel

from pmdesigner.core.language import LanguageMode
from pmdesigner.llm.errors import (
    ClassifiedError,
    ErrorKind,
    classify_error,
    validation_error,
)
from pmdesigner.llm.executor import EmptyResponseError, RequestExecutor
from pmdesigner.llm.models import GenerationRequest, InlinePart
from pmdesigner.llm.retry import with_retry
from pmdesigner.logging.context import stage_context
from pmdesigner.parsing.normalizer import ResponseParseError, clean, parse_json
from pmdesigner.validation.inputs import InputCheck

if TYPE_CHECKING:
    from pmdesigner.config.settings import Settings

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)

JSON_MIME_TYPE = "application/json"

_EMPTY_RESPONSE_MESSAGES: dict[LanguageMode, dict[str, str]] = {
    LanguageMode.ZH_TW: {
        "text": "AI 服務沒有回應，請稍候再試。",
        "image": "無法生成圖片資料，請稍後再試。",
        "parse": "AI 回應格式無法解析，請再試一次。",
    },
    LanguageMode.EN: {
        "text": "The AI service did not respond. Please try again shortly.",
        "image": "No image data was generated. Please try again shortly.",
        "parse": "The AI response could not be parsed. Please try again.",
    },
}


def empty_response_error(
    error: EmptyResponseError, language: LanguageMode
) -> ClassifiedError:
    """REMOTE_API error for a response that carried no payload."""
    messages = _EMPTY_RESPONSE_MESSAGES[LanguageMode(language)]
    return ClassifiedError(
        ErrorKind.REMOTE_API,
        str(error),
        messages.get(error.expected, messages["text"]),
        original_error=error,
    )


def reject_invalid_input(checks: Sequence[InputCheck], language: LanguageMode) -> None:
    """Raise a VALIDATION error for the first failed input check."""
    for check in checks:
        if not check.valid:
            raise validation_error(
                f"Input rejected: {check.error}",
                language=language,
                user_message=check.error,
            )


class StructuredStage(ABC, Generic[R]):
    """Base class for the JSON-producing stages."""

    #: Keys whose free-form string arrays are rebuilt before parsing.
    string_array_keys: tuple[str, ...] = ()

    def __init__(self, executor: RequestExecutor, settings: Settings) -> None:
        self._executor = executor
        self._settings = settings

    @property
    @abstractmethod
    def name(self) -> str:
        """Stage identifier used in logs and error messages."""

    @property
    @abstractmethod
    def system_prompt(self) -> str:
        """System instruction describing the expected JSON shape."""

    @abstractmethod
    def validate(self, data: object, language: LanguageMode) -> R:
        """Validate (and repair) the parsed document."""

    @property
    def model(self) -> str:
        return self._settings.text_model

    @property
    def language(self) -> LanguageMode:
        return LanguageMode(self._settings.language_mode)

    def build_request(
        self, prompt: str, parts: Sequence[InlinePart] = ()
    ) -> GenerationRequest:
        return GenerationRequest(
            model=self.model,
            prompt=prompt,
            system_instruction=self.system_prompt,
            parts=list(parts),
            response_mime_type=JSON_MIME_TYPE,
            thinking_budget=self._settings.thinking_budget,
        )

    async def run(self, prompt: str, parts: Sequence[InlinePart] = ()) -> R:
        """Generate, normalize, parse and validate one document.

        Raises:
            ClassifiedError: On any failure, already classified.
        """
        language = self.language
        request = self.build_request(prompt, parts)

        with stage_context(self.name, request.model):
            try:
                text = await with_retry(
                    lambda: self._executor.execute_text(request),
                    self._settings.text_retry_policy,
                    label=self.name,
                )
                data = parse_json(clean(text, self.string_array_keys))
                result = self.validate(data, language)
            except ClassifiedError:
                raise
            except EmptyResponseError as e:
                logger.error("%s: %s", self.name, e)
                raise empty_response_error(e, language) from e
            except ResponseParseError as e:
                logger.error("%s: %s near %r", self.name, e, e.snippet)
                raise validation_error(
                    f"{self.name}: {e}",
                    language=language,
                    user_message=_EMPTY_RESPONSE_MESSAGES[language]["parse"],
                    original_error=e,
                ) from e
            except Exception as e:
                classify_error(e, language)

        logger.info("Stage %s completed", self.name)
        return result
