# src/llm/errors.py - v1
"""Error taxonomy for generative service failures.

Raw failures from the remote service arrive in arbitrary shapes (SDK
exceptions, dicts decoded from JSON error bodies, plain strings). This
module probes their structure, maps them to a closed set of kinds and
raises a ClassifiedError carrying a short localized user message next to
the full technical detail.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, NamedTuple, NoReturn

from pmdesigner.core.language import LanguageMode

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    NETWORK = "NETWORK"
    RATE_LIMIT = "RATE_LIMIT"
    AUTH = "AUTH"
    VALIDATION = "VALIDATION"
    REMOTE_API = "REMOTE_API"
    UNKNOWN = "UNKNOWN"


class FieldViolation(NamedTuple):
    """One unmet structural constraint, addressed by dotted path."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}" if self.path else self.message


class ClassifiedError(Exception):
    """A failure mapped onto the error taxonomy.

    Attributes are read-only; str() yields the user-facing message while the
    technical message, status and original error stay available for logs.
    """

    def __init__(
        self,
        kind: ErrorKind,
        technical_message: str,
        user_message: str,
        *,
        status_code: int | None = None,
        retryable: bool = False,
        original_error: object = None,
        violations: tuple[FieldViolation, ...] | list[FieldViolation] = (),
    ) -> None:
        super().__init__(user_message)
        self._kind = kind
        self._technical_message = technical_message
        self._user_message = user_message
        self._status_code = status_code
        self._retryable = retryable
        self._original_error = original_error
        self._violations = tuple(violations)

    @property
    def kind(self) -> ErrorKind:
        return self._kind

    @property
    def technical_message(self) -> str:
        return self._technical_message

    @property
    def user_message(self) -> str:
        return self._user_message

    @property
    def status_code(self) -> int | None:
        return self._status_code

    @property
    def retryable(self) -> bool:
        return self._retryable

    @property
    def original_error(self) -> object:
        return self._original_error

    @property
    def violations(self) -> tuple[FieldViolation, ...]:
        return self._violations

    def __repr__(self) -> str:
        return (
            f"ClassifiedError(kind={self._kind.value}, status_code={self._status_code}, "
            f"retryable={self._retryable}, technical_message={self._technical_message!r})"
        )


# Marker phrases, matched case-insensitively against the serialized error.
NETWORK_MARKERS: tuple[str, ...] = ("failed to fetch", "fetch", "network", "connection")
RATE_LIMIT_MARKERS: tuple[str, ...] = (
    "429",
    "resource_exhausted",
    "quota",
    "too many requests",
    "rate limit",
)
OVERLOAD_MARKERS: tuple[str, ...] = ("503", "overloaded", "unavailable")
AUTH_MARKERS: tuple[str, ...] = (
    "api key",
    "api_key",
    "permission",
    "authentication",
    "unauthorized",
    "unauthenticated",
)
VALIDATION_MARKERS: tuple[str, ...] = ("validation", "invalid")

RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({429, 503})

_USER_MESSAGES: dict[LanguageMode, dict[str, str]] = {
    LanguageMode.ZH_TW: {
        ErrorKind.NETWORK: "網路連線發生問題，請檢查您的網路連線後再試一次。",
        ErrorKind.RATE_LIMIT: "API 請求次數已達上限，請稍候片刻後再試，或檢查您的 API 配額設定。",
        ErrorKind.AUTH: "API 金鑰驗證失敗，請檢查您的 Gemini API Key 是否正確，或前往設定頁面重新輸入。",
        ErrorKind.VALIDATION: "輸入資料格式不正確，請檢查您輸入的內容後再試一次。",
        ErrorKind.UNKNOWN: "發生未知錯誤，請稍候再試。如問題持續發生，請聯繫技術支援。",
        "api_400": "請求格式錯誤，請確認輸入的資料是否正確。",
        "api_403": "沒有權限執行此操作，請檢查您的 API Key 權限設定。",
        "api_404": "請求的資源不存在，請確認 API 端點是否正確。",
        "api_500": "伺服器發生錯誤，請稍候片刻後再試。",
        "api_other": "API 發生錯誤 (狀態碼: {status})，請稍候再試或聯繫技術支援。",
        "status_unknown": "未知",
    },
    LanguageMode.EN: {
        ErrorKind.NETWORK: "A network problem occurred. Check your connection and try again.",
        ErrorKind.RATE_LIMIT: "The API request limit was reached. Wait a moment and retry, or check your API quota.",
        ErrorKind.AUTH: "API key verification failed. Check that your Gemini API key is correct or enter it again in settings.",
        ErrorKind.VALIDATION: "The data format is invalid. Check your input and try again.",
        ErrorKind.UNKNOWN: "An unknown error occurred. Please retry; contact support if it persists.",
        "api_400": "The request was malformed. Check that the input data is correct.",
        "api_403": "You do not have permission for this operation. Check your API key permissions.",
        "api_404": "The requested resource does not exist. Check the API endpoint.",
        "api_500": "The server encountered an error. Please retry shortly.",
        "api_other": "The API returned an error (status: {status}). Retry later or contact support.",
        "status_unknown": "unknown",
    },
}


def serialize_error(error: object) -> str:
    """Render an arbitrary error value as text for marker matching and logs."""
    if isinstance(error, str):
        return error
    try:
        if isinstance(error, BaseException):
            payload: dict[str, Any] = {
                "name": type(error).__name__,
                "message": str(error),
            }
            for key, value in vars(error).items():
                if not key.startswith("_"):
                    payload[key] = value
            return json.dumps(payload, default=str, ensure_ascii=False)
        return json.dumps(error, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(error)


def _probe(value: object, name: str) -> object:
    """Read a field by mapping key or attribute, None when absent."""
    if isinstance(value, Mapping):
        return value.get(name)
    return getattr(value, name, None)


def _as_status(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def extract_status_code(error: object) -> int | None:
    """Find an HTTP-like status code on an error of unknown shape.

    Probes, first match wins: top-level ``status``, top-level ``code``,
    nested ``error.code``, nested ``response.status``.
    """
    if error is None or isinstance(error, (str, bytes, int, float)):
        return None

    for name in ("status", "code"):
        status = _as_status(_probe(error, name))
        if status is not None:
            return status

    inner = _probe(error, "error")
    if inner is not None and not isinstance(inner, str):
        status = _as_status(_probe(inner, "code"))
        if status is not None:
            return status

    response = _probe(error, "response")
    if response is not None and not isinstance(response, str):
        status = _as_status(_probe(response, "status"))
        if status is not None:
            return status
        status = _as_status(_probe(response, "status_code"))
        if status is not None:
            return status

    return None


def _contains_any(text: str, markers: tuple[str, ...]) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in markers)


def is_retryable(error: object, status_code: int | None = None) -> bool:
    """Transient-failure predicate shared by the retry loop and the classifier.

    Args:
        error: Raw error value of any shape.
        status_code: Pre-extracted status; probed from ``error`` when None.

    Returns:
        True for rate limiting, overload and network failures.
    """
    if isinstance(error, ClassifiedError):
        return error.retryable
    if status_code is None:
        status_code = extract_status_code(error)
    if status_code in RETRYABLE_STATUS_CODES:
        return True
    text = serialize_error(error)
    return (
        _contains_any(text, NETWORK_MARKERS)
        or _contains_any(text, RATE_LIMIT_MARKERS)
        or _contains_any(text, OVERLOAD_MARKERS)
    )


def _infer_kind(text: str, status_code: int | None) -> ErrorKind:
    if _contains_any(text, NETWORK_MARKERS):
        return ErrorKind.NETWORK
    if status_code == 429 or _contains_any(text, RATE_LIMIT_MARKERS):
        return ErrorKind.RATE_LIMIT
    if status_code in (401, 403) or _contains_any(text, AUTH_MARKERS):
        return ErrorKind.AUTH
    if status_code == 400 or _contains_any(text, VALIDATION_MARKERS):
        return ErrorKind.VALIDATION
    if status_code is not None:
        return ErrorKind.REMOTE_API
    return ErrorKind.UNKNOWN


def user_message_for(
    kind: ErrorKind,
    status_code: int | None = None,
    language: LanguageMode = LanguageMode.ZH_TW,
) -> str:
    """Fixed localized message for an error kind (and status, for REMOTE_API)."""
    messages = _USER_MESSAGES[LanguageMode(language)]
    if kind is ErrorKind.REMOTE_API:
        if status_code in (400, 403, 404, 500):
            return messages[f"api_{status_code}"]
        status = str(status_code) if status_code is not None else messages["status_unknown"]
        return messages["api_other"].format(status=status)
    return messages[kind]


def build_classified_error(
    error: object, language: LanguageMode = LanguageMode.ZH_TW
) -> ClassifiedError:
    """Map a raw error onto the taxonomy without raising it."""
    if isinstance(error, ClassifiedError):
        return error

    status_code = extract_status_code(error)
    text = serialize_error(error)
    kind = _infer_kind(text, status_code)

    return ClassifiedError(
        kind,
        f"[{kind.value}] {text}",
        user_message_for(kind, status_code, language),
        status_code=status_code,
        retryable=is_retryable(error, status_code),
        original_error=error,
    )


def classify_error(
    error: object, language: LanguageMode = LanguageMode.ZH_TW
) -> NoReturn:
    """Convert a raw failure into a ClassifiedError and raise it.

    Already-classified errors are re-raised unchanged.

    Raises:
        ClassifiedError: Always.
    """
    if isinstance(error, ClassifiedError):
        raise error

    classified = build_classified_error(error, language)
    logger.error(
        "Generative service error (%s, status=%s, retryable=%s): %s",
        classified.kind.value,
        classified.status_code,
        classified.retryable,
        classified.technical_message,
    )
    if isinstance(error, BaseException):
        raise classified from error
    raise classified


def validation_error(
    technical_message: str,
    violations: list[FieldViolation] | tuple[FieldViolation, ...] = (),
    *,
    language: LanguageMode = LanguageMode.ZH_TW,
    user_message: str | None = None,
    original_error: object = None,
) -> ClassifiedError:
    """Build a VALIDATION error for locally detected structural problems."""
    return ClassifiedError(
        ErrorKind.VALIDATION,
        technical_message,
        user_message or user_message_for(ErrorKind.VALIDATION, language=language),
        violations=violations,
        original_error=original_error,
    )
