"""Closed taxonomy of generation failures.

Failures are represented as a tagged value (:class:`GenerationFailure`) with
an explicit :class:`ErrorKind`, rather than as an exception subtype to match
on. :func:`classify_error` maps a raw provider failure to that value.

Provider errors the provider layer already typed from an HTTP status
(credential, quota, rate limit) keep that kind. Everything else is best
effort: the upstream provider only exposes free-form messages, so the kind is
inferred from keywords in the message text and will occasionally be wrong;
anything unrecognised becomes ``GENERATION_ERROR``. A bare ``429`` counts as
quota exhaustion.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple, Union

from LLM_API.exceptions import (
    LLMAuthenticationError,
    LLMError,
    LLMInsufficientQuotaError,
    LLMRateLimitError,
)


class ErrorKind(Enum):
    """Error kinds with their stable code, HTTP status and retry policy."""

    INVALID_API_KEY = ("INVALID_API_KEY", 401, False)
    QUOTA_EXCEEDED = ("QUOTA_EXCEEDED", 429, True)
    RATE_LIMIT_EXCEEDED = ("RATE_LIMIT_EXCEEDED", 429, True)
    CONTENT_FILTERED = ("CONTENT_FILTER", 400, False)
    GENERATION_ERROR = ("GENERATION_ERROR", 500, False)
    VALIDATION_ERROR = ("VALIDATION_ERROR", 400, False)
    SLIDE_COUNT_MISMATCH = ("SLIDE_COUNT_MISMATCH", 500, False)
    REQUEST_ERROR = ("REQUEST_ERROR", 400, False)

    def __init__(self, code: str, status_code: int, retryable: bool) -> None:
        self.code = code
        self.status_code = status_code
        self.retryable = retryable


DEFAULT_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.INVALID_API_KEY: "Invalid or missing API key",
    ErrorKind.QUOTA_EXCEEDED: "API quota exceeded",
    ErrorKind.RATE_LIMIT_EXCEEDED: "Rate limit exceeded",
    ErrorKind.CONTENT_FILTERED: "Content was filtered by safety filters",
    ErrorKind.GENERATION_ERROR: "Error generating content",
    ErrorKind.VALIDATION_ERROR: "Invalid presentation data",
    ErrorKind.SLIDE_COUNT_MISMATCH: "Unexpected number of slides",
    ErrorKind.REQUEST_ERROR: "Invalid request",
}

# Checked in order; the first matching group wins.
_KEYWORD_RULES: Tuple[Tuple[ErrorKind, Tuple[str, ...]], ...] = (
    (ErrorKind.INVALID_API_KEY, (
        "api key", "api_key", "unauthorized", "unauthenticated", "permission denied", "permission_denied",
    )),
    (ErrorKind.QUOTA_EXCEEDED, ("quota", "429")),
    (ErrorKind.RATE_LIMIT_EXCEEDED, ("rate limit", "rate-limit", "too many requests")),
    (ErrorKind.CONTENT_FILTERED, ("filter", "blocked", "safety")),
)

# Provider errors already typed from the HTTP status skip the keyword scan.
_TYPED_RULES: Tuple[Tuple[type, ErrorKind], ...] = (
    (LLMAuthenticationError, ErrorKind.INVALID_API_KEY),
    (LLMInsufficientQuotaError, ErrorKind.QUOTA_EXCEEDED),
    (LLMRateLimitError, ErrorKind.RATE_LIMIT_EXCEEDED),
)


@dataclass(frozen=True)
class GenerationFailure:
    """A classified failure: ``kind`` plus a human readable message."""

    kind: ErrorKind
    message: str

    @property
    def code(self) -> str:
        return self.kind.code

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    @property
    def retryable(self) -> bool:
        return self.kind.retryable

    @classmethod
    def of(cls, kind: ErrorKind, message: str = "") -> "GenerationFailure":
        return cls(kind=kind, message=message or DEFAULT_MESSAGES[kind])

    def to_dict(self) -> Dict[str, str]:
        return {"code": self.code, "message": self.message}


def classify_error(raw: Union[BaseException, str, None]) -> GenerationFailure:
    """Map a raw failure (exception or message) to a :class:`GenerationFailure`."""

    if raw is None:
        return GenerationFailure.of(ErrorKind.GENERATION_ERROR, "Unknown error occurred")

    if isinstance(raw, DeckGenerationError):
        return raw.failure

    for error_type, kind in _TYPED_RULES:
        if isinstance(raw, error_type):
            return GenerationFailure.of(kind, _message_of(raw))

    message = _message_of(raw)
    if not message:
        return GenerationFailure.of(ErrorKind.GENERATION_ERROR, "Unknown error occurred")

    lowered = message.lower()
    for kind, keywords in _KEYWORD_RULES:
        if any(keyword in lowered for keyword in keywords):
            return GenerationFailure(kind=kind, message=message)
    return GenerationFailure(kind=ErrorKind.GENERATION_ERROR, message=message)


def _message_of(raw: Union[BaseException, str]) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, LLMError):
        return raw.message
    return str(raw)


class DeckGenerationError(Exception):
    """Raised where a classified failure has to travel as an exception."""

    def __init__(self, failure: GenerationFailure) -> None:
        super().__init__(failure.message)
        self.failure = failure

    @property
    def kind(self) -> ErrorKind:
        return self.failure.kind

    @classmethod
    def of(cls, kind: ErrorKind, message: str = "") -> "DeckGenerationError":
        return cls(GenerationFailure.of(kind, message))
