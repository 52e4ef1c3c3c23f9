import os
from typing import Optional

from dotenv import load_dotenv

from ..base import CallModel
from ..exceptions import (
    LLMAPIError,
    LLMAuthenticationError,
    LLMError,
    LLMInsufficientQuotaError,
    LLMRateLimitError,
)


class BaseProvider(CallModel):
    """Base class with common provider functionality"""

    def _get_api_key(self, env_var_name: str) -> str:
        """Get API key from environment or instance variable"""
        load_dotenv()
        api_key = self.api_key or os.getenv(env_var_name)

        if not api_key:
            raise LLMAuthenticationError(
                message=f"API key required. Set {env_var_name} or pass api_key parameter",
                provider=self.__class__.__name__,
                error_type="missing_api_key"
            )

        return api_key

    def _validate_request(self, request):
        """Common request validation"""
        if not request.prompt:
            raise ValueError("Request must have a prompt")

        if request.max_tokens and self.provider_config.max_tokens_limit and \
                request.max_tokens > self.provider_config.max_tokens_limit:
            raise ValueError(
                f"max_tokens exceeds limit: {self.provider_config.max_tokens_limit}"
            )

    def _wrap_error(self, error: Exception, operation: str) -> LLMError:
        """Convert an SDK exception into the LLM exception hierarchy.

        The original message text is preserved so callers can classify it.
        """
        if isinstance(error, LLMError):
            return error

        message = str(error) or error.__class__.__name__
        status = _status_code(error)
        lowered = message.lower()
        provider = self.get_provider_name()

        if status in (401, 403):
            cls = LLMAuthenticationError
        elif "quota" in lowered:
            cls = LLMInsufficientQuotaError
        elif status == 429:
            cls = LLMRateLimitError
        else:
            cls = LLMAPIError

        return cls(
            message=message,
            provider=provider,
            error_type=operation,
            retry_after=_retry_after(error),
            original_error=error,
        )


def _status_code(error: Exception) -> Optional[int]:
    for attr in ("status_code", "code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def _retry_after(error: Exception) -> Optional[int]:
    response = getattr(error, "response", None)
    headers = getattr(response, "headers", None) or {}
    try:
        value = headers.get("retry-after")
    except AttributeError:
        return None
    if value is None:
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None
