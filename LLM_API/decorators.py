import time
import functools
import logging
from typing import Callable, TypeVar

from .exceptions import (
    LLMAPIError,
    LLMAuthenticationError,
    LLMInsufficientQuotaError,
    LLMRateLimitError,
)

T = TypeVar('T')

LOGGER = logging.getLogger(__name__)

RETRYABLE_ERRORS = (LLMRateLimitError, LLMInsufficientQuotaError, LLMAPIError)


def with_retry(
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    exceptions: tuple = RETRYABLE_ERRORS,
    sleep: Callable[[float], None] = time.sleep,
):
    """
    Retry decorator with exponential backoff

    Args:
        max_attempts: Maximum number of retry attempts
        delay: Initial delay between retries (seconds)
        backoff: Multiplier for delay after each retry
        exceptions: Tuple of exceptions to catch
        sleep: Function used to wait between attempts
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        # Callable objects have no __name__
        name = getattr(func, "__qualname__", repr(func))

        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> T:
            current_delay = delay
            last_exception = None

            for attempt in range(max_attempts):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    last_exception = e

                    # Don't retry on authentication errors
                    if isinstance(e, LLMAuthenticationError):
                        raise
                    if "authentication" in str(e).lower() or "api key" in str(e).lower():
                        raise

                    if attempt < max_attempts - 1:
                        wait = current_delay
                        retry_after = getattr(e, "retry_after", None)
                        if retry_after:
                            wait = max(wait, float(retry_after))
                        LOGGER.info(
                            "%s failed (attempt %d/%d), retrying in %.1fs: %s",
                            name, attempt + 1, max_attempts, wait, e,
                        )
                        sleep(wait)
                        current_delay *= backoff
                    else:
                        # Last attempt failed
                        raise LLMAPIError(
                            message=f"Failed after {max_attempts} attempts: {getattr(e, 'message', e)}",
                            provider=getattr(e, "provider", ""),
                            error_type="retry_exhausted",
                            original_error=e
                        ) from e

            raise last_exception

        return wrapper
    return decorator


def log_request(func: Callable[..., T]) -> Callable[..., T]:
    """Log API requests for debugging"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> T:
        provider = args[0].__class__.__name__ if args else "Unknown"
        LOGGER.debug("[%s] Calling %s", provider, func.__name__)

        try:
            result = func(*args, **kwargs)
            LOGGER.debug("[%s] %s succeeded", provider, func.__name__)
            return result
        except Exception as e:
            LOGGER.warning("[%s] %s failed: %s", provider, func.__name__, e)
            raise

    return wrapper
