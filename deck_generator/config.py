"""Runtime settings read from the environment (and ``.env``)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

from LLM_API.base import CallModel

from .streaming import DEFAULT_TIMEOUT_SECONDS

LOGGER = logging.getLogger(__name__)

PROVIDERS = ("gemini", "openai", "claude")
DEFAULT_PROVIDER = "gemini"


class ConfigurationError(ValueError):
    """An environment variable holds an unusable value."""


@dataclass(frozen=True, slots=True)
class Settings:
    provider: str = DEFAULT_PROVIDER
    model_name: Optional[str] = None
    stream_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    unsplash_access_key: Optional[str] = None
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Build :class:`Settings` from environment variables."""

    load_dotenv()
    provider = os.getenv("LLM_PROVIDER", DEFAULT_PROVIDER).strip().lower()
    if provider not in PROVIDERS:
        raise ConfigurationError(f"LLM_PROVIDER must be one of {', '.join(PROVIDERS)}, got {provider!r}")

    timeout_raw = os.getenv("STREAM_TIMEOUT_SECONDS")
    try:
        timeout = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT_SECONDS
    except ValueError as exc:
        raise ConfigurationError(f"STREAM_TIMEOUT_SECONDS must be a number, got {timeout_raw!r}") from exc

    return Settings(
        provider=provider,
        model_name=os.getenv("LLM_MODEL_NAME") or None,
        stream_timeout_seconds=timeout,
        unsplash_access_key=os.getenv("UNSPLASH_ACCESS_KEY") or None,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def create_llm_client(settings: Settings) -> CallModel:
    """Instantiate the configured provider.

    Raises :class:`LLM_API.exceptions.LLMAuthenticationError` when the
    provider's credential is missing.
    """

    kwargs = {"model_name": settings.model_name} if settings.model_name else {}
    if settings.provider == "openai":
        from LLM_API.providers.openai import OpenAIModel

        return OpenAIModel(**kwargs)
    if settings.provider == "claude":
        from LLM_API.providers.claude import ClaudeModel

        return ClaudeModel(**kwargs)

    from LLM_API.providers.gemini import GeminiModel

    return GeminiModel(**kwargs)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


@lru_cache(maxsize=1)
def get_llm_client() -> CallModel:
    """Process-wide model client, built on first use."""

    settings = get_settings()
    client = create_llm_client(settings)
    LOGGER.info("Using %s model %s", client.get_provider_name(), client.model_name)
    return client


def configure_logging(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
