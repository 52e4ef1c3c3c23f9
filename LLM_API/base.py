"""Abstract base class that normalises the provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator, Optional

from .data_classes import (
    BaseRequest,
    BaseResponse,
    ProviderConfig,
    StreamChunk,
)


class CallModel(ABC):
    """Abstract base class for all LLM providers.

    An instance is a configured, read-only capability: it holds the SDK client
    and model name but no per-request state, so one instance can serve many
    concurrent generations.
    """

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None):
        self.api_key = api_key
        self.model_name = model_name
        self.client = None
        self.provider_config = self._get_provider_config()
        self.setup_client()

    @abstractmethod
    def setup_client(self) -> None:
        """Initialise the provider client."""

    @abstractmethod
    def _get_provider_config(self) -> ProviderConfig:
        """Return provider specific configuration metadata."""

    # ------------------------------------------------------------------
    # Core API methods that providers must implement
    # ------------------------------------------------------------------
    @abstractmethod
    def generate_content(self, request: BaseRequest) -> BaseResponse:
        """Generate basic text content in a single call."""

    @abstractmethod
    def stream_content(self, request: BaseRequest) -> Iterator[StreamChunk]:
        """Yield text deltas as the provider produces them.

        Closing the returned iterator must release the upstream stream.
        Provider failures are raised as :class:`~LLM_API.exceptions.LLMError`
        subclasses carrying the provider's original message text.
        """

    # ------------------------------------------------------------------
    # Utility helpers
    # ------------------------------------------------------------------
    def get_provider_name(self) -> str:
        """Return the provider name."""

        return self.provider_config.provider_name

    def resolve_model_name(self, request: BaseRequest) -> str:
        return request.model_name or self.model_name or self.provider_config.model_name
