from typing import Iterator, Optional

import anthropic

from ..data_classes import (
    BaseRequest, BaseResponse,
    ProviderConfig, StreamChunk, build_usage,
)
from ..decorators import log_request, with_retry
from ._base_provider import BaseProvider

DEFAULT_MODEL = "claude-sonnet-4-5"


class ClaudeModel(BaseProvider):
    """Anthropic Claude API implementation using data classes"""

    def __init__(self, api_key: Optional[str] = None, model_name: str = DEFAULT_MODEL):
        super().__init__(api_key=api_key, model_name=model_name)

    def _get_provider_config(self) -> ProviderConfig:
        """Get Claude provider configuration"""
        return ProviderConfig(
            provider_name="Claude",
            model_name=self.model_name or DEFAULT_MODEL,
            supports_streaming=True,
            credential_env_var="ANTHROPIC_API_KEY",
            max_tokens_limit=64000,
        )

    def setup_client(self):
        """Setup Anthropic client"""
        api_key = self._get_api_key("ANTHROPIC_API_KEY")
        self.client = anthropic.Anthropic(api_key=api_key)

    def _request_params(self, request: BaseRequest):
        config = request.resolved_config()
        params = {
            "model": self.resolve_model_name(request),
            "max_tokens": config.max_output_tokens,
            "temperature": config.temperature,
            "messages": [{"role": "user", "content": request.prompt}],
        }
        if config.stop_sequences:
            params["stop_sequences"] = config.stop_sequences
        return params

    @log_request
    @with_retry(max_attempts=3)
    def generate_content(self, request: BaseRequest) -> BaseResponse:
        """Generate content using data classes"""
        self._validate_request(request)
        params = self._request_params(request)
        try:
            response = self.client.messages.create(**params)
        except Exception as e:
            raise self._wrap_error(e, "generate_content") from e

        text = "".join(
            getattr(block, "text", "")
            for block in response.content
            if getattr(block, "type", "") == "text"
        )
        usage = getattr(response, "usage", None)
        return BaseResponse(
            text=text,
            model_used=params["model"],
            finish_reason=getattr(response, "stop_reason", None),
            usage=build_usage(
                getattr(usage, "input_tokens", None),
                getattr(usage, "output_tokens", None),
            ),
            raw_response=response
        )

    def stream_content(self, request: BaseRequest) -> Iterator[StreamChunk]:
        """Stream text deltas from the Messages API"""
        self._validate_request(request)
        params = self._request_params(request)
        try:
            with self.client.messages.stream(**params) as stream:
                for text in stream.text_stream:
                    if text:
                        yield StreamChunk(text=text)
        except Exception as e:
            raise self._wrap_error(e, "stream_content") from e
