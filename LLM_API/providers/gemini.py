from typing import Iterator, Optional

from google import genai
from google.genai import types

from ..data_classes import (
    BaseRequest, BaseResponse, GenerationConfig,
    ProviderConfig, StreamChunk, build_usage,
)
from ..decorators import log_request, with_retry
from ._base_provider import BaseProvider

DEFAULT_MODEL = "gemini-2.5-pro"


class GeminiModel(BaseProvider):
    """Gemini API implementation of CallModel using data classes"""

    def __init__(self, api_key: Optional[str] = None, model_name: str = DEFAULT_MODEL):
        super().__init__(api_key=api_key, model_name=model_name)

    def _get_provider_config(self) -> ProviderConfig:
        """Get Gemini provider configuration"""
        return ProviderConfig(
            provider_name="Gemini",
            model_name=self.model_name or DEFAULT_MODEL,
            supports_streaming=True,
            credential_env_var="GEMINI_API_KEY",
            max_tokens_limit=65536,
        )

    def setup_client(self):
        """Setup Gemini client"""
        api_key = self._get_api_key("GEMINI_API_KEY")
        self.client = genai.Client(api_key=api_key)

    @log_request
    @with_retry(max_attempts=3)
    def generate_content(self, request: BaseRequest) -> BaseResponse:
        """Generate content using data classes"""
        self._validate_request(request)
        model = self.resolve_model_name(request)
        try:
            response = self.client.models.generate_content(
                model=model,
                contents=request.prompt,
                config=_to_gemini_config(request.resolved_config()),
            )
        except Exception as e:
            raise self._wrap_error(e, "generate_content") from e

        usage_metadata = getattr(response, "usage_metadata", None)
        candidates = getattr(response, "candidates", None) or []
        finish_reason = getattr(candidates[0], "finish_reason", None) if candidates else None
        return BaseResponse(
            text=getattr(response, 'text', '') or "",
            model_used=model,
            finish_reason=str(finish_reason) if finish_reason is not None else None,
            usage=build_usage(
                getattr(usage_metadata, "prompt_token_count", None),
                getattr(usage_metadata, "candidates_token_count", None),
            ),
            raw_response=response
        )

    def stream_content(self, request: BaseRequest) -> Iterator[StreamChunk]:
        """Stream content deltas from Gemini"""
        self._validate_request(request)
        model = self.resolve_model_name(request)
        try:
            stream = self.client.models.generate_content_stream(
                model=model,
                contents=request.prompt,
                config=_to_gemini_config(request.resolved_config()),
            )
            for chunk in stream:
                text = getattr(chunk, "text", None) or ""
                if text:
                    yield StreamChunk(text=text)
        except Exception as e:
            raise self._wrap_error(e, "stream_content") from e


def _to_gemini_config(config: GenerationConfig) -> types.GenerateContentConfig:
    return types.GenerateContentConfig(
        temperature=config.temperature,
        top_p=config.top_p,
        top_k=config.top_k,
        max_output_tokens=config.max_output_tokens,
        stop_sequences=config.stop_sequences or None,
    )
