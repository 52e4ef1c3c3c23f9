from typing import Any, Dict, Iterator, Optional

from openai import OpenAI

from ..data_classes import (
    BaseRequest, BaseResponse,
    ProviderConfig, StreamChunk, build_usage,
)
from ..decorators import log_request, with_retry
from ._base_provider import BaseProvider

DEFAULT_MODEL = "gpt-5"


class OpenAIModel(BaseProvider):
    """OpenAI API implementation of CallModel using data classes"""

    def __init__(self, api_key: Optional[str] = None, model_name: str = DEFAULT_MODEL):
        super().__init__(api_key=api_key, model_name=model_name)

    def _get_provider_config(self) -> ProviderConfig:
        return ProviderConfig(
            provider_name="OpenAI",
            model_name=self.model_name or DEFAULT_MODEL,
            supports_streaming=True,
            credential_env_var="OPENAI_API_KEY",
            max_tokens_limit=128000,
        )

    def setup_client(self):
        api_key = self._get_api_key("OPENAI_API_KEY")
        self.client = OpenAI(api_key=api_key)

    def _request_data(self, request: BaseRequest) -> Dict[str, Any]:
        config = request.resolved_config()
        return {
            "model": self.resolve_model_name(request),
            "input": request.prompt,
            "max_output_tokens": config.max_output_tokens,
        }

    @log_request
    @with_retry(max_attempts=3)
    def generate_content(self, request: BaseRequest) -> BaseResponse:
        self._validate_request(request)
        request_data = self._request_data(request)
        try:
            response = self.client.responses.create(**request_data)
        except Exception as e:
            raise self._wrap_error(e, "generate_content") from e

        usage = getattr(response, "usage", None)
        return BaseResponse(
            text=getattr(response, 'output_text', '') or "",
            model_used=request_data["model"],
            finish_reason=getattr(response, "status", None),
            usage=build_usage(
                getattr(usage, "input_tokens", None),
                getattr(usage, "output_tokens", None),
            ),
            raw_response=response
        )

    def stream_content(self, request: BaseRequest) -> Iterator[StreamChunk]:
        self._validate_request(request)
        request_data = self._request_data(request)
        stream = None
        try:
            stream = self.client.responses.create(stream=True, **request_data)
            for event in stream:
                event_type = getattr(event, "type", "")
                if event_type == "response.output_text.delta":
                    delta = getattr(event, "delta", "") or ""
                    if delta:
                        yield StreamChunk(text=delta)
                elif event_type in ("response.failed", "error"):
                    error = getattr(event, "error", None) or getattr(event, "message", None)
                    raise RuntimeError(str(error or "OpenAI stream failed"))
        except Exception as e:
            raise self._wrap_error(e, "stream_content") from e
        finally:
            if stream is not None and hasattr(stream, "close"):
                stream.close()
