from types import SimpleNamespace

import pytest

pytest.importorskip("openai")

from LLM_API.data_classes import BaseRequest, GenerationConfig
from LLM_API.exceptions import (
    LLMAPIError,
    LLMAuthenticationError,
    LLMInsufficientQuotaError,
    LLMRateLimitError,
)
from LLM_API.providers.openai import OpenAIModel


class FakeStream:
    def __init__(self, events):
        self.events = events
        self.closed = False

    def __iter__(self):
        return iter(self.events)

    def close(self):
        self.closed = True


class FakeResponses:
    def __init__(self, stream=None, response=None):
        self.stream = stream
        self.response = response
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        return self.stream if kwargs.get("stream") else self.response


class StatusError(Exception):
    def __init__(self, message, status_code, headers=None):
        super().__init__(message)
        self.status_code = status_code
        self.response = SimpleNamespace(status_code=status_code, headers=headers or {})


@pytest.fixture
def model():
    return OpenAIModel(api_key="test-key", model_name="gpt-test")


def _delta(text):
    return SimpleNamespace(type="response.output_text.delta", delta=text)


def test_missing_api_key_raises_authentication_error(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setattr("LLM_API.providers._base_provider.load_dotenv", lambda: False)

    with pytest.raises(LLMAuthenticationError) as excinfo:
        OpenAIModel()

    assert "OPENAI_API_KEY" in excinfo.value.message


def test_stream_yields_text_deltas_and_closes_upstream(model):
    stream = FakeStream([_delta("{\"ti"), SimpleNamespace(type="response.created"), _delta(""), _delta("tle\"")])
    model.client = SimpleNamespace(responses=FakeResponses(stream=stream))

    request = BaseRequest(prompt="Make slides", config=GenerationConfig(max_output_tokens=2048))
    texts = [chunk.text for chunk in model.stream_content(request)]

    assert texts == ["{\"ti", "tle\""]
    assert stream.closed
    call = model.client.responses.calls[0]
    assert call["stream"] is True
    assert call["model"] == "gpt-test"
    assert call["max_output_tokens"] == 2048


def test_stream_failure_event_keeps_message_text(model):
    failed = SimpleNamespace(type="response.failed", error="Resource has been exhausted (quota)")
    model.client = SimpleNamespace(responses=FakeResponses(stream=FakeStream([_delta("{"), failed])))

    chunks = model.stream_content(BaseRequest(prompt="Make slides"))

    assert next(chunks).text == "{"
    with pytest.raises(LLMInsufficientQuotaError) as excinfo:
        next(chunks)
    assert "quota" in excinfo.value.message


def test_generate_content_returns_text_and_usage(model):
    response = SimpleNamespace(
        output_text="hello",
        status="completed",
        usage=SimpleNamespace(input_tokens=3, output_tokens=2),
    )
    model.client = SimpleNamespace(responses=FakeResponses(response=response))

    result = model.generate_content(BaseRequest(prompt="Say hello"))

    assert result.text == "hello"
    assert result.usage == {"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5}


def test_empty_prompt_is_rejected(model):
    with pytest.raises(ValueError):
        list(model.stream_content(BaseRequest(prompt="")))


@pytest.mark.parametrize(
    "error, expected",
    [
        (StatusError("Incorrect API key provided", 401), LLMAuthenticationError),
        (StatusError("Too many requests", 429, {"retry-after": "3"}), LLMRateLimitError),
        (StatusError("You exceeded your current quota", 429), LLMInsufficientQuotaError),
        (RuntimeError("connection reset"), LLMAPIError),
    ],
)
def test_wrap_error_maps_sdk_failures(model, error, expected):
    wrapped = model._wrap_error(error, "stream_content")

    assert type(wrapped) is expected
    assert wrapped.message == str(error)
    assert wrapped.provider == "OpenAI"
    assert wrapped.original_error is error


def test_wrap_error_reads_retry_after(model):
    wrapped = model._wrap_error(StatusError("slow down", 429, {"retry-after": "3"}), "generate_content")

    assert wrapped.retry_after == 3
