"""Helper stubs for simulating streamed LLM responses in tests."""

from __future__ import annotations

import copy
import json
from typing import Any, Dict, Iterator, List, Optional

from LLM_API.data_classes import BaseRequest, BaseResponse, StreamChunk

SCRIPT = (
    "Good morning everyone. Today we will walk through the ideas on this slide, "
    "why they matter for our team, and what we expect to change over the next quarter."
)


def build_slide(number: int, total: int, **overrides: Any) -> Dict[str, Any]:
    """A slide that satisfies every field constraint."""

    if number == 1:
        slide_type = "title"
    elif number == total:
        slide_type = "conclusion"
    else:
        slide_type = "content"
    slide = {
        "id": f"slide-{number}",
        "type": slide_type,
        "title": f"Section {number} overview",
        "bullets": [
            f"First point for slide {number}",
            f"Second point for slide {number}",
            f"Third point for slide {number}",
        ],
        "speakerNotes": {
            "script": SCRIPT,
            "duration": "1min 30s",
            "tips": ["Pause after the first bullet"],
            "keyPoints": ["Frame the problem clearly", "Connect to business value"],
        },
        "imagePrompt": "Clean minimalist illustration of a growing bar chart in blue tones",
    }
    slide.update(overrides)
    return slide


def build_presentation(num_slides: int = 3, **overrides: Any) -> Dict[str, Any]:
    document = {
        "title": "Renewable Energy Outlook",
        "subtitle": "Where the market is heading next year",
        "slides": [build_slide(index, num_slides) for index in range(1, num_slides + 1)],
    }
    document.update(overrides)
    return copy.deepcopy(document)


def presentation_text(document: Dict[str, Any], *, fenced: bool = False) -> str:
    text = json.dumps(document, indent=2)
    return f"```json\n{text}\n```" if fenced else text


class ScriptedStreamLLM:
    """LLM stub that streams a fixed text in fixed-size chunks.

    ``fail_after`` raises ``error`` once that many chunks were yielded.
    """

    model_name = "stub-stream"

    def __init__(
        self,
        text: str,
        *,
        chunk_size: int = 1,
        fail_after: Optional[int] = None,
        error: Optional[Exception] = None,
        response_text: str = "",
    ) -> None:
        self.text = text
        self.chunk_size = chunk_size
        self.fail_after = fail_after
        self.error = error
        self.response_text = response_text
        self.stream_requests: List[BaseRequest] = []
        self.generate_requests: List[BaseRequest] = []
        self.chunks_sent = 0
        self.closed = False

    def get_provider_name(self) -> str:
        return "Stub"

    def stream_content(self, request: BaseRequest) -> Iterator[StreamChunk]:
        self.stream_requests.append(request)
        return self._chunks()

    def generate_content(self, request: BaseRequest) -> BaseResponse:
        self.generate_requests.append(request)
        return BaseResponse(text=self.response_text, model_used=self.model_name)

    def _chunks(self) -> Iterator[StreamChunk]:
        try:
            for start in range(0, len(self.text), self.chunk_size):
                if self.fail_after is not None and self.chunks_sent >= self.fail_after:
                    raise self.error or RuntimeError("stream failed")
                self.chunks_sent += 1
                yield StreamChunk(text=self.text[start:start + self.chunk_size])
            if self.fail_after is not None and self.chunks_sent >= self.fail_after:
                raise self.error or RuntimeError("stream failed")
        finally:
            self.closed = True


class FailingLLM:
    """Raises ``error`` as soon as a stream or completion is requested."""

    model_name = "stub-failing"

    def __init__(self, error: Exception) -> None:
        self.error = error

    def stream_content(self, request: BaseRequest) -> Iterator[StreamChunk]:
        raise self.error

    def generate_content(self, request: BaseRequest) -> BaseResponse:
        raise self.error


class FakeClock:
    """Monotonic clock advanced by hand, or by ``step`` on every read."""

    def __init__(self, start: float = 0.0, step: float = 0.0) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value

    def advance(self, seconds: float) -> None:
        self.now += seconds
