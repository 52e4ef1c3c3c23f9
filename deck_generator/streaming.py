"""Streaming orchestration: model tokens in, protocol events out.

:class:`StreamOrchestrator` is the shared, stateless entry point. Each call
to :meth:`StreamOrchestrator.stream` creates a :class:`GenerationStream`
that owns one :class:`StreamState` and one extractor for the lifetime of a
single request.

A generation stream is a small state machine::

    IDLE -> STREAMING -> COMPLETING -> CLOSED
                      -> FAILING    -> CLOSED

Every upstream token is an input to :meth:`GenerationStream.on_token`, which
returns the events it causes. Iterating the stream pulls one upstream token
at a time, so a slow consumer stalls the model stream instead of queueing
events. Closing the stream (consumer disconnect) releases the upstream
iterator and suppresses every later event.
"""

from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Set

from LLM_API.data_classes import BaseRequest

from .errors import ErrorKind, GenerationFailure, classify_error
from .json_stream import IncrementalJsonExtractor
from .prompts import build_presentation_prompt
from .slide_models import GenerationRequest, PresentationResponse
from .validation import (
    ValidationError,
    is_slide_shaped,
    validate_presentation,
    validate_slide,
)

LOGGER = logging.getLogger(__name__)

# Edge runtimes cap a request at 60s; keep a margin for the final events.
DEFAULT_TIMEOUT_SECONDS = 55.0

_CODE_FENCE = re.compile(r"```[A-Za-z0-9_-]*[ \t]*\n?(.*?)\n?[ \t]*```", re.DOTALL)


class EventType(str, Enum):
    CHUNK = "chunk"
    SLIDE = "slide"
    COMPLETE = "complete"
    ERROR = "error"


class StreamPhase(Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETING = "completing"
    FAILING = "failing"
    CLOSED = "closed"


@dataclass(frozen=True)
class ProtocolEvent:
    """A tagged message sent to the consumer."""

    type: EventType
    data: Any

    @property
    def is_terminal(self) -> bool:
        return self.type in (EventType.COMPLETE, EventType.ERROR)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "data": self.data}

    def to_sse(self) -> str:
        payload = json.dumps(self.to_dict(), ensure_ascii=False)
        return f"event: {self.type.value}\ndata: {payload}\n\n"


@dataclass
class StreamState:
    """Per-request mutable state; never shared between requests."""

    request: GenerationRequest
    started_at: float
    accumulated_text: str = ""
    extractor: IncrementalJsonExtractor = field(
        default_factory=lambda: IncrementalJsonExtractor(nested=True)
    )
    phase: StreamPhase = StreamPhase.IDLE
    closed: bool = False
    document_started: bool = False
    emitted_slide_ids: Set[str] = field(default_factory=set)
    tokens_received: int = 0


class GenerationStream:
    """One streamed generation request."""

    def __init__(
        self,
        llm_client,
        request: GenerationRequest,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.llm_client = llm_client
        self.timeout_seconds = timeout_seconds
        self.clock = clock
        self.state = StreamState(request=request, started_at=clock())
        self._upstream: Optional[Iterator[Any]] = None
        self._events: Optional[Iterator[ProtocolEvent]] = None

    # ------------------------------------------------------------------
    # Iteration / lifecycle
    # ------------------------------------------------------------------
    @property
    def phase(self) -> StreamPhase:
        return self.state.phase

    @property
    def closed(self) -> bool:
        return self.state.closed

    def __iter__(self) -> Iterator[ProtocolEvent]:
        if self._events is None:
            self._events = self._drive()
        return self._events

    def close(self) -> None:
        """Stop the stream. Idempotent; no event is produced afterwards."""

        if self.state.closed:
            return
        self.state.closed = True
        if self._events is not None:
            try:
                self._events.close()
            except ValueError:
                # The generator is running in another thread; it sees the
                # closed flag on its next token and releases the upstream.
                LOGGER.debug("Stream close requested while a token is in flight")
                return
        self._finish()

    def _drive(self) -> Iterator[ProtocolEvent]:
        state = self.state
        if state.closed:
            return
        try:
            self._transition(StreamPhase.STREAMING)
            request = state.request
            prompt = build_presentation_prompt(request.prompt, request.num_slides)
            LOGGER.info(
                "Starting generation of %d slides (%d prompt chars)",
                request.num_slides, len(prompt),
            )
            self._upstream = iter(self.llm_client.stream_content(BaseRequest(prompt=prompt)))

            for chunk in self._upstream:
                if state.closed:
                    break
                if self._timed_out():
                    yield from self.on_failure(
                        GenerationFailure.of(ErrorKind.GENERATION_ERROR, "Stream timeout exceeded")
                    )
                    return
                text = getattr(chunk, "text", chunk) or ""
                yield from self.on_token(text)

            if not state.closed:
                yield from self.on_end()
        except Exception as exc:  # provider faults end the stream with one error event
            if state.phase is StreamPhase.STREAMING:
                yield from self.on_failure(exc)
            else:
                raise
        finally:
            self._finish()

    def _finish(self) -> None:
        upstream, self._upstream = self._upstream, None
        if upstream is not None and hasattr(upstream, "close"):
            try:
                upstream.close()
            except Exception as exc:  # pragma: no cover - provider dependent
                LOGGER.debug("Error while closing upstream stream: %s", exc)
        if self.state.phase is not StreamPhase.CLOSED:
            self._transition(StreamPhase.CLOSED)
        self.state.closed = True

    # ------------------------------------------------------------------
    # State machine inputs
    # ------------------------------------------------------------------
    def on_token(self, text: str) -> List[ProtocolEvent]:
        """Handle one upstream delta while STREAMING."""

        state = self.state
        if state.phase is not StreamPhase.STREAMING or not text:
            return []
        state.tokens_received += 1
        state.accumulated_text += text

        events = [ProtocolEvent(EventType.CHUNK, text)]
        for candidate in state.extractor.feed(self._document_text(text)):
            slide_event = self._slide_event(candidate)
            if slide_event is not None:
                events.append(slide_event)
        return self._guard(events)

    def on_end(self) -> List[ProtocolEvent]:
        """Handle normal end of the upstream stream."""

        state = self.state
        if state.phase is not StreamPhase.STREAMING:
            return []
        self._transition(StreamPhase.COMPLETING)
        presentation = self._assemble()
        data = presentation.to_dict() if presentation is not None else None
        LOGGER.info(
            "Generation finished after %d tokens (%s)",
            state.tokens_received, "complete" if data is not None else "partial",
        )
        return self._guard([ProtocolEvent(EventType.COMPLETE, data)])

    def on_failure(self, error: Any) -> List[ProtocolEvent]:
        """Handle a provider fault or timeout while STREAMING."""

        if self.state.phase is not StreamPhase.STREAMING:
            return []
        self._transition(StreamPhase.FAILING)
        failure = error if isinstance(error, GenerationFailure) else classify_error(error)
        LOGGER.warning("Generation failed with %s: %s", failure.code, failure.message)
        return self._guard([ProtocolEvent(EventType.ERROR, failure.to_dict())])

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _guard(self, events: List[ProtocolEvent]) -> List[ProtocolEvent]:
        if self.state.closed:
            return []
        return events

    def _transition(self, phase: StreamPhase) -> None:
        LOGGER.debug("Stream phase %s -> %s", self.state.phase.value, phase.value)
        self.state.phase = phase

    def _timed_out(self) -> bool:
        return self.clock() - self.state.started_at > self.timeout_seconds

    def _document_text(self, text: str) -> str:
        """Drop anything before the first bracket, such as a code fence opener."""

        state = self.state
        if state.document_started:
            return text
        positions = [pos for pos in (text.find("{"), text.find("[")) if pos >= 0]
        if not positions:
            return ""
        state.document_started = True
        return text[min(positions):]

    def _slide_event(self, candidate: Any) -> Optional[ProtocolEvent]:
        state = self.state
        if not is_slide_shaped(candidate):
            return None
        if len(state.emitted_slide_ids) >= state.request.num_slides:
            return None
        try:
            slide = validate_slide(candidate)
        except ValidationError as exc:
            LOGGER.debug("Discarding invalid streamed slide %r: %s", candidate.get("id"), exc)
            return None
        if slide.id in state.emitted_slide_ids:
            return None
        state.emitted_slide_ids.add(slide.id)
        return ProtocolEvent(EventType.SLIDE, slide.to_dict())

    def _assemble(self) -> Optional[PresentationResponse]:
        text = strip_code_fences(self.state.accumulated_text)
        try:
            document = json.loads(text)
        except json.JSONDecodeError as exc:
            LOGGER.warning("Final response is not valid JSON: %s", exc)
            return None
        try:
            return validate_presentation(document, self.state.request.num_slides)
        except ValidationError as exc:
            LOGGER.warning("Final presentation rejected (%s): %s", exc.kind.code, exc)
            return None


class StreamOrchestrator:
    """Shared entry point: a configured model client plus stream settings."""

    def __init__(
        self,
        llm_client,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.llm_client = llm_client
        self.timeout_seconds = timeout_seconds
        self.clock = clock

    def stream(self, request: GenerationRequest) -> GenerationStream:
        return GenerationStream(
            self.llm_client,
            request,
            timeout_seconds=self.timeout_seconds,
            clock=self.clock,
        )

    def run(self, request: GenerationRequest) -> Iterator[ProtocolEvent]:
        """Event iterator for ``request``; closing it cancels the generation."""

        return iter(self.stream(request))


def strip_code_fences(text: str) -> str:
    """Return the JSON document inside ``text``.

    Removes a surrounding markdown code fence (```json or bare ```) and any
    prose before the first ``{`` or after the last ``}``.
    """

    text = text.strip()
    match = _CODE_FENCE.search(text)
    if match:
        text = match.group(1).strip()
    if not text.startswith("{"):
        start = text.find("{")
        if start >= 0:
            text = text[start:]
    if not text.endswith("}"):
        end = text.rfind("}")
        if end >= 0:
            text = text[:end + 1]
    return text
