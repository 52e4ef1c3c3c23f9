"""Client side of the streaming protocol.

Parses ``text/event-stream`` frames produced by
:meth:`deck_generator.streaming.ProtocolEvent.to_sse` and folds the decoded
events into UI-facing state.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

LOGGER = logging.getLogger(__name__)

_EVENT_TYPES = {"chunk", "slide", "complete", "error"}


def parse_sse_event(message: str) -> Optional[Dict[str, Any]]:
    """Decode one ``data:`` payload into ``{type, data}``; ``None`` if invalid."""

    try:
        parsed = json.loads(message)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, dict) or "type" not in parsed or "data" not in parsed:
        return None
    if parsed["type"] not in _EVENT_TYPES:
        return None
    return parsed


def parse_sse_frames(buffer: str) -> Tuple[List[Dict[str, Any]], str]:
    """Split ``buffer`` into complete frames.

    Returns the decoded events and the trailing text of an unfinished frame,
    which should be prepended to the next read.
    """

    normalised = buffer.replace("\r\n", "\n")
    *frames, remainder = normalised.split("\n\n")
    events = []
    for frame in frames:
        data_lines = [
            line[5:].lstrip(" ")
            for line in frame.split("\n")
            if line.startswith("data:")
        ]
        if not data_lines:
            continue
        event = parse_sse_event("\n".join(data_lines))
        if event is None:
            LOGGER.debug("Skipping undecodable SSE frame: %r", frame[:80])
            continue
        events.append(event)
    return events, remainder


@dataclass
class StreamingConsumer:
    """Accumulates protocol events into slides, progress and error state."""

    slides: List[Dict[str, Any]] = field(default_factory=list)
    presentation: Optional[Dict[str, Any]] = None
    is_generating: bool = False
    progress: int = 0
    error: Optional[str] = None
    text: str = ""
    completed: bool = False
    _pending: str = ""

    def start(self) -> None:
        self.slides = []
        self.presentation = None
        self.is_generating = True
        self.progress = 0
        self.error = None
        self.text = ""
        self.completed = False
        self._pending = ""

    def feed(self, raw: str) -> List[Dict[str, Any]]:
        """Consume raw stream text; returns the events decoded from it."""

        events, self._pending = parse_sse_frames(self._pending + raw)
        for event in events:
            self.apply(event)
        return events

    def apply(self, event: Dict[str, Any]) -> None:
        event_type = event.get("type")
        data = event.get("data")

        if event_type == "chunk":
            self.text += data or ""
            self.progress = min(self.progress + 5, 90)
        elif event_type == "slide":
            self.slides.append(data)
            self.progress = min(self.progress + 10, 90)
        elif event_type == "complete":
            self.presentation = data
            self.completed = True
            self.is_generating = False
            self.progress = 100
        elif event_type == "error":
            data = data or {}
            self.error = f"{data.get('code', 'GENERATION_ERROR')}: {data.get('message', '')}"
            self.is_generating = False

    def apply_all(self, events: Iterable[Dict[str, Any]]) -> "StreamingConsumer":
        for event in events:
            self.apply(event)
        return self

    def finish(self) -> None:
        """Mark the transport as closed."""

        if self.is_generating:
            self.is_generating = False
            if self.error is None:
                self.progress = 100

    @property
    def is_partial(self) -> bool:
        """True when the stream completed without a canonical document."""

        return self.completed and self.presentation is None

    def result_slides(self) -> List[Dict[str, Any]]:
        """Canonical slides if the full document arrived, else the streamed ones."""

        if self.presentation is not None:
            return list(self.presentation.get("slides", []))
        return list(self.slides)
