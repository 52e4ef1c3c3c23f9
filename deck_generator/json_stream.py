"""Incremental extraction of JSON values from a fragmented text stream.

The extractor keeps a growing buffer across :meth:`IncrementalJsonExtractor.feed`
calls and emits every top-level object or array as soon as its brackets
balance, no matter how the text was split into chunks. It is a bracket
counter with string/escape tracking, not a full parser: the balanced span is
handed to :func:`json.loads` once it is complete. Text that never balances
(or never parses) is dropped once the buffer passes ``max_buffer_chars``.

With ``nested=True`` the extractor also emits each object or array nested
inside the current top-level value at the moment its closing bracket
arrives. This is what lets a consumer see individual slides while the
enclosing presentation document is still being streamed.

An instance holds per-stream state and must never be shared between
concurrent streams.
"""

from __future__ import annotations

import json
import logging
from typing import Any, List, Optional

LOGGER = logging.getLogger(__name__)

_OPENERS = "{["
_CLOSERS = "}]"

# Well above a 20-slide document; past this the stream is treated as garbage.
DEFAULT_MAX_BUFFER_CHARS = 1_000_000


class IncrementalJsonExtractor:
    """Restartable, single-pass extractor of balanced JSON values."""

    def __init__(self, *, nested: bool = False, max_buffer_chars: int = DEFAULT_MAX_BUFFER_CHARS) -> None:
        self.nested = nested
        self.max_buffer_chars = max_buffer_chars
        self._buffer = ""
        self._pos = 0
        self._open_positions: List[int] = []
        self._depth = 0
        self._in_string = False
        self._escape_next = False
        self._pending_end: Optional[int] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def feed(self, chunk: str) -> List[Any]:
        """Append ``chunk`` and return the values completed by it, in close order."""

        self._buffer += chunk
        if len(self._buffer) > self.max_buffer_chars:
            LOGGER.warning(
                "Discarding %d buffered chars over the %d char limit",
                len(self._buffer), self.max_buffer_chars,
            )
            self.reset()
            return []
        results: List[Any] = []

        while True:
            if self._pending_end is not None:
                if not self._emit_top_level(self._pending_end, results):
                    break
                continue

            if self._pos == 0 and self._depth == 0:
                self._buffer = self._buffer.lstrip()
                if not self._buffer or self._buffer[0] not in _OPENERS:
                    break

            end = self._scan(results)
            if end is None:
                break
            if not self._emit_top_level(end, results):
                break

        return results

    @property
    def buffer(self) -> str:
        """The text received but not yet consumed."""
        return self._buffer

    @property
    def depth(self) -> int:
        return self._depth

    def reset(self) -> None:
        """Drop all buffered text and scanning state."""
        self._buffer = ""
        self._reset_scan()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _reset_scan(self) -> None:
        self._pos = 0
        self._open_positions = []
        self._depth = 0
        self._in_string = False
        self._escape_next = False
        self._pending_end = None

    def _scan(self, results: List[Any]) -> Optional[int]:
        """Advance over unscanned text.

        Returns the exclusive end index of a balanced top-level span, or
        ``None`` when the buffer ends before the span closes.
        """

        buffer = self._buffer
        length = len(buffer)
        i = self._pos
        while i < length:
            char = buffer[i]
            i += 1

            if self._escape_next:
                self._escape_next = False
                continue
            if char == "\\":
                self._escape_next = True
                continue
            if char == '"':
                self._in_string = not self._in_string
                continue
            if self._in_string:
                continue

            if char in _OPENERS:
                self._depth += 1
                self._open_positions.append(i - 1)
            elif char in _CLOSERS:
                self._depth -= 1
                start = self._open_positions.pop() if self._open_positions else 0
                if self._depth == 0:
                    self._pos = i
                    return i
                if self.nested and self._depth > 0:
                    self._emit_nested(buffer[start:i], results)

        self._pos = i
        return None

    def _emit_nested(self, candidate: str, results: List[Any]) -> None:
        try:
            results.append(json.loads(candidate))
        except json.JSONDecodeError:
            LOGGER.debug("Skipping malformed nested candidate of %d chars", len(candidate))

    def _emit_top_level(self, end: int, results: List[Any]) -> bool:
        candidate = self._buffer[:end]
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError as exc:
            # Keep the buffer untouched; the next feed retries the same span.
            LOGGER.debug("Balanced candidate failed to parse: %s", exc)
            self._pending_end = end
            return False

        results.append(value)
        self._buffer = self._buffer[end:]
        self._reset_scan()
        return True
