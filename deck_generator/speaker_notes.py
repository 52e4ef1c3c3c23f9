"""Helpers for speaker notes: durations and inline delivery marks."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .slide_models import SpeakerNotes

SPEAKER_MARKS: Tuple[str, ...] = (
    "PAUSE",
    "IMPORTANT",
    "EMPHASIZE",
    "TRANSITION",
    "STORY",
    "QUESTION",
    "ACTION",
)

MARK_COLORS = {
    "PAUSE": "#FBBF24",
    "IMPORTANT": "#EF4444",
    "EMPHASIZE": "#3B82F6",
    "TRANSITION": "#10B981",
    "STORY": "#8B5CF6",
    "QUESTION": "#06B6D4",
    "ACTION": "#F97316",
}
DEFAULT_MARK_COLOR = "#6B7280"

_MARK_PATTERN = re.compile(r"\[(" + "|".join(SPEAKER_MARKS) + r")\]", re.IGNORECASE)

# Longest spellings first so "minutes" is not read as "min" + "utes".
_MINUTE_UNITS = ("minutes", "minute", "mins", "min")
_SECOND_UNITS = ("seconds", "second", "secs", "sec", "s")


# ---------------------------------------------------------------------------
# Durations
# ---------------------------------------------------------------------------
#
#   duration := minutes? seconds?          (at least one component)
#   minutes  := INT WS* MINUTE_UNIT WS*
#   seconds  := INT WS* SECOND_UNIT
#

class _DurationParser:
    def __init__(self, text: str) -> None:
        self.text = text.strip().lower()
        self.pos = 0

    def parse(self) -> int:
        minutes = self._component(_MINUTE_UNITS)
        self._skip_ws()
        seconds = self._component(_SECOND_UNITS)
        self._skip_ws()
        if minutes is None and seconds is None:
            raise ValueError(f"Not a duration: {self.text!r}")
        if self.pos != len(self.text):
            raise ValueError(f"Unexpected text in duration: {self.text[self.pos:]!r}")
        return (minutes or 0) * 60 + (seconds or 0)

    def _component(self, units: Tuple[str, ...]) -> Optional[int]:
        start = self.pos
        digits = self._integer()
        if digits is None:
            return None
        self._skip_ws()
        for unit in units:
            if self.text.startswith(unit, self.pos):
                self.pos += len(unit)
                return digits
        self.pos = start
        return None

    def _integer(self) -> Optional[int]:
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos].isdigit():
            self.pos += 1
        if self.pos == start:
            return None
        return int(self.text[start:self.pos])

    def _skip_ws(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1


def parse_duration(text: str) -> int:
    """Return the number of seconds described by ``text`` (e.g. ``"2min 30s"``).

    Raises ``ValueError`` when ``text`` does not follow the duration grammar.
    Formatting the result again is not guaranteed to reproduce ``text``:
    ``"90s"`` comes back as ``"1min 30s"``.
    """

    return _DurationParser(text).parse()


def format_duration(seconds: int) -> str:
    if seconds <= 0:
        return "0s"
    minutes, secs = divmod(int(seconds), 60)
    if minutes and secs:
        return f"{minutes}min {secs}s"
    if minutes:
        return f"{minutes}min"
    return f"{secs}s"


def total_duration(notes: Iterable[SpeakerNotes]) -> int:
    """Sum the durations of ``notes``; unparseable durations count as zero."""

    total = 0
    for note in notes:
        if not note.duration:
            continue
        try:
            total += parse_duration(note.duration)
        except ValueError:
            continue
    return total


# ---------------------------------------------------------------------------
# Script marks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScriptPart:
    type: str
    content: str
    mark: Optional[str] = None


def parse_script_marks(script: str) -> List[ScriptPart]:
    """Split ``script`` into plain text and ``[MARK]`` parts."""

    parts: List[ScriptPart] = []
    last_index = 0
    for match in _MARK_PATTERN.finditer(script):
        if match.start() > last_index:
            parts.append(ScriptPart("text", script[last_index:match.start()]))
        mark = match.group(1).upper()
        parts.append(ScriptPart("mark", f"[{mark}]", mark))
        last_index = match.end()
    if last_index < len(script):
        parts.append(ScriptPart("text", script[last_index:]))
    return parts


def mark_color(mark: str) -> str:
    return MARK_COLORS.get(mark.upper(), DEFAULT_MARK_COLOR)
