"""Schema validation for model output and inbound generation requests."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from .errors import ErrorKind
from .slide_models import (
    GenerationRequest,
    PresentationResponse,
    Slide,
    SlideType,
)
from .speaker_notes import parse_duration

SLIDE_ID_PATTERN = re.compile(r"slide-\d+")

MIN_SLIDES = 2
MAX_SLIDES = 20
DEFAULT_NUM_SLIDES = 5
MAX_PROMPT_LENGTH = 500


@dataclass(frozen=True)
class FieldLimits:
    min_length: int
    max_length: int


PRESENTATION_TITLE = FieldLimits(5, 100)
PRESENTATION_SUBTITLE = FieldLimits(5, 200)
SLIDE_TITLE = FieldLimits(3, 100)
BULLET_TEXT = FieldLimits(5, 120)
BULLET_COUNT = FieldLimits(3, 5)
IMAGE_PROMPT = FieldLimits(20, 300)
SCRIPT = FieldLimits(100, 1000)
TIP_TEXT = FieldLimits(10, 200)
TIP_COUNT = FieldLimits(1, 3)
KEY_POINT_TEXT = FieldLimits(10, 100)
KEY_POINT_COUNT = FieldLimits(2, 4)


class ValidationError(ValueError):
    """Candidate data violates the presentation schema."""

    kind = ErrorKind.VALIDATION_ERROR

    def __init__(self, issues: Sequence[Tuple[str, str]]) -> None:
        self.issues: List[Tuple[str, str]] = list(issues)
        summary = "; ".join(f"{path}: {message}" for path, message in self.issues[:5])
        if len(self.issues) > 5:
            summary += f" (+{len(self.issues) - 5} more)"
        super().__init__(summary or "invalid data")

    @property
    def paths(self) -> List[str]:
        return [path for path, _ in self.issues]


class SlideCountMismatch(ValidationError):
    """The document is well formed but holds the wrong number of slides."""

    kind = ErrorKind.SLIDE_COUNT_MISMATCH

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__([("slides", f"Expected {expected} slides, got {actual}")])


class RequestValidationError(ValidationError):
    """The inbound generation request is malformed."""

    kind = ErrorKind.REQUEST_ERROR


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def validate_presentation(candidate: Any, expected_slide_count: int) -> PresentationResponse:
    """Validate ``candidate`` and build a :class:`PresentationResponse`.

    Field constraints are checked first; only a structurally valid document
    is checked for the slide count and the title/content/conclusion order.
    ``candidate`` is never modified.
    """

    checker = _Checker()
    if not isinstance(candidate, Mapping):
        raise ValidationError([("", "expected an object")])

    checker.text(candidate, "title", PRESENTATION_TITLE)
    checker.text(candidate, "subtitle", PRESENTATION_SUBTITLE)
    slides_raw = candidate.get("slides")
    if not isinstance(slides_raw, list):
        checker.fail("slides", "expected an array")
        slides_raw = []
    for index, raw in enumerate(slides_raw):
        checker.slide(raw, f"slides[{index}]")
    checker.raise_if_failed()

    if len(slides_raw) != expected_slide_count:
        raise SlideCountMismatch(expected_slide_count, len(slides_raw))

    sequence_issues = _type_sequence_issues([raw["type"] for raw in slides_raw])
    if sequence_issues:
        raise ValidationError(sequence_issues)

    return PresentationResponse.from_dict(candidate)


def validate_slide(candidate: Any) -> Slide:
    """Validate a single slide object in isolation."""

    checker = _Checker()
    checker.slide(candidate, "")
    checker.raise_if_failed()
    return Slide.from_dict(candidate)


def is_slide_shaped(candidate: Any) -> bool:
    """Cheap pre-filter: an object exposing both ``id`` and ``type``."""

    return isinstance(candidate, Mapping) and "id" in candidate and "type" in candidate


def expected_slide_type(index: int, total: int) -> SlideType:
    if index == 0:
        return SlideType.TITLE
    if index == total - 1:
        return SlideType.CONCLUSION
    return SlideType.CONTENT


def validate_generation_request(payload: Any) -> GenerationRequest:
    """Validate the ``{prompt, numSlides}`` request body."""

    if not isinstance(payload, Mapping):
        raise RequestValidationError([("", "expected an object")])

    issues: List[Tuple[str, str]] = []
    prompt = payload.get("prompt")
    if not isinstance(prompt, str) or not prompt.strip():
        issues.append(("prompt", "must be a non-empty string"))
    elif len(prompt) > MAX_PROMPT_LENGTH:
        issues.append(("prompt", f"must be at most {MAX_PROMPT_LENGTH} characters"))

    num_slides = payload.get("numSlides", DEFAULT_NUM_SLIDES)
    if isinstance(num_slides, bool) or not isinstance(num_slides, int):
        issues.append(("numSlides", "must be an integer"))
    elif not MIN_SLIDES <= num_slides <= MAX_SLIDES:
        issues.append(("numSlides", f"must be between {MIN_SLIDES} and {MAX_SLIDES}"))

    if issues:
        raise RequestValidationError(issues)
    return GenerationRequest(prompt=prompt, num_slides=num_slides)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _type_sequence_issues(types: Sequence[str]) -> List[Tuple[str, str]]:
    issues = []
    total = len(types)
    for index, value in enumerate(types):
        expected = expected_slide_type(index, total)
        if value != expected.value:
            issues.append((f"slides[{index}].type", f"expected '{expected.value}', got '{value}'"))
    return issues


class _Checker:
    def __init__(self) -> None:
        self.issues: List[Tuple[str, str]] = []

    def fail(self, path: str, message: str) -> None:
        self.issues.append((path, message))

    def raise_if_failed(self) -> None:
        if self.issues:
            raise ValidationError(self.issues)

    def text(self, data: Mapping, key: str, limits: FieldLimits, prefix: str = "") -> Optional[str]:
        path = _join(prefix, key)
        value = data.get(key)
        if not isinstance(value, str):
            self.fail(path, "expected a string")
            return None
        self._length(path, value, limits)
        return value

    def text_list(
        self,
        data: Mapping,
        key: str,
        count: FieldLimits,
        item_limits: FieldLimits,
        prefix: str = "",
    ) -> None:
        path = _join(prefix, key)
        value = data.get(key)
        if not isinstance(value, list):
            self.fail(path, "expected an array")
            return
        if len(value) < count.min_length:
            self.fail(path, f"expected at least {count.min_length} items, got {len(value)}")
        elif len(value) > count.max_length:
            self.fail(path, f"expected at most {count.max_length} items, got {len(value)}")
        for index, item in enumerate(value):
            item_path = f"{path}[{index}]"
            if not isinstance(item, str):
                self.fail(item_path, "expected a string")
                continue
            self._length(item_path, item, item_limits)

    def slide(self, raw: Any, prefix: str) -> None:
        if not isinstance(raw, Mapping):
            self.fail(prefix, "expected an object")
            return

        slide_id = raw.get("id")
        if not isinstance(slide_id, str) or not SLIDE_ID_PATTERN.fullmatch(slide_id):
            self.fail(_join(prefix, "id"), "must match 'slide-<number>'")

        slide_type = raw.get("type")
        if slide_type not in {member.value for member in SlideType}:
            self.fail(_join(prefix, "type"), "must be one of title, content, conclusion")

        self.text(raw, "title", SLIDE_TITLE, prefix)
        self.text_list(raw, "bullets", BULLET_COUNT, BULLET_TEXT, prefix)
        self.text(raw, "imagePrompt", IMAGE_PROMPT, prefix)

        image_url = raw.get("imageUrl")
        if image_url is not None and not isinstance(image_url, str):
            self.fail(_join(prefix, "imageUrl"), "expected a string")

        notes = raw.get("speakerNotes")
        notes_prefix = _join(prefix, "speakerNotes")
        if not isinstance(notes, Mapping):
            self.fail(notes_prefix, "expected an object")
            return
        self.speaker_notes(notes, notes_prefix)

    def speaker_notes(self, notes: Mapping, prefix: str) -> None:
        self.text(notes, "script", SCRIPT, prefix)
        self.duration(notes.get("duration"), _join(prefix, "duration"))
        self.text_list(notes, "tips", TIP_COUNT, TIP_TEXT, prefix)
        self.text_list(notes, "keyPoints", KEY_POINT_COUNT, KEY_POINT_TEXT, prefix)

    def duration(self, value: Any, path: str) -> None:
        if not isinstance(value, str):
            self.fail(path, "expected a string")
            return
        try:
            parse_duration(value)
        except ValueError:
            self.fail(path, "must look like '1min 30s', '2min' or '45s'")

    def _length(self, path: str, value: str, limits: FieldLimits) -> None:
        if len(value) < limits.min_length:
            self.fail(path, f"must be at least {limits.min_length} characters")
        elif len(value) > limits.max_length:
            self.fail(path, f"must be at most {limits.max_length} characters")


def _join(prefix: str, key: str) -> str:
    return f"{prefix}.{key}" if prefix else key

