"""Streamed presentation generation: prompt in, validated slides out."""

from .errors import ErrorKind, GenerationFailure, DeckGenerationError, classify_error
from .json_stream import IncrementalJsonExtractor
from .slide_models import (
    BrandColors,
    BrandKit,
    ExportResult,
    GenerationRequest,
    PresentationResponse,
    RGB,
    Slide,
    SlideType,
    SpeakerNotes,
)
from .streaming import (
    EventType,
    GenerationStream,
    ProtocolEvent,
    StreamOrchestrator,
    StreamPhase,
)
from .sse_consumer import StreamingConsumer, parse_sse_frames
from .validation import (
    SlideCountMismatch,
    ValidationError,
    validate_generation_request,
    validate_presentation,
)
from . import test_runner as test_runner
from .test_runner import run_tests

__all__ = [
    "ErrorKind",
    "GenerationFailure",
    "DeckGenerationError",
    "classify_error",
    "IncrementalJsonExtractor",
    "BrandColors",
    "BrandKit",
    "ExportResult",
    "GenerationRequest",
    "PresentationResponse",
    "RGB",
    "Slide",
    "SlideType",
    "SpeakerNotes",
    "EventType",
    "GenerationStream",
    "ProtocolEvent",
    "StreamOrchestrator",
    "StreamPhase",
    "StreamingConsumer",
    "parse_sse_frames",
    "SlideCountMismatch",
    "ValidationError",
    "validate_generation_request",
    "validate_presentation",
    "test_runner",
    "run_tests",
]
