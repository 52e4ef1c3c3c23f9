import pytest

from deck_generator.errors import ErrorKind
from deck_generator.slide_models import PresentationResponse, SlideType
from deck_generator.validation import (
    RequestValidationError,
    SlideCountMismatch,
    ValidationError,
    expected_slide_type,
    is_slide_shaped,
    validate_generation_request,
    validate_presentation,
    validate_slide,
)
from tests.llm_stubs import build_presentation, build_slide


def test_valid_presentation_is_converted_to_models():
    document = build_presentation(4)

    presentation = validate_presentation(document, 4)

    assert isinstance(presentation, PresentationResponse)
    assert [slide.type for slide in presentation.slides] == [
        SlideType.TITLE, SlideType.CONTENT, SlideType.CONTENT, SlideType.CONCLUSION,
    ]
    assert presentation.to_dict() == document


def test_slide_count_mismatch_is_distinguished():
    with pytest.raises(SlideCountMismatch) as excinfo:
        validate_presentation(build_presentation(2), 3)

    assert excinfo.value.kind is ErrorKind.SLIDE_COUNT_MISMATCH
    assert (excinfo.value.expected, excinfo.value.actual) == (3, 2)


@pytest.mark.parametrize("count", [2, 6])
def test_bullet_count_outside_range_is_rejected(count):
    document = build_presentation(3)
    document["slides"][1]["bullets"] = [f"Bullet number {index}" for index in range(count)]

    with pytest.raises(ValidationError) as excinfo:
        validate_presentation(document, 3)

    assert excinfo.value.kind is ErrorKind.VALIDATION_ERROR
    assert "slides[1].bullets" in excinfo.value.paths


def test_field_errors_are_reported_before_count():
    document = build_presentation(2)
    document["title"] = "Hi"

    with pytest.raises(ValidationError) as excinfo:
        validate_presentation(document, 5)

    assert not isinstance(excinfo.value, SlideCountMismatch)
    assert excinfo.value.paths == ["title"]


def test_type_sequence_is_enforced():
    document = build_presentation(3)
    document["slides"][2]["type"] = "content"

    with pytest.raises(ValidationError) as excinfo:
        validate_presentation(document, 3)

    assert excinfo.value.paths == ["slides[2].type"]


def test_speaker_note_limits_are_checked():
    slide = build_slide(2, 3)
    slide["speakerNotes"]["script"] = "Too short."
    slide["speakerNotes"]["duration"] = "about two minutes"
    slide["speakerNotes"]["keyPoints"] = ["Only one key point"]

    with pytest.raises(ValidationError) as excinfo:
        validate_slide(slide)

    assert set(excinfo.value.paths) == {
        "speakerNotes.script",
        "speakerNotes.duration",
        "speakerNotes.keyPoints",
    }


@pytest.mark.parametrize(
    "duration", ["45s", "5s", "9s", "1min 30s", "2min 05s", "2min", "1 min 30s", "3 minutes"]
)
def test_accepted_durations(duration):
    slide = build_slide(1, 2)
    slide["speakerNotes"]["duration"] = duration

    assert validate_slide(slide).speaker_notes.duration == duration


@pytest.mark.parametrize("duration", ["", "soon", "30s 1min", "1min 30", 90])
def test_rejected_durations(duration):
    slide = build_slide(1, 2)
    slide["speakerNotes"]["duration"] = duration

    with pytest.raises(ValidationError) as excinfo:
        validate_slide(slide)

    assert excinfo.value.paths == ["speakerNotes.duration"]


def test_validation_does_not_modify_input():
    document = build_presentation(3)
    snapshot = build_presentation(3)

    validate_presentation(document, 3)

    assert document == snapshot


def test_is_slide_shaped():
    assert is_slide_shaped({"id": "slide-1", "type": "title"})
    assert not is_slide_shaped({"script": "hello"})
    assert not is_slide_shaped(["id", "type"])


def test_expected_slide_type():
    assert [expected_slide_type(index, 3) for index in range(3)] == [
        SlideType.TITLE, SlideType.CONTENT, SlideType.CONCLUSION,
    ]


def test_generation_request_defaults_to_five_slides():
    request = validate_generation_request({"prompt": "Climate policy update"})

    assert request.num_slides == 5


@pytest.mark.parametrize(
    "payload",
    [
        {"prompt": "", "numSlides": 5},
        {"prompt": "x" * 501, "numSlides": 5},
        {"prompt": "ok", "numSlides": 1},
        {"prompt": "ok", "numSlides": 21},
        {"prompt": "ok", "numSlides": "5"},
        {"prompt": "ok", "numSlides": True},
        ["prompt"],
    ],
)
def test_invalid_generation_requests(payload):
    with pytest.raises(RequestValidationError) as excinfo:
        validate_generation_request(payload)

    assert excinfo.value.kind is ErrorKind.REQUEST_ERROR
