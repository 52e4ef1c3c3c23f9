import json

import pytest

from LLM_API.exceptions import LLMAuthenticationError
from deck_generator.slide_models import GenerationRequest
from deck_generator.streaming import (
    EventType,
    ProtocolEvent,
    StreamOrchestrator,
    StreamPhase,
    strip_code_fences,
)
from tests.llm_stubs import (
    FailingLLM,
    FakeClock,
    ScriptedStreamLLM,
    build_presentation,
    presentation_text,
)


def _types(events):
    return [event.type for event in events]


def _run(llm, num_slides=3, **kwargs):
    orchestrator = StreamOrchestrator(llm, **kwargs)
    return list(orchestrator.run(GenerationRequest(prompt="Solar market update", num_slides=num_slides)))


def test_single_character_tokens_produce_slides_then_complete():
    document = build_presentation(3)
    llm = ScriptedStreamLLM(presentation_text(document), chunk_size=1)

    events = _run(llm)

    types = _types(events)
    assert types.count(EventType.CHUNK) >= 1
    assert types.count(EventType.SLIDE) == 3
    assert types[-1] is EventType.COMPLETE
    assert types.count(EventType.COMPLETE) == 1
    assert [event.data["id"] for event in events if event.type is EventType.SLIDE] == [
        "slide-1", "slide-2", "slide-3",
    ]
    assert events[-1].data == document


def test_chunk_events_concatenate_to_model_output():
    text = presentation_text(build_presentation(3))
    llm = ScriptedStreamLLM(text, chunk_size=17)

    events = _run(llm)

    assert "".join(event.data for event in events if event.type is EventType.CHUNK) == text


def test_slide_event_follows_the_chunk_that_closed_it():
    llm = ScriptedStreamLLM(presentation_text(build_presentation(3)), chunk_size=9)

    events = _run(llm)

    first_slide = _types(events).index(EventType.SLIDE)
    assert events[first_slide - 1].type is EventType.CHUNK


def test_fenced_output_still_completes():
    document = build_presentation(3)
    llm = ScriptedStreamLLM(presentation_text(document, fenced=True), chunk_size=4)

    events = _run(llm)

    assert _types(events).count(EventType.SLIDE) == 3
    assert events[-1].data == document


def test_fewer_slides_than_requested_completes_without_document():
    llm = ScriptedStreamLLM(presentation_text(build_presentation(2)), chunk_size=3)

    events = _run(llm, num_slides=3)

    assert _types(events).count(EventType.SLIDE) == 2
    assert events[-1].type is EventType.COMPLETE
    assert events[-1].data is None


def test_unparseable_output_completes_without_document():
    llm = ScriptedStreamLLM("Sorry, I cannot help with that.", chunk_size=5)

    events = _run(llm)

    assert set(_types(events)) == {EventType.CHUNK, EventType.COMPLETE}
    assert events[-1].data is None


def test_slide_events_are_capped_at_requested_count():
    llm = ScriptedStreamLLM(presentation_text(build_presentation(4)), chunk_size=8)

    events = _run(llm, num_slides=3)

    assert _types(events).count(EventType.SLIDE) == 3
    assert events[-1].data is None


def test_invalid_streamed_slide_is_not_emitted():
    document = build_presentation(3)
    document["slides"][1]["bullets"] = ["Only one bullet here"]
    llm = ScriptedStreamLLM(presentation_text(document), chunk_size=6)

    events = _run(llm)

    assert [event.data["id"] for event in events if event.type is EventType.SLIDE] == [
        "slide-1", "slide-3",
    ]
    assert events[-1].data is None


def test_mid_stream_quota_failure_ends_with_one_error():
    llm = ScriptedStreamLLM(
        presentation_text(build_presentation(3)),
        chunk_size=10,
        fail_after=4,
        error=RuntimeError("429 quota exceeded"),
    )

    events = _run(llm)

    types = _types(events)
    assert types[:4] == [EventType.CHUNK] * 4
    assert types[-1] is EventType.ERROR
    assert EventType.COMPLETE not in types
    assert types.count(EventType.ERROR) == 1
    assert events[-1].data == {"code": "QUOTA_EXCEEDED", "message": "429 quota exceeded"}
    assert llm.closed


def test_failure_before_first_token():
    llm = FailingLLM(LLMAuthenticationError("API key required", provider="Gemini"))

    events = _run(llm)

    assert len(events) == 1
    assert events[0].type is EventType.ERROR
    assert events[0].data["code"] == "INVALID_API_KEY"


def test_timeout_is_checked_before_each_token():
    clock = FakeClock(step=20.0)
    llm = ScriptedStreamLLM(presentation_text(build_presentation(3)), chunk_size=1)

    events = _run(llm, timeout_seconds=55.0, clock=clock)

    assert _types(events) == [EventType.CHUNK, EventType.CHUNK, EventType.ERROR]
    assert events[-1].data == {"code": "GENERATION_ERROR", "message": "Stream timeout exceeded"}
    assert llm.closed


def test_close_stops_events_and_releases_upstream():
    llm = ScriptedStreamLLM(presentation_text(build_presentation(3)), chunk_size=5)
    stream = StreamOrchestrator(llm).stream(GenerationRequest(prompt="Solar", num_slides=3))

    seen = []
    for event in stream:
        seen.append(event)
        if event.type is EventType.SLIDE:
            stream.close()

    assert _types(seen).count(EventType.SLIDE) == 1
    assert seen[-1].type is EventType.SLIDE
    assert stream.closed
    assert stream.phase is StreamPhase.CLOSED
    assert llm.closed


def test_close_is_idempotent_and_safe_before_iteration():
    llm = ScriptedStreamLLM("{}")
    stream = StreamOrchestrator(llm).stream(GenerationRequest(prompt="Solar", num_slides=3))

    stream.close()
    stream.close()

    assert list(stream) == []
    assert llm.stream_requests == []


def test_each_stream_has_its_own_state():
    text = presentation_text(build_presentation(3))
    orchestrator = StreamOrchestrator(ScriptedStreamLLM(text, chunk_size=50))

    first = orchestrator.stream(GenerationRequest(prompt="A topic", num_slides=3))
    second = orchestrator.stream(GenerationRequest(prompt="B topic", num_slides=3))

    assert first.state is not second.state
    assert first.state.extractor is not second.state.extractor


def test_prompt_sent_to_model_names_slide_count():
    llm = ScriptedStreamLLM(presentation_text(build_presentation(3)), chunk_size=100)

    _run(llm, num_slides=3)

    assert "EXACTLY 3 slides" in llm.stream_requests[0].prompt


def test_protocol_event_sse_framing():
    event = ProtocolEvent(EventType.ERROR, {"code": "GENERATION_ERROR", "message": "boom"})

    frame = event.to_sse()

    assert frame.startswith("event: error\ndata: ")
    assert frame.endswith("\n\n")
    payload = json.loads(frame.split("data: ", 1)[1])
    assert payload == {"type": "error", "data": {"code": "GENERATION_ERROR", "message": "boom"}}
    assert event.is_terminal


@pytest.mark.parametrize(
    "text",
    [
        '```json\n{"a": 1}\n```',
        '```\n{"a": 1}\n```',
        'Here you go: {"a": 1} Enjoy!',
        '  {"a": 1}  ',
    ],
)
def test_strip_code_fences(text):
    assert json.loads(strip_code_fences(text)) == {"a": 1}
