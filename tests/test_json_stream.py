import json

import pytest

from deck_generator.json_stream import IncrementalJsonExtractor
from tests.llm_stubs import build_presentation


def _feed_in_chunks(text, size, **kwargs):
    extractor = IncrementalJsonExtractor(**kwargs)
    values = []
    for start in range(0, len(text), size):
        values.extend(extractor.feed(text[start:start + size]))
    return values


def test_object_split_across_feeds_is_emitted_once_complete():
    extractor = IncrementalJsonExtractor()

    assert extractor.feed('{"a":') == []
    assert extractor.feed(" 1") == []
    assert extractor.feed("}") == [{"a": 1}]
    assert extractor.buffer == ""


@pytest.mark.parametrize("size", [1, 2, 3, 7, 64, 10_000])
def test_emitted_values_do_not_depend_on_chunking(size):
    text = json.dumps({"x": [1, 2, {"y": "z"}]}) + "\n" + json.dumps([{"k": "v"}, 3])

    assert _feed_in_chunks(text, size) == [{"x": [1, 2, {"y": "z"}]}, [{"k": "v"}, 3]]


def test_brackets_inside_strings_are_ignored():
    extractor = IncrementalJsonExtractor()

    assert extractor.feed('{"title": "Use { and ] freely"') == []
    assert extractor.feed("}") == [{"title": "Use { and ] freely"}]


def test_escaped_quote_does_not_end_string():
    extractor = IncrementalJsonExtractor()
    text = r'{"quote": "she said \"hi}\" loudly"}'

    values = []
    for char in text:
        values.extend(extractor.feed(char))

    assert values == [{"quote": 'she said "hi}" loudly'}]


def test_leading_text_that_is_not_json_is_not_emitted():
    extractor = IncrementalJsonExtractor()

    assert extractor.feed("Here is your deck: {}") == []
    assert extractor.depth == 0


def test_malformed_balanced_span_keeps_buffer():
    extractor = IncrementalJsonExtractor()

    assert extractor.feed("{not json}") == []
    assert extractor.buffer == "{not json}"


def test_reset_discards_partial_value():
    extractor = IncrementalJsonExtractor()
    extractor.feed('{"a": [1, 2')

    extractor.reset()

    assert extractor.buffer == ""
    assert extractor.depth == 0
    assert extractor.feed('{"b": 2}') == [{"b": 2}]


def test_nested_mode_emits_inner_objects_before_outer_document():
    document = build_presentation(3)
    text = json.dumps(document)

    values = _feed_in_chunks(text, 5, nested=True)

    slide_ids = [value["id"] for value in values if isinstance(value, dict) and "id" in value]
    assert slide_ids == ["slide-1", "slide-2", "slide-3"]
    assert values[-1] == document


def test_top_level_mode_never_emits_nested_values():
    document = build_presentation(2)

    values = _feed_in_chunks(json.dumps(document), 1)

    assert values == [document]


def test_buffer_over_limit_is_discarded():
    extractor = IncrementalJsonExtractor(max_buffer_chars=32)

    assert extractor.feed('{"notes": "' + "x" * 40) == []
    assert extractor.buffer == ""
    assert extractor.depth == 0

    assert extractor.feed('{"a": 1}') == [{"a": 1}]


def test_unparseable_span_is_dropped_once_limit_is_reached():
    extractor = IncrementalJsonExtractor(max_buffer_chars=64)

    assert extractor.feed("{'single': 'quotes'}") == []
    assert extractor.feed(" " * 50) == []
    assert extractor.buffer == ""
    assert extractor.feed('{"ok": true}') == [{"ok": True}]
