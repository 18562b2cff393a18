import pytest

from deepbook.errors import ExtractionError, ExtractionFailure
from deepbook.utils.extract import CHAPTER_SCHEMA, OUTLINE_SCHEMA, extract_structured


def _kind(text, schema=CHAPTER_SCHEMA):
    with pytest.raises(ExtractionError) as info:
        extract_structured(text, schema)
    return info.value.kind


def test_payload_removed_from_free_text():
    found = extract_structured('Sure! {"parts": 7} Thanks.', CHAPTER_SCHEMA)
    assert found.payload["parts"] == 7
    assert found.free_text == "Sure!  Thanks."


def test_outline_payload_after_prose():
    reply = "1. Basics\n2. Margin\n3. Hedging\n\n{\"chapters\": 3}\n"
    found = extract_structured(reply, OUTLINE_SCHEMA)
    assert found.payload == {"chapters": 3}
    assert found.free_text == "1. Basics\n2. Margin\n3. Hedging"


def test_single_quotes_repaired():
    found = extract_structured("Part list...\n{'parts': 4}", CHAPTER_SCHEMA)
    assert found.payload == {"parts": 4}
    assert found.free_text == "Part list..."


def test_single_quotes_left_alone_when_double_quotes_present():
    assert _kind("""{'parts': "4"}""") is ExtractionFailure.MALFORMED_PAYLOAD


def test_wrapped_payload_is_unwrapped():
    found = extract_structured('{"metadata": {"parts": 2}}', CHAPTER_SCHEMA)
    assert found.payload == {"parts": 2}


def test_no_braces():
    assert _kind("Just prose, nothing structured.") is ExtractionFailure.NO_PAYLOAD
    assert _kind("closing } before { opening") is ExtractionFailure.NO_PAYLOAD


def test_malformed_json():
    assert _kind('Parts: {"parts": 3,,}') is ExtractionFailure.MALFORMED_PAYLOAD


def test_first_to_last_brace_spans_two_objects():
    assert _kind('{"parts": 2} and later {"note": 1}') is ExtractionFailure.MALFORMED_PAYLOAD


@pytest.mark.parametrize("payload", ['{"parts": "seven"}', '{"parts": 0}', '{"chapters": 3}', '{"parts": true}'])
def test_schema_violations(payload):
    assert _kind(payload) is ExtractionFailure.INVALID_SCHEMA
