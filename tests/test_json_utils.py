import json

import pytest

from ielts_mock.utils import json_utils
from ielts_mock.utils.json_utils import Parsed, RawFallback, multi_parse_json

CONTENT = {"instruction": "Complete the notes", "questionGroups": [{"range": "1-3"}]}


@pytest.mark.parametrize("times", [1, 2, 3, 5])
def test_multi_parse_unwraps_repeated_encoding(times: int) -> None:
    raw: object = CONTENT
    for _ in range(times):
        raw = json.dumps(raw)

    result = multi_parse_json(raw, max_depth=5)

    assert isinstance(result, Parsed)
    assert result.ok
    assert result.value == CONTENT


def test_multi_parse_passes_objects_through() -> None:
    result = multi_parse_json(CONTENT)
    assert isinstance(result, Parsed)
    assert result.value is CONTENT
    assert result.depth == 0


def test_multi_parse_stops_at_max_depth() -> None:
    raw = json.dumps(json.dumps(json.dumps(json.dumps(CONTENT))))
    result = multi_parse_json(raw, max_depth=1)
    assert isinstance(result, RawFallback)
    assert isinstance(result.raw, str)
    assert result.depth == 1


def test_multi_parse_single_quoted_json() -> None:
    result = multi_parse_json("'{\"a\": 1}'")
    assert result.ok
    assert result.value == {"a": 1}


def test_multi_parse_malformed_returns_last_good_value() -> None:
    raw = '{"questionGroups": [1, 2'
    result = multi_parse_json(raw)
    assert isinstance(result, RawFallback)
    assert result.raw == raw
    assert result.value == raw


def test_multi_parse_broken_object_reports_error() -> None:
    result = multi_parse_json("{not json}")
    assert not result.ok
    assert result.error
    assert result.raw == "{not json}"


def test_multi_parse_plain_text_is_raw() -> None:
    result = multi_parse_json("just some text")
    assert isinstance(result, RawFallback)
    assert result.raw == "just some text"
    assert result.error is None


def test_multi_parse_none() -> None:
    result = multi_parse_json(None)
    assert isinstance(result, RawFallback)
    assert result.raw is None


def test_safe_parse_json_returns_input_on_failure() -> None:
    assert json_utils.safe_parse_json('{"a": 1}') == {"a": 1}
    assert json_utils.safe_parse_json("[broken") == "[broken"
    assert json_utils.safe_parse_json(42) == 42
    assert json_utils.safe_parse_json(None) is None


def test_normalize_array_variants() -> None:
    normalize = json_utils.normalize_array_maybe_string_or_object
    assert normalize([1, 2]) == [1, 2]
    assert normalize('[{"a": 1}]') == [{"a": 1}]
    assert normalize({"0": "x", "1": "y"}) == ["x", "y"]
    assert normalize(json.dumps(json.dumps(["q"]))) == ["q"]
    assert normalize(None) == []
    assert normalize("not an array") == []


def test_json_round_trip() -> None:
    payload = {"message": "привет", "count": 2}
    dumped = json_utils.json_dump(payload)
    assert "привет" in dumped
    assert json_utils.json_load(dumped) == payload
    assert json_utils.safe_stringify_json(payload) == json.dumps(payload, ensure_ascii=False)
    assert json_utils.safe_stringify_json({"bad": object()}) == ""
