"""Utility modules."""
from ielts_mock.utils.json_utils import (
    Parsed,
    ParseResult,
    RawFallback,
    json_dump,
    json_load,
    looks_like_json,
    multi_parse_json,
    normalize_array_maybe_string_or_object,
    safe_multi_parse_json,
    safe_parse_json,
    safe_stringify_json,
)
from ielts_mock.utils.text_utils import strip_html, word_count
from ielts_mock.utils.time_utils import format_countdown, parse_backend_date, utc_now
from ielts_mock.utils.urls import file_download_url, normalize_image_url

__all__ = [
    "Parsed",
    "ParseResult",
    "RawFallback",
    "json_dump",
    "json_load",
    "looks_like_json",
    "multi_parse_json",
    "normalize_array_maybe_string_or_object",
    "safe_multi_parse_json",
    "safe_parse_json",
    "safe_stringify_json",
    "strip_html",
    "word_count",
    "format_countdown",
    "parse_backend_date",
    "utc_now",
    "file_download_url",
    "normalize_image_url",
]
