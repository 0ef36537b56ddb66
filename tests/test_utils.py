from datetime import datetime

import pytest
from fastapi import HTTPException

from ielts_mock.models.content import SectionType
from ielts_mock.utils import text_utils, time_utils, urls, validation

BASE = "https://backend.test/api"


def test_validate_id_rejects_paths() -> None:
    assert validation.validate_id("mockId", " abc-1 ") == "abc-1"
    for bad in ("", "   ", "../x", "a/b", "a\\b", ".."):
        with pytest.raises(HTTPException):
            validation.validate_id("mockId", bad)


def test_validate_section_type() -> None:
    assert validation.validate_section_type("reading") == SectionType.READING
    with pytest.raises(HTTPException) as exc_info:
        validation.validate_section_type("music")
    assert exc_info.value.status_code == 400


@pytest.mark.parametrize(
    "value, expected",
    [
        ("abc", f"{BASE}/file/download/abc"),
        ("/api/file/download/abc", f"{BASE}/file/download/abc"),
        ("/file/download/abc", f"{BASE}/file/download/abc"),
        ("http://localhost:8080/api/file/download/abc", f"{BASE}/file/download/abc"),
        ("http://127.0.0.1/file/download/abc", f"{BASE}/file/download/abc"),
        ("https://cdn.example.com/a.png", "https://cdn.example.com/a.png"),
        ("http://localhostevil.com/x", "http://localhostevil.com/x"),
        ("http://127.0.0.1.nip.io/a.png", "http://127.0.0.1.nip.io/a.png"),
        ("data:image/png;base64,AAA", "data:image/png;base64,AAA"),
        ("", None),
        (None, None),
    ],
)
def test_normalize_image_url(value: str | None, expected: str | None) -> None:
    assert urls.normalize_image_url(value, BASE) == expected


def test_file_download_url() -> None:
    assert urls.file_download_url("f1", BASE) == f"{BASE}/file/download/f1"
    assert urls.file_download_url(None, BASE) is None


def test_strip_html_and_word_count() -> None:
    assert text_utils.strip_html("<p>Hello <b>world</b></p>") == "Hello world"
    assert text_utils.strip_html(None) == ""
    assert text_utils.word_count("  one two\nthree ") == 3
    assert text_utils.word_count("") == 0


def test_time_utils_parsing() -> None:
    assert time_utils.utc_now().tzinfo is not None

    iso = time_utils.parse_backend_date("2025-01-25T18:30:46.000+00:00")
    assert iso is not None and iso.tzinfo is not None

    zulu = time_utils.parse_backend_date("2024-01-01T12:00:00Z")
    assert zulu is not None and zulu.tzinfo is not None

    dotted = time_utils.parse_backend_date("25.01.2025 18:30:46")
    assert dotted == datetime(2025, 1, 25, 18, 30, 46)

    assert time_utils.parse_backend_date("") is None
    assert time_utils.parse_backend_date(123) is None


def test_format_countdown() -> None:
    assert time_utils.format_countdown(2400) == "40:00"
    assert time_utils.format_countdown(3725) == "1:02:05"
    assert time_utils.format_countdown(-5) == "00:00"
