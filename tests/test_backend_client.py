import json
from datetime import datetime
from typing import Any

import pytest
import requests

from ielts_mock.services.backend_client import BackendAuthError, BackendClient, BackendError


def _response(status_code: int, payload: Any = None, content: bytes | None = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    if content is not None:
        response._content = content
    else:
        response._content = b"" if payload is None else json.dumps(payload).encode("utf-8")
    return response


class FakeHttpSession:
    def __init__(self, *responses: requests.Response) -> None:
        self.headers: dict[str, str] = {}
        self.responses = list(responses)
        self.requests: list[dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        self.requests.append({"method": method, "url": url, **kwargs})
        return self.responses.pop(0)

    def get(self, url: str, **kwargs: Any) -> requests.Response:
        return self.request("GET", url, **kwargs)


def _client(*responses: requests.Response, token: str | None = "tok") -> tuple[BackendClient, FakeHttpSession]:
    http = FakeHttpSession(*responses)
    return BackendClient("https://backend.test/", token=token, session=http), http


def test_call_unwraps_response_envelope() -> None:
    client, http = _client(_response(200, {"success": True, "data": [{"id": "s1", "sectionType": "READING"}]}))
    sections = client.get_all_sections("test-1")
    assert [s.id for s in sections] == ["s1"]

    sent = http.requests[0]
    assert sent["url"] == "https://backend.test/mock-submission/get-all-section"
    assert sent["headers"]["Authorization"] == "Bearer tok"
    assert sent["params"] == {"testId": "test-1"}


def test_admin_prefix() -> None:
    client, http = _client(_response(200, {"success": True, "data": []}))
    client.get_all_parts("sec", admin=True)
    assert http.requests[0]["url"].endswith("/test-management/get-all-part")


def test_success_false_raises_reason() -> None:
    client, _ = _client(_response(200, {"success": False, "reason": "Mock is closed"}))
    with pytest.raises(BackendError, match="Mock is closed"):
        client.finish_section("m", "s")


def test_unauthorized_clears_token() -> None:
    client, _ = _client(_response(401, {"reason": "expired"}))
    with pytest.raises(BackendAuthError):
        client.start_section("m", "s")
    assert client.token is None


def test_http_error_uses_backend_reason() -> None:
    client, _ = _client(_response(500, {"reason": "Database down"}))
    with pytest.raises(BackendError) as exc_info:
        client.calc_score("m", "s")
    assert str(exc_info.value) == "Database down"
    assert exc_info.value.status_code == 500


def test_network_error_is_wrapped() -> None:
    class BrokenSession(FakeHttpSession):
        def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
            raise requests.ConnectionError("refused")

    client = BackendClient("https://backend.test", token="tok", session=BrokenSession())
    with pytest.raises(BackendError, match="refused"):
        client.get_all_tests()


def test_send_answer_payload() -> None:
    client, http = _client(_response(200, {"success": True}))
    client.send_answer("m", "s", 12, "A, C")
    assert http.requests[0]["method"] == "POST"
    assert http.requests[0]["json"] == {
        "mockId": "m",
        "sectionId": "s",
        "questionOrd": 12,
        "answer": "A, C",
    }


def test_set_answer_as_correct_sends_flag() -> None:
    client, http = _client(_response(200, {"success": True}))
    client.set_answer_as_correct("m", "s", 5, False)
    assert http.requests[0]["json"]["isCorrect"] == 0


def test_part_content_returns_raw_blob() -> None:
    blob = json.dumps({"user": {"instruction": "x"}})
    client, _ = _client(_response(200, {"success": True, "data": {"content": blob}}))
    assert client.get_part_question_content("p1") == blob


def test_part_content_failure_is_none() -> None:
    client, _ = _client(_response(200, {"success": False, "reason": "missing"}))
    assert client.get_part_question_content("p1") is None


def test_listening_audio_sorted_by_ord() -> None:
    client, _ = _client(
        _response(
            200,
            {
                "success": True,
                "data": [
                    {"id": "b", "fileId": "f2", "ord": 2},
                    {"id": "x", "fileId": "f3"},
                    {"id": "a", "fileId": "f1", "ord": 1},
                ],
            },
        )
    )
    assert [a.id for a in client.get_all_listening_audio("t")] == ["a", "b", "x"]


@pytest.mark.parametrize(
    "payload, expected_total",
    [
        ({"content": [{"id": "r1"}, {"id": "r2"}], "totalElements": 12}, 12),
        ([{"id": "r1"}, {"id": "r2"}], 2),
        ({"success": True, "data": [{"id": "r1"}, {"id": "r2"}], "totalCount": 7}, 7),
    ],
)
def test_mock_results_shapes(payload: Any, expected_total: int) -> None:
    client, _ = _client(_response(200, payload))
    results, total = client.get_all_mock_results()
    assert [r.id for r in results] == ["r1", "r2"]
    assert total == expected_total


def test_save_part_content_is_stringified() -> None:
    client, http = _client(_response(200, {"success": True}))
    client.save_part_question_content("p1", {"admin": {"a": 1}})
    body = http.requests[0]["json"]
    assert body["partId"] == "p1"
    assert json.loads(body["content"]) == {"admin": {"a": 1}}


def test_download_returns_bytes() -> None:
    client, http = _client(_response(200, content=b"ID3audio"))
    url = client.file_download_url("f1")
    assert url == "https://backend.test/file/download/f1"
    assert client.download(url) == b"ID3audio"
    assert http.requests[0]["headers"] == {"Authorization": "Bearer tok"}


def test_mock_listing_parses_backend_dates() -> None:
    client, _ = _client(
        _response(
            200,
            {
                "success": True,
                "data": [
                    {"id": "m1", "testId": "t1", "isFinished": 1, "startDate": "25.01.2025 18:30:46"},
                    {"id": "m2", "testId": "t1", "startDate": "not a date"},
                ],
            },
        )
    )

    mocks = client.get_all_mocks()

    assert mocks[0].startDate == datetime(2025, 1, 25, 18, 30, 46)
    assert mocks[0].isFinished == 1
    assert mocks[1].startDate is None
