"""HTTP client for the remote IELTS mock backend."""
import logging
from typing import Any

import requests

from ielts_mock.config import BACKEND_BASE_URL, REQUEST_TIMEOUT_SECONDS
from ielts_mock.models.backend import (
    BackendResponse,
    ListeningAudioDto,
    MockDto,
    MockResultDto,
    PartDto,
    SectionDto,
    TestDto,
)
from ielts_mock.utils.json_utils import safe_stringify_json

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """Backend call failed (network error, HTTP error or ``success=false``)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class BackendAuthError(BackendError):
    """Backend rejected the bearer token; the local token has been cleared."""


class BackendClient:
    """Thin wrapper around the backend REST API.

    One client is created per request with the caller's bearer token. A 401
    response clears that token so later calls on the same client go out
    unauthenticated, mirroring a sign-out.
    """

    def __init__(
        self,
        base_url: str = BACKEND_BASE_URL,
        token: str | None = None,
        session: requests.Session | None = None,
        timeout: int = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})

    # -- transport -----------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        logger.debug("Backend request: %s %s", method, url)
        try:
            response = self._session.request(
                method,
                url,
                params=params,
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise BackendError(f"Request to {path} failed: {exc}") from exc

        if response.status_code == 401:
            logger.warning("Backend returned 401 for %s, clearing token", path)
            self.token = None
            raise BackendAuthError("Session expired, sign in again", status_code=401)

        if response.status_code >= 400:
            raise BackendError(_error_reason(response), status_code=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise BackendError(f"Invalid JSON from {path}") from exc

    def _call(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Perform a request and unwrap the ``ResponseDto`` envelope."""
        payload = self._request(method, path, params=params, json=json)
        if not isinstance(payload, dict) or "success" not in payload:
            return payload
        result = BackendResponse.model_validate(payload)
        if not result.success:
            raise BackendError(result.reason or f"Backend call {path} failed")
        return result.data

    # -- mock submission (learner) -------------------------------------------

    def start_mock(self, test_id: str | None = None) -> str:
        return self._call("POST", "/mock-submission/start-mock", json={"testId": test_id})

    def start_section(self, mock_id: str, section_id: str) -> Any:
        return self._call(
            "POST",
            "/mock-submission/start-section",
            json={"mockId": mock_id, "sectionId": section_id},
        )

    def send_answer(
        self, mock_id: str, section_id: str, question_ord: int, answer: str
    ) -> Any:
        return self._call(
            "POST",
            "/mock-submission/send-answer",
            json={
                "mockId": mock_id,
                "sectionId": section_id,
                "questionOrd": question_ord,
                "answer": answer,
            },
        )

    def finish_section(self, mock_id: str, section_id: str) -> Any:
        return self._call(
            "POST",
            "/mock-submission/finish-section",
            json={"mockId": mock_id, "sectionId": section_id},
        )

    def get_all_tests(self, page: int = 0, size: int = 10) -> list[TestDto]:
        data = self._call(
            "GET", "/mock-submission/get-all-test", params={"page": page, "size": size}
        )
        return [TestDto.model_validate(item) for item in data or []]

    def get_all_mocks(self, page: int = 0, size: int = 10) -> list[MockDto]:
        data = self._call(
            "GET", "/mock-submission/get-all-mock", params={"page": page, "size": size}
        )
        return [MockDto.model_validate(item) for item in data or []]

    def get_all_sections(
        self, test_id: str, mock_id: str | None = None, admin: bool = False
    ) -> list[SectionDto]:
        prefix = "/test-management" if admin else "/mock-submission"
        data = self._call(
            "GET",
            f"{prefix}/get-all-section",
            params={"testId": test_id, "mockId": mock_id},
        )
        return [SectionDto.model_validate(item) for item in data or []]

    def get_all_parts(self, section_id: str, admin: bool = False) -> list[PartDto]:
        prefix = "/test-management" if admin else "/mock-submission"
        data = self._call("GET", f"{prefix}/get-all-part", params={"sectionId": section_id})
        parts = [PartDto.model_validate(item) for item in data or []]
        return sorted(parts, key=lambda p: p.ord)

    def get_part_question_content(self, part_id: str, admin: bool = False) -> Any:
        """Return the raw persisted content blob for a part (usually a string)."""
        prefix = "/test-management" if admin else "/mock-submission"
        payload = self._request(
            "GET", f"{prefix}/get-part-question-content", params={"partId": part_id}
        )
        if not isinstance(payload, dict):
            return None
        if payload.get("success") is False:
            logger.warning("Part %s returned success=false: %s", part_id, payload.get("reason"))
            return None
        data = payload.get("data")
        if isinstance(data, dict) and "content" in data:
            return data["content"]
        return payload.get("content")

    def get_all_listening_audio(self, test_id: str, admin: bool = False) -> list[ListeningAudioDto]:
        prefix = "/test-management" if admin else "/mock-submission"
        data = self._call(
            "GET", f"{prefix}/get-all-listening-audio", params={"testId": test_id}
        )
        audio = [ListeningAudioDto.model_validate(item) for item in data or []]
        # Files without an explicit position keep their server order
        return sorted(
            audio,
            key=lambda a: a.ord if a.ord is not None else float("inf"),
        )

    def get_submitted_answers(self, mock_id: str, section_id: str) -> list[dict[str, Any]]:
        data = self._call(
            "GET",
            "/mock-submission/get-all-question-submitted-answers",
            params={"mockId": mock_id, "sectionId": section_id},
        )
        return data or []

    def get_submitted_and_correct_answers(
        self, mock_id: str, section_id: str
    ) -> list[dict[str, Any]]:
        data = self._call(
            "GET",
            "/mock-submission/get-all-question-submitted-and-correct-answers",
            params={"mockId": mock_id, "sectionId": section_id},
        )
        return data or []

    # -- mock results (admin) ------------------------------------------------

    def set_answer_as_correct(
        self, mock_id: str, section_id: str, question_ord: int, is_correct: bool
    ) -> Any:
        return self._call(
            "POST",
            "/mock-result/set-answer-as-correct",
            json={
                "mockId": mock_id,
                "sectionId": section_id,
                "questionOrd": question_ord,
                "isCorrect": 1 if is_correct else 0,
            },
        )

    def calc_score(self, mock_id: str, section_id: str) -> Any:
        return self._call(
            "POST",
            "/mock-result/calc-score",
            json={"mockId": mock_id, "sectionId": section_id},
        )

    def save_writing_grade(
        self,
        mock_id: str,
        section_id: str,
        part_one_score: float,
        part_two_score: float,
    ) -> Any:
        return self._call(
            "POST",
            "/mock-result/grade-writing",
            json={
                "mockId": mock_id,
                "sectionId": section_id,
                "writingPartOneScore": part_one_score,
                "writingPartTwoScore": part_two_score,
            },
        )

    def get_all_mock_results(
        self, page: int = 0, size: int = 20
    ) -> tuple[list[MockResultDto], int]:
        """List mock results; accepts pageable, bare-array and wrapped responses."""
        payload = self._request(
            "GET", "/mock-result/get-all-mock", params={"page": page, "size": size}
        )
        items: list[Any]
        total: int
        if isinstance(payload, dict) and isinstance(payload.get("content"), list):
            items = payload["content"]
            total = int(payload.get("totalElements") or len(items))
        elif isinstance(payload, list):
            items = payload
            total = len(items)
        elif isinstance(payload, dict) and isinstance(payload.get("data"), list):
            if payload.get("success") is False:
                raise BackendError(payload.get("reason") or "Failed to load mock results")
            items = payload["data"]
            total = int(payload.get("totalCount") or len(items))
        else:
            items, total = [], 0
        return [MockResultDto.model_validate(item) for item in items], total

    # -- test management (admin) ---------------------------------------------

    def save_part_question_content(self, part_id: str, content: dict[str, Any]) -> Any:
        return self._call(
            "POST",
            "/test-management/save-part-question-content",
            json={"partId": part_id, "content": safe_stringify_json(content)},
        )

    def file_download_url(self, file_id: str) -> str:
        return f"{self.base_url}/file/download/{file_id}"

    def download(self, url: str) -> bytes:
        """Download a stored file (audio, image) with the current token."""
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        try:
            response = self._session.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise BackendError(f"Download of {url} failed: {exc}") from exc
        if response.status_code == 401:
            self.token = None
            raise BackendAuthError("Session expired, sign in again", status_code=401)
        if response.status_code >= 400:
            raise BackendError(_error_reason(response), status_code=response.status_code)
        return response.content


def _error_reason(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("reason"):
        return str(body["reason"])
    return f"Backend returned HTTP {response.status_code}"
