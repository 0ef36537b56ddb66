import json
from typing import Any

import pytest

from ielts_mock.models import backend as dto
from ielts_mock.models.backend import ListeningAudioDto, MockDto, PartDto, SectionDto
from ielts_mock.services.backend_client import BackendError


class FakeBackend:
    """In-memory stand-in for BackendClient that records every call."""

    base_url = "https://backend.test"

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.parts: dict[str, list[PartDto]] = {}
        self.contents: dict[str, Any] = {}
        self.audio: list[ListeningAudioDto] = []
        self.files: dict[str, bytes] = {}
        self.submitted: list[dict[str, Any]] = []
        self.fail_on: set[str] = set()
        self.tests: list[dict[str, Any]] = []
        self.mocks: list[dict[str, Any]] = []
        self.sections: list[dict[str, Any]] = []

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise BackendError(f"{name} failed", status_code=500)

    def calls_to(self, name: str) -> list[tuple[Any, ...]]:
        return [call for call in self.calls if call[0] == name]

    def add_part(self, section_id: str, part_id: str, content: Any) -> None:
        parts = self.parts.setdefault(section_id, [])
        parts.append(PartDto(id=part_id, ord=len(parts) + 1))
        self.contents[part_id] = content if isinstance(content, str) else json.dumps(content)

    def get_all_tests(self, page: int = 0, size: int = 10) -> list[dto.TestDto]:
        self._record("get_all_tests", page, size)
        return [dto.TestDto.model_validate(item) for item in self.tests]

    def get_all_mocks(self, page: int = 0, size: int = 10) -> list[MockDto]:
        self._record("get_all_mocks", page, size)
        return [MockDto.model_validate(item) for item in self.mocks]

    def get_all_sections(
        self, test_id: str, mock_id: str | None = None, admin: bool = False
    ) -> list[SectionDto]:
        self._record("get_all_sections", test_id, mock_id)
        return [SectionDto.model_validate(item) for item in self.sections]

    def start_mock(self, test_id: str | None = None) -> str:
        self._record("start_mock", test_id)
        return "mock-new"

    def start_section(self, mock_id: str, section_id: str) -> None:
        self._record("start_section", mock_id, section_id)

    def send_answer(self, mock_id: str, section_id: str, question_ord: int, answer: str) -> None:
        self._record("send_answer", mock_id, section_id, question_ord, answer)

    def finish_section(self, mock_id: str, section_id: str) -> None:
        self._record("finish_section", mock_id, section_id)

    def get_all_parts(self, section_id: str, admin: bool = False) -> list[PartDto]:
        self._record("get_all_parts", section_id, admin)
        return list(self.parts.get(section_id, []))

    def get_part_question_content(self, part_id: str, admin: bool = False) -> Any:
        self._record("get_part_question_content", part_id, admin)
        if part_id not in self.contents:
            raise BackendError(f"Part {part_id} not found", status_code=404)
        return self.contents[part_id]

    def get_all_listening_audio(self, test_id: str, admin: bool = False) -> list[ListeningAudioDto]:
        self._record("get_all_listening_audio", test_id, admin)
        return list(self.audio)

    def file_download_url(self, file_id: str) -> str:
        return f"{self.base_url}/file/download/{file_id}"

    def download(self, url: str) -> bytes:
        self._record("download", url)
        file_id = url.rsplit("/", 1)[-1]
        if file_id not in self.files:
            raise BackendError(f"Download of {url} failed", status_code=404)
        return self.files[file_id]

    def get_submitted_and_correct_answers(self, mock_id: str, section_id: str) -> list[dict[str, Any]]:
        self._record("get_submitted_and_correct_answers", mock_id, section_id)
        return list(self.submitted)

    def set_answer_as_correct(
        self, mock_id: str, section_id: str, question_ord: int, is_correct: bool
    ) -> None:
        self._record("set_answer_as_correct", mock_id, section_id, question_ord, is_correct)

    def calc_score(self, mock_id: str, section_id: str) -> dict[str, float]:
        self._record("calc_score", mock_id, section_id)
        return {"score": 6.5}

    def save_writing_grade(
        self, mock_id: str, section_id: str, part_one_score: float, part_two_score: float
    ) -> None:
        self._record("save_writing_grade", mock_id, section_id, part_one_score, part_two_score)


class RecordingJournal:
    """Attempt journal double keeping events in memory."""

    def __init__(self, stored: dict[int, Any] | None = None) -> None:
        self.events: list[tuple[Any, ...]] = []
        self.stored = stored or {}

    def started(self, mock_id: str, section_id: str, section_type: str, question_count: int) -> None:
        self.events.append(("started", mock_id, section_id, section_type, question_count))

    def answer_changed(
        self,
        mock_id: str,
        section_id: str,
        section_type: str,
        question_id: int,
        value: Any,
        is_draft: bool = False,
    ) -> None:
        self.events.append(("answer", question_id, value, is_draft))

    def restore(self, mock_id: str, section_id: str) -> dict[int, Any]:
        return dict(self.stored)

    def submitted(self, mock_id: str, section_id: str, answered_count: int, duration: int) -> None:
        self.events.append(("submitted", answered_count))

    def failed(self, mock_id: str, section_id: str, error: str) -> None:
        self.events.append(("failed", error))


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def journal() -> RecordingJournal:
    return RecordingJournal()


@pytest.fixture
def other_backend() -> FakeBackend:
    """A second caller with its own token."""
    return FakeBackend()
