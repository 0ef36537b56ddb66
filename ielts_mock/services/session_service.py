"""Exam session state for Listening, Reading and Writing sections.

A session moves through ``IDLE -> LOADING -> READY -> IN_PROGRESS ->
SUBMITTING -> SUBMITTED``. Preview mode is an orthogonal flag: a preview
session is read-only and shows submitted answers with their correctness.

Sessions are owned by a :class:`SessionRegistry` that the web layer injects
into request handlers.
"""
from __future__ import annotations

import abc
import enum
import logging
import threading
import time
from typing import Any, Callable, Iterable

from ielts_mock.config import (
    AUTOSAVE_INTERVAL_SECONDS,
    LISTENING_BUFFER_SECONDS,
    MIN_FALLBACK_PARTS,
    PART_FALLBACK_SECONDS,
    READING_DURATION_SECONDS,
    WRITING_DURATION_SECONDS,
)
from ielts_mock.models.content import (
    ListeningPart,
    Question,
    ReadingPart,
    SectionType,
    WritingTask,
)
from ielts_mock.models.session import AnswerValue, SessionResponse, SubmittedAnswer, TimerState
from ielts_mock.services.backend_client import BackendClient, BackendError
from ielts_mock.services.timer_service import CountdownTimer, RepeatingTask
from ielts_mock.utils.text_utils import word_count

logger = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    """Lifecycle state of an exam session."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    IN_PROGRESS = "in_progress"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"


class SessionStateError(Exception):
    """Operation is not allowed in the session's current state."""


class InvalidAnswerError(ValueError):
    """Answer value is neither a string nor a list of strings."""


class SubmissionError(Exception):
    """Flushing answers or finishing the section on the backend failed."""


def listening_duration(audio_seconds: int, parts_count: int) -> int:
    """Total listening time: audio plus a fixed buffer.

    Without audio metadata the time is estimated per part, assuming at
    least the four parts of a full test.
    """
    if audio_seconds > 0:
        return int(audio_seconds) + LISTENING_BUFFER_SECONDS
    return max(parts_count, MIN_FALLBACK_PARTS) * PART_FALLBACK_SECONDS


def serialize_answer(value: AnswerValue) -> str:
    """Wire form of an answer; multi-select values are comma separated."""
    if isinstance(value, list):
        return ", ".join(value)
    return value


class ExamSession(abc.ABC):
    """State shared by all section sessions.

    ``client`` belongs to whoever started the session and is used by the
    timer and auto-save threads. Request handlers pass their own client to
    :meth:`finish_section`.
    """

    section_type: SectionType

    def __init__(
        self,
        mock_id: str,
        section_id: str,
        client: BackendClient | None = None,
        journal: Any = None,
    ) -> None:
        self.mock_id = mock_id
        self.section_id = section_id
        self.client = client
        self.journal = journal
        self.state = SessionState.IDLE
        self.preview_mode = False
        self.answers: dict[int, AnswerValue] = {}
        self.correctness: dict[int, bool | None] = {}
        self.timer: CountdownTimer | None = None
        self.submit_error: str | None = None
        self.started_at: float | None = None
        self._lock = threading.RLock()

    # -- state ---------------------------------------------------------------

    def _transition(self, allowed: Iterable[SessionState], target: SessionState) -> None:
        with self._lock:
            if self.state not in allowed:
                raise SessionStateError(
                    f"Cannot move from {self.state.value} to {target.value}"
                )
            logger.debug(
                "Session %s/%s: %s -> %s",
                self.mock_id,
                self.section_id,
                self.state.value,
                target.value,
            )
            self.state = target

    def begin_loading(self) -> None:
        self._transition({SessionState.IDLE, SessionState.READY}, SessionState.LOADING)

    def _mark_ready(self) -> None:
        self._transition(
            {SessionState.IDLE, SessionState.LOADING, SessionState.READY},
            SessionState.READY,
        )
        self.answers.clear()
        self.correctness.clear()

    def set_preview_mode(self, preview: bool) -> None:
        with self._lock:
            self.preview_mode = preview

    @property
    def question_count(self) -> int:
        return 0

    # -- answers -------------------------------------------------------------

    def _check_writable(self) -> None:
        if self.preview_mode:
            raise SessionStateError("Session is in preview mode")
        if self.state in (SessionState.SUBMITTING, SessionState.SUBMITTED):
            raise SessionStateError("Section has already been submitted")

    def set_answer(self, question_id: int, value: AnswerValue, is_draft: bool = False) -> None:
        """Store an answer for a question number."""
        if isinstance(value, list):
            if not all(isinstance(v, str) for v in value):
                raise InvalidAnswerError("Multi-select answers must be strings")
            value = list(value)
        elif not isinstance(value, str):
            raise InvalidAnswerError("Answer must be a string or a list of strings")

        with self._lock:
            self._check_writable()
            self.answers[question_id] = value
        self._journal_answer(question_id, value, is_draft)

    def get_answer(self, question_id: int) -> AnswerValue | None:
        return self.answers.get(question_id)

    def remove_answer(self, question_id: int) -> None:
        with self._lock:
            self._check_writable()
            self.answers.pop(question_id, None)
        self._journal_answer(question_id, None)

    def is_question_answered(self, question_id: int) -> bool:
        answer = self.answers.get(question_id)
        if isinstance(answer, list):
            return len(answer) > 0
        return answer is not None and answer != ""

    @property
    def answered_count(self) -> int:
        return sum(1 for qid in self.answers if self.is_question_answered(qid))

    def restore_answers(self, answers: dict[int, Any]) -> int:
        """Put back answers journaled before a reload; returns how many."""
        restored = 0
        with self._lock:
            self._check_writable()
            for question_id, value in answers.items():
                if isinstance(value, str) or (
                    isinstance(value, list) and all(isinstance(v, str) for v in value)
                ):
                    self.answers[int(question_id)] = value
                    restored += 1
        return restored

    def load_submitted_answers_with_correctness(
        self, submitted: Iterable[SubmittedAnswer | dict[str, Any]]
    ) -> None:
        """Show server-graded answers; correctness is taken as given."""
        with self._lock:
            if not self.preview_mode:
                raise SessionStateError("Submitted answers are only shown in preview mode")
            self.answers.clear()
            self.correctness.clear()
            for item in submitted:
                if not isinstance(item, SubmittedAnswer):
                    item = SubmittedAnswer.model_validate(item)
                if item.answer is not None:
                    self.answers[item.questionOrd] = item.answer
                self.correctness[item.questionOrd] = item.isCorrect

    def set_correctness(self, question_id: int, is_correct: bool | None) -> None:
        with self._lock:
            self.correctness[question_id] = is_correct

    # -- timer ---------------------------------------------------------------

    def _start_countdown(
        self, total_seconds: int, on_expire: Callable[[], None] | None
    ) -> CountdownTimer:
        if self.preview_mode:
            raise SessionStateError("Preview sessions are not timed")
        self._transition({SessionState.READY}, SessionState.IN_PROGRESS)
        self.started_at = time.monotonic()
        self.timer = CountdownTimer(total_seconds, on_expire or self._auto_submit)
        self.timer.start()
        logger.info(
            "Started %s timer for %s/%s: %ss",
            self.section_type.value,
            self.mock_id,
            self.section_id,
            total_seconds,
        )
        if self.journal is not None:
            self.journal.started(
                self.mock_id, self.section_id, self.section_type.value, self.question_count
            )
        return self.timer

    @abc.abstractmethod
    def start_timer(self, on_expire: Callable[[], None] | None = None) -> CountdownTimer:
        """Start the section countdown."""

    def stop_timer(self) -> None:
        if self.timer is not None:
            self.timer.stop()

    def timer_state(self) -> TimerState | None:
        return self.timer.state() if self.timer else None

    def _auto_submit(self) -> None:
        logger.info("Time is up for %s/%s, submitting", self.mock_id, self.section_id)
        try:
            self.finish_section()
        except SubmissionError as exc:
            logger.error("Auto-submit of %s/%s failed: %s", self.mock_id, self.section_id, exc)

    # -- submission ----------------------------------------------------------

    def _flush_answers(self, client: BackendClient, answers: dict[int, AnswerValue]) -> None:
        for question_id in sorted(answers):
            client.send_answer(
                self.mock_id, self.section_id, question_id, serialize_answer(answers[question_id])
            )

    def _stop_background(self) -> None:
        self.stop_timer()

    def finish_section(self, client: BackendClient | None = None) -> bool:
        """Send every answer, then close the section on the backend.

        Returns ``False`` when the section is already being submitted (for
        example when the timer fires while the learner clicks submit).
        """
        with self._lock:
            if self.preview_mode:
                raise SessionStateError("Preview sessions cannot be submitted")
            if self.state in (SessionState.SUBMITTING, SessionState.SUBMITTED):
                return False
            client = client or self.client
            if client is None:
                raise SessionStateError("Session has no backend client")
            self._transition({SessionState.READY, SessionState.IN_PROGRESS}, SessionState.SUBMITTING)
            answers = dict(self.answers)

        try:
            self._flush_answers(client, answers)
            client.finish_section(self.mock_id, self.section_id)
        except BackendError as exc:
            with self._lock:
                self.state = SessionState.IN_PROGRESS
                self.submit_error = str(exc)
            logger.error("Submitting %s/%s failed: %s", self.mock_id, self.section_id, exc)
            if self.journal is not None:
                self.journal.failed(self.mock_id, self.section_id, str(exc))
            raise SubmissionError(str(exc)) from exc

        with self._lock:
            self.state = SessionState.SUBMITTED
            self.submit_error = None
        self._stop_background()

        duration = int(time.monotonic() - self.started_at) if self.started_at else 0
        logger.info(
            "Submitted %s answer(s) for %s/%s", len(answers), self.mock_id, self.section_id
        )
        if self.journal is not None:
            self.journal.submitted(self.mock_id, self.section_id, len(answers), duration)
        return True

    def reset(self) -> None:
        self._stop_background()
        with self._lock:
            self.timer = None
            self.answers.clear()
            self.correctness.clear()
            self.submit_error = None
            self.started_at = None
            self.preview_mode = False
            self.state = SessionState.IDLE

    # -- helpers -------------------------------------------------------------

    def _journal_answer(self, question_id: int, value: Any, is_draft: bool = False) -> None:
        if self.journal is not None:
            self.journal.answer_changed(
                self.mock_id,
                self.section_id,
                self.section_type.value,
                question_id,
                value,
                is_draft,
            )

    def snapshot(self) -> SessionResponse:
        with self._lock:
            return SessionResponse(
                mockId=self.mock_id,
                sectionId=self.section_id,
                sectionType=self.section_type,
                state=self.state.value,
                previewMode=self.preview_mode,
                timer=self.timer_state(),
                answers=dict(self.answers),
                correctness=dict(self.correctness),
                submitError=self.submit_error,
            )


class QuestionSession(ExamSession):
    """Session over numbered questions grouped into parts."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.parts: list[Any] = []
        self.current_part = 1
        self.current_question_index = 0

    def set_parts(self, parts: list[Any]) -> None:
        """Replace the question set; answers are cleared."""
        with self._lock:
            self._mark_ready()
            self.parts = list(parts)
            self.current_part = 1
            self.current_question_index = 0

    @property
    def all_questions(self) -> list[Question]:
        return [q for part in self.parts for q in part.questions]

    @property
    def question_count(self) -> int:
        return len(self.all_questions)

    def current_part_data(self) -> Any:
        return next((p for p in self.parts if p.id == self.current_part), None)

    def current_question(self) -> Question | None:
        part = self.current_part_data()
        if part is None or not 0 <= self.current_question_index < len(part.questions):
            return None
        return part.questions[self.current_question_index]

    def go_to_question(self, question_number: int) -> bool:
        for part in self.parts:
            low, high = part.questionRange
            if low <= question_number <= high:
                self.current_part = part.id
                self.current_question_index = question_number - low
                return True
        return False

    def next_question(self) -> None:
        part = self.current_part_data()
        if part is None:
            return
        if self.current_question_index < len(part.questions) - 1:
            self.current_question_index += 1
        elif self.current_part < len(self.parts):
            self.current_part += 1
            self.current_question_index = 0

    def previous_question(self) -> None:
        if self.current_question_index > 0:
            self.current_question_index -= 1
        elif self.current_part > 1:
            self.current_part -= 1
            previous = self.current_part_data()
            self.current_question_index = max(len(previous.questions) - 1, 0) if previous else 0

    def snapshot(self) -> SessionResponse:
        response = super().snapshot()
        response.parts = list(self.parts)
        return response


class ListeningSession(QuestionSession):
    section_type = SectionType.LISTENING
    parts: list[ListeningPart]

    def start_timer_after_audio(
        self, audio_seconds: int, on_expire: Callable[[], None] | None = None
    ) -> CountdownTimer:
        """Start the countdown once all audio has been preloaded."""
        return self._start_countdown(listening_duration(audio_seconds, len(self.parts)), on_expire)

    def start_timer(self, on_expire: Callable[[], None] | None = None) -> CountdownTimer:
        return self.start_timer_after_audio(0, on_expire)


class ReadingSession(QuestionSession):
    section_type = SectionType.READING
    parts: list[ReadingPart]

    def start_timer(self, on_expire: Callable[[], None] | None = None) -> CountdownTimer:
        return self._start_countdown(READING_DURATION_SECONDS, on_expire)


class WritingSession(ExamSession):
    """Free-text tasks; answers are keyed by task number."""

    section_type = SectionType.WRITING

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.tasks: list[WritingTask] = []
        self.current_task = 1
        self._auto_save: RepeatingTask | None = None

    def set_tasks(self, tasks: list[WritingTask]) -> None:
        with self._lock:
            self._mark_ready()
            self.tasks = list(tasks)
            self.current_task = 1

    @property
    def question_count(self) -> int:
        return len(self.tasks)

    def set_answer(self, question_id: int, value: AnswerValue, is_draft: bool = False) -> None:
        if not isinstance(value, str):
            raise InvalidAnswerError("Writing answers must be text")
        super().set_answer(question_id, value, is_draft)

    def word_count(self, task_id: int) -> int:
        answer = self.answers.get(task_id)
        return word_count(answer if isinstance(answer, str) else "")

    def start_timer(self, on_expire: Callable[[], None] | None = None) -> CountdownTimer:
        return self._start_countdown(WRITING_DURATION_SECONDS, on_expire)

    def save_drafts(self) -> None:
        """Persist the current text of every task (last write wins)."""
        with self._lock:
            if self.state != SessionState.IN_PROGRESS or self.client is None:
                return
            answers = dict(self.answers)
        for task_id, text in sorted(answers.items()):
            self.client.send_answer(self.mock_id, self.section_id, task_id, serialize_answer(text))
            self._journal_answer(task_id, text, is_draft=True)
        logger.debug("Auto-saved %s writing task(s) for %s", len(answers), self.mock_id)

    def start_auto_save(self, interval: float = AUTOSAVE_INTERVAL_SECONDS) -> RepeatingTask:
        if self._auto_save is None:
            self._auto_save = RepeatingTask(interval, self.save_drafts, name="writing_autosave")
            self._auto_save.start()
        return self._auto_save

    def stop_auto_save(self) -> None:
        if self._auto_save is not None:
            self._auto_save.stop()
            self._auto_save = None

    def _flush_answers(self, client: BackendClient, answers: dict[int, AnswerValue]) -> None:
        # Every task is sent, empty ones included
        for task in self.tasks:
            text = answers.get(task.id, "")
            client.send_answer(self.mock_id, self.section_id, task.id, serialize_answer(text))

    def _stop_background(self) -> None:
        super()._stop_background()
        self.stop_auto_save()

    def snapshot(self) -> SessionResponse:
        response = super().snapshot()
        response.tasks = list(self.tasks)
        return response


SESSION_TYPES: dict[SectionType, type[ExamSession]] = {
    SectionType.LISTENING: ListeningSession,
    SectionType.READING: ReadingSession,
    SectionType.WRITING: WritingSession,
}


class SessionRegistry:
    """Active sessions keyed by ``(mock_id, section_id)``."""

    def __init__(self) -> None:
        self._sessions: dict[tuple[str, str], ExamSession] = {}
        self._lock = threading.Lock()

    def create(
        self,
        section_type: SectionType,
        mock_id: str,
        section_id: str,
        client: BackendClient | None = None,
        journal: Any = None,
    ) -> ExamSession:
        """Create a session, replacing (and resetting) any previous one."""
        session_cls = SESSION_TYPES.get(section_type)
        if session_cls is None:
            raise SessionStateError(f"Unsupported section type: {section_type.value}")
        session = session_cls(mock_id, section_id, client=client, journal=journal)
        with self._lock:
            previous = self._sessions.get((mock_id, section_id))
            self._sessions[(mock_id, section_id)] = session
        if previous is not None:
            previous.reset()
        return session

    def get(self, mock_id: str, section_id: str) -> ExamSession | None:
        with self._lock:
            return self._sessions.get((mock_id, section_id))

    def remove(self, mock_id: str, section_id: str) -> None:
        with self._lock:
            session = self._sessions.pop((mock_id, section_id), None)
        if session is not None:
            session.reset()

    def clear(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.reset()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
