"""Service for reviewing submitted answers and overriding their grading."""
import logging
import threading
from typing import Any

from ielts_mock.models.session import ReviewResponse, SectionSummary, SubmittedAnswer
from ielts_mock.services.backend_client import BackendClient
from ielts_mock.utils.json_utils import normalize_array_maybe_string_or_object
from ielts_mock.utils.text_utils import strip_html

logger = logging.getLogger(__name__)


def _correct_flag(value: Any) -> bool | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("1", "true"):
            return True
        if lowered in ("0", "false"):
            return False
    return None


def _clean_answer(value: Any) -> str | list[str] | None:
    if value is None:
        return None
    if isinstance(value, list):
        return [strip_html(str(v)) for v in value if v is not None]
    return strip_html(str(value))


def _clean_correct_answers(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        cleaned = strip_html(value)
        return [cleaned] if cleaned else []
    items = value if isinstance(value, list) else normalize_array_maybe_string_or_object(value)
    return [strip_html(str(item)) for item in items if item not in (None, "")]


def parse_submitted_answers(items: list[dict[str, Any]] | None) -> list[SubmittedAnswer]:
    """Normalize backend answer rows, ordered by question number.

    Rows without a usable ``questionOrd`` are dropped.
    """
    answers: list[SubmittedAnswer] = []
    for item in items or []:
        if not isinstance(item, dict):
            continue
        try:
            question_ord = int(item.get("questionOrd"))
        except (TypeError, ValueError):
            logger.warning("Skipping submitted answer without questionOrd: %s", item)
            continue
        answers.append(
            SubmittedAnswer(
                questionOrd=question_ord,
                answer=_clean_answer(item.get("answer")),
                isCorrect=_correct_flag(item.get("isCorrect")),
                correctAnswers=_clean_correct_answers(
                    item.get("correctAnswers", item.get("correctAnswer"))
                ),
            )
        )
    answers.sort(key=lambda a: a.questionOrd)
    return answers


def summarize(answers: list[SubmittedAnswer]) -> SectionSummary:
    """Count answers by outcome; ungraded answers are not counted as incorrect."""
    summary = SectionSummary(total=len(answers))
    for answer in answers:
        if answer.answer in (None, "", []):
            summary.notAnswered += 1
        elif answer.isCorrect is None:
            summary.notGraded += 1
        elif answer.isCorrect:
            summary.correct += 1
        else:
            summary.incorrect += 1
    return summary


class ReviewSession:
    """Admin view over one submitted section.

    Correctness always comes from the server. Overrides are forwarded as-is;
    marking an unanswered question correct is allowed. Backend calls use the
    client passed in by the caller, falling back to the one that loaded the
    review.
    """

    def __init__(self, mock_id: str, section_id: str, client: BackendClient) -> None:
        self.mock_id = mock_id
        self.section_id = section_id
        self.client = client
        self.answers: list[SubmittedAnswer] = []
        self.correctness: dict[int, bool | None] = {}
        self.recalculations = 0
        self._lock = threading.Lock()

    def load(self, client: BackendClient | None = None) -> list[SubmittedAnswer]:
        rows = (client or self.client).get_submitted_and_correct_answers(self.mock_id, self.section_id)
        answers = parse_submitted_answers(rows)
        with self._lock:
            self.answers = answers
            self.correctness = {a.questionOrd: a.isCorrect for a in answers}
        logger.info(
            "Loaded %s submitted answer(s) for %s/%s", len(answers), self.mock_id, self.section_id
        )
        return answers

    def mark(
        self, question_ord: int, is_correct: bool, client: BackendClient | None = None
    ) -> bool:
        """Override the grading of one question and recalculate the score.

        Returns ``False`` without calling the backend when the question
        already holds that value.
        """
        with self._lock:
            if self.correctness.get(question_ord) is is_correct:
                return False
        client = client or self.client
        client.set_answer_as_correct(self.mock_id, self.section_id, question_ord, is_correct)
        with self._lock:
            self.correctness[question_ord] = is_correct
            self.answers = [
                a.model_copy(update={"isCorrect": is_correct}) if a.questionOrd == question_ord else a
                for a in self.answers
            ]
        self.recalculate(client)
        logger.info(
            "Marked question %s of %s/%s as %s",
            question_ord,
            self.mock_id,
            self.section_id,
            "correct" if is_correct else "incorrect",
        )
        return True

    def recalculate(self, client: BackendClient | None = None) -> Any:
        result = (client or self.client).calc_score(self.mock_id, self.section_id)
        with self._lock:
            self.recalculations += 1
        return result

    def summary(self) -> SectionSummary:
        with self._lock:
            return summarize(self.answers)

    def to_response(self) -> ReviewResponse:
        with self._lock:
            answers = list(self.answers)
            recalculations = self.recalculations
        return ReviewResponse(
            mockId=self.mock_id,
            sectionId=self.section_id,
            answers=answers,
            summary=summarize(answers),
            recalculations=recalculations,
        )


class ReviewRegistry:
    """Loaded review sessions keyed by ``(mock_id, section_id)``."""

    def __init__(self) -> None:
        self._reviews: dict[tuple[str, str], ReviewSession] = {}
        self._lock = threading.Lock()

    def open(
        self, mock_id: str, section_id: str, client: BackendClient, reload: bool = False
    ) -> ReviewSession:
        """Return the cached review or load it from the backend."""
        with self._lock:
            review = self._reviews.get((mock_id, section_id))
        if review is not None and not reload:
            return review
        review = ReviewSession(mock_id, section_id, client)
        review.load()
        with self._lock:
            self._reviews[(mock_id, section_id)] = review
        return review

    def clear(self) -> None:
        with self._lock:
            self._reviews.clear()


def save_writing_grade(
    client: BackendClient,
    mock_id: str,
    section_id: str,
    part_one_score: float,
    part_two_score: float,
) -> Any:
    """Store the examiner's band scores for both writing tasks."""
    logger.info(
        "Saving writing grade for %s/%s: %.1f / %.1f",
        mock_id,
        section_id,
        part_one_score,
        part_two_score,
    )
    return client.save_writing_grade(mock_id, section_id, part_one_score, part_two_score)
