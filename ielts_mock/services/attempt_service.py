"""Service layer for the local attempt journal (SQLite via SQLAlchemy)."""
import logging
from typing import Any, Callable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from ielts_mock.database import SessionLocal
from ielts_mock.models.db.attempt import AttemptAnswer, AttemptStatus, ExamAttempt
from ielts_mock.models.session import FailedAttemptResponse
from ielts_mock.utils.time_utils import utc_now

logger = logging.getLogger(__name__)


def get_attempt(db: DBSession, mock_id: str, section_id: str) -> ExamAttempt | None:
    """Get attempt for a mock section."""
    return db.execute(
        select(ExamAttempt).where(
            ExamAttempt.mock_id == mock_id,
            ExamAttempt.section_id == section_id,
        )
    ).scalar_one_or_none()


def get_or_create_attempt(
    db: DBSession,
    mock_id: str,
    section_id: str,
    section_type: str,
    question_count: int = 0,
) -> ExamAttempt:
    """
    Get existing attempt or create a new one.
    """
    attempt = get_attempt(db, mock_id, section_id)
    if attempt:
        if question_count and attempt.question_count != question_count:
            attempt.question_count = question_count
            db.commit()
        return attempt

    attempt = ExamAttempt(
        mock_id=mock_id,
        section_id=section_id,
        section_type=section_type,
        question_count=question_count,
        status=AttemptStatus.IN_PROGRESS.value,
    )
    db.add(attempt)
    db.commit()
    db.refresh(attempt)
    return attempt


def record_answer(
    db: DBSession,
    attempt: ExamAttempt,
    question_id: int,
    value: Any,
    is_draft: bool = False,
) -> AttemptAnswer:
    """
    Record or update the latest answer for a question.
    """
    answer = db.execute(
        select(AttemptAnswer).where(
            AttemptAnswer.attempt_id == attempt.id,
            AttemptAnswer.question_id == question_id,
        )
    ).scalar_one_or_none()

    if not answer:
        answer = AttemptAnswer(attempt_id=attempt.id, question_id=question_id)
        db.add(answer)

    answer.value = value
    answer.is_draft = is_draft
    answer.updated_at = utc_now()

    db.commit()
    db.refresh(answer)
    return answer


def delete_answer(db: DBSession, attempt: ExamAttempt, question_id: int) -> bool:
    answer = db.execute(
        select(AttemptAnswer).where(
            AttemptAnswer.attempt_id == attempt.id,
            AttemptAnswer.question_id == question_id,
        )
    ).scalar_one_or_none()
    if not answer:
        return False
    db.delete(answer)
    db.commit()
    return True


def get_answers(db: DBSession, mock_id: str, section_id: str) -> dict[int, Any]:
    """Get stored answers of an attempt keyed by question number."""
    attempt = get_attempt(db, mock_id, section_id)
    if not attempt:
        return {}
    rows = db.execute(
        select(AttemptAnswer)
        .where(AttemptAnswer.attempt_id == attempt.id)
        .order_by(AttemptAnswer.question_id)
    ).scalars().all()
    return {row.question_id: row.value for row in rows if row.value is not None}


def finish_attempt(
    db: DBSession,
    mock_id: str,
    section_id: str,
    answered_count: int,
    total_duration_seconds: int = 0,
) -> ExamAttempt | None:
    """
    Mark an attempt as submitted.
    """
    attempt = get_attempt(db, mock_id, section_id)
    if not attempt:
        return None

    attempt.status = AttemptStatus.SUBMITTED.value
    attempt.finished_at = utc_now()
    attempt.answered_count = answered_count
    attempt.total_duration_seconds = total_duration_seconds
    attempt.submit_error = None

    db.commit()
    db.refresh(attempt)
    return attempt


def fail_attempt(db: DBSession, mock_id: str, section_id: str, error: str) -> ExamAttempt | None:
    """Record a failed submission so it is visible and can be retried."""
    attempt = get_attempt(db, mock_id, section_id)
    if not attempt:
        return None

    attempt.status = AttemptStatus.SUBMIT_FAILED.value
    attempt.submit_error = error
    db.commit()
    db.refresh(attempt)
    return attempt


def list_failed_attempts(db: DBSession, limit: int = 100) -> list[ExamAttempt]:
    return list(
        db.execute(
            select(ExamAttempt)
            .where(ExamAttempt.status == AttemptStatus.SUBMIT_FAILED.value)
            .order_by(ExamAttempt.started_at.desc())
            .limit(limit)
        ).scalars().all()
    )


class AttemptJournal:
    """Session-facing adapter over the attempt tables.

    Sessions call it from request handlers and from timer threads, so each
    call opens its own database session. Journal failures are logged and
    never interrupt the exam.
    """

    def __init__(self, session_factory: Callable[[], DBSession] = SessionLocal) -> None:
        self._session_factory = session_factory

    def _run(self, action: str, func: Callable[[DBSession], Any]) -> Any:
        db = self._session_factory()
        try:
            return func(db)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Attempt journal failed to %s: %s", action, exc)
            return None
        finally:
            db.close()

    def started(self, mock_id: str, section_id: str, section_type: str, question_count: int) -> None:
        self._run(
            "start attempt",
            lambda db: get_or_create_attempt(db, mock_id, section_id, section_type, question_count),
        )

    def answer_changed(
        self,
        mock_id: str,
        section_id: str,
        section_type: str,
        question_id: int,
        value: Any,
        is_draft: bool = False,
    ) -> None:
        def _record(db: DBSession) -> None:
            attempt = get_or_create_attempt(db, mock_id, section_id, section_type)
            if value is None:
                delete_answer(db, attempt, question_id)
            else:
                record_answer(db, attempt, question_id, value, is_draft)

        self._run("record answer", _record)

    def restore(self, mock_id: str, section_id: str) -> dict[int, Any]:
        return self._run("restore answers", lambda db: get_answers(db, mock_id, section_id)) or {}

    def submitted(self, mock_id: str, section_id: str, answered_count: int, duration: int) -> None:
        self._run(
            "finish attempt",
            lambda db: finish_attempt(db, mock_id, section_id, answered_count, duration),
        )

    def failed(self, mock_id: str, section_id: str, error: str) -> None:
        self._run("record failed submission", lambda db: fail_attempt(db, mock_id, section_id, error))

    def failed_attempts(self, limit: int = 100) -> list[FailedAttemptResponse]:
        return self._run(
            "list failed attempts",
            lambda db: [
                FailedAttemptResponse.model_validate(attempt)
                for attempt in list_failed_attempts(db, limit)
            ],
        ) or []
