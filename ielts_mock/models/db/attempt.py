"""
ExamAttempt and AttemptAnswer database models.

Local journal of exam sessions: the answers a learner entered, auto-saved
drafts, and how the final submission to the backend went.
"""

from __future__ import annotations

import enum
import json
from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ielts_mock.database import Base
from ielts_mock.utils.time_utils import utc_now


class AttemptStatus(str, enum.Enum):
    """Status of a section attempt."""

    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    SUBMIT_FAILED = "submit_failed"


class ExamAttempt(Base):
    """
    One learner's session against one section of a mock.
    """

    __tablename__ = "exam_attempts"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    # References to backend identifiers
    mock_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    section_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    section_type: Mapped[str] = mapped_column(String(20), nullable=False)

    # Timing
    started_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )
    finished_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    total_duration_seconds: Mapped[int] = mapped_column(default=0, nullable=False)

    # Status and results
    status: Mapped[str] = mapped_column(
        String(20), default=AttemptStatus.IN_PROGRESS.value, nullable=False
    )
    question_count: Mapped[int] = mapped_column(default=0, nullable=False)
    answered_count: Mapped[int] = mapped_column(default=0, nullable=False)
    submit_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    answers: Mapped[list["AttemptAnswer"]] = relationship(
        "AttemptAnswer", back_populates="attempt", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("mock_id", "section_id", name="uq_attempt_mock_section"),
    )

    @property
    def is_submitted(self) -> bool:
        return self.status == AttemptStatus.SUBMITTED.value


class AttemptAnswer(Base):
    """
    Latest answer for one question number within an attempt.
    """

    __tablename__ = "attempt_answers"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    attempt_id: Mapped[int] = mapped_column(
        ForeignKey("exam_attempts.id", ondelete="CASCADE"), nullable=False, index=True
    )

    question_id: Mapped[int] = mapped_column(nullable=False)

    # str or list[str], stored as JSON
    value_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_draft: Mapped[bool] = mapped_column(default=False, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id", name="uq_attempt_question"),
    )

    attempt: Mapped["ExamAttempt"] = relationship("ExamAttempt", back_populates="answers")

    @property
    def value(self) -> Any:
        """Parse answer value from JSON."""
        if not self.value_json:
            return None
        try:
            return json.loads(self.value_json)
        except (json.JSONDecodeError, TypeError):
            return None

    @value.setter
    def value(self, value: Any) -> None:
        """Serialize answer value to JSON."""
        self.value_json = json.dumps(value, ensure_ascii=False) if value is not None else None
