"""Pydantic models."""
from ielts_mock.models.content import (
    ListeningPart,
    Question,
    QuestionType,
    ReadingPart,
    ReadingSection,
    SectionType,
    WritingTask,
)
from ielts_mock.models.session import (
    AnswerRequest,
    AnswerResponse,
    MarkAnswerRequest,
    ReviewResponse,
    SectionSummary,
    SessionResponse,
    SessionStartRequest,
    SubmittedAnswer,
    TimerState,
    WritingGradeRequest,
)

__all__ = [
    "ListeningPart",
    "Question",
    "QuestionType",
    "ReadingPart",
    "ReadingSection",
    "SectionType",
    "WritingTask",
    "AnswerRequest",
    "AnswerResponse",
    "MarkAnswerRequest",
    "ReviewResponse",
    "SectionSummary",
    "SessionResponse",
    "SessionStartRequest",
    "SubmittedAnswer",
    "TimerState",
    "WritingGradeRequest",
]
