"""Pydantic models for exam sessions and review."""
from datetime import datetime

from pydantic import BaseModel, Field

from ielts_mock.models.content import ListeningPart, ReadingPart, SectionType, WritingTask

AnswerValue = str | list[str]


class TimerState(BaseModel):
    """Countdown snapshot."""

    timeRemainingSeconds: int
    isTimeUp: bool
    totalDurationSeconds: int
    display: str = ""


class SessionStartRequest(BaseModel):
    """Request to load a section and start its session."""

    testId: str = Field(..., min_length=1)
    sectionType: SectionType
    preview: bool = False


class AnswerRequest(BaseModel):
    """Answer for a single question (text or multi-select list)."""

    value: AnswerValue


class AnswerResponse(BaseModel):
    questionId: int
    value: AnswerValue | None = None
    answered: bool = False


class SessionResponse(BaseModel):
    """Full exam session snapshot."""

    mockId: str
    sectionId: str
    sectionType: SectionType
    state: str
    previewMode: bool
    timer: TimerState | None = None
    answers: dict[int, AnswerValue] = Field(default_factory=dict)
    correctness: dict[int, bool | None] = Field(default_factory=dict)
    parts: list[ListeningPart | ReadingPart] = Field(default_factory=list)
    tasks: list[WritingTask] = Field(default_factory=list)
    submitError: str | None = None


class SubmittedAnswer(BaseModel):
    """Submitted answer with server-computed correctness."""

    questionOrd: int
    answer: AnswerValue | None = None
    isCorrect: bool | None = None
    correctAnswers: list[str] = Field(default_factory=list)


class MarkAnswerRequest(BaseModel):
    isCorrect: bool


class SectionSummary(BaseModel):
    total: int = 0
    correct: int = 0
    incorrect: int = 0
    notGraded: int = 0
    notAnswered: int = 0


class ReviewResponse(BaseModel):
    mockId: str
    sectionId: str
    answers: list[SubmittedAnswer]
    summary: SectionSummary
    recalculations: int = 0


class WritingGradeRequest(BaseModel):
    writingPartOneScore: float = Field(..., ge=0, le=9)
    writingPartTwoScore: float = Field(..., ge=0, le=9)


class StartMockRequest(BaseModel):
    testId: str | None = None


class FailedAttemptResponse(BaseModel):
    """Locally journaled section whose final submission was rejected."""

    mock_id: str
    section_id: str
    section_type: str
    answered_count: int = 0
    submit_error: str | None = None
    started_at: datetime

    class Config:
        from_attributes = True
