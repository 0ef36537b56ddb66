"""Domain models for normalized test content."""
from enum import Enum

from pydantic import BaseModel, Field


class SectionType(str, Enum):
    """Section of a test."""

    LISTENING = "LISTENING"
    READING = "READING"
    WRITING = "WRITING"
    SPEAKING = "SPEAKING"


class QuestionType(str, Enum):
    """Question types authored in the admin editor."""

    FILL_IN_BLANK = "FILL_IN_BLANK"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    MULTIPLE_CHOICE_SINGLE = "MULTIPLE_CHOICE_SINGLE"
    MULTIPLE_QUESTIONS_MULTIPLE_CHOICE = "MULTIPLE_QUESTIONS_MULTIPLE_CHOICE"
    MULTIPLE_CORRECT_ANSWERS = "MULTIPLE_CORRECT_ANSWERS"
    TRUE_FALSE_NOT_GIVEN = "TRUE_FALSE_NOT_GIVEN"
    YES_NO_NOT_GIVEN = "YES_NO_NOT_GIVEN"
    SENTENCE_COMPLETION = "SENTENCE_COMPLETION"
    SUMMARY_COMPLETION = "SUMMARY_COMPLETION"
    SHORT_ANSWER = "SHORT_ANSWER"
    MATCH_HEADING = "MATCH_HEADING"
    MATCHING = "MATCHING"
    MATRIX_TABLE = "MATRIX_TABLE"
    TABLE = "TABLE"
    TABLE_COMPLETION = "TABLE_COMPLETION"
    FILL_IN_BLANKS_DRAG_DROP = "FILL_IN_BLANKS_DRAG_DROP"
    MAP_LABELING = "MAP_LABELING"
    FLOW_CHART = "FLOW_CHART"
    IMAGE_INPUTS = "IMAGE_INPUTS"


class Question(BaseModel):
    """A single numbered question. ``id`` is the absolute question number."""

    id: int
    type: str
    text: str = ""
    options: list[str] | None = None
    imageUrl: str | None = None
    correctAnswer: str | list[str] | None = None
    maxAnswers: int | None = None

    class Config:
        frozen = True


class ReadingSection(BaseModel):
    """Numbered passage paragraph used by match-heading questions."""

    number: int
    content: str


class ListeningPart(BaseModel):
    """Listening part with its audio and flattened questions."""

    id: int
    title: str
    instruction: str = ""
    questionRange: tuple[int, int]
    audioUrl: str = ""
    questions: list[Question] = Field(default_factory=list)

    class Config:
        extra = "forbid"


class ReadingPart(BaseModel):
    """Reading part: passage plus flattened questions."""

    id: int
    title: str
    instruction: str = ""
    passage: str = ""
    imageUrl: str | None = None
    sections: list[ReadingSection] | None = None
    questionRange: tuple[int, int]
    questions: list[Question] = Field(default_factory=list)

    class Config:
        extra = "forbid"


class WritingTask(BaseModel):
    """Writing task prompt."""

    id: int
    title: str
    timeMinutes: int
    minWords: int
    instruction: str = ""
    question: str
    image: str | None = None
