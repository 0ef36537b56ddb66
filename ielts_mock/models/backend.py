"""Pydantic models for payloads exchanged with the remote backend."""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ielts_mock.utils.time_utils import parse_backend_date


def _backend_date(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    return parse_backend_date(value)


class BackendResponse(BaseModel):
    """Standard ``ResponseDto`` envelope returned by every backend endpoint."""

    success: bool = True
    reason: str | None = None
    count: int = 0
    totalCount: int = 0
    data: Any = None


class TestDto(BaseModel):
    """Published test a learner can start a mock from."""

    id: str
    name: str = ""
    isActive: int = 1
    createdDate: datetime | None = None
    updatedDate: datetime | None = None

    @field_validator("createdDate", "updatedDate", mode="before")
    @classmethod
    def parse_dates(cls, value: Any) -> datetime | None:
        return _backend_date(value)


class SectionDto(BaseModel):
    id: str
    sectionType: str
    isActive: int = 1


class MockDto(BaseModel):
    """A learner's mock attempt over one test."""

    id: str
    testId: str | None = None
    isFinished: int = 0
    status: str = ""
    startDate: datetime | None = None
    sections: list[SectionDto] = Field(default_factory=list)

    @field_validator("startDate", mode="before")
    @classmethod
    def parse_start_date(cls, value: Any) -> datetime | None:
        return _backend_date(value)


class PartDto(BaseModel):
    id: str
    ord: int = 0
    questionCount: int = 0


class ListeningAudioDto(BaseModel):
    id: str
    fileId: str | None = None
    name: str = ""
    contentType: str = ""
    size: int = 0
    ord: int | None = None


class MockResultDto(BaseModel):
    """Mock result row shown in the admin results list."""

    id: str
    testId: str | None = None
    testName: str | None = None
    userId: str | None = None
    userName: str | None = None
    status: str = ""
    listeningScore: float | None = None
    readingScore: float | None = None
    writingScore: float | None = None
    totalScore: float | None = None
    sections: list[dict[str, Any]] = Field(default_factory=list)
