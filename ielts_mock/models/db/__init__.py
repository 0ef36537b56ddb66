"""Database models."""
from ielts_mock.models.db.attempt import AttemptAnswer, AttemptStatus, ExamAttempt

__all__ = [
    "AttemptAnswer",
    "AttemptStatus",
    "ExamAttempt",
]
