"""API route modules."""
from ielts_mock.routes import content, mocks, review, sessions

__all__ = ["content", "mocks", "review", "sessions"]
