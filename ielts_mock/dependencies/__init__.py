"""FastAPI dependencies."""
from ielts_mock.dependencies.backend import (
    get_backend_client,
    get_journal,
    get_review_registry,
    get_session_registry,
)

__all__ = [
    "get_backend_client",
    "get_journal",
    "get_review_registry",
    "get_session_registry",
]
