"""Backend and session-store dependencies for FastAPI."""
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ielts_mock.config import BACKEND_BASE_URL
from ielts_mock.services.attempt_service import AttemptJournal
from ielts_mock.services.backend_client import BackendClient
from ielts_mock.services.review_service import ReviewRegistry
from ielts_mock.services.session_service import SessionRegistry

# The backend issues the tokens; they are forwarded untouched
security = HTTPBearer(auto_error=False)


def get_backend_client(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> BackendClient:
    """Backend client carrying the caller's bearer token.

    Raises:
        HTTPException: 401 if no token was sent.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return BackendClient(BACKEND_BASE_URL, token=credentials.credentials)


def get_session_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_review_registry(request: Request) -> ReviewRegistry:
    return request.app.state.reviews


def get_journal(request: Request) -> AttemptJournal | None:
    return getattr(request.app.state, "journal", None)
