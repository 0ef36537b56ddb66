"""Translation of service exceptions into HTTP errors."""
import logging

from fastapi import HTTPException, status

from ielts_mock.services.backend_client import BackendAuthError, BackendError
from ielts_mock.services.session_service import (
    InvalidAnswerError,
    SessionStateError,
    SubmissionError,
)

logger = logging.getLogger(__name__)


def http_error(exc: Exception) -> HTTPException:
    """Map a service exception to the HTTP error the client should see."""
    if isinstance(exc, BackendAuthError):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc) or "Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if isinstance(exc, (BackendError, SubmissionError)):
        logger.warning("Backend call failed: %s", exc)
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    if isinstance(exc, SessionStateError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, (InvalidAnswerError, ValueError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    logger.error("Unexpected error: %s", exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error")
