"""Test catalog, mock start and local attempt endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from ielts_mock.dependencies import get_backend_client, get_journal
from ielts_mock.models.backend import MockDto, SectionDto, TestDto
from ielts_mock.models.session import FailedAttemptResponse, StartMockRequest
from ielts_mock.routes.errors import http_error
from ielts_mock.services.attempt_service import AttemptJournal
from ielts_mock.services.backend_client import BackendClient, BackendError
from ielts_mock.utils.validation import validate_id

router = APIRouter(prefix="/api", tags=["mocks"])

Page = Annotated[int, Query(ge=0)]
PageSize = Annotated[int, Query(ge=1, le=100)]


@router.get("/tests", response_model=list[TestDto])
def list_tests(
    client: Annotated[BackendClient, Depends(get_backend_client)],
    page: Page = 0,
    size: PageSize = 20,
) -> list[TestDto]:
    """Published tests available to the learner."""
    try:
        return client.get_all_tests(page, size)
    except BackendError as exc:
        raise http_error(exc) from exc


@router.get("/tests/{test_id}/sections", response_model=list[SectionDto])
def list_sections(
    test_id: str,
    client: Annotated[BackendClient, Depends(get_backend_client)],
    mockId: str | None = None,
) -> list[SectionDto]:
    test_id = validate_id("testId", test_id)
    try:
        return client.get_all_sections(test_id, mock_id=mockId)
    except BackendError as exc:
        raise http_error(exc) from exc


@router.get("/mocks", response_model=list[MockDto])
def list_mocks(
    client: Annotated[BackendClient, Depends(get_backend_client)],
    page: Page = 0,
    size: PageSize = 20,
) -> list[MockDto]:
    """The learner's own mocks, newest first as the backend returns them."""
    try:
        return client.get_all_mocks(page, size)
    except BackendError as exc:
        raise http_error(exc) from exc


@router.post("/mocks")
def start_mock(
    payload: StartMockRequest,
    client: Annotated[BackendClient, Depends(get_backend_client)],
) -> dict[str, str]:
    """Start a new mock over a test and return its id."""
    try:
        mock_id = client.start_mock(payload.testId)
    except BackendError as exc:
        raise http_error(exc) from exc
    return {"mockId": str(mock_id)}


@router.get("/attempts/failed", response_model=list[FailedAttemptResponse])
def list_failed_attempts(
    journal: Annotated[AttemptJournal | None, Depends(get_journal)],
    limit: PageSize = 50,
) -> list[FailedAttemptResponse]:
    """Sections whose final submission was rejected and never retried."""
    if journal is None:
        return []
    return journal.failed_attempts(limit)
