"""Admin review endpoints for submitted sections."""
from typing import Annotated

from fastapi import APIRouter, Depends

from ielts_mock.dependencies import get_backend_client, get_review_registry
from ielts_mock.models.session import MarkAnswerRequest, ReviewResponse, WritingGradeRequest
from ielts_mock.routes.errors import http_error
from ielts_mock.services.backend_client import BackendClient, BackendError
from ielts_mock.services.review_service import ReviewRegistry, ReviewSession, save_writing_grade
from ielts_mock.utils.validation import validate_id

router = APIRouter(prefix="/api/mocks/{mock_id}/sections/{section_id}/review", tags=["review"])


def _open_review(
    registry: ReviewRegistry,
    mock_id: str,
    section_id: str,
    client: BackendClient,
    reload: bool = False,
) -> ReviewSession:
    mock_id = validate_id("mockId", mock_id)
    section_id = validate_id("sectionId", section_id)
    try:
        return registry.open(mock_id, section_id, client, reload=reload)
    except BackendError as exc:
        raise http_error(exc) from exc


@router.get("", response_model=ReviewResponse)
def get_review(
    mock_id: str,
    section_id: str,
    client: Annotated[BackendClient, Depends(get_backend_client)],
    registry: Annotated[ReviewRegistry, Depends(get_review_registry)],
    reload: bool = True,
) -> ReviewResponse:
    """Submitted answers with server-computed correctness."""
    return _open_review(registry, mock_id, section_id, client, reload=reload).to_response()


@router.post("/{question_ord}/mark", response_model=ReviewResponse)
def mark_answer(
    mock_id: str,
    section_id: str,
    question_ord: int,
    payload: MarkAnswerRequest,
    client: Annotated[BackendClient, Depends(get_backend_client)],
    registry: Annotated[ReviewRegistry, Depends(get_review_registry)],
) -> ReviewResponse:
    """Mark one answer correct or incorrect and recalculate the score."""
    review = _open_review(registry, mock_id, section_id, client)
    try:
        review.mark(question_ord, payload.isCorrect, client)
    except BackendError as exc:
        raise http_error(exc) from exc
    return review.to_response()


@router.post("/recalculate", response_model=ReviewResponse)
def recalculate_score(
    mock_id: str,
    section_id: str,
    client: Annotated[BackendClient, Depends(get_backend_client)],
    registry: Annotated[ReviewRegistry, Depends(get_review_registry)],
) -> ReviewResponse:
    review = _open_review(registry, mock_id, section_id, client)
    try:
        review.recalculate(client)
    except BackendError as exc:
        raise http_error(exc) from exc
    return review.to_response()


@router.post("/writing-grade")
def grade_writing(
    mock_id: str,
    section_id: str,
    payload: WritingGradeRequest,
    client: Annotated[BackendClient, Depends(get_backend_client)],
) -> dict[str, object]:
    """Save examiner band scores for both writing tasks."""
    mock_id = validate_id("mockId", mock_id)
    section_id = validate_id("sectionId", section_id)
    try:
        save_writing_grade(
            client,
            mock_id,
            section_id,
            payload.writingPartOneScore,
            payload.writingPartTwoScore,
        )
    except BackendError as exc:
        raise http_error(exc) from exc
    return {
        "status": "saved",
        "mockId": mock_id,
        "sectionId": section_id,
        "writingPartOneScore": payload.writingPartOneScore,
        "writingPartTwoScore": payload.writingPartTwoScore,
    }
