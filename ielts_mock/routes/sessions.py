"""Exam session endpoints."""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path

from ielts_mock.dependencies import get_backend_client, get_journal, get_session_registry
from ielts_mock.models.content import SectionType
from ielts_mock.models.session import (
    AnswerRequest,
    AnswerResponse,
    SessionResponse,
    SessionStartRequest,
)
from ielts_mock.routes.errors import http_error
from ielts_mock.services.attempt_service import AttemptJournal
from ielts_mock.services.backend_client import BackendClient, BackendError
from ielts_mock.services.review_service import parse_submitted_answers
from ielts_mock.services.section_loader import load_section
from ielts_mock.services.session_service import (
    ExamSession,
    InvalidAnswerError,
    ListeningSession,
    SessionRegistry,
    SessionStateError,
    SubmissionError,
    WritingSession,
)
from ielts_mock.utils.validation import validate_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/mocks/{mock_id}/sections/{section_id}", tags=["sessions"])


def _require_session(registry: SessionRegistry, mock_id: str, section_id: str) -> ExamSession:
    session = registry.get(validate_id("mockId", mock_id), validate_id("sectionId", section_id))
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@router.post("/session", response_model=SessionResponse)
def start_session(
    mock_id: str,
    section_id: str,
    payload: SessionStartRequest,
    client: Annotated[BackendClient, Depends(get_backend_client)],
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
    journal: Annotated[AttemptJournal | None, Depends(get_journal)],
) -> SessionResponse:
    """Load a section, then start its exam (or open it read-only in preview)."""
    mock_id = validate_id("mockId", mock_id)
    section_id = validate_id("sectionId", section_id)
    test_id = validate_id("testId", payload.testId)
    if payload.sectionType == SectionType.SPEAKING:
        raise HTTPException(status_code=400, detail="Speaking sections are not supported")

    session = registry.create(
        payload.sectionType,
        mock_id,
        section_id,
        client=client,
        journal=None if payload.preview else journal,
    )
    session.set_preview_mode(payload.preview)
    session.begin_loading()

    try:
        if not payload.preview:
            client.start_section(mock_id, section_id)
        loaded = load_section(client, test_id, section_id, payload.sectionType)
    except BackendError as exc:
        registry.remove(mock_id, section_id)
        raise http_error(exc) from exc

    if isinstance(session, WritingSession):
        session.set_tasks(loaded.tasks)
    else:
        session.set_parts(loaded.parts)

    try:
        if payload.preview:
            rows = client.get_submitted_and_correct_answers(mock_id, section_id)
            session.load_submitted_answers_with_correctness(parse_submitted_answers(rows))
        else:
            if journal is not None:
                restored = session.restore_answers(journal.restore(mock_id, section_id))
                if restored:
                    logger.info("Restored %s answer(s) for %s/%s", restored, mock_id, section_id)
            if isinstance(session, ListeningSession):
                audio_seconds = loaded.audio.total_seconds if loaded.audio else 0
                session.start_timer_after_audio(audio_seconds)
            else:
                session.start_timer()
            if isinstance(session, WritingSession):
                session.start_auto_save()
    except (BackendError, SessionStateError) as exc:
        registry.remove(mock_id, section_id)
        raise http_error(exc) from exc

    return session.snapshot()


@router.get("/session", response_model=SessionResponse)
def get_session(
    mock_id: str,
    section_id: str,
    client: Annotated[BackendClient, Depends(get_backend_client)],
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> SessionResponse:
    """Get session state, timer and answers."""
    return _require_session(registry, mock_id, section_id).snapshot()


@router.put("/session/answers/{question_id}", response_model=AnswerResponse)
def put_answer(
    mock_id: str,
    section_id: str,
    question_id: Annotated[int, Path(ge=1)],
    payload: AnswerRequest,
    client: Annotated[BackendClient, Depends(get_backend_client)],
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> AnswerResponse:
    """Store an answer (text or multi-select list)."""
    session = _require_session(registry, mock_id, section_id)
    try:
        session.set_answer(question_id, payload.value)
    except (SessionStateError, InvalidAnswerError) as exc:
        raise http_error(exc) from exc
    return AnswerResponse(
        questionId=question_id,
        value=session.get_answer(question_id),
        answered=session.is_question_answered(question_id),
    )


@router.get("/session/answers/{question_id}", response_model=AnswerResponse)
def get_answer(
    mock_id: str,
    section_id: str,
    question_id: Annotated[int, Path(ge=1)],
    client: Annotated[BackendClient, Depends(get_backend_client)],
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> AnswerResponse:
    session = _require_session(registry, mock_id, section_id)
    return AnswerResponse(
        questionId=question_id,
        value=session.get_answer(question_id),
        answered=session.is_question_answered(question_id),
    )


@router.delete("/session/answers/{question_id}", response_model=AnswerResponse)
def delete_answer(
    mock_id: str,
    section_id: str,
    question_id: Annotated[int, Path(ge=1)],
    client: Annotated[BackendClient, Depends(get_backend_client)],
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> AnswerResponse:
    session = _require_session(registry, mock_id, section_id)
    try:
        session.remove_answer(question_id)
    except SessionStateError as exc:
        raise http_error(exc) from exc
    return AnswerResponse(questionId=question_id)


@router.post("/session/finish", response_model=SessionResponse)
def finish_session(
    mock_id: str,
    section_id: str,
    client: Annotated[BackendClient, Depends(get_backend_client)],
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> SessionResponse:
    """Send all answers and close the section on the backend."""
    session = _require_session(registry, mock_id, section_id)
    try:
        session.finish_section(client)
    except (SessionStateError, SubmissionError) as exc:
        raise http_error(exc) from exc
    return session.snapshot()
