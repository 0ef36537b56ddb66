"""Part content endpoints."""
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, HTTPException, Query

from ielts_mock.config import CONTENT_MAX_DEPTH
from ielts_mock.dependencies import get_backend_client
from ielts_mock.models.content import SectionType
from ielts_mock.routes.errors import http_error
from ielts_mock.services.backend_client import BackendClient, BackendError
from ielts_mock.services.envelope_service import load_part_content
from ielts_mock.services.section_loader import transform_part
from ielts_mock.utils.validation import validate_id, validate_section_type

router = APIRouter(prefix="/api/parts", tags=["content"])


@router.get("/{part_id}/content")
def get_part_content(
    part_id: str,
    client: Annotated[BackendClient, Depends(get_backend_client)],
    section: str = Query(...),
    view: Literal["user", "admin"] = "user",
    number: int = Query(1, ge=1),
) -> dict[str, object]:
    """Fetch a part's stored content and return it normalized."""
    part_id = validate_id("partId", part_id)
    section_type = validate_section_type(section)
    if section_type == SectionType.SPEAKING:
        raise HTTPException(status_code=400, detail="Speaking parts have no question content")

    try:
        raw = client.get_part_question_content(part_id, admin=view == "admin")
    except BackendError as exc:
        raise http_error(exc) from exc

    tagged = load_part_content(raw, prefer=view, max_depth=CONTENT_MAX_DEPTH)
    part = transform_part(tagged, section_type, number)
    return {
        "partId": part_id,
        "sectionType": section_type.value,
        "kind": tagged.kind,
        "part": part.model_dump(),
    }
