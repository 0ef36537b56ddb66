"""Validation utilities."""
from fastapi import HTTPException

from ielts_mock.models.content import SectionType


def validate_id(name: str, value: str) -> str:
    """Validate ID string (no path separators, not blank)."""
    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"{name} is required")
    cleaned = value.strip()
    if not cleaned:
        raise HTTPException(status_code=400, detail=f"{name} is required")
    if "/" in cleaned or "\\" in cleaned or cleaned in {".", ".."}:
        raise HTTPException(status_code=400, detail=f"Invalid {name}")
    return cleaned


def validate_section_type(value: str) -> SectionType:
    """Parse a section type name, case-insensitively."""
    try:
        return SectionType(value.strip().upper())
    except (AttributeError, ValueError):
        raise HTTPException(status_code=400, detail=f"Unknown section type: {value}")
