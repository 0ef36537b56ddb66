"""Text helpers for answers entered through rich text editors."""
import re

_TAG_RE = re.compile(r"<[^>]*>")
_SPACE_RE = re.compile(r"\s+")


def strip_html(content: str | None) -> str:
    """Remove HTML tags, collapsing whitespace."""
    if not content:
        return ""
    return _SPACE_RE.sub(" ", _TAG_RE.sub(" ", content)).strip()


def word_count(text: str | None) -> int:
    if not text or not text.strip():
        return 0
    return len(text.split())
