"""Service for the ``{admin, user}`` content envelope."""
import copy
import logging
from typing import Any, Literal

from pydantic import BaseModel, Field

from ielts_mock.utils.json_utils import multi_parse_json

logger = logging.getLogger(__name__)

ContentKind = Literal["admin", "user", "legacy", "empty"]
ContentView = Literal["admin", "user"]

# Keys that carry the answer key and never appear in the learner copy
ANSWER_FIELDS = frozenset({"correctAnswer", "correctAnswers", "answer", "answers"})

# Keys that mark a bare (pre-envelope) part content record
_LEGACY_KEYS = ("questionGroups", "questions", "instruction", "passage")


class TaggedContent(BaseModel):
    """Part content tagged with which copy of the envelope it came from."""

    kind: ContentKind
    content: dict[str, Any] = Field(default_factory=dict)
    view: ContentView = "user"

    @property
    def has_answers(self) -> bool:
        return self.view == "admin" and self.kind in ("admin", "legacy")

    @property
    def is_empty(self) -> bool:
        return self.kind == "empty"


def _as_object(value: Any, max_depth: int) -> dict[str, Any] | None:
    if isinstance(value, dict):
        return value
    if isinstance(value, str):
        result = multi_parse_json(value, max_depth)
        if result.ok and isinstance(result.value, dict):
            return result.value
    return None


def split_envelope(
    value: Any, prefer: ContentView = "user", max_depth: int = 3
) -> TaggedContent:
    """Tag an unwrapped content value with the envelope branch it came from.

    The learner view prefers ``user`` and falls back to ``admin``; the admin
    view prefers ``admin``. Records saved before the envelope existed are
    tagged ``legacy``. The learner view never carries answer fields, whichever
    branch it falls back to.
    """
    obj = _as_object(value, max_depth)
    if obj is None:
        return TaggedContent(kind="empty", view=prefer)

    admin = _as_object(obj.get("admin"), max_depth)
    user = _as_object(obj.get("user"), max_depth)

    order: tuple[tuple[ContentKind, dict[str, Any] | None], ...]
    if prefer == "admin":
        order = (("admin", admin), ("user", user))
    else:
        order = (("user", user), ("admin", admin))

    for kind, branch in order:
        if branch is not None:
            return _tag(kind, branch, prefer)

    if any(key in obj for key in _LEGACY_KEYS):
        return _tag("legacy", obj, prefer)

    logger.debug("Content object has no recognizable part fields: %s", list(obj))
    return TaggedContent(kind="empty", view=prefer)


def _tag(kind: ContentKind, content: dict[str, Any], view: ContentView) -> TaggedContent:
    if view == "user" and kind != "user":
        content = strip_answers(content)
    return TaggedContent(kind=kind, content=content, view=view)


def strip_answers(content: Any) -> Any:
    """Return a deep copy of ``content`` without answer-key fields."""
    if isinstance(content, dict):
        return {
            key: strip_answers(value)
            for key, value in content.items()
            if key not in ANSWER_FIELDS
        }
    if isinstance(content, list):
        return [strip_answers(item) for item in content]
    return copy.deepcopy(content)


def build_envelope(admin_content: dict[str, Any]) -> dict[str, Any]:
    """Build the persisted envelope; the user copy is always derived from admin."""
    return {"admin": admin_content, "user": strip_answers(admin_content)}


def load_part_content(
    raw: Any, prefer: ContentView = "user", max_depth: int = 3
) -> TaggedContent:
    """Unwrap a raw content blob and split its envelope in one step."""
    result = multi_parse_json(raw, max_depth)
    if not result.ok:
        if result.raw:
            logger.warning(
                "Part content is not structured JSON after %s round(s); treating as empty",
                result.depth,
            )
        return TaggedContent(kind="empty", view=prefer)
    tagged = split_envelope(result.value, prefer=prefer, max_depth=max_depth)
    if tagged.kind == "user" and _contains_answers(tagged.content):
        # Hand-edited records can carry answers in the user copy
        logger.warning("User copy of part content carries answer fields; stripping")
        tagged = TaggedContent(kind="user", content=strip_answers(tagged.content), view=prefer)
    return tagged


def _contains_answers(content: Any) -> bool:
    if isinstance(content, dict):
        return any(key in ANSWER_FIELDS for key in content) or any(
            _contains_answers(value) for value in content.values()
        )
    if isinstance(content, list):
        return any(_contains_answers(item) for item in content)
    return False
