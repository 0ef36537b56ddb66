"""JSON serialization utilities.

Part content stored by the backend is not always clean JSON: historical
records were encoded two or three times, some were saved as plain strings.
The helpers here unwrap such payloads as far as they can and report what
they reached instead of raising.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Parsed:
    """Unwrapping reached a structured value (dict, list, number...)."""

    value: Any
    depth: int

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class RawFallback:
    """Unwrapping stopped while the value was still a string (or nothing)."""

    raw: str | None
    depth: int
    error: str | None = None

    @property
    def ok(self) -> bool:
        return False

    @property
    def value(self) -> str | None:
        return self.raw


ParseResult = Union[Parsed, RawFallback]


def json_dump(payload: object) -> str:
    """Serialize object to pretty JSON string."""
    return json.dumps(payload, ensure_ascii=False, indent=2)


def json_load(data: str) -> object:
    """Deserialize JSON string to object."""
    return json.loads(data)


def safe_stringify_json(value: object) -> str:
    """Serialize to compact JSON, returning an empty string on failure."""
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        logger.error("safe_stringify_json failed: %s", exc)
        return ""


def looks_like_json(value: object) -> bool:
    """Check whether a string is shaped like a JSON object or array."""
    if not isinstance(value, str):
        return False
    s = value.strip()
    return (s.startswith("{") and s.endswith("}")) or (
        s.startswith("[") and s.endswith("]")
    )


def _is_quoted(s: str) -> bool:
    if len(s) < 2:
        return False
    return (s[0] == '"' and s[-1] == '"') or (s[0] == "'" and s[-1] == "'")


def _unquote(s: str) -> str:
    """Strip one level of quoting from a quoted string literal."""
    if s[0] == "'":
        # JSON has no single-quoted strings; take the interior verbatim
        return s[1:-1]
    unwrapped = json.loads(s)
    if not isinstance(unwrapped, str):
        raise ValueError("quoted literal did not decode to a string")
    return unwrapped


def safe_parse_json(value: object) -> object:
    """Parse a single level of JSON, returning the input when it is not JSON."""
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    s = value.strip()
    if not looks_like_json(s):
        return value
    try:
        return json.loads(s)
    except ValueError:
        logger.warning("safe_parse_json failed, returning raw string")
        return value


def multi_parse_json(value: object, max_depth: int = 3) -> ParseResult:
    """Unwrap a possibly multiply-encoded JSON payload.

    Each round either parses a JSON-looking string, or strips one level of
    quoting from a quoted string (parsing the interior in the same round when
    it looks like JSON). Unwrapping stops when the value is no longer a
    string, when neither rule applies, or after ``max_depth`` rounds.
    """
    current = value
    depth = 0
    error: str | None = None

    for _ in range(max_depth):
        if not isinstance(current, str):
            break
        s = current.strip()

        if looks_like_json(s):
            try:
                current = json.loads(s)
                depth += 1
                continue
            except ValueError as exc:
                error = str(exc)

        if _is_quoted(s):
            try:
                unwrapped = _unquote(s)
            except ValueError as exc:
                error = str(exc)
                break
            if looks_like_json(unwrapped):
                try:
                    current = json.loads(unwrapped)
                except ValueError as exc:
                    error = str(exc)
                    current = unwrapped
            else:
                current = unwrapped
            depth += 1
            continue

        break

    if current is None or isinstance(current, str):
        if error:
            logger.warning(
                "Stopped unwrapping JSON content after %s round(s): %s", depth, error
            )
        return RawFallback(raw=current, depth=depth, error=error)
    return Parsed(value=current, depth=depth)


def safe_multi_parse_json(value: object, max_depth: int = 3) -> object:
    """Unwrap like :func:`multi_parse_json` and return only the value reached."""
    return multi_parse_json(value, max_depth).value


def normalize_array_maybe_string_or_object(value: object) -> list[Any]:
    """Coerce an array that may arrive as a JSON string or an index-keyed object."""
    result = safe_multi_parse_json(value)
    if isinstance(result, list):
        return result
    if isinstance(result, dict):
        return list(result.values())
    return []
