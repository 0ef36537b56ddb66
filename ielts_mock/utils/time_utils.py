"""Time utilities."""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(timezone.utc)


def parse_backend_date(value: object) -> datetime | None:
    """Parse a backend timestamp.

    The backend mixes ISO 8601 (``2025-01-25T18:30:46.000+00:00``) with
    ``DD.MM.YYYY HH:mm:ss`` strings.
    """
    if not isinstance(value, str):
        return None
    raw = value.strip()
    if not raw:
        return None

    if "T" in raw or ("-" in raw and "." not in raw):
        iso = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
        try:
            return datetime.fromisoformat(iso)
        except ValueError:
            pass

    try:
        return datetime.strptime(raw, "%d.%m.%Y %H:%M:%S")
    except ValueError:
        return None


def format_countdown(seconds: int) -> str:
    """Format remaining seconds as ``MM:SS`` or ``H:MM:SS``."""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"
