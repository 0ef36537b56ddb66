"""Application configuration and constants."""
import os
from pathlib import Path


def _parse_int_env(name: str, default: int) -> int:
    """Parse integer from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Backend
BACKEND_BASE_URL = os.environ.get(
    "BACKEND_BASE_URL", "https://mock.fleetoneld.com/ielts-mock-main"
).rstrip("/")
REQUEST_TIMEOUT_SECONDS = _parse_int_env("REQUEST_TIMEOUT_SECONDS", 30)

# Database
DB_DIR = Path(os.environ.get("DB_DIR", Path.cwd() / "data"))
DB_DIR.mkdir(parents=True, exist_ok=True)
DATABASE_URL = os.environ.get(
    "DATABASE_URL", f"sqlite:///{DB_DIR / 'ielts_mock.db'}"
)

# Content
CONTENT_MAX_DEPTH = _parse_int_env("CONTENT_MAX_DEPTH", 10)
DEFAULT_QUESTION_RANGE = (1, 10)

# Timers (seconds)
LISTENING_BUFFER_SECONDS = _parse_int_env("LISTENING_BUFFER_SECONDS", 10 * 60)
PART_FALLBACK_SECONDS = _parse_int_env("PART_FALLBACK_SECONDS", 10 * 60)
MIN_FALLBACK_PARTS = 4
READING_DURATION_SECONDS = _parse_int_env("READING_DURATION_SECONDS", 60 * 60)
WRITING_DURATION_SECONDS = _parse_int_env("WRITING_DURATION_SECONDS", 60 * 60)
AUTOSAVE_INTERVAL_SECONDS = _parse_int_env("AUTOSAVE_INTERVAL_SECONDS", 10)

# Audio preload
AUDIO_PRELOAD_WORKERS = _parse_int_env("AUDIO_PRELOAD_WORKERS", 4)

# Writing task defaults: (minutes, minimum words)
WRITING_TASK_DEFAULTS = {1: (20, 150), 2: (40, 250)}
