from __future__ import annotations

import logging
import os

# Third-party loggers that flood the console at DEBUG
_NOISY_LOGGERS = ("urllib3", "multipart", "sqlalchemy.engine")


def _level_from_env(default: int) -> int:
    name = os.environ.get("LOG_LEVEL", "").strip().upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def setup_console_logging(level: int | None = None) -> None:
    """
    Call once at app or CLI start. Level comes from the argument, then the
    LOG_LEVEL environment variable, then INFO.
    """
    resolved = level if level is not None else _level_from_env(logging.INFO)
    root = logging.getLogger()
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))

    if root.handlers:
        # already configured by uvicorn or pytest
        root.setLevel(resolved)
        return

    root.setLevel(resolved)
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] %(levelname)s %(name)s [%(threadName)s]: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root.addHandler(handler)
