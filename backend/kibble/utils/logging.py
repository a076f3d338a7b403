"""Logging configuration for Kibble."""

import logging
import sys
from typing import Optional

from ..config import get_config

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

# Server loggers that follow the application level
_SERVER_LOGGERS = ("uvicorn", "uvicorn.access")


def resolve_level(name: Optional[str], default: int = logging.INFO) -> int:
    """Map a config level name to a ``logging`` level, falling back to ``default``."""
    if not name:
        return default
    return LEVELS.get(name.lower(), default)


def setup_logging() -> None:
    """Configure the stdout handler and per-component levels from config."""
    settings = get_config().logging
    level = resolve_level(settings.level)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    for name in _SERVER_LOGGERS:
        logging.getLogger(name).setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.DEBUG if level == logging.DEBUG else logging.WARNING
    )
    # Planned shift sets and lifecycle changes log at debug under kibble.engine
    logging.getLogger("kibble.engine").setLevel(resolve_level(settings.engine_level, level))

    logging.getLogger(__name__).info(
        f"Logging configured at level: {settings.level}"
        + (f" (engine: {settings.engine_level})" if settings.engine_level else "")
    )
