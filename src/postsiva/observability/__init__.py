"""Postsiva observability module - structured logging.

Usage:
    from postsiva.observability import get_logger

    logger = get_logger(__name__)
    logger.info("thumbnail_saved", video_id=video_id)
"""

from __future__ import annotations

from postsiva.config import settings
from postsiva.observability.logging import bind_video_id, configure_logging, get_logger

__all__ = [
    "bind_video_id",
    "configure_logging",
    "get_logger",
    "init_observability",
]

_OBSERVABILITY_INITIALIZED = False


def init_observability() -> None:
    """Initialize logging for the process (idempotent).

    This is intentionally *not* executed on import so `postsiva` can be used as a
    library without mutating global logging configuration.
    """
    global _OBSERVABILITY_INITIALIZED
    if _OBSERVABILITY_INITIALIZED:
        return
    configure_logging(settings.log_level, json_output=settings.log_json)
    _OBSERVABILITY_INITIALIZED = True
