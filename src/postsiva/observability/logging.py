from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, MutableMapping

import structlog

video_id_var: ContextVar[str] = ContextVar("video_id", default="")


def _add_video_id(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    video_id = video_id_var.get("")
    if video_id and "video_id" not in event_dict:
        event_dict["video_id"] = video_id
    return event_dict


def configure_logging(level: str = "INFO", *, json_output: bool = True) -> None:
    """Configure structlog with JSON (or console) output and contextvar support."""

    timestamper = structlog.processors.TimeStamper(fmt="iso")
    renderer: Any = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            timestamper,
            _add_video_id,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a configured structlog logger."""

    if name is None:
        return structlog.get_logger()
    return structlog.get_logger(name)


def get_video_id() -> str:
    """Return the video ID bound to the current context."""

    return video_id_var.get("")


@contextmanager
def bind_video_id(video_id: str | None) -> Iterator[None]:
    """Bind `video_id` to every log line emitted inside the block."""

    token = video_id_var.set(video_id or "")
    try:
        yield
    finally:
        video_id_var.reset(token)


logger = get_logger("postsiva")
