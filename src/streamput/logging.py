"""
Structured logging for streamput.

All modules log through ``get_logger(__name__)``. Call ``setup_logging()``
once at process start (the CLI does); library users who skip it get
structlog's defaults routed through the standard library.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

LoggerType = structlog.stdlib.BoundLogger

_configured = False


def setup_logging(level: str = "INFO", json: bool = False) -> None:
    """
    Configure structlog and the root stdlib logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR).
        json: Render JSON lines instead of the console format.
    """
    global _configured

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    renderer: Any
    if json:
        renderer = structlog.processors.JSONRenderer()
        shared_processors.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    # boto and httpx are chatty at DEBUG
    for noisy in ("botocore", "boto3", "urllib3", "s3transfer", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(max(logging.WARNING, root.level))

    _configured = True


def is_configured() -> bool:
    """Whether setup_logging() has run in this process."""
    return _configured


def get_logger(name: str | None = None) -> LoggerType:
    """Get a bound structlog logger."""
    return structlog.stdlib.get_logger(name)


__all__ = ["LoggerType", "get_logger", "is_configured", "setup_logging"]
