"""Structured logging setup (structlog)."""

from __future__ import annotations

import logging
import sys
from typing import Optional

import structlog

from medi_assist.config.settings import LoggingSettings, get_settings


def configure_logging(settings: Optional[LoggingSettings] = None) -> None:
    """
    Configure structlog and the stdlib root logger.

    JSON output for log_format='json', colored key/value output for 'console'.
    Context bound with structlog.contextvars (e.g. flow name) is merged into
    every event.
    """
    settings = settings or get_settings().logging
    level = getattr(logging, settings.log_level, logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level, force=True)

    renderer: structlog.types.Processor
    if settings.log_format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
