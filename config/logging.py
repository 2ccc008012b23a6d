"""Structured logging configuration using structlog.

Console output while developing, JSON lines in production so the hosting
platform can index the event fields.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor


def setup_logging(level: str = 'INFO', use_json: bool = False) -> None:
    """Configure structlog for the project.

    Called once from ``config.settings`` so every service module can just
    ``get_logger(__name__)``.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if use_json:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=False),
        ]

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stdout),
        cache_logger_on_first_use=True,
    )

    # Django and third-party libraries still log through the stdlib
    logging.basicConfig(
        format='%(message)s',
        stream=sys.stdout,
        level=numeric_level,
    )
    logging.getLogger('django.db.backends').setLevel(logging.WARNING)


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """Return a structlog logger, optionally bound to initial context."""
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger
