"""Structured logging configuration using structlog.

Provides JSON output for production and human-readable console output for development.
Pure helpers such as merge.py stay silent and return what they skipped;
layout.py and normalize.py log it through get_logger().
"""

import logging
import sys
from typing import TextIO

import structlog


def setup_logging(
    json_output: bool = False,
    log_level: str = "INFO",
    stream: TextIO | None = None,
) -> None:
    """Configure structlog for the host process.

    The engine is usually embedded in a dashboard backend, so output goes to
    the host's stream (stdout unless told otherwise) and stdlib logging is
    routed to the same place.

    Args:
        json_output: If True, output JSON (production). If False, console format (dev).
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        stream: Where rendered lines are written. Defaults to sys.stdout.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    stream = stream or sys.stdout

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=stream.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )

    # stdlib loggers (pydantic, the host) share the stream and level
    root = logging.getLogger()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.handlers = [handler]
    root.setLevel(numeric_level)


def setup_logging_from_config(stream: TextIO | None = None) -> None:
    """Configure logging from the settings singleton (TIMETABLE_LOG_JSON / TIMETABLE_LOG_LEVEL)."""
    from src.timetable.config import get_config

    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level, stream=stream)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance bound with the module name.

    Args:
        name: Logger name (typically __name__ from calling module).

    Returns:
        Configured structlog logger with module name context.
    """
    return structlog.get_logger(name)
