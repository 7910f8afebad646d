"""Logging configuration."""

import logging
import sys

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

from vibein.settings import settings

# Chatty at INFO: one line per HTTP request / SQL statement
NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine")


def add_app_context(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp every event with the application name and environment."""
    event_dict.setdefault("app", settings.app_name)
    event_dict.setdefault("env", settings.env)
    return event_dict


def build_processors(log_format: str) -> list[Processor]:
    """Processor chain for ``json`` (shipped logs) or ``console`` (local dev)."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        add_app_context,
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        processors += [
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # ConsoleRenderer renders exc_info itself
        processors += [
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(),
        ]
    return processors


def configure_logging(level: str | None = None, log_format: str | None = None) -> None:
    """Configure structured logging.

    Args:
        level: Minimum level name (defaults to ``settings.log_level``)
        log_format: ``json`` or ``console`` (defaults to ``settings.log_format``)
    """
    level = (level or settings.log_level).upper()
    log_format = log_format or settings.log_format

    structlog.configure(
        processors=build_processors(log_format),
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # uvicorn, httpx and sqlalchemy log through stdlib
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=getattr(logging, level))
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, getattr(logging, level)))


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)
