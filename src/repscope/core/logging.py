"""Structured logging configuration with structlog."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from repscope.config import Settings

# Third-party loggers that report every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "anthropic", "openai")


def _renderer(settings: Settings) -> list[structlog.types.Processor]:
    if settings.env == "development":
        return [structlog.dev.ConsoleRenderer(colors=True)]
    return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]


def setup_logging(settings: Settings) -> None:
    """Configure structlog and stdlib logging for the application.

    Development gets colored console lines; staging and production get one
    JSON object per line on stdout.
    """
    level = getattr(logging, settings.log_level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            *_renderer(settings),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=level,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    if not settings.debug:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def job_context(**values: object) -> Iterator[None]:
    """Bind key/values (job_id, entity_id ...) to every log line in the block.

    Each asyncio task runs in its own context copy, so bindings made inside
    a job's task do not leak into other jobs.
    """
    with structlog.contextvars.bound_contextvars(**values):
        yield


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
