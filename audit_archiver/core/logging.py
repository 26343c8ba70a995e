"""
Structured logging configuration using structlog.
Export runs log as JSON when deployed and as coloured console output locally.
"""

import logging
import sys
import uuid
from typing import TextIO, cast

import structlog
from structlog.types import Processor

from audit_archiver.core.config import get_settings

# Loggers that emit one line per HTTP request.
_NOISY_LOGGERS = ("httpx", "httpcore")


def configure_logging(log_level: str | None = None, stream: TextIO | None = None) -> None:
    """
    Configure structlog and the stdlib root logger.

    ``log_level`` overrides ``LOG_LEVEL``. The CLI passes ``sys.stderr`` as
    ``stream`` so its JSON summary is the only thing on stdout.
    """
    settings = get_settings()
    level = getattr(logging, (log_level or settings.log_level).upper())

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.environment == "development":
        renderer: list[Processor] = [structlog.dev.ConsoleRenderer(colors=True)]
    else:
        renderer = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=shared_processors + renderer,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stdout,
        level=level,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def bind_run_context(**context: object) -> str:
    """Attach a fresh ``run_id`` (plus ``context``) to every log line of this run."""
    run_id = uuid.uuid4().hex[:12]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(run_id=run_id, **context)
    return run_id


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
