"""Tests for structured logging setup."""

import logging

import structlog

from audit_archiver.core.logging import bind_run_context, configure_logging


def test_run_context_is_replaced_per_run() -> None:
    first = bind_run_context(idcs_client_id="client-123")
    second = bind_run_context()

    context = structlog.contextvars.get_contextvars()
    assert first != second
    assert context == {"run_id": second}
    structlog.contextvars.clear_contextvars()


def test_http_client_loggers_are_quietened() -> None:
    configure_logging("DEBUG")

    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING
