"""Tests for process-wide logging setup."""

import json
import logging
from collections.abc import Iterator

import pytest
import structlog

from buildnotifier.core.logging import CLIENT_LOGGERS, SERVER_LOGGERS, setup_logging


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    """Undo global logging changes so later tests can capture structlog output."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    names = (*SERVER_LOGGERS, *CLIENT_LOGGERS)
    saved_levels = {name: logging.getLogger(name).level for name in names}
    yield
    root.handlers = saved_handlers
    root.setLevel(saved_level)
    for name, level in saved_levels.items():
        logging.getLogger(name).setLevel(level)
    structlog.reset_defaults()


def test_client_loggers_are_quiet_outside_debug(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.setenv("LOG_LEVEL", "INFO")

    setup_logging()

    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING
    assert logging.getLogger("uvicorn.error").level == logging.INFO
    assert logging.getLogger("uvicorn.access").propagate is True


def test_debug_lets_client_loggers_through(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    setup_logging()

    assert logging.getLogger("httpx").level == logging.DEBUG
    assert logging.getLogger("uvicorn").level == logging.DEBUG


def test_stdlib_records_render_as_service_json(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.setenv("APP_NAME", "BuildNotifier")

    setup_logging()

    handler = logging.getLogger().handlers[0]
    record = logging.LogRecord(
        "uvicorn.error", logging.INFO, __file__, 1, "Started server process", None, None
    )
    payload = json.loads(handler.format(record))

    assert payload["event"] == "Started server process"
    assert payload["log_level"] == "info"
    assert payload["service"] == "BuildNotifier"
    assert "timestamp" in payload
