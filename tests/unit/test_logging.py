# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for structured logging helpers."""

import json
import logging

import pytest
import structlog

from src.core.config.settings import Settings
from src.utils.logging import (
    HANDLER_NAME,
    bind_context,
    clear_context,
    get_logger,
    setup_logging,
)


def _installed_handlers() -> list[logging.Handler]:
    return [h for h in logging.getLogger().handlers if h.get_name() == HANDLER_NAME]


@pytest.fixture(autouse=True)
def reset_logging():
    root_level = logging.getLogger().level
    yield
    clear_context()
    structlog.reset_defaults()
    for handler in _installed_handlers():
        logging.getLogger().removeHandler(handler)
    logging.getLogger().setLevel(root_level)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_development_uses_console_renderer(self) -> None:
        setup_logging(Settings(environment="development"))

        (handler,) = _installed_handlers()

        assert isinstance(handler.formatter.processors[-1], structlog.dev.ConsoleRenderer)

    def test_production_uses_json_renderer(self) -> None:
        setup_logging(Settings(environment="staging"))

        (handler,) = _installed_handlers()

        assert isinstance(handler.formatter.processors[-1], structlog.processors.JSONRenderer)

    def test_repeated_setup_keeps_one_handler(self) -> None:
        setup_logging(Settings())
        setup_logging(Settings())

        assert len(_installed_handlers()) == 1

    def test_noisy_loggers_are_quieted(self) -> None:
        setup_logging(Settings(log_level="DEBUG"))

        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        assert logging.getLogger("src").level == logging.DEBUG

    def test_stdlib_records_carry_bound_context(self, capsys) -> None:
        setup_logging(Settings(environment="staging"))
        bind_context(bundle_id="frontend/react-hooks")

        logging.getLogger("src.infrastructure.database.seeds").info("Seeded %d categories", 3)

        record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert record["event"] == "Seeded 3 categories"
        assert record["bundle_id"] == "frontend/react-hooks"
        assert record["level"] == "info"

    def test_structlog_events_render_as_json(self, capsys) -> None:
        setup_logging(Settings(environment="staging"))

        get_logger("src.domains.content_loader.loader").info("bundle_committed", attempts=1)

        record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert record["event"] == "bundle_committed"
        assert record["attempts"] == 1
        assert record["logger"] == "src.domains.content_loader.loader"


class TestContext:
    """Tests for context binding."""

    def test_bind_context_adds_variables(self) -> None:
        bind_context(bundle_id="frontend/react-hooks", attempt=1)

        context = structlog.contextvars.get_contextvars()

        assert context == {"bundle_id": "frontend/react-hooks", "attempt": 1}

    def test_clear_context_removes_variables(self) -> None:
        bind_context(bundle_id="frontend/react-hooks")

        clear_context()

        assert structlog.contextvars.get_contextvars() == {}

    def test_bound_context_reaches_events(self) -> None:
        capture = structlog.testing.LogCapture()
        structlog.configure(processors=[structlog.contextvars.merge_contextvars, capture])
        bind_context(bundle_id="frontend/react-hooks")

        get_logger(__name__).info("bundle_committed")

        assert capture.entries == [
            {"bundle_id": "frontend/react-hooks", "event": "bundle_committed", "log_level": "info"}
        ]
