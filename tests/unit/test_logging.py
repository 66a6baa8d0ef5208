# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for structured logging setup."""

import json
import logging
from uuid import uuid4

import pytest
import structlog

from qla_practice.core.config.settings import Settings
from qla_practice.utils.logging import (
    bind_practice_context,
    clear_context,
    setup_logging,
)


@pytest.fixture(autouse=True)
def isolated_logging():
    """Restore root handlers and drop bound context after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    clear_context()
    structlog.reset_defaults()
    root.handlers = handlers
    root.setLevel(level)


class TestPracticeContext:
    """Tests for binding practice identifiers."""

    def test_binds_only_given_values_as_strings(self):
        session_id = uuid4()

        bind_practice_context(user_email="student@example.com", session_id=session_id)

        assert structlog.contextvars.get_contextvars() == {
            "user_email": "student@example.com",
            "session_id": str(session_id),
        }

    def test_later_bindings_keep_earlier_keys(self):
        question_id = uuid4()

        bind_practice_context(user_email="student@example.com")
        bind_practice_context(question_id=question_id)

        context = structlog.contextvars.get_contextvars()
        assert context["user_email"] == "student@example.com"
        assert context["question_id"] == str(question_id)

    def test_clear_context(self):
        bind_practice_context(user_email="student@example.com")

        clear_context()

        assert structlog.contextvars.get_contextvars() == {}


class TestSetupLogging:
    """Tests for the logging pipeline."""

    def test_stdlib_records_carry_practice_context(self):
        """Test %-style stdlib records render as JSON with the bound context."""
        setup_logging(Settings(environment="staging", debug=False, log_level="INFO"))
        session_id = uuid4()
        bind_practice_context(user_email="student@example.com", session_id=session_id)

        handler = logging.getLogger().handlers[0]
        record = logging.LogRecord(
            "qla_practice.domains.practice.grader",
            logging.INFO,
            __file__,
            1,
            "Graded attempt correct=%s",
            (True,),
            None,
        )
        line = json.loads(handler.format(record))

        assert line["event"] == "Graded attempt correct=True"
        assert line["level"] == "info"
        assert line["logger"] == "qla_practice.domains.practice.grader"
        assert line["user_email"] == "student@example.com"
        assert line["session_id"] == str(session_id)

    def test_single_handler_and_quiet_third_party(self):
        settings = Settings(log_level="DEBUG")

        setup_logging(settings)
        setup_logging(settings)

        assert len(logging.getLogger().handlers) == 1
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("sqlalchemy").level == logging.WARNING
