# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Structured logging configuration using structlog.

Both structlog loggers and the stdlib ``logging.getLogger(__name__)``
loggers used across the practice service go through one structlog
pipeline, so every line carries the practice context bound for the
current request (caller email, session, skill). Output is JSON in
production and colored console lines in development.

Example:
    >>> from qla_practice.utils.logging import bind_practice_context, get_logger
    >>> bind_practice_context(user_email="student@school.org", session_id=session.id)
    >>> logger = get_logger(__name__)
    >>> logger.info("achievement_awarded", name="first_practice")
"""

import logging
import sys
from typing import TYPE_CHECKING, Any, Optional
from uuid import UUID

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

if TYPE_CHECKING:
    from qla_practice.core.config.settings import Settings

PRACTICE_CONTEXT_KEYS = ("user_email", "session_id", "skill_id", "question_id")

QUIET_LOGGERS = (
    "uvicorn",
    "uvicorn.access",
    "uvicorn.error",
    "sqlalchemy",
    "asyncio",
    "alembic",
)


def _stringify_ids(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """Render UUID values as plain strings so JSON output stays flat."""
    for key in PRACTICE_CONTEXT_KEYS:
        value = event_dict.get(key)
        if isinstance(value, UUID):
            event_dict[key] = str(value)
    return event_dict


def _renderer(settings: "Settings") -> list[Processor]:
    if settings.is_development or settings.debug:
        return [structlog.dev.ConsoleRenderer(colors=True)]
    return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]


def setup_logging(settings: "Settings") -> None:
    """Configure structured logging for the application.

    Installs a single stdout handler on the root logger whose formatter
    runs stdlib records through the same processors as structlog events,
    merging the bound practice context into both.

    Args:
        settings: Application settings containing log_level and debug flag.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _stringify_ids,
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *_renderer(settings),
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    for logger_name in QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for the given module name."""
    return structlog.get_logger(name)


def bind_practice_context(
    user_email: Optional[str] = None,
    session_id: Optional[UUID] = None,
    skill_id: Optional[UUID] = None,
    question_id: Optional[UUID] = None,
) -> None:
    """Bind practice identifiers to every log line in the current context.

    Only the identifiers that are given are bound; earlier bindings for
    the other keys stay in place.
    """
    values: dict[str, Any] = {
        "user_email": user_email,
        "session_id": session_id,
        "skill_id": skill_id,
        "question_id": question_id,
    }
    structlog.contextvars.bind_contextvars(
        **{key: str(value) for key, value in values.items() if value is not None}
    )


def clear_context() -> None:
    """Drop all bound practice context at the end of a request."""
    structlog.contextvars.clear_contextvars()
