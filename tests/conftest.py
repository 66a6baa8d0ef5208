# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests
"""

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest

from qla_practice.core.config.settings import PracticeSettings
from qla_practice.infrastructure.database.models import (
    PracticeAttempt,
    PracticeQuestion,
    PracticeSession,
    SkillMastery,
)


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Database Doubles
# =============================================================================


@pytest.fixture
def mock_db():
    """Create mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.get = AsyncMock()
    db.flush = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.execute = AsyncMock()
    return db


def scalar_result(value: Any) -> MagicMock:
    """Build a result whose scalar_one_or_none/scalar_one return value."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    result.scalar_one.return_value = value
    return result


def scalars_result(values: list[Any]) -> MagicMock:
    """Build a result whose scalars().all() returns values."""
    result = MagicMock()
    result.scalars.return_value.all.return_value = values
    return result


def rows_result(rows: list[Any]) -> MagicMock:
    """Build a result whose all() returns rows."""
    result = MagicMock()
    result.all.return_value = rows
    return result


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture
def practice_settings() -> PracticeSettings:
    """Practice settings with the default thresholds."""
    return PracticeSettings()


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def student_email() -> str:
    """Provide a sample student email for testing."""
    return "student@example.com"


@pytest.fixture
def skill_id() -> UUID:
    """Provide a sample skill ID for testing."""
    return UUID("550e8400-e29b-41d4-a716-446655440002")


def make_question(
    skill_id: UUID,
    question_type: str = "mcq",
    correct_answer: Any = 1,
    difficulty_level: int = 2,
    points: int = 10,
    question_data: dict[str, Any] | None = None,
) -> PracticeQuestion:
    """Build an unsaved practice question."""
    return PracticeQuestion(
        id=uuid4(),
        bank_id=uuid4(),
        skill_id=skill_id,
        question_type=question_type,
        question_text="What is 2 + 3?",
        question_data=question_data if question_data is not None else {"options": ["4", "5", "6"]},
        correct_answer=correct_answer,
        solution_steps=["Add 2 and 3"],
        hints=["Count up from 2"],
        difficulty_level=difficulty_level,
        points=points,
        estimated_time_seconds=60,
    )


def make_session(
    user_email: str,
    question_ids: list[UUID],
    status: str = "active",
    ended_at: datetime | None = None,
) -> PracticeSession:
    """Build an unsaved practice session handing out question_ids."""
    return PracticeSession(
        id=uuid4(),
        user_email=user_email,
        skill_id=None,
        session_type="adaptive",
        question_ids=[str(q) for q in question_ids],
        status=status,
        started_at=datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc),
        ended_at=ended_at,
    )


def make_mastery(
    user_email: str,
    skill_id: UUID,
    mastery_level: float = 0.0,
    status: str = "learning",
    current_streak: int = 0,
    best_streak: int = 0,
    questions_attempted: int = 0,
    questions_correct: int = 0,
) -> SkillMastery:
    """Build an unsaved mastery record."""
    return SkillMastery(
        id=uuid4(),
        user_email=user_email,
        skill_id=skill_id,
        mastery_level=Decimal(str(mastery_level)),
        questions_attempted=questions_attempted,
        questions_correct=questions_correct,
        current_streak=current_streak,
        best_streak=best_streak,
        time_spent_seconds=0,
        status=status,
    )


def make_attempt(
    session_id: UUID,
    skill_id: UUID,
    is_correct: bool,
    mastery_before: float,
    mastery_after: float,
    time_taken_seconds: int = 20,
) -> PracticeAttempt:
    """Build an unsaved attempt ledger row."""
    return PracticeAttempt(
        id=uuid4(),
        session_id=session_id,
        question_id=uuid4(),
        user_email="student@example.com",
        skill_id=skill_id,
        user_answer=1,
        is_correct=is_correct,
        hints_used=0,
        time_taken_seconds=time_taken_seconds,
        mastery_before=Decimal(str(mastery_before)),
        mastery_after=Decimal(str(mastery_after)),
    )


# =============================================================================
# Factory Fixtures
# =============================================================================


@pytest.fixture
def question_factory():
    """Factory for unsaved practice questions."""
    return make_question


@pytest.fixture
def session_factory():
    """Factory for unsaved practice sessions."""
    return make_session


@pytest.fixture
def mastery_factory():
    """Factory for unsaved mastery records."""
    return make_mastery


@pytest.fixture
def attempt_factory():
    """Factory for unsaved attempt rows."""
    return make_attempt


@pytest.fixture
def results():
    """Builders for mocked query results."""
    return SimpleNamespace(scalar=scalar_result, scalars=scalars_result, rows=rows_result)
