# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for session summaries."""

from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from qla_practice.domains.practice.aggregator import SessionAggregator, summarize_attempts
from qla_practice.domains.practice.exceptions import (
    SessionNotFoundError,
    SessionOwnershipError,
)
from qla_practice.infrastructure.database.connection import DatabaseError


@pytest.fixture
def aggregator(mock_db, practice_settings):
    """Create aggregator with mock database."""
    return SessionAggregator(mock_db, practice_settings)


class TestSummarizeAttempts:
    """Tests for the pure summary computation."""

    def test_zero_attempts(self):
        """Test an empty session summarizes to zeros."""
        summary = summarize_attempts(uuid4(), [], {})

        assert summary.questions_attempted == 0
        assert summary.questions_correct == 0
        assert summary.accuracy_pct == 0.0
        assert summary.total_time_seconds == 0
        assert summary.avg_time_per_question == 0.0
        assert summary.skill_deltas == []
        assert summary.is_perfect is False

    def test_counts_and_rounding(self, attempt_factory):
        """Test accuracy and average time are rounded to two places."""
        session_id, skill = uuid4(), uuid4()
        attempts = [
            attempt_factory(session_id, skill, True, 0, 16.5, time_taken_seconds=10),
            attempt_factory(session_id, skill, False, 16.5, 15.26, time_taken_seconds=11),
            attempt_factory(session_id, skill, True, 15.26, 29.3, time_taken_seconds=11),
        ]

        summary = summarize_attempts(session_id, attempts, {skill: "Addition"})

        assert summary.questions_attempted == 3
        assert summary.questions_correct == 2
        assert summary.accuracy_pct == 66.67
        assert summary.total_time_seconds == 32
        assert summary.avg_time_per_question == 10.67

    def test_skill_delta_from_ledger(self, attempt_factory):
        """Test deltas use the first before and last after per skill."""
        session_id, addition, subtraction = uuid4(), uuid4(), uuid4()
        attempts = [
            attempt_factory(session_id, addition, True, 40, 49),
            attempt_factory(session_id, subtraction, False, 80, 78),
            attempt_factory(session_id, addition, True, 49, 56.65),
        ]

        summary = summarize_attempts(
            session_id, attempts, {addition: "Addition", subtraction: "Subtraction"}
        )

        deltas = {d.skill_id: d for d in summary.skill_deltas}
        assert deltas[addition].mastery_before == 40
        assert deltas[addition].mastery_level == 56.65
        assert deltas[addition].delta == 16.65
        assert deltas[addition].skill_name == "Addition"
        assert deltas[addition].status == "learning"
        assert deltas[subtraction].delta == -2.0
        assert deltas[subtraction].status == "practiced"
        assert summary.mastery_delta == 14.65

    def test_perfect(self, attempt_factory):
        """Test is_perfect needs at least one attempt, all correct."""
        session_id, skill = uuid4(), uuid4()
        summary = summarize_attempts(
            session_id, [attempt_factory(session_id, skill, True, 0, 16.5)], {}
        )

        assert summary.accuracy_pct == 100.0
        assert summary.is_perfect is True


class TestEndSession:
    """Tests for ending a session."""

    @pytest.mark.asyncio
    async def test_end_session_writes_summary(
        self, aggregator, mock_db, results, session_factory, attempt_factory, student_email
    ):
        """Test the summary is stored and the session completed."""
        session = session_factory(student_email, [])
        skill = uuid4()
        attempts = [
            attempt_factory(session.id, skill, True, 0, 16.5, time_taken_seconds=30),
            attempt_factory(session.id, skill, True, 16.5, 34.87, time_taken_seconds=20),
        ]
        mock_db.get.return_value = session
        mock_db.execute.side_effect = [
            results.scalars(attempts),
            results.rows([SimpleNamespace(id=skill, name="Addition")]),
        ]

        summary = await aggregator.end_session(session.id, student_email)

        assert summary.first_end is True
        assert summary.questions_attempted == 2
        assert summary.skill_deltas[0].skill_name == "Addition"
        assert session.status == "completed"
        assert session.ended_at is not None
        assert session.questions_attempted == 2
        assert session.questions_correct == 2
        assert session.total_time_seconds == 50
        assert session.average_time_per_question == Decimal("25.0")
        assert session.session_score == Decimal("100.0")
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_end_session_twice_keeps_first_end(
        self, aggregator, mock_db, results, session_factory, student_email
    ):
        """Test a repeated end recomputes but keeps ended_at."""
        ended_at = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)
        session = session_factory(student_email, [], status="completed", ended_at=ended_at)
        mock_db.get.return_value = session
        mock_db.execute.return_value = results.scalars([])

        summary = await aggregator.end_session(session.id, student_email)

        assert summary.first_end is False
        assert summary.questions_attempted == 0
        assert session.ended_at == ended_at
        assert session.status == "completed"
        mock_db.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_end_session_twice_with_attempts_is_stable(
        self, aggregator, mock_db, results, session_factory, attempt_factory, student_email
    ):
        """Test ending twice yields the same summary from the same ledger."""
        session = session_factory(student_email, [])
        skill = uuid4()
        attempts = [
            attempt_factory(session.id, skill, True, 0, 16.5, time_taken_seconds=30),
            attempt_factory(session.id, skill, False, 16.5, 15.26, time_taken_seconds=15),
        ]
        names = [SimpleNamespace(id=skill, name="Addition")]
        mock_db.get.return_value = session
        mock_db.execute.side_effect = [
            results.scalars(attempts),
            results.rows(names),
            results.scalars(attempts),
            results.rows(names),
        ]

        first = await aggregator.end_session(session.id, student_email)
        ended_at = session.ended_at
        second = await aggregator.end_session(session.id, student_email)

        assert first.first_end is True
        assert second.first_end is False
        assert replace(first, first_end=False) == second
        assert second.questions_attempted == 2
        assert second.skill_deltas[0].mastery_level == 15.26
        assert session.ended_at == ended_at
        assert session.questions_correct == 1

    @pytest.mark.asyncio
    async def test_zero_attempt_session(
        self, aggregator, mock_db, results, session_factory, student_email
    ):
        """Test ending an untouched session yields zeros."""
        session = session_factory(student_email, [uuid4()])
        mock_db.get.return_value = session
        mock_db.execute.return_value = results.scalars([])

        summary = await aggregator.end_session(session.id, student_email)

        assert summary.first_end is True
        assert summary.accuracy_pct == 0.0
        assert session.questions_attempted == 0
        assert session.mastery_delta == Decimal("0")

    @pytest.mark.asyncio
    async def test_not_found(self, aggregator, mock_db, student_email):
        """Test unknown session raises."""
        mock_db.get.return_value = None

        with pytest.raises(SessionNotFoundError):
            await aggregator.end_session(uuid4(), student_email)

    @pytest.mark.asyncio
    async def test_foreign_session(self, aggregator, mock_db, session_factory, student_email):
        """Test another user's session cannot be ended."""
        session = session_factory(student_email, [])
        mock_db.get.return_value = session

        with pytest.raises(SessionOwnershipError):
            await aggregator.end_session(session.id, "other@example.com")

        assert session.status == "active"
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_storage_failure(
        self, aggregator, mock_db, results, session_factory, student_email
    ):
        """Test commit failure surfaces as DatabaseError after rollback."""
        session = session_factory(student_email, [])
        mock_db.get.return_value = session
        mock_db.execute.return_value = results.scalars([])
        mock_db.commit.side_effect = OperationalError("COMMIT", {}, Exception("gone"))

        with pytest.raises(DatabaseError):
            await aggregator.end_session(session.id, student_email)

        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_lookup_failure(self, aggregator, mock_db, student_email):
        """Test a failing session lookup surfaces as DatabaseError."""
        mock_db.get.side_effect = OperationalError("SELECT", {}, Exception("gone"))

        with pytest.raises(DatabaseError):
            await aggregator.end_session(uuid4(), student_email)

        mock_db.commit.assert_not_awaited()
