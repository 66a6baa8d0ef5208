# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for a full practice flow against PostgreSQL.

Requires PostgreSQL to be running.
"""

import os
import random

import pytest
from sqlalchemy import func, select

from qla_practice.core.config.settings import PracticeSettings
from qla_practice.domains.authoring.service import AuthoringService
from qla_practice.domains.practice.exceptions import (
    QuestionNotInSessionError,
    SessionNotActiveError,
)
from qla_practice.domains.practice.selection import SessionType
from qla_practice.domains.practice.service import PracticeService
from qla_practice.infrastructure.database.models import (
    PracticeAttempt,
    SkillMastery,
    StudentAchievement,
)
from qla_practice.infrastructure.database.seeds import (
    DEFAULT_ACHIEVEMENTS,
    seed_achievement_definitions,
)
from qla_practice.models.authoring import (
    QuestionCreateRequest,
    SkillCreateRequest,
)

# Skip all tests if database is not available
pytestmark = pytest.mark.skipif(
    not os.environ.get("TEST_DATABASE_URL"),
    reason="TEST_DATABASE_URL not set",
)

STUDENT = "student@example.com"


async def author_skill(db, difficulties):
    """Create a skill with one bank and one mcq per difficulty."""
    authoring = AuthoringService(db)
    skill, bank = await authoring.create_skill(
        SkillCreateRequest(name="Addition", grade=1, unit=1, default_bank_name="Addition"),
        created_by="teacher@example.com",
    )
    questions = []
    for difficulty in difficulties:
        questions.append(
            await authoring.create_question(
                QuestionCreateRequest(
                    bank_id=bank.id,
                    question_type="mcq",
                    question_text=f"Level {difficulty}",
                    question_data={"options": ["wrong", "right"]},
                    correct_answer=1,
                    difficulty_level=difficulty,
                )
            )
        )
    return skill, questions


class TestSeeds:
    """Test achievement seeds."""

    @pytest.mark.asyncio
    async def test_seed_is_idempotent(self, practice_db_session):
        """Verify seeding twice creates the definitions once."""
        first = await seed_achievement_definitions(practice_db_session)
        await practice_db_session.commit()
        second = await seed_achievement_definitions(practice_db_session)

        assert len(first) == len(DEFAULT_ACHIEVEMENTS)
        assert second == []


class TestPracticeFlow:
    """Test start, answer and end against a real database."""

    @pytest.mark.asyncio
    async def test_targeted_session_round_trip(self, practice_db_session):
        """Verify grading updates mastery and the summary matches the ledger."""
        db = practice_db_session
        await seed_achievement_definitions(db)
        await db.commit()
        skill, _ = await author_skill(db, [3, 1, 2, 5, 4])

        service = PracticeService(db, PracticeSettings(), rng=random.Random(1))
        started = await service.start_session(
            STUDENT, SessionType.TARGETED, skill_id=skill.id, num_questions=3
        )

        assert [q.difficulty_level for q in started.questions] == [1, 2, 3]

        first = await service.submit_answer(
            STUDENT, started.session.id, started.questions[0].id, 1, time_taken_seconds=40
        )
        second = await service.submit_answer(
            STUDENT, started.session.id, started.questions[1].id, 0, time_taken_seconds=20
        )

        assert first.result.is_correct is True
        assert first.result.new_mastery_level == 16.5
        assert [a.name for a in first.achievements] == ["first_practice"]
        assert second.result.is_correct is False
        assert second.result.mastery_before == 16.5

        ended = await service.end_session(STUDENT, started.session.id)
        summary = ended.summary

        assert summary.questions_attempted == 2
        assert summary.questions_correct == 1
        assert summary.accuracy_pct == 50.0
        assert summary.avg_time_per_question == 30.0
        assert summary.skill_deltas[0].mastery_before == 0.0
        assert summary.skill_deltas[0].mastery_level == second.result.new_mastery_level
        assert ended.achievements == []

        record = (
            await db.execute(select(SkillMastery).where(SkillMastery.user_email == STUDENT))
        ).scalar_one()
        assert float(record.mastery_level) == second.result.new_mastery_level
        assert record.questions_attempted == 2
        assert record.best_streak == 1

        again = await service.end_session(STUDENT, started.session.id)
        assert again.summary.first_end is False
        assert again.summary.questions_attempted == 2

        earned = (
            await db.execute(
                select(func.count(StudentAchievement.id)).where(
                    StudentAchievement.user_email == STUDENT
                )
            )
        ).scalar_one()
        assert earned == 1

    @pytest.mark.asyncio
    async def test_rejected_submissions_leave_no_trace(self, practice_db_session):
        """Verify rejected answers write neither attempts nor mastery."""
        db = practice_db_session
        skill, questions = await author_skill(db, [1, 1, 5])

        service = PracticeService(db, PracticeSettings(achievements_enabled=False))
        started = await service.start_session(STUDENT, SessionType.ADAPTIVE, num_questions=10)

        handed_out = {q.id for q in started.questions}
        outsider = next(q for q in questions if q.id not in handed_out)

        with pytest.raises(QuestionNotInSessionError):
            await service.submit_answer(STUDENT, started.session.id, outsider.id, 1)

        await service.end_session(STUDENT, started.session.id)

        with pytest.raises(SessionNotActiveError):
            await service.submit_answer(
                STUDENT, started.session.id, started.questions[0].id, 1
            )

        attempts = (
            await db.execute(select(func.count(PracticeAttempt.id)))
        ).scalar_one()
        records = (await db.execute(select(func.count(SkillMastery.id)))).scalar_one()
        assert attempts == 0
        assert records == 0
