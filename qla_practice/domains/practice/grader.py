# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attempt grader.

Grades one submission and records it. The attempt row and the mastery
record update are written in a single transaction: either both are
committed or neither is.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from qla_practice.core.config.settings import PracticeSettings
from qla_practice.domains.practice.answers import grade_answer, parse_answer_key
from qla_practice.domains.practice.exceptions import (
    QuestionNotFoundError,
    QuestionNotInSessionError,
    SessionNotActiveError,
    SessionNotFoundError,
    SessionOwnershipError,
)
from qla_practice.domains.practice.mastery import (
    STATUS_NEW,
    MasteryUpdate,
    apply_attempt,
    stamp_mastery_achieved,
)
from qla_practice.infrastructure.database.connection import DatabaseError
from qla_practice.infrastructure.database.models import (
    PracticeAttempt,
    PracticeQuestion,
    PracticeSession,
    SkillMastery,
)
from qla_practice.utils.datetime import utc_now

logger = logging.getLogger(__name__)


@dataclass
class GradeResult:
    """Outcome of one graded attempt."""

    attempt_id: UUID
    session_id: UUID
    question_id: UUID
    skill_id: UUID
    is_correct: bool
    correct_answer: Any
    solution_steps: list[str]
    mastery_before: float
    new_mastery_level: float
    points_earned: int
    current_streak: int
    status: str
    newly_mastered: bool
    hints_used: int
    time_taken_seconds: int


class AttemptGrader:
    """Grades submissions and applies them to the mastery store."""

    def __init__(self, db: AsyncSession, settings: PracticeSettings) -> None:
        self._db = db
        self.settings = settings

    async def _load_session(self, session_id: UUID, user_email: str) -> PracticeSession:
        session = await self._db.get(PracticeSession, session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        if session.user_email != user_email:
            raise SessionOwnershipError(session_id)
        if not session.is_active:
            raise SessionNotActiveError(session_id)
        return session

    async def _load_question(
        self, session: PracticeSession, question_id: UUID
    ) -> PracticeQuestion:
        question = await self._db.get(PracticeQuestion, question_id)
        if question is None:
            raise QuestionNotFoundError(question_id)
        if str(question_id) not in {str(qid) for qid in session.question_ids or []}:
            raise QuestionNotInSessionError(question_id, session.id)
        return question

    async def _get_or_create_mastery(self, user_email: str, skill_id: UUID) -> SkillMastery:
        result = await self._db.execute(
            select(SkillMastery).where(
                SkillMastery.user_email == user_email,
                SkillMastery.skill_id == skill_id,
            )
        )
        record = result.scalar_one_or_none()
        if record is None:
            record = SkillMastery(
                id=uuid4(),
                user_email=user_email,
                skill_id=skill_id,
                mastery_level=Decimal("0"),
                questions_attempted=0,
                questions_correct=0,
                current_streak=0,
                best_streak=0,
                time_spent_seconds=0,
                status=STATUS_NEW,
            )
            self._db.add(record)
        return record

    def _apply(self, record: SkillMastery, is_correct: bool, time_taken: int) -> MasteryUpdate:
        now = utc_now()
        update = apply_attempt(
            mastery=float(record.mastery_level or 0),
            questions_attempted=record.questions_attempted or 0,
            questions_correct=record.questions_correct or 0,
            current_streak=record.current_streak or 0,
            best_streak=record.best_streak or 0,
            previous_status=record.status or STATUS_NEW,
            is_correct=is_correct,
            mastered_threshold=self.settings.mastered_threshold,
            learning_threshold=self.settings.learning_threshold,
        )
        record.mastery_level = Decimal(str(update.mastery_after))
        record.questions_attempted = update.questions_attempted
        record.questions_correct = update.questions_correct
        record.current_streak = update.current_streak
        record.best_streak = update.best_streak
        record.status = update.status
        record.time_spent_seconds = (record.time_spent_seconds or 0) + time_taken
        record.last_practiced = now
        record.mastery_achieved_at = stamp_mastery_achieved(
            record.mastery_achieved_at, update, now
        )
        return update

    async def grade_and_record(
        self,
        session_id: UUID,
        question_id: UUID,
        user_email: str,
        answer: Any,
        hints_used: int = 0,
        time_taken_seconds: int = 0,
        confidence_level: Optional[int] = None,
    ) -> GradeResult:
        """Grade a submission and record it atomically.

        Args:
            session_id: Session the question was handed out in.
            question_id: Question being answered.
            user_email: Caller identity; must own the session.
            answer: Submitted answer, shape depends on the question type.
            hints_used: Number of hints revealed before answering.
            time_taken_seconds: Time spent on the question.
            confidence_level: Optional self-reported confidence.

        Returns:
            GradeResult with correctness and the new mastery level.

        Raises:
            SessionNotFoundError: Unknown session.
            SessionOwnershipError: Session belongs to another user.
            SessionNotActiveError: Session already ended.
            QuestionNotFoundError: Unknown question.
            QuestionNotInSessionError: Question not handed out by the session.
            InvalidAnswerKeyError: Stored answer key is malformed.
            DatabaseError: Storage failure; nothing was recorded.
        """
        hints_used = max(0, hints_used or 0)
        time_taken_seconds = max(0, time_taken_seconds or 0)

        try:
            session = await self._load_session(session_id, user_email)
            question = await self._load_question(session, question_id)

            key = parse_answer_key(question.question_type, question.correct_answer)
            is_correct = grade_answer(
                key, answer, default_tolerance=self.settings.default_numeric_tolerance
            )

            record = await self._get_or_create_mastery(user_email, question.skill_id)
            update = self._apply(record, is_correct, time_taken_seconds)

            attempt = PracticeAttempt(
                id=uuid4(),
                session_id=session.id,
                question_id=question.id,
                user_email=user_email,
                skill_id=question.skill_id,
                user_answer=answer,
                is_correct=is_correct,
                hints_used=hints_used,
                time_taken_seconds=time_taken_seconds,
                confidence_level=confidence_level,
                mastery_before=Decimal(str(update.mastery_before)),
                mastery_after=Decimal(str(update.mastery_after)),
            )
            self._db.add(attempt)
            await self._db.commit()
        except SQLAlchemyError as e:
            await self._db.rollback()
            raise DatabaseError("Failed to record practice attempt", e) from e
        except Exception:
            await self._db.rollback()
            raise

        logger.info(
            "Graded attempt user=%s question=%s correct=%s mastery=%.2f->%.2f",
            user_email,
            question_id,
            is_correct,
            update.mastery_before,
            update.mastery_after,
        )

        return GradeResult(
            attempt_id=attempt.id,
            session_id=session.id,
            question_id=question.id,
            skill_id=question.skill_id,
            is_correct=is_correct,
            correct_answer=key.to_json(),
            solution_steps=list(question.solution_steps or []),
            mastery_before=update.mastery_before,
            new_mastery_level=update.mastery_after,
            points_earned=(question.points or 0) if is_correct else 0,
            current_streak=update.current_streak,
            status=update.status,
            newly_mastered=update.newly_mastered,
            hints_used=hints_used,
            time_taken_seconds=time_taken_seconds,
        )
