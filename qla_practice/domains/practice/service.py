# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Practice service.

Entry point used by the API layer. Wraps the selector, grader and
aggregator, and runs the post-commit side effects:

- achievement checks, best-effort and in their own transaction
- event publication (session started, answer graded, session completed,
  achievement earned)

Side effects run only after the core transaction has committed, so their
failures are logged and never change the outcome of the operation.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from qla_practice.core.config.settings import PracticeSettings
from qla_practice.domains.achievements.service import (
    AchievementService,
    AttemptContext,
    EarnedAchievement,
)
from qla_practice.domains.practice.aggregator import SessionAggregator, SessionSummary
from qla_practice.domains.practice.grader import AttemptGrader, GradeResult
from qla_practice.domains.practice.progress import (
    ProgressReport,
    ProgressService,
    Recommendations,
    SkillProgress,
)
from qla_practice.domains.practice.selection import SessionType
from qla_practice.domains.practice.selector import SessionSelector, StartedSession
from qla_practice.infrastructure.events.bus import EventBus
from qla_practice.infrastructure.events.types import EventTypes
from qla_practice.utils.logging import bind_practice_context

logger = logging.getLogger(__name__)


@dataclass
class AnswerOutcome:
    """Graded attempt plus the achievements it unlocked."""

    result: GradeResult
    achievements: list[EarnedAchievement] = field(default_factory=list)


@dataclass
class SessionOutcome:
    """Session summary plus the achievements ending it unlocked."""

    summary: SessionSummary
    achievements: list[EarnedAchievement] = field(default_factory=list)


class PracticeService:
    """Service for practice sessions, grading and progress.

    Attributes:
        settings: Practice tuning parameters.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: PracticeSettings,
        event_bus: Optional[EventBus] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Initialize practice service.

        Args:
            db: Async database session.
            settings: Practice tuning parameters.
            event_bus: Bus for post-commit events; events are skipped if None.
            rng: Random source for selection tie-breaks.
        """
        self._db = db
        self.settings = settings
        self._event_bus = event_bus
        self._selector = SessionSelector(db, settings, rng=rng)
        self._grader = AttemptGrader(db, settings)
        self._aggregator = SessionAggregator(db, settings)
        self._progress = ProgressService(db, settings)
        self._achievements = AchievementService(db)

    async def start_session(
        self,
        user_email: str,
        mode: SessionType,
        skill_id: Optional[UUID] = None,
        num_questions: Optional[int] = None,
    ) -> StartedSession:
        """Start a practice session.

        Raises:
            SkillRequiredError: Targeted mode without a skill.
            SkillNotFoundError: Unknown targeted skill.
            DatabaseError: Storage failure.
        """
        bind_practice_context(skill_id=skill_id)
        started = await self._selector.start_session(
            user_email, mode, skill_id=skill_id, count=num_questions
        )
        await self._publish(
            EventTypes.Practice.SESSION_STARTED,
            {
                "user_email": user_email,
                "session_id": str(started.session.id),
                "skill_id": str(skill_id) if skill_id else None,
                "session_type": started.session.session_type,
                "question_count": len(started.questions),
            },
        )
        return started

    async def submit_answer(
        self,
        user_email: str,
        session_id: UUID,
        question_id: UUID,
        answer: Any,
        hints_used: int = 0,
        time_taken_seconds: int = 0,
        confidence_level: Optional[int] = None,
    ) -> AnswerOutcome:
        """Grade an answer, then run achievement checks and publish events.

        Raises:
            PracticeServiceError: Input or authorization errors from grading.
            DatabaseError: Storage failure; nothing was recorded.
        """
        bind_practice_context(session_id=session_id, question_id=question_id)
        result = await self._grader.grade_and_record(
            session_id,
            question_id,
            user_email,
            answer,
            hints_used=hints_used,
            time_taken_seconds=time_taken_seconds,
            confidence_level=confidence_level,
        )

        achievements: list[EarnedAchievement] = []
        if self.settings.achievements_enabled:
            achievements = await self._check_achievements(
                self._achievements.check_after_attempt(
                    AttemptContext(
                        user_email=user_email,
                        is_correct=result.is_correct,
                        hints_used=result.hints_used,
                        time_taken_seconds=result.time_taken_seconds,
                        current_streak=result.current_streak,
                        newly_mastered=result.newly_mastered,
                    )
                )
            )

        await self._publish(
            EventTypes.Practice.ANSWER_GRADED,
            {
                "user_email": user_email,
                "session_id": str(result.session_id),
                "question_id": str(result.question_id),
                "skill_id": str(result.skill_id),
                "is_correct": result.is_correct,
                "hints_used": result.hints_used,
                "time_taken_seconds": result.time_taken_seconds,
                "mastery_before": result.mastery_before,
                "mastery_after": result.new_mastery_level,
            },
        )
        await self._publish_achievements(user_email, achievements)
        return AnswerOutcome(result=result, achievements=achievements)

    async def end_session(self, user_email: str, session_id: UUID) -> SessionOutcome:
        """End a session and return its summary.

        Raises:
            SessionNotFoundError: Unknown session.
            SessionOwnershipError: Session belongs to another user.
            DatabaseError: Storage failure.
        """
        bind_practice_context(session_id=session_id)
        summary = await self._aggregator.end_session(session_id, user_email)

        achievements: list[EarnedAchievement] = []
        if self.settings.achievements_enabled:
            achievements = await self._check_achievements(
                self._achievements.check_after_session(
                    user_email, summary.questions_attempted, summary.questions_correct
                )
            )

        if summary.first_end:
            await self._publish(
                EventTypes.Practice.SESSION_COMPLETED,
                {
                    "user_email": user_email,
                    "session_id": str(summary.session_id),
                    "questions_attempted": summary.questions_attempted,
                    "questions_correct": summary.questions_correct,
                    "accuracy_pct": summary.accuracy_pct,
                    "total_time_seconds": summary.total_time_seconds,
                },
            )
        await self._publish_achievements(user_email, achievements)
        return SessionOutcome(summary=summary, achievements=achievements)

    async def list_skills(
        self,
        user_email: str,
        grade: Optional[int] = None,
        unit: Optional[int] = None,
    ) -> list[SkillProgress]:
        """Active skills with the caller's mastery."""
        return await self._progress.list_skills(user_email, grade=grade, unit=unit)

    async def get_progress(self, user_email: str) -> ProgressReport:
        """Progress dashboard for the caller."""
        return await self._progress.get_progress(user_email)

    async def get_recommendations(self, user_email: str) -> Recommendations:
        """Skill recommendations for the caller."""
        return await self._progress.get_recommendations(user_email)

    async def _check_achievements(self, check) -> list[EarnedAchievement]:
        """Await an achievement check, swallowing and logging failures."""
        try:
            return await check
        except Exception as e:
            await self._db.rollback()
            logger.warning("Achievement check failed: %s", str(e), exc_info=True)
            return []

    async def _publish_achievements(
        self, user_email: str, achievements: list[EarnedAchievement]
    ) -> None:
        for achievement in achievements:
            await self._publish(
                EventTypes.Practice.ACHIEVEMENT_EARNED,
                {
                    "user_email": user_email,
                    "achievement": achievement.name,
                    "points": achievement.points,
                },
            )

    async def _publish(self, event_type: str, payload: dict[str, Any]) -> None:
        if self._event_bus is None:
            return
        await self._event_bus.publish(event_type, payload)
