# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Session selector.

Loads the candidate questions for a session mode, plans the sequence with
:func:`plan_session` and persists the new session with its ordered
question ids. Selection never touches mastery records.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from qla_practice.core.config.settings import PracticeSettings
from qla_practice.domains.practice.exceptions import SkillNotFoundError, SkillRequiredError
from qla_practice.domains.practice.mastery import STATUS_LEARNING, STATUS_PRACTICED
from qla_practice.domains.practice.selection import (
    Candidate,
    PlanRules,
    SessionType,
    clamp_count,
    plan_session,
)
from qla_practice.infrastructure.database.connection import DatabaseError
from qla_practice.infrastructure.database.models import (
    PracticeBank,
    PracticeQuestion,
    PracticeSession,
    Skill,
    SkillMastery,
)
from qla_practice.utils.datetime import days_ago, utc_now

logger = logging.getLogger(__name__)


@dataclass
class StartedSession:
    """A persisted session and its questions in presentation order."""

    session: PracticeSession
    questions: list[PracticeQuestion] = field(default_factory=list)


class SessionSelector:
    """Builds practice sessions for the four selection modes.

    Attributes:
        settings: Practice tuning parameters.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: PracticeSettings,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Initialize the selector.

        Args:
            db: Async database session.
            settings: Practice tuning parameters.
            rng: Random source for tie-breaks (seedable in tests).
        """
        self._db = db
        self.settings = settings
        self._rng = rng or random.Random()

    def _candidate_query(
        self,
        user_email: str,
        mode: SessionType,
        skill_id: Optional[UUID],
    ) -> Select:
        """Build the scope query for a mode.

        Only active questions of active skills are considered. The caller's
        mastery record is outer-joined so unrecorded skills come back with
        NULL mastery.
        """
        stmt = (
            select(
                PracticeQuestion.id.label("question_id"),
                PracticeQuestion.skill_id.label("skill_id"),
                PracticeQuestion.difficulty_level.label("difficulty"),
                SkillMastery.mastery_level.label("mastery"),
                SkillMastery.status.label("status"),
                SkillMastery.last_practiced.label("last_practiced"),
            )
            .join(PracticeBank, PracticeBank.id == PracticeQuestion.bank_id)
            .join(Skill, Skill.id == PracticeQuestion.skill_id)
            .outerjoin(
                SkillMastery,
                and_(
                    SkillMastery.skill_id == PracticeQuestion.skill_id,
                    SkillMastery.user_email == user_email,
                ),
            )
            .where(PracticeBank.is_active.is_(True), Skill.is_active.is_(True))
        )

        if mode == SessionType.TARGETED:
            stmt = stmt.where(PracticeQuestion.skill_id == skill_id)
        elif mode == SessionType.MIXED:
            stmt = stmt.where(SkillMastery.status.in_([STATUS_LEARNING, STATUS_PRACTICED]))
        elif mode == SessionType.REVIEW:
            stale_before = days_ago(self.settings.review_stale_days)
            stmt = stmt.where(
                SkillMastery.id.is_not(None),
                or_(
                    SkillMastery.last_practiced < stale_before,
                    SkillMastery.mastery_level < self.settings.review_mastery_threshold,
                ),
            )
        return stmt

    async def load_candidates(
        self,
        user_email: str,
        mode: SessionType,
        skill_id: Optional[UUID] = None,
    ) -> list[Candidate]:
        """Load every in-scope question for a mode as planner input."""
        result = await self._db.execute(self._candidate_query(user_email, mode, skill_id))
        return [
            Candidate(
                question_id=row.question_id,
                skill_id=row.skill_id,
                difficulty=row.difficulty,
                mastery=float(row.mastery) if row.mastery is not None else None,
                status=row.status,
                last_practiced=row.last_practiced,
            )
            for row in result.all()
        ]

    async def start_session(
        self,
        user_email: str,
        mode: SessionType,
        skill_id: Optional[UUID] = None,
        count: Optional[int] = None,
    ) -> StartedSession:
        """Select questions and persist a new session.

        Args:
            user_email: Caller identity.
            mode: Selection mode.
            skill_id: Skill to practice (required for targeted).
            count: Requested number of questions.

        Returns:
            The new session and its questions. The question list is empty
            when nothing qualifies; that is still a valid session.

        Raises:
            SkillRequiredError: Targeted mode without a skill.
            SkillNotFoundError: Targeted skill missing or inactive.
            DatabaseError: If the session could not be stored.
        """
        mode = SessionType(mode)
        if mode == SessionType.TARGETED:
            if skill_id is None:
                raise SkillRequiredError()
            try:
                skill = await self._db.get(Skill, skill_id)
            except SQLAlchemyError as e:
                raise DatabaseError("Failed to load skill", e) from e
            if skill is None or not skill.is_active:
                raise SkillNotFoundError(skill_id)

        size = clamp_count(
            count,
            self.settings.default_session_questions,
            self.settings.max_session_questions,
        )
        now = utc_now()

        try:
            candidates = await self.load_candidates(user_email, mode, skill_id)
            planned = plan_session(
                mode,
                candidates,
                size,
                now,
                rules=PlanRules(
                    review_stale_days=self.settings.review_stale_days,
                    review_mastery_threshold=self.settings.review_mastery_threshold,
                ),
                rng=self._rng,
            )

            questions = await self._load_questions([c.question_id for c in planned])

            session = PracticeSession(
                id=uuid4(),
                user_email=user_email,
                skill_id=skill_id if mode == SessionType.TARGETED else None,
                session_type=mode.value,
                question_ids=[str(q.id) for q in questions],
                status="active",
                started_at=now,
            )
            self._db.add(session)
            await self._db.commit()
        except SQLAlchemyError as e:
            await self._db.rollback()
            raise DatabaseError("Failed to start practice session", e) from e

        logger.info(
            "Started %s session %s for %s: %d/%d questions (%d candidates)",
            mode.value,
            session.id,
            user_email,
            len(questions),
            size,
            len(candidates),
        )
        return StartedSession(session=session, questions=questions)

    async def _load_questions(self, question_ids: list[UUID]) -> list[PracticeQuestion]:
        """Fetch full question rows, keeping the planned order."""
        if not question_ids:
            return []
        result = await self._db.execute(
            select(PracticeQuestion).where(PracticeQuestion.id.in_(question_ids))
        )
        by_id = {q.id: q for q in result.scalars().all()}
        return [by_id[qid] for qid in question_ids if qid in by_id]
