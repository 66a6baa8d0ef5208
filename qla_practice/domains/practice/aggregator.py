# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Session aggregator.

Rolls the attempt ledger of one session up into summary statistics and
writes them onto the session row. Every call recomputes from the ledger
and overwrites the summary, so ending a session twice yields the same
numbers.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from qla_practice.core.config.settings import PracticeSettings
from qla_practice.domains.practice.exceptions import (
    SessionNotFoundError,
    SessionOwnershipError,
)
from qla_practice.domains.practice.mastery import mastery_status
from qla_practice.infrastructure.database.connection import DatabaseError
from qla_practice.infrastructure.database.models import (
    PracticeAttempt,
    PracticeSession,
    Skill,
)
from qla_practice.utils.datetime import utc_now

logger = logging.getLogger(__name__)


@dataclass
class SkillDelta:
    """Mastery movement on one skill over a session."""

    skill_id: UUID
    skill_name: Optional[str]
    mastery_before: float
    mastery_level: float
    delta: float
    status: str


@dataclass
class SessionSummary:
    """Statistics of an ended session."""

    session_id: UUID
    questions_attempted: int = 0
    questions_correct: int = 0
    accuracy_pct: float = 0.0
    total_time_seconds: int = 0
    avg_time_per_question: float = 0.0
    skill_deltas: list[SkillDelta] = field(default_factory=list)
    first_end: bool = False

    @property
    def is_perfect(self) -> bool:
        """At least one attempt and every attempt correct."""
        return self.questions_attempted > 0 and self.questions_correct == self.questions_attempted

    @property
    def mastery_delta(self) -> float:
        return round(sum(d.delta for d in self.skill_deltas), 2)


def summarize_attempts(
    session_id: UUID,
    attempts: Sequence[PracticeAttempt],
    skill_names: dict[UUID, str],
    mastered_threshold: float = 85.0,
    learning_threshold: float = 70.0,
) -> SessionSummary:
    """Compute a session summary from its attempts (in chronological order)."""
    attempted = len(attempts)
    if attempted == 0:
        return SessionSummary(session_id=session_id)

    correct = sum(1 for a in attempts if a.is_correct)
    total_time = sum(a.time_taken_seconds or 0 for a in attempts)

    # First attempt on a skill gives the starting level, last gives the end
    spans: dict[UUID, list[float]] = {}
    for attempt in attempts:
        before = float(attempt.mastery_before)
        after = float(attempt.mastery_after)
        if attempt.skill_id not in spans:
            spans[attempt.skill_id] = [before, after]
        else:
            spans[attempt.skill_id][1] = after

    deltas = [
        SkillDelta(
            skill_id=skill_id,
            skill_name=skill_names.get(skill_id),
            mastery_before=before,
            mastery_level=after,
            delta=round(after - before, 2),
            status=mastery_status(after, mastered_threshold, learning_threshold),
        )
        for skill_id, (before, after) in spans.items()
    ]

    return SessionSummary(
        session_id=session_id,
        questions_attempted=attempted,
        questions_correct=correct,
        accuracy_pct=round(correct * 100 / attempted, 2),
        total_time_seconds=total_time,
        avg_time_per_question=round(total_time / attempted, 2),
        skill_deltas=deltas,
    )


class SessionAggregator:
    """Ends sessions and stores their summary."""

    def __init__(self, db: AsyncSession, settings: PracticeSettings) -> None:
        self._db = db
        self.settings = settings

    async def end_session(self, session_id: UUID, user_email: str) -> SessionSummary:
        """End a session and (re)write its summary.

        Args:
            session_id: Session to end.
            user_email: Caller identity; must own the session.

        Returns:
            SessionSummary computed from the attempt ledger. ``first_end``
            is True only on the call that actually ended the session.

        Raises:
            SessionNotFoundError: Unknown session.
            SessionOwnershipError: Session belongs to another user.
            DatabaseError: Storage failure; the session row is unchanged.
        """
        try:
            session = await self._db.get(PracticeSession, session_id)
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to load practice session", e) from e
        if session is None:
            raise SessionNotFoundError(session_id)
        if session.user_email != user_email:
            raise SessionOwnershipError(session_id)

        try:
            result = await self._db.execute(
                select(PracticeAttempt)
                .where(PracticeAttempt.session_id == session.id)
                .order_by(PracticeAttempt.created_at, PracticeAttempt.id)
            )
            attempts = list(result.scalars().all())

            skill_names: dict[UUID, str] = {}
            skill_ids = {a.skill_id for a in attempts}
            if skill_ids:
                names = await self._db.execute(
                    select(Skill.id, Skill.name).where(Skill.id.in_(skill_ids))
                )
                skill_names = {row.id: row.name for row in names.all()}

            summary = summarize_attempts(
                session.id,
                attempts,
                skill_names,
                mastered_threshold=self.settings.mastered_threshold,
                learning_threshold=self.settings.learning_threshold,
            )

            summary.first_end = session.ended_at is None
            session.questions_attempted = summary.questions_attempted
            session.questions_correct = summary.questions_correct
            session.total_time_seconds = summary.total_time_seconds
            session.average_time_per_question = Decimal(str(summary.avg_time_per_question))
            session.session_score = Decimal(str(summary.accuracy_pct))
            session.mastery_delta = Decimal(str(summary.mastery_delta))
            session.status = "completed"
            if session.ended_at is None:
                session.ended_at = utc_now()

            await self._db.commit()
        except SQLAlchemyError as e:
            await self._db.rollback()
            raise DatabaseError("Failed to end practice session", e) from e

        logger.info(
            "Ended session %s for %s: %d/%d correct%s",
            session.id,
            user_email,
            summary.questions_correct,
            summary.questions_attempted,
            "" if summary.first_end else " (recomputed)",
        )
        return summary
