# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Progress dashboard, skill listing and recommendations.

Read-only views over skills, mastery records and the attempt ledger.
The aggregation helpers are plain functions over SkillProgress rows.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from qla_practice.core.config.settings import PracticeSettings
from qla_practice.domains.achievements.service import AchievementService
from qla_practice.domains.practice.mastery import STATUS_MASTERED, STATUS_NEW
from qla_practice.infrastructure.database.connection import DatabaseError
from qla_practice.infrastructure.database.models import (
    PracticeAttempt,
    PracticeBank,
    PracticeQuestion,
    Skill,
    SkillMastery,
)
from qla_practice.utils.datetime import is_older_than, utc_now

logger = logging.getLogger(__name__)

STREAK_WINDOW_DAYS = 7
MAX_REVIEW_RECOMMENDATIONS = 5
MAX_NEXT_RECOMMENDATIONS = 5
MAX_CHALLENGE_RECOMMENDATIONS = 3
CHALLENGE_MIN_TIER = 4


@dataclass
class SkillProgress:
    """A skill together with the caller's record on it."""

    skill_id: UUID
    name: str
    description: Optional[str]
    grade: int
    unit: int
    order_index: int
    prerequisite_skill_ids: list[str] = field(default_factory=list)
    mastery_level: Optional[float] = None
    status: str = STATUS_NEW
    questions_attempted: int = 0
    questions_correct: int = 0
    current_streak: int = 0
    best_streak: int = 0
    time_spent_seconds: int = 0
    last_practiced: Optional[datetime] = None
    question_count: int = 0
    max_difficulty: Optional[int] = None
    needs_review: bool = False

    @property
    def is_recorded(self) -> bool:
        return self.mastery_level is not None

    @property
    def accuracy(self) -> float:
        if not self.questions_attempted:
            return 0.0
        return round(self.questions_correct * 100 / self.questions_attempted, 2)


@dataclass
class PracticeStreak:
    """Practice-day counts derived from the attempt ledger."""

    current_streak: int = 0
    total_days: int = 0


@dataclass
class UnitProgress:
    grade: int
    unit: int
    total_skills: int
    mastered_skills: int

    @property
    def completion_pct(self) -> float:
        if not self.total_skills:
            return 0.0
        return round(self.mastered_skills * 100 / self.total_skills, 2)


@dataclass
class OverallStats:
    skills_practiced: int = 0
    skills_mastered: int = 0
    total_questions: int = 0
    total_correct: int = 0
    accuracy: float = 0.0
    total_hours: float = 0.0


@dataclass
class Recommendations:
    """Skills suggested to the caller, grouped by intent."""

    review_needed: list[SkillProgress] = field(default_factory=list)
    next_skills: list[SkillProgress] = field(default_factory=list)
    challenge_skills: list[SkillProgress] = field(default_factory=list)


@dataclass
class ProgressReport:
    """Everything the progress dashboard shows."""

    overall: OverallStats
    skills: list[SkillProgress]
    achievements: list[dict[str, Any]]
    streak: PracticeStreak
    units: list[UnitProgress]


def overall_stats(skills: Iterable[SkillProgress]) -> OverallStats:
    """Totals over the caller's recorded skills."""
    recorded = [s for s in skills if s.is_recorded]
    attempted = sum(s.questions_attempted for s in recorded)
    correct = sum(s.questions_correct for s in recorded)
    seconds = sum(s.time_spent_seconds for s in recorded)
    return OverallStats(
        skills_practiced=len(recorded),
        skills_mastered=sum(1 for s in recorded if s.status == STATUS_MASTERED),
        total_questions=attempted,
        total_correct=correct,
        accuracy=round(correct * 100 / attempted, 2) if attempted else 0.0,
        total_hours=round(seconds / 3600, 2),
    )


def practice_streak(practice_days: Iterable[date], today: date) -> PracticeStreak:
    """Count distinct practice days, overall and within the last week."""
    days = set(practice_days)
    window_start = today - timedelta(days=STREAK_WINDOW_DAYS - 1)
    recent = [d for d in days if window_start <= d <= today]
    return PracticeStreak(current_streak=len(recent), total_days=len(days))


def unit_progress(skills: Iterable[SkillProgress]) -> list[UnitProgress]:
    """Mastered share of skills per (grade, unit)."""
    units: dict[tuple[int, int], UnitProgress] = {}
    for skill in skills:
        key = (skill.grade, skill.unit)
        if key not in units:
            units[key] = UnitProgress(
                grade=skill.grade, unit=skill.unit, total_skills=0, mastered_skills=0
            )
        units[key].total_skills += 1
        if skill.status == STATUS_MASTERED:
            units[key].mastered_skills += 1
    return [units[key] for key in sorted(units)]


def recommend(
    skills: Sequence[SkillProgress],
    now: datetime,
    stale_days: int = 7,
    mastery_threshold: float = 50.0,
) -> Recommendations:
    """Pick review, next and challenge skills.

    - review_needed: recorded, not mastered, and stale or below the
      threshold; least recently practiced first.
    - next_skills: unrecorded skills whose prerequisites are all mastered.
    - challenge_skills: unrecorded skills offering tier 4+ questions,
      highest grade and unit first.
    """
    mastered_ids = {str(s.skill_id) for s in skills if s.status == STATUS_MASTERED}

    review = [
        s
        for s in skills
        if s.is_recorded
        and s.status != STATUS_MASTERED
        and (
            is_older_than(s.last_practiced, stale_days, now=now)
            or (s.mastery_level or 0) < mastery_threshold
        )
    ]
    review.sort(key=lambda s: s.last_practiced or now)

    fresh = [s for s in skills if not s.is_recorded and s.question_count > 0]
    next_skills = [
        s for s in fresh if all(str(p) in mastered_ids for p in s.prerequisite_skill_ids or [])
    ]
    challenge = [
        s
        for s in fresh
        if s.max_difficulty is not None and s.max_difficulty >= CHALLENGE_MIN_TIER
    ]
    challenge.sort(key=lambda s: (-s.grade, -s.unit))

    return Recommendations(
        review_needed=review[:MAX_REVIEW_RECOMMENDATIONS],
        next_skills=next_skills[:MAX_NEXT_RECOMMENDATIONS],
        challenge_skills=challenge[:MAX_CHALLENGE_RECOMMENDATIONS],
    )


class ProgressService:
    """Read-side queries for the practice dashboard."""

    def __init__(self, db: AsyncSession, settings: PracticeSettings) -> None:
        self._db = db
        self.settings = settings

    async def _execute(self, stmt: Select, action: str):
        try:
            return await self._db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("Failed to %s: %s", action, str(e))
            raise DatabaseError(f"Failed to {action}", e) from e

    async def list_skills(
        self,
        user_email: str,
        grade: Optional[int] = None,
        unit: Optional[int] = None,
    ) -> list[SkillProgress]:
        """Active skills with the caller's mastery and question counts.

        Args:
            user_email: Caller identity.
            grade: Optional grade filter.
            unit: Optional unit filter.

        Returns:
            Skills ordered by grade, unit and order index.
        """
        questions = (
            select(
                PracticeQuestion.skill_id.label("skill_id"),
                func.count(PracticeQuestion.id).label("question_count"),
                func.max(PracticeQuestion.difficulty_level).label("max_difficulty"),
            )
            .join(PracticeBank, PracticeBank.id == PracticeQuestion.bank_id)
            .where(PracticeBank.is_active.is_(True))
            .group_by(PracticeQuestion.skill_id)
            .subquery()
        )

        stmt = (
            select(Skill, SkillMastery, questions.c.question_count, questions.c.max_difficulty)
            .outerjoin(
                SkillMastery,
                and_(SkillMastery.skill_id == Skill.id, SkillMastery.user_email == user_email),
            )
            .outerjoin(questions, questions.c.skill_id == Skill.id)
            .where(Skill.is_active.is_(True))
            .order_by(Skill.grade, Skill.unit, Skill.order_index, Skill.name)
        )
        if grade is not None:
            stmt = stmt.where(Skill.grade == grade)
        if unit is not None:
            stmt = stmt.where(Skill.unit == unit)

        result = await self._execute(stmt, "list skills")
        now = utc_now()
        return [
            self._to_progress(skill, record, count, max_difficulty, now)
            for skill, record, count, max_difficulty in result.all()
        ]

    def _to_progress(
        self,
        skill: Skill,
        record: Optional[SkillMastery],
        question_count: Optional[int],
        max_difficulty: Optional[int],
        now: datetime,
    ) -> SkillProgress:
        progress = SkillProgress(
            skill_id=skill.id,
            name=skill.name,
            description=skill.description,
            grade=skill.grade,
            unit=skill.unit,
            order_index=skill.order_index,
            prerequisite_skill_ids=list(skill.prerequisite_skill_ids or []),
            question_count=question_count or 0,
            max_difficulty=max_difficulty,
        )
        if record is not None:
            progress.mastery_level = float(record.mastery_level)
            progress.status = record.status
            progress.questions_attempted = record.questions_attempted
            progress.questions_correct = record.questions_correct
            progress.current_streak = record.current_streak
            progress.best_streak = record.best_streak
            progress.time_spent_seconds = record.time_spent_seconds
            progress.last_practiced = record.last_practiced
            progress.needs_review = is_older_than(
                record.last_practiced, self.settings.review_stale_days, now=now
            )
        return progress

    async def practice_days(self, user_email: str) -> list[date]:
        """Distinct UTC calendar days with at least one attempt."""
        day = func.date(func.timezone("UTC", PracticeAttempt.created_at))
        result = await self._execute(
            select(day).where(PracticeAttempt.user_email == user_email).distinct(),
            "load practice days",
        )
        return list(result.scalars().all())

    async def get_progress(self, user_email: str) -> ProgressReport:
        """Build the progress dashboard for a user."""
        skills = await self.list_skills(user_email)
        days = await self.practice_days(user_email)
        try:
            recent = await AchievementService(self._db).recent(user_email, limit=10)
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to load recent achievements", e) from e

        achievements = [
            {
                "name": definition.name,
                "display_name": definition.display_name,
                "description": definition.description,
                "icon": definition.icon,
                "points": definition.points,
                "rarity": definition.rarity,
                "earned_at": award.earned_at,
            }
            for award, definition in recent
        ]

        return ProgressReport(
            overall=overall_stats(skills),
            skills=[s for s in skills if s.is_recorded],
            achievements=achievements,
            streak=practice_streak(days, utc_now().date()),
            units=unit_progress(skills),
        )

    async def get_recommendations(self, user_email: str) -> Recommendations:
        """Suggest skills to review, start next, or take on as a challenge."""
        skills = await self.list_skills(user_email)
        recommendations = recommend(
            skills,
            utc_now(),
            stale_days=self.settings.review_stale_days,
            mastery_threshold=self.settings.recommendation_mastery_threshold,
        )
        logger.debug(
            "Recommendations for %s: %d review, %d next, %d challenge",
            user_email,
            len(recommendations.review_needed),
            len(recommendations.next_skills),
            len(recommendations.challenge_skills),
        )
        return recommendations
