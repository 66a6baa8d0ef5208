# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Achievement rules and award persistence.

Achievements are checked after a practice transaction has committed and
in a transaction of their own. Callers treat every failure here as
non-fatal: the graded attempt or ended session stands regardless.

Rules:
    first_practice   first graded attempt
    accuracy_ace     20 correct in a row on one skill
    speed_demon      10 correct answers under 30 seconds within 24 hours
    hint_free        50 attempts without hints
    skill_master     first mastered skill
    perfect_session  ended session with at least one attempt, all correct

Each achievement is awarded at most once per user.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional
from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from qla_practice.infrastructure.database.models import (
    AchievementDefinition,
    PracticeAttempt,
    SkillMastery,
    StudentAchievement,
)
from qla_practice.utils.datetime import hours_ago, utc_now
from qla_practice.utils.logging import get_logger

logger = get_logger(__name__)

FIRST_PRACTICE = "first_practice"
ACCURACY_ACE = "accuracy_ace"
SPEED_DEMON = "speed_demon"
HINT_FREE = "hint_free"
SKILL_MASTER = "skill_master"
PERFECT_SESSION = "perfect_session"

MASTERED_STATUS = "mastered"

ACCURACY_ACE_STREAK = 20
SPEED_DEMON_COUNT = 10
SPEED_DEMON_SECONDS = 30
SPEED_DEMON_WINDOW_HOURS = 24
HINT_FREE_COUNT = 50


@dataclass
class AttemptContext:
    """What the rules need to know about a freshly graded attempt."""

    user_email: str
    is_correct: bool
    hints_used: int
    time_taken_seconds: int
    current_streak: int
    newly_mastered: bool


@dataclass
class EarnedAchievement:
    """An achievement awarded by the current check."""

    name: str
    display_name: str
    description: Optional[str]
    icon: Optional[str]
    points: int
    rarity: str


class AchievementService:
    """Evaluates achievement rules and persists awards."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    def candidates_for_attempt(self, ctx: AttemptContext) -> list[str]:
        """Achievements worth checking after this attempt.

        Rules are only evaluated when the attempt could have completed
        them, which keeps the per-answer query count small.
        """
        names = [FIRST_PRACTICE]
        if ctx.is_correct and ctx.current_streak >= ACCURACY_ACE_STREAK:
            names.append(ACCURACY_ACE)
        if ctx.is_correct and ctx.time_taken_seconds < SPEED_DEMON_SECONDS:
            names.append(SPEED_DEMON)
        if ctx.hints_used == 0:
            names.append(HINT_FREE)
        if ctx.newly_mastered:
            names.append(SKILL_MASTER)
        return names

    async def check_after_attempt(self, ctx: AttemptContext) -> list[EarnedAchievement]:
        """Award whatever the attempt unlocked and commit.

        Returns:
            The achievements awarded by this call (empty if none).
        """
        rules: dict[str, Callable[[], Awaitable[bool]]] = {
            FIRST_PRACTICE: lambda: self._has_attempts(ctx.user_email, 1),
            ACCURACY_ACE: _true,
            SPEED_DEMON: lambda: self._has_fast_correct(ctx.user_email),
            HINT_FREE: lambda: self._has_attempts(ctx.user_email, HINT_FREE_COUNT, hint_free=True),
            SKILL_MASTER: lambda: self._has_mastered_skill(ctx.user_email),
        }
        return await self._award_matching(
            ctx.user_email, self.candidates_for_attempt(ctx), rules
        )

    async def check_after_session(
        self,
        user_email: str,
        questions_attempted: int,
        questions_correct: int,
    ) -> list[EarnedAchievement]:
        """Award the perfect session achievement when it applies."""
        if questions_attempted == 0 or questions_correct != questions_attempted:
            return []
        return await self._award_matching(
            user_email, [PERFECT_SESSION], {PERFECT_SESSION: _true}
        )

    async def _award_matching(
        self,
        user_email: str,
        names: list[str],
        rules: dict[str, Callable[[], Awaitable[bool]]],
    ) -> list[EarnedAchievement]:
        definitions = await self._definitions(names)
        if not definitions:
            return []

        already = await self._earned_ids(user_email, [d.id for d in definitions.values()])

        earned: list[EarnedAchievement] = []
        for name in names:
            definition = definitions.get(name)
            if definition is None or definition.id in already:
                continue
            if not await rules[name]():
                continue
            self._db.add(
                StudentAchievement(
                    id=uuid4(),
                    user_email=user_email,
                    achievement_id=definition.id,
                    earned_at=utc_now(),
                )
            )
            earned.append(
                EarnedAchievement(
                    name=definition.name,
                    display_name=definition.display_name,
                    description=definition.description,
                    icon=definition.icon,
                    points=definition.points,
                    rarity=definition.rarity,
                )
            )

        if earned:
            await self._db.commit()
            logger.info(
                "achievements_awarded",
                user_email=user_email,
                achievements=[e.name for e in earned],
            )
        return earned

    async def _definitions(self, names: list[str]) -> dict[str, AchievementDefinition]:
        result = await self._db.execute(
            select(AchievementDefinition).where(AchievementDefinition.name.in_(names))
        )
        definitions = {d.name: d for d in result.scalars().all()}
        missing = set(names) - set(definitions)
        if missing:
            logger.warning("achievement_definitions_missing", names=sorted(missing))
        return definitions

    async def _earned_ids(self, user_email: str, achievement_ids: list[UUID]) -> set[UUID]:
        result = await self._db.execute(
            select(StudentAchievement.achievement_id).where(
                StudentAchievement.user_email == user_email,
                StudentAchievement.achievement_id.in_(achievement_ids),
            )
        )
        return set(result.scalars().all())

    async def _has_attempts(self, user_email: str, minimum: int, hint_free: bool = False) -> bool:
        stmt = select(func.count(PracticeAttempt.id)).where(
            PracticeAttempt.user_email == user_email
        )
        if hint_free:
            stmt = stmt.where(PracticeAttempt.hints_used == 0)
        result = await self._db.execute(stmt)
        return (result.scalar_one() or 0) >= minimum

    async def _has_fast_correct(self, user_email: str) -> bool:
        result = await self._db.execute(
            select(func.count(PracticeAttempt.id)).where(
                PracticeAttempt.user_email == user_email,
                PracticeAttempt.is_correct.is_(True),
                PracticeAttempt.time_taken_seconds < SPEED_DEMON_SECONDS,
                PracticeAttempt.created_at >= hours_ago(SPEED_DEMON_WINDOW_HOURS),
            )
        )
        return (result.scalar_one() or 0) >= SPEED_DEMON_COUNT

    async def _has_mastered_skill(self, user_email: str) -> bool:
        result = await self._db.execute(
            select(func.count(SkillMastery.id)).where(
                SkillMastery.user_email == user_email,
                SkillMastery.status == MASTERED_STATUS,
            )
        )
        return (result.scalar_one() or 0) >= 1

    async def recent(
        self, user_email: str, limit: int = 10
    ) -> list[tuple[StudentAchievement, AchievementDefinition]]:
        """Most recently earned achievements with their definitions."""
        result = await self._db.execute(
            select(StudentAchievement, AchievementDefinition)
            .join(
                AchievementDefinition,
                AchievementDefinition.id == StudentAchievement.achievement_id,
            )
            .where(StudentAchievement.user_email == user_email)
            .order_by(StudentAchievement.earned_at.desc())
            .limit(limit)
        )
        return [(row[0], row[1]) for row in result.all()]


async def _true() -> bool:
    return True
