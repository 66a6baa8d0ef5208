# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Achievement definition seed data.

Seeding is idempotent: definitions are matched by name and only the
missing ones are inserted, so it is safe to run at every startup.
"""

import asyncio
import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from qla_practice.infrastructure.database.models.achievement import AchievementDefinition

logger = logging.getLogger(__name__)


DEFAULT_ACHIEVEMENTS: list[dict[str, Any]] = [
    {
        "name": "first_practice",
        "display_name": "First Steps",
        "description": "Answer your first practice question",
        "icon": "🎯",
        "category": "completion",
        "criteria": {"count": 1},
        "points": 10,
        "rarity": "common",
    },
    {
        "name": "skill_master",
        "display_name": "Skill Master",
        "description": "Master your first skill",
        "icon": "🏆",
        "category": "mastery",
        "criteria": {"mastered_skills": 1},
        "points": 50,
        "rarity": "rare",
    },
    {
        "name": "speed_demon",
        "display_name": "Speed Demon",
        "description": "Answer 10 questions correctly in under 30 seconds each within a day",
        "icon": "⚡",
        "category": "speed",
        "criteria": {"questions": 10, "time": 30, "window_hours": 24},
        "points": 25,
        "rarity": "rare",
    },
    {
        "name": "accuracy_ace",
        "display_name": "Accuracy Ace",
        "description": "Get 20 questions correct in a row on one skill",
        "icon": "🎯",
        "category": "accuracy",
        "criteria": {"correct": 20},
        "points": 40,
        "rarity": "epic",
    },
    {
        "name": "hint_free",
        "display_name": "No Hints Needed",
        "description": "Complete 50 questions without using hints",
        "icon": "🧠",
        "category": "mastery",
        "criteria": {"count": 50, "hints": 0},
        "points": 35,
        "rarity": "rare",
    },
    {
        "name": "perfect_session",
        "display_name": "Perfect Session",
        "description": "Complete a practice session with 100% accuracy",
        "icon": "⭐",
        "category": "accuracy",
        "criteria": {"accuracy": 100},
        "points": 20,
        "rarity": "common",
    },
]


async def seed_achievement_definitions(session: AsyncSession) -> list[AchievementDefinition]:
    """Insert any default achievement definitions that are missing.

    Args:
        session: Database session.

    Returns:
        List of newly created definitions.
    """
    result = await session.execute(select(AchievementDefinition.name))
    existing = set(result.scalars().all())

    created = []
    for data in DEFAULT_ACHIEVEMENTS:
        if data["name"] in existing:
            continue
        definition = AchievementDefinition(**data)
        session.add(definition)
        created.append(definition)

    if created:
        await session.flush()
    logger.info("Seeded %d achievement definitions", len(created))
    return created


if __name__ == "__main__":
    from qla_practice.core.config import get_settings
    from qla_practice.infrastructure.database.connection import Database

    async def main() -> None:
        database = Database.from_settings(get_settings())
        async with database.session() as session:
            await seed_achievement_definitions(session)
        await database.dispose()

    asyncio.run(main())
