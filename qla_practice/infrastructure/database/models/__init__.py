# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""ORM models for the practice database."""

from qla_practice.infrastructure.database.models.achievement import (
    AchievementDefinition,
    StudentAchievement,
)
from qla_practice.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from qla_practice.infrastructure.database.models.practice import (
    PracticeAnalyticsEvent,
    PracticeAttempt,
    PracticeBank,
    PracticeQuestion,
    PracticeSession,
    Skill,
    SkillMastery,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    # Practice
    "Skill",
    "PracticeBank",
    "PracticeQuestion",
    "SkillMastery",
    "PracticeSession",
    "PracticeAttempt",
    "PracticeAnalyticsEvent",
    # Achievements
    "AchievementDefinition",
    "StudentAchievement",
]
