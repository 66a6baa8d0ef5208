# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Achievement definition and award models."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Mapped, mapped_column, relationship

from qla_practice.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from qla_practice.utils.datetime import utc_now


class AchievementDefinition(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A badge students can earn."""

    __tablename__ = "achievement_definitions"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    icon: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    criteria: Mapped[dict[str, Any]] = mapped_column(
        postgresql.JSONB, default=dict, nullable=False
    )
    points: Mapped[int] = mapped_column(Integer, default=10, nullable=False)
    rarity: Mapped[str] = mapped_column(String(20), default="common", nullable=False)


class StudentAchievement(UUIDPrimaryKeyMixin, Base):
    """An achievement awarded to one user. At most one per definition."""

    __tablename__ = "student_achievements"
    __table_args__ = (
        UniqueConstraint(
            "user_email", "achievement_id", name="uq_student_achievements_user_achievement"
        ),
    )

    user_email: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    achievement_id: Mapped[UUID] = mapped_column(
        postgresql.UUID(as_uuid=True),
        ForeignKey("achievement_definitions.id"),
        nullable=False,
    )
    earned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    achievement: Mapped[AchievementDefinition] = relationship()
