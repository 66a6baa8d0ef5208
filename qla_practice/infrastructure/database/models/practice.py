# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Practice and mastery tracking models.

Tables:
- skills: Learnable units, ordered by grade/unit/order_index
- practice_banks: Named question collections scoped to one skill
- practice_questions: Practice items with a typed answer key
- skill_mastery: One aggregate record per (user, skill)
- practice_sessions: Bounded practice sittings
- practice_attempts: Append-only ledger of graded submissions
- practice_analytics: Post-commit analytics events
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Mapped, mapped_column, relationship

from qla_practice.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from qla_practice.utils.datetime import utc_now


class Skill(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A learnable unit students are tracked against."""

    __tablename__ = "skills"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    grade: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    unit: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    order_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    prerequisite_skill_ids: Mapped[list[str]] = mapped_column(
        postgresql.JSONB, default=list, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by: Mapped[Optional[str]] = mapped_column(Text)

    banks: Mapped[list["PracticeBank"]] = relationship(back_populates="skill")

    def __repr__(self) -> str:
        return f"<Skill {self.id} {self.name!r}>"


class PracticeBank(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A named collection of practice questions for one skill."""

    __tablename__ = "practice_banks"

    skill_id: Mapped[UUID] = mapped_column(
        postgresql.UUID(as_uuid=True),
        ForeignKey("skills.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    difficulty: Mapped[str] = mapped_column(String(20), default="medium", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by: Mapped[Optional[str]] = mapped_column(Text)

    skill: Mapped[Skill] = relationship(back_populates="banks")


class PracticeQuestion(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A practice item.

    ``correct_answer`` holds the type-specific answer key; its shape is
    validated against ``question_type`` by
    :func:`qla_practice.domains.practice.answers.parse_answer_key`.
    """

    __tablename__ = "practice_questions"
    __table_args__ = (
        CheckConstraint(
            "difficulty_level BETWEEN 1 AND 5",
            name="ck_practice_questions_difficulty",
        ),
    )

    bank_id: Mapped[UUID] = mapped_column(
        postgresql.UUID(as_uuid=True),
        ForeignKey("practice_banks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    skill_id: Mapped[UUID] = mapped_column(
        postgresql.UUID(as_uuid=True),
        ForeignKey("skills.id"),
        nullable=False,
        index=True,
    )
    question_type: Mapped[str] = mapped_column(String(50), nullable=False)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    question_data: Mapped[dict[str, Any]] = mapped_column(
        postgresql.JSONB, default=dict, nullable=False
    )
    correct_answer: Mapped[Any] = mapped_column(postgresql.JSONB, nullable=False)
    solution_steps: Mapped[Optional[list[str]]] = mapped_column(postgresql.JSONB)
    hints: Mapped[list[str]] = mapped_column(postgresql.JSONB, default=list, nullable=False)
    difficulty_level: Mapped[int] = mapped_column(Integer, default=3, nullable=False)
    points: Mapped[int] = mapped_column(Integer, default=10, nullable=False)
    estimated_time_seconds: Mapped[int] = mapped_column(Integer, default=60, nullable=False)

    skill: Mapped[Skill] = relationship()


class SkillMastery(UUIDPrimaryKeyMixin, Base):
    """Aggregate proficiency of one user on one skill.

    Created lazily by the first graded attempt and updated exactly once per
    attempt inside the attempt's transaction. Never deleted.
    """

    __tablename__ = "skill_mastery"
    __table_args__ = (
        UniqueConstraint("user_email", "skill_id", name="uq_skill_mastery_user_skill"),
    )

    user_email: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    skill_id: Mapped[UUID] = mapped_column(
        postgresql.UUID(as_uuid=True),
        ForeignKey("skills.id", ondelete="CASCADE"),
        nullable=False,
    )
    mastery_level: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), default=Decimal("0"), nullable=False
    )
    questions_attempted: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    questions_correct: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    current_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    best_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    time_spent_seconds: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_practiced: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    status: Mapped[str] = mapped_column(String(20), default="new", nullable=False, index=True)
    mastery_achieved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    skill: Mapped[Skill] = relationship()


class PracticeSession(UUIDPrimaryKeyMixin, Base):
    """One bounded practice sitting.

    The ordered question sequence is fixed at start. Afterwards only the
    end-of-session summary columns are written.
    """

    __tablename__ = "practice_sessions"

    user_email: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    skill_id: Mapped[Optional[UUID]] = mapped_column(
        postgresql.UUID(as_uuid=True),
        ForeignKey("skills.id"),
    )
    session_type: Mapped[str] = mapped_column(String(30), nullable=False)
    question_ids: Mapped[list[str]] = mapped_column(
        postgresql.JSONB, default=list, nullable=False
    )
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    ended_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # Denormalized end-of-session summary
    questions_attempted: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    questions_correct: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_time_seconds: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    average_time_per_question: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    session_score: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2))
    mastery_delta: Mapped[Optional[Decimal]] = mapped_column(Numeric(6, 2))

    @property
    def is_active(self) -> bool:
        """Whether the session still accepts attempts."""
        return self.status == "active"


class PracticeAttempt(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One graded submission. Append-only."""

    __tablename__ = "practice_attempts"

    session_id: Mapped[UUID] = mapped_column(
        postgresql.UUID(as_uuid=True),
        ForeignKey("practice_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_id: Mapped[UUID] = mapped_column(
        postgresql.UUID(as_uuid=True),
        ForeignKey("practice_questions.id"),
        nullable=False,
    )
    user_email: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    skill_id: Mapped[UUID] = mapped_column(
        postgresql.UUID(as_uuid=True),
        ForeignKey("skills.id"),
        nullable=False,
    )
    user_answer: Mapped[Any] = mapped_column(postgresql.JSONB)
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False)
    hints_used: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    time_taken_seconds: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    confidence_level: Mapped[Optional[int]] = mapped_column(Integer)
    mastery_before: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    mastery_after: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)


class PracticeAnalyticsEvent(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Analytics trail written by the event recorder after commits."""

    __tablename__ = "practice_analytics"

    user_email: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    skill_id: Mapped[Optional[UUID]] = mapped_column(postgresql.UUID(as_uuid=True))
    question_id: Mapped[Optional[UUID]] = mapped_column(postgresql.UUID(as_uuid=True))
    session_id: Mapped[Optional[UUID]] = mapped_column(postgresql.UUID(as_uuid=True))
    event_data: Mapped[dict[str, Any]] = mapped_column(
        postgresql.JSONB, default=dict, nullable=False
    )
