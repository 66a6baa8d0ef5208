# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Create the practice and mastery schema.

This migration creates:
- skills, practice_banks, practice_questions: instructor-authored content
- skill_mastery: one aggregate record per (user, skill)
- practice_sessions, practice_attempts: sessions and the attempt ledger
- achievement_definitions, student_achievements: badges and awards
- practice_analytics: post-commit analytics trail

Revision ID: 001_practice_schema
Revises:
Create Date: 2025-11-03
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_practice_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid(name: str, **kwargs) -> sa.Column:
    return sa.Column(name, postgresql.UUID(as_uuid=True), **kwargs)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("now()"),
    )


def upgrade() -> None:
    """Create all practice tables."""

    # =========================================================================
    # Content
    # =========================================================================
    op.create_table(
        "skills",
        _uuid("id", primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("grade", sa.Integer(), nullable=False),
        sa.Column("unit", sa.Integer(), nullable=False),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "prerequisite_skill_ids",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_skills_grade", "skills", ["grade"])
    op.create_index("ix_skills_unit", "skills", ["unit"])

    op.create_table(
        "practice_banks",
        _uuid("id", primary_key=True),
        _uuid("skill_id", nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("difficulty", sa.String(20), nullable=False, server_default="medium"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by", sa.Text(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["skill_id"], ["skills.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_practice_banks_skill_id", "practice_banks", ["skill_id"])

    op.create_table(
        "practice_questions",
        _uuid("id", primary_key=True),
        _uuid("bank_id", nullable=False),
        _uuid("skill_id", nullable=False),
        sa.Column("question_type", sa.String(50), nullable=False),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column(
            "question_data",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("correct_answer", postgresql.JSONB(), nullable=False),
        sa.Column("solution_steps", postgresql.JSONB(), nullable=True),
        sa.Column(
            "hints",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("difficulty_level", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("points", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("estimated_time_seconds", sa.Integer(), nullable=False, server_default="60"),
        _created_at(),
        sa.ForeignKeyConstraint(["bank_id"], ["practice_banks.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["skill_id"], ["skills.id"]),
        sa.CheckConstraint(
            "difficulty_level BETWEEN 1 AND 5",
            name="ck_practice_questions_difficulty",
        ),
    )
    op.create_index("ix_practice_questions_bank_id", "practice_questions", ["bank_id"])
    op.create_index("ix_practice_questions_skill_id", "practice_questions", ["skill_id"])

    # =========================================================================
    # Mastery, sessions and the attempt ledger
    # =========================================================================
    op.create_table(
        "skill_mastery",
        _uuid("id", primary_key=True),
        sa.Column("user_email", sa.Text(), nullable=False),
        _uuid("skill_id", nullable=False),
        sa.Column("mastery_level", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("questions_attempted", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("questions_correct", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("best_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("time_spent_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_practiced", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="new"),
        sa.Column("mastery_achieved_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["skill_id"], ["skills.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_email", "skill_id", name="uq_skill_mastery_user_skill"),
    )
    op.create_index("ix_skill_mastery_user_email", "skill_mastery", ["user_email"])
    op.create_index("ix_skill_mastery_status", "skill_mastery", ["status"])

    op.create_table(
        "practice_sessions",
        _uuid("id", primary_key=True),
        sa.Column("user_email", sa.Text(), nullable=False),
        _uuid("skill_id", nullable=True),
        sa.Column("session_type", sa.String(30), nullable=False),
        sa.Column(
            "question_ids",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column(
            "started_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("questions_attempted", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("questions_correct", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_time_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("average_time_per_question", sa.Numeric(10, 2), nullable=True),
        sa.Column("session_score", sa.Numeric(5, 2), nullable=True),
        sa.Column("mastery_delta", sa.Numeric(6, 2), nullable=True),
        sa.ForeignKeyConstraint(["skill_id"], ["skills.id"]),
    )
    op.create_index("ix_practice_sessions_user_email", "practice_sessions", ["user_email"])

    op.create_table(
        "practice_attempts",
        _uuid("id", primary_key=True),
        _uuid("session_id", nullable=False),
        _uuid("question_id", nullable=False),
        sa.Column("user_email", sa.Text(), nullable=False),
        _uuid("skill_id", nullable=False),
        sa.Column("user_answer", postgresql.JSONB(), nullable=True),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("hints_used", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("time_taken_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("confidence_level", sa.Integer(), nullable=True),
        sa.Column("mastery_before", sa.Numeric(5, 2), nullable=False),
        sa.Column("mastery_after", sa.Numeric(5, 2), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["session_id"], ["practice_sessions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["question_id"], ["practice_questions.id"]),
        sa.ForeignKeyConstraint(["skill_id"], ["skills.id"]),
    )
    op.create_index("ix_practice_attempts_session_id", "practice_attempts", ["session_id"])
    op.create_index("ix_practice_attempts_user_email", "practice_attempts", ["user_email"])

    # =========================================================================
    # Achievements
    # =========================================================================
    op.create_table(
        "achievement_definitions",
        _uuid("id", primary_key=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("display_name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("icon", sa.Text(), nullable=True),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column(
            "criteria",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("points", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("rarity", sa.String(20), nullable=False, server_default="common"),
        _created_at(),
    )

    op.create_table(
        "student_achievements",
        _uuid("id", primary_key=True),
        sa.Column("user_email", sa.Text(), nullable=False),
        _uuid("achievement_id", nullable=False),
        sa.Column(
            "earned_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.ForeignKeyConstraint(["achievement_id"], ["achievement_definitions.id"]),
        sa.UniqueConstraint(
            "user_email",
            "achievement_id",
            name="uq_student_achievements_user_achievement",
        ),
    )
    op.create_index(
        "ix_student_achievements_user_email", "student_achievements", ["user_email"]
    )

    # =========================================================================
    # Analytics
    # =========================================================================
    op.create_table(
        "practice_analytics",
        _uuid("id", primary_key=True),
        sa.Column("user_email", sa.Text(), nullable=False),
        sa.Column("event_type", sa.String(50), nullable=False),
        _uuid("skill_id", nullable=True),
        _uuid("question_id", nullable=True),
        _uuid("session_id", nullable=True),
        sa.Column(
            "event_data",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        _created_at(),
    )
    op.create_index("ix_practice_analytics_user_email", "practice_analytics", ["user_email"])
    op.create_index("ix_practice_analytics_created_at", "practice_analytics", ["created_at"])


def downgrade() -> None:
    """Drop all practice tables."""
    op.drop_table("practice_analytics")
    op.drop_table("student_achievements")
    op.drop_table("achievement_definitions")
    op.drop_table("practice_attempts")
    op.drop_table("practice_sessions")
    op.drop_table("skill_mastery")
    op.drop_table("practice_questions")
    op.drop_table("practice_banks")
    op.drop_table("skills")
