# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Practice API request and response models.

Questions handed to students never carry their answer key; the key is
revealed per question in the answer response.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from qla_practice.domains.practice.selection import SessionType


class StartSessionRequest(BaseModel):
    """Request to start a practice session."""

    mode: SessionType = Field(
        SessionType.ADAPTIVE,
        validation_alias=AliasChoices("mode", "session_type"),
        description="Selection mode",
    )
    skill_id: UUID | None = Field(None, description="Skill to practice (targeted mode)")
    num_questions: int | None = Field(
        None, description="Requested number of questions, clamped to the allowed range"
    )


class QuestionView(BaseModel):
    """A question as shown to the student."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Question ID")
    skill_id: UUID = Field(..., description="Skill ID")
    question_type: str = Field(..., description="mcq, true_false, multi_select, numeric or text")
    question_text: str = Field(..., description="Prompt")
    question_data: dict[str, Any] = Field(default_factory=dict, description="Options and layout")
    hints: list[str] = Field(default_factory=list, description="Ordered hints")
    difficulty_level: int = Field(..., description="Difficulty tier 1-5")
    points: int = Field(..., description="Points for a correct answer")
    estimated_time_seconds: int = Field(60, description="Expected time on the question")


class StartSessionResponse(BaseModel):
    """A started session and its ordered questions."""

    session_id: UUID = Field(..., description="Session ID")
    session_type: SessionType = Field(..., description="Selection mode")
    questions: list[QuestionView] = Field(..., description="Questions in presentation order")
    total_questions: int = Field(..., description="Number of questions; 0 means nothing to practice")


class SubmitAnswerRequest(BaseModel):
    """An answer to one question of a session."""

    session_id: UUID = Field(..., description="Session ID")
    question_id: UUID = Field(..., description="Question ID")
    user_answer: Any = Field(None, description="Submitted answer; shape depends on the question type")
    hints_used: int = Field(0, ge=0, description="Hints revealed before answering")
    time_taken_seconds: int = Field(0, ge=0, description="Seconds spent on the question")
    confidence_level: int | None = Field(None, ge=1, le=5, description="Self-reported confidence")


class AchievementView(BaseModel):
    """An earned achievement."""

    model_config = ConfigDict(from_attributes=True)

    name: str = Field(..., description="Achievement key")
    display_name: str = Field(..., description="Display name")
    description: str | None = Field(None, description="Description")
    icon: str | None = Field(None, description="Icon")
    points: int = Field(..., description="Points awarded")
    rarity: str = Field(..., description="Rarity tier")
    earned_at: datetime | None = Field(None, description="When it was earned")


class SubmitAnswerResponse(BaseModel):
    """Grading outcome of one answer."""

    is_correct: bool = Field(..., description="Whether the answer was correct")
    correct_answer: Any = Field(..., description="The answer key")
    solution_steps: list[str] = Field(default_factory=list, description="Worked solution")
    new_mastery_level: float = Field(..., description="Mastery on the skill after this attempt")
    points_earned: int = Field(..., description="Points earned")
    achievements_earned: list[AchievementView] = Field(
        default_factory=list, description="Achievements unlocked by this answer"
    )


class EndSessionRequest(BaseModel):
    """Request to end a session."""

    session_id: UUID = Field(..., description="Session ID")


class SessionStats(BaseModel):
    """Statistics of a session, computed from its attempts."""

    model_config = ConfigDict(from_attributes=True)

    questions_attempted: int = Field(..., description="Attempts recorded")
    questions_correct: int = Field(..., description="Correct attempts")
    accuracy_pct: float = Field(..., description="Percent correct")
    total_time_seconds: int = Field(..., description="Total time on questions")
    avg_time_per_question: float = Field(..., description="Average seconds per attempt")


class SkillDeltaView(BaseModel):
    """Mastery movement on one skill during a session."""

    model_config = ConfigDict(from_attributes=True)

    skill_id: UUID = Field(..., description="Skill ID")
    skill_name: str | None = Field(None, description="Skill name")
    mastery_before: float = Field(..., description="Mastery before the session")
    mastery_level: float = Field(..., description="Mastery after the session")
    delta: float = Field(..., description="Change in mastery")
    status: str = Field(..., description="Status after the session")


class EndSessionResponse(BaseModel):
    """Summary of an ended session."""

    session_stats: SessionStats = Field(..., description="Session statistics")
    skill_progress: list[SkillDeltaView] = Field(..., description="Per-skill mastery change")
    achievements_earned: list[AchievementView] = Field(
        default_factory=list, description="Achievements unlocked by ending the session"
    )


class SkillProgressView(BaseModel):
    """A skill with the caller's mastery."""

    model_config = ConfigDict(from_attributes=True)

    skill_id: UUID = Field(..., description="Skill ID")
    name: str = Field(..., description="Skill name")
    description: str | None = Field(None, description="Description")
    grade: int = Field(..., description="Grade")
    unit: int = Field(..., description="Unit")
    order_index: int = Field(0, description="Position within the unit")
    mastery_level: float | None = Field(None, description="Mastery, null when never practiced")
    status: str = Field(..., description="new, learning, practiced or mastered")
    questions_attempted: int = Field(0, description="Lifetime attempts")
    questions_correct: int = Field(0, description="Lifetime correct attempts")
    accuracy: float = Field(0.0, description="Lifetime accuracy percent")
    current_streak: int = Field(0, description="Current correct streak")
    best_streak: int = Field(0, description="Best correct streak")
    last_practiced: datetime | None = Field(None, description="Last attempt time")
    question_count: int = Field(0, description="Available questions")
    needs_review: bool = Field(False, description="Not practiced recently")


class SkillListResponse(BaseModel):
    """Skills available for practice."""

    skills: list[SkillProgressView] = Field(..., description="Skills")
    total: int = Field(..., description="Number of skills")


class OverallStatsView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    skills_practiced: int
    skills_mastered: int
    total_questions: int
    total_correct: int
    accuracy: float
    total_hours: float


class StreakView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    current_streak: int = Field(..., description="Practice days within the last week")
    total_days: int = Field(..., description="Distinct practice days overall")


class UnitProgressView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    grade: int
    unit: int
    total_skills: int
    mastered_skills: int
    completion_pct: float


class ProgressResponse(BaseModel):
    """Progress dashboard."""

    overall_stats: OverallStatsView = Field(..., description="Totals")
    skills: list[SkillProgressView] = Field(..., description="Practiced skills")
    achievements: list[AchievementView] = Field(..., description="Most recent achievements")
    streak: StreakView = Field(..., description="Practice streak")
    unit_progress: list[UnitProgressView] = Field(..., description="Completion per unit")


class RecommendationsResponse(BaseModel):
    """Recommended skills."""

    model_config = ConfigDict(from_attributes=True)

    review_needed: list[SkillProgressView] = Field(..., description="Skills to review")
    next_skills: list[SkillProgressView] = Field(..., description="Skills ready to start")
    challenge_skills: list[SkillProgressView] = Field(..., description="Harder skills to try")
