# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Instructor authoring request and response models."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

QuestionType = Literal["mcq", "true_false", "multi_select", "numeric", "text"]
BankDifficulty = Literal["easy", "medium", "hard"]


def _strip(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


class SkillCreateRequest(BaseModel):
    """Request to create a skill."""

    name: str = Field(..., min_length=1, max_length=255, description="Skill name")
    description: str | None = Field(None, description="Description")
    grade: int = Field(..., ge=0, le=12, description="Grade")
    unit: int = Field(..., ge=0, description="Unit number")
    order_index: int = Field(0, ge=0, description="Position within the unit")
    prerequisite_skill_ids: list[UUID] = Field(
        default_factory=list, description="Skills that should be mastered first"
    )
    default_bank_name: str | None = Field(
        None, max_length=255, description="Create a bank with this name alongside the skill"
    )

    strip_name = field_validator("name")(_strip)


class SkillUpdateRequest(BaseModel):
    """Partial skill update. Only provided fields are changed."""

    name: str | None = Field(None, min_length=1, max_length=255, description="Skill name")
    description: str | None = Field(None, description="Description")
    grade: int | None = Field(None, ge=0, le=12, description="Grade")
    unit: int | None = Field(None, ge=0, description="Unit number")
    order_index: int | None = Field(None, ge=0, description="Position within the unit")
    prerequisite_skill_ids: list[UUID] | None = Field(None, description="Prerequisites")
    is_active: bool | None = Field(None, description="Whether the skill is offered")

    strip_name = field_validator("name")(_strip)


class SkillResponse(BaseModel):
    """A skill."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Skill ID")
    name: str = Field(..., description="Skill name")
    description: str | None = Field(None, description="Description")
    grade: int = Field(..., description="Grade")
    unit: int = Field(..., description="Unit number")
    order_index: int = Field(..., description="Position within the unit")
    prerequisite_skill_ids: list[str] = Field(default_factory=list, description="Prerequisites")
    is_active: bool = Field(..., description="Whether the skill is offered")
    created_at: datetime | None = Field(None, description="Creation time")


class BankCreateRequest(BaseModel):
    """Request to create a question bank."""

    skill_id: UUID = Field(..., description="Skill the bank belongs to")
    name: str = Field(..., min_length=1, max_length=255, description="Bank name")
    difficulty: BankDifficulty = Field("medium", description="Difficulty label")

    strip_name = field_validator("name")(_strip)


class BankResponse(BaseModel):
    """A question bank."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Bank ID")
    skill_id: UUID = Field(..., description="Skill ID")
    name: str = Field(..., description="Bank name")
    difficulty: str = Field(..., description="Difficulty label")
    is_active: bool = Field(..., description="Whether the bank is used for practice")


class SkillCreatedResponse(BaseModel):
    """A created skill and its optional default bank."""

    skill: SkillResponse
    bank: BankResponse | None = None


class QuestionCreateRequest(BaseModel):
    """Request to add a question to a bank.

    ``correct_answer`` must match ``question_type``: an option index for
    mcq and true_false, a list of indices for multi_select,
    ``{"value", "tolerance"}`` for numeric and ``{"accept": [...]}`` for
    text.
    """

    bank_id: UUID = Field(..., description="Bank ID")
    skill_id: UUID | None = Field(None, description="Must match the bank's skill when given")
    question_type: QuestionType = Field(..., description="Question type")
    question_text: str = Field(..., min_length=1, description="Prompt")
    question_data: dict[str, Any] = Field(default_factory=dict, description="Options")
    correct_answer: Any = Field(..., description="Answer key")
    solution_steps: list[str] | None = Field(None, description="Worked solution")
    hints: list[str] = Field(default_factory=list, description="Ordered hints")
    difficulty_level: int = Field(3, ge=1, le=5, description="Difficulty tier")
    points: int = Field(10, ge=0, description="Points for a correct answer")
    estimated_time_seconds: int = Field(60, ge=1, description="Expected time")

    strip_text = field_validator("question_text")(_strip)


class QuestionResponse(BaseModel):
    """A question including its answer key (instructor view)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Question ID")
    bank_id: UUID = Field(..., description="Bank ID")
    skill_id: UUID = Field(..., description="Skill ID")
    question_type: str = Field(..., description="Question type")
    question_text: str = Field(..., description="Prompt")
    question_data: dict[str, Any] = Field(default_factory=dict, description="Options")
    correct_answer: Any = Field(..., description="Answer key")
    solution_steps: list[str] | None = Field(None, description="Worked solution")
    hints: list[str] = Field(default_factory=list, description="Ordered hints")
    difficulty_level: int = Field(..., description="Difficulty tier")
    points: int = Field(..., description="Points")
    estimated_time_seconds: int = Field(..., description="Expected time")
