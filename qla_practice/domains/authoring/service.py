# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Instructor authoring service.

Skills, banks and questions are created and edited by instructors.
Question answer keys are validated against the question type before
they are stored, so grading never meets a malformed key it accepted.
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from qla_practice.domains.practice.answers import validate_question_payload
from qla_practice.infrastructure.database.connection import DatabaseError
from qla_practice.infrastructure.database.models import (
    PracticeBank,
    PracticeQuestion,
    Skill,
)
from qla_practice.models.authoring import (
    BankCreateRequest,
    QuestionCreateRequest,
    SkillCreateRequest,
    SkillUpdateRequest,
)
from qla_practice.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class AuthoringServiceError(Exception):
    """Base exception for authoring service errors."""

    pass


class SkillNotFoundError(AuthoringServiceError):
    """Raised when skill is not found."""

    pass


class BankNotFoundError(AuthoringServiceError):
    """Raised when bank is not found."""

    pass


class InvalidPrerequisiteError(AuthoringServiceError):
    """Raised when a prerequisite is unknown or is the skill itself."""

    pass


class SkillMismatchError(AuthoringServiceError):
    """Raised when a question's skill differs from its bank's skill."""

    pass


class NoFieldsToUpdateError(AuthoringServiceError):
    """Raised when an update request changes nothing."""

    pass


class AuthoringService:
    """Service for managing skills, banks and questions.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize authoring service.

        Args:
            db: Async database session.
        """
        self._db = db

    async def _commit(self, action: str) -> None:
        try:
            await self._db.commit()
        except SQLAlchemyError as e:
            await self._db.rollback()
            raise DatabaseError(f"Failed to {action}", e) from e

    async def _check_prerequisites(
        self, prerequisite_ids: list[UUID], skill_id: Optional[UUID] = None
    ) -> list[str]:
        ids = list(dict.fromkeys(prerequisite_ids))
        if skill_id is not None and skill_id in ids:
            raise InvalidPrerequisiteError("A skill cannot be its own prerequisite")
        if not ids:
            return []
        result = await self._db.execute(select(Skill.id).where(Skill.id.in_(ids)))
        found = set(result.scalars().all())
        missing = [str(i) for i in ids if i not in found]
        if missing:
            raise InvalidPrerequisiteError(f"Unknown prerequisite skills: {', '.join(missing)}")
        return [str(i) for i in ids]

    async def list_skills(self, grade: Optional[int] = None) -> list[Skill]:
        """List active skills, optionally for one grade."""
        stmt = select(Skill).where(Skill.is_active.is_(True))
        if grade is not None:
            stmt = stmt.where(Skill.grade == grade)
        stmt = stmt.order_by(Skill.grade, Skill.unit, Skill.order_index, Skill.name)
        result = await self._db.execute(stmt)
        return list(result.scalars().all())

    async def create_skill(
        self, request: SkillCreateRequest, created_by: str
    ) -> tuple[Skill, Optional[PracticeBank]]:
        """Create a skill and, optionally, its first bank.

        Both rows are written in one transaction.

        Raises:
            InvalidPrerequisiteError: If a prerequisite does not exist.
            DatabaseError: If the rows could not be stored.
        """
        prerequisites = await self._check_prerequisites(request.prerequisite_skill_ids)

        skill = Skill(
            id=uuid4(),
            name=request.name,
            description=request.description,
            grade=request.grade,
            unit=request.unit,
            order_index=request.order_index,
            prerequisite_skill_ids=prerequisites,
            is_active=True,
            created_by=created_by,
            created_at=utc_now(),
        )
        self._db.add(skill)

        bank = None
        if request.default_bank_name and request.default_bank_name.strip():
            bank = PracticeBank(
                id=uuid4(),
                skill_id=skill.id,
                name=request.default_bank_name.strip(),
                difficulty="medium",
                is_active=True,
                created_by=created_by,
                created_at=utc_now(),
            )
            self._db.add(bank)

        await self._commit("create skill")
        logger.info("Created skill %s (%s) by %s", skill.id, skill.name, created_by)
        return skill, bank

    async def update_skill(self, skill_id: UUID, request: SkillUpdateRequest) -> Skill:
        """Apply a partial update to a skill.

        Raises:
            SkillNotFoundError: If the skill does not exist.
            NoFieldsToUpdateError: If the request sets nothing.
            InvalidPrerequisiteError: If a prerequisite is invalid.
        """
        changes = {
            key: value
            for key, value in request.model_dump(exclude_unset=True).items()
            if value is not None or key == "description"
        }
        if not changes:
            raise NoFieldsToUpdateError("No fields to update")

        skill = await self._db.get(Skill, skill_id)
        if skill is None:
            raise SkillNotFoundError(f"Skill {skill_id} not found")

        if "prerequisite_skill_ids" in changes:
            changes["prerequisite_skill_ids"] = await self._check_prerequisites(
                request.prerequisite_skill_ids or [], skill_id=skill.id
            )

        for field_name, value in changes.items():
            setattr(skill, field_name, value)

        await self._commit("update skill")
        logger.info("Updated skill %s: %s", skill.id, sorted(changes))
        return skill

    async def list_banks(self, skill_id: Optional[UUID] = None) -> list[PracticeBank]:
        """List active banks, optionally for one skill."""
        stmt = select(PracticeBank).where(PracticeBank.is_active.is_(True))
        if skill_id is not None:
            stmt = stmt.where(PracticeBank.skill_id == skill_id)
        result = await self._db.execute(stmt.order_by(PracticeBank.created_at.desc()))
        return list(result.scalars().all())

    async def create_bank(self, request: BankCreateRequest, created_by: str) -> PracticeBank:
        """Create a bank for an existing skill.

        Raises:
            SkillNotFoundError: If the skill does not exist.
        """
        skill = await self._db.get(Skill, request.skill_id)
        if skill is None:
            raise SkillNotFoundError(f"Skill {request.skill_id} not found")

        bank = PracticeBank(
            id=uuid4(),
            skill_id=skill.id,
            name=request.name,
            difficulty=request.difficulty,
            is_active=True,
            created_by=created_by,
            created_at=utc_now(),
        )
        self._db.add(bank)
        await self._commit("create bank")
        logger.info("Created bank %s for skill %s", bank.id, skill.id)
        return bank

    async def list_questions(self, bank_id: UUID) -> list[PracticeQuestion]:
        """List the questions of a bank, easiest first.

        Raises:
            BankNotFoundError: If the bank does not exist.
        """
        bank = await self._db.get(PracticeBank, bank_id)
        if bank is None:
            raise BankNotFoundError(f"Bank {bank_id} not found")
        result = await self._db.execute(
            select(PracticeQuestion)
            .where(PracticeQuestion.bank_id == bank_id)
            .order_by(PracticeQuestion.difficulty_level, PracticeQuestion.created_at)
        )
        return list(result.scalars().all())

    async def create_question(self, request: QuestionCreateRequest) -> PracticeQuestion:
        """Add a question to a bank.

        The answer key is validated against the question type and the
        options; it is stored in its normalized form.

        Raises:
            BankNotFoundError: If the bank does not exist.
            SkillMismatchError: If skill_id is given and differs from the bank's.
            InvalidAnswerKeyError: If the answer key does not fit the type.
        """
        bank = await self._db.get(PracticeBank, request.bank_id)
        if bank is None:
            raise BankNotFoundError(f"Bank {request.bank_id} not found")
        if request.skill_id is not None and request.skill_id != bank.skill_id:
            raise SkillMismatchError(
                f"Bank {bank.id} belongs to skill {bank.skill_id}, not {request.skill_id}"
            )

        question_data, key = validate_question_payload(
            request.question_type, request.question_data, request.correct_answer
        )

        question = PracticeQuestion(
            id=uuid4(),
            bank_id=bank.id,
            skill_id=bank.skill_id,
            question_type=request.question_type,
            question_text=request.question_text,
            question_data=question_data,
            correct_answer=key.to_json(),
            solution_steps=request.solution_steps,
            hints=request.hints,
            difficulty_level=request.difficulty_level,
            points=request.points,
            estimated_time_seconds=request.estimated_time_seconds,
            created_at=utc_now(),
        )
        self._db.add(question)
        await self._commit("create question")
        logger.info(
            "Created %s question %s in bank %s",
            question.question_type,
            question.id,
            bank.id,
        )
        return question
