# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the instructor authoring service."""

from uuid import uuid4

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from qla_practice.domains.authoring.service import (
    AuthoringService,
    BankNotFoundError,
    InvalidPrerequisiteError,
    NoFieldsToUpdateError,
    SkillMismatchError,
    SkillNotFoundError,
)
from qla_practice.domains.practice.exceptions import InvalidAnswerKeyError
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


@pytest.fixture
def authoring_service(mock_db):
    """Create authoring service with mock database."""
    return AuthoringService(db=mock_db)


@pytest.fixture
def sample_skill():
    """A stored skill."""
    return Skill(
        id=uuid4(),
        name="Fractions",
        description="Adding fractions",
        grade=4,
        unit=2,
        order_index=1,
        prerequisite_skill_ids=[],
        is_active=True,
    )


@pytest.fixture
def sample_bank(sample_skill):
    """A stored bank of the sample skill."""
    return PracticeBank(
        id=uuid4(),
        skill_id=sample_skill.id,
        name="Fractions basics",
        difficulty="medium",
        is_active=True,
    )


class TestCreateSkill:
    """Tests for skill creation."""

    @pytest.mark.asyncio
    async def test_create_skill_with_bank(self, authoring_service, mock_db):
        """Test skill and default bank are written together."""
        request = SkillCreateRequest(
            name="  Decimals ", grade=5, unit=1, default_bank_name="Decimals basics"
        )

        skill, bank = await authoring_service.create_skill(request, created_by="t@example.com")

        assert skill.name == "Decimals"
        assert skill.created_by == "t@example.com"
        assert bank is not None
        assert bank.skill_id == skill.id
        assert mock_db.add.call_count == 2
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_skill_without_bank(self, authoring_service, mock_db):
        """Test no bank is created when no name is given."""
        request = SkillCreateRequest(name="Decimals", grade=5, unit=1)

        skill, bank = await authoring_service.create_skill(request, created_by="t@example.com")

        assert bank is None
        mock_db.add.assert_called_once_with(skill)

    @pytest.mark.asyncio
    async def test_unknown_prerequisite(self, authoring_service, mock_db, results):
        """Test prerequisites must exist."""
        mock_db.execute.return_value = results.scalars([])
        request = SkillCreateRequest(
            name="Decimals", grade=5, unit=1, prerequisite_skill_ids=[uuid4()]
        )

        with pytest.raises(InvalidPrerequisiteError):
            await authoring_service.create_skill(request, created_by="t@example.com")

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_commit_failure(self, authoring_service, mock_db):
        """Test storage failures roll back and raise DatabaseError."""
        mock_db.commit.side_effect = IntegrityError("INSERT", {}, Exception("dup"))
        request = SkillCreateRequest(name="Decimals", grade=5, unit=1)

        with pytest.raises(DatabaseError):
            await authoring_service.create_skill(request, created_by="t@example.com")

        mock_db.rollback.assert_awaited_once()

    def test_blank_name_rejected(self):
        """Test whitespace-only names fail validation."""
        with pytest.raises(ValidationError):
            SkillCreateRequest(name="   ", grade=5, unit=1)


class TestUpdateSkill:
    """Tests for skill updates."""

    @pytest.mark.asyncio
    async def test_partial_update(self, authoring_service, mock_db, sample_skill):
        """Test only provided fields change."""
        mock_db.get.return_value = sample_skill

        skill = await authoring_service.update_skill(
            sample_skill.id, SkillUpdateRequest(order_index=7, description=None)
        )

        assert skill.order_index == 7
        assert skill.description is None
        assert skill.name == "Fractions"
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_empty_update(self, authoring_service):
        """Test an update without fields is rejected."""
        with pytest.raises(NoFieldsToUpdateError):
            await authoring_service.update_skill(uuid4(), SkillUpdateRequest())

    @pytest.mark.asyncio
    async def test_not_found(self, authoring_service, mock_db):
        """Test updating an unknown skill."""
        mock_db.get.return_value = None

        with pytest.raises(SkillNotFoundError):
            await authoring_service.update_skill(uuid4(), SkillUpdateRequest(unit=3))

    @pytest.mark.asyncio
    async def test_self_prerequisite(self, authoring_service, mock_db, sample_skill):
        """Test a skill cannot require itself."""
        mock_db.get.return_value = sample_skill

        with pytest.raises(InvalidPrerequisiteError):
            await authoring_service.update_skill(
                sample_skill.id,
                SkillUpdateRequest(prerequisite_skill_ids=[sample_skill.id]),
            )


class TestBanks:
    """Tests for banks."""

    @pytest.mark.asyncio
    async def test_create_bank(self, authoring_service, mock_db, sample_skill):
        """Test a bank is created for an existing skill."""
        mock_db.get.return_value = sample_skill

        bank = await authoring_service.create_bank(
            BankCreateRequest(skill_id=sample_skill.id, name="Hard fractions", difficulty="hard"),
            created_by="t@example.com",
        )

        assert bank.skill_id == sample_skill.id
        assert bank.difficulty == "hard"
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_bank_unknown_skill(self, authoring_service, mock_db):
        """Test bank creation needs an existing skill."""
        mock_db.get.return_value = None

        with pytest.raises(SkillNotFoundError):
            await authoring_service.create_bank(
                BankCreateRequest(skill_id=uuid4(), name="Bank"), created_by="t@example.com"
            )

    @pytest.mark.asyncio
    async def test_list_questions_unknown_bank(self, authoring_service, mock_db):
        """Test listing questions of a missing bank."""
        mock_db.get.return_value = None

        with pytest.raises(BankNotFoundError):
            await authoring_service.list_questions(uuid4())


class TestCreateQuestion:
    """Tests for question authoring."""

    @pytest.mark.asyncio
    async def test_create_multi_select(self, authoring_service, mock_db, sample_bank):
        """Test the key is validated and stored normalized."""
        mock_db.get.return_value = sample_bank
        request = QuestionCreateRequest(
            bank_id=sample_bank.id,
            question_type="multi_select",
            question_text="Which are even?",
            question_data={"options": ["2", "3", "4"]},
            correct_answer=[2, 0, 2],
            difficulty_level=2,
        )

        question = await authoring_service.create_question(request)

        assert isinstance(question, PracticeQuestion)
        assert question.skill_id == sample_bank.skill_id
        assert question.correct_answer == [0, 2]
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_key_out_of_range(self, authoring_service, mock_db, sample_bank):
        """Test a key pointing past the options is rejected."""
        mock_db.get.return_value = sample_bank
        request = QuestionCreateRequest(
            bank_id=sample_bank.id,
            question_type="mcq",
            question_text="Pick one",
            question_data={"options": ["a", "b"]},
            correct_answer=5,
        )

        with pytest.raises(InvalidAnswerKeyError):
            await authoring_service.create_question(request)

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_skill_mismatch(self, authoring_service, mock_db, sample_bank):
        """Test the question skill must match the bank."""
        mock_db.get.return_value = sample_bank
        request = QuestionCreateRequest(
            bank_id=sample_bank.id,
            skill_id=uuid4(),
            question_type="numeric",
            question_text="2 + 2?",
            correct_answer={"value": 4},
        )

        with pytest.raises(SkillMismatchError):
            await authoring_service.create_question(request)

    @pytest.mark.asyncio
    async def test_unknown_bank(self, authoring_service, mock_db):
        """Test questions need an existing bank."""
        mock_db.get.return_value = None
        request = QuestionCreateRequest(
            bank_id=uuid4(),
            question_type="text",
            question_text="Capital of France?",
            correct_answer={"accept": ["Paris"]},
        )

        with pytest.raises(BankNotFoundError):
            await authoring_service.create_question(request)

    def test_difficulty_bounds(self):
        """Test difficulty must be 1-5."""
        with pytest.raises(ValidationError):
            QuestionCreateRequest(
                bank_id=uuid4(),
                question_type="mcq",
                question_text="Pick",
                correct_answer=0,
                difficulty_level=6,
            )
