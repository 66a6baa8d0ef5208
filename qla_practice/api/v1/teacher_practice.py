# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Instructor practice authoring endpoints.

Teachers and admins manage the skills, banks and questions students
practice on:
- GET/POST /skills, PATCH /skills/{skill_id}
- GET/POST /banks
- GET /banks/{bank_id}/questions
- POST /questions
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from qla_practice.api.dependencies import get_authoring_service, require_instructor
from qla_practice.api.middleware.auth import CurrentUser
from qla_practice.domains.authoring.service import (
    AuthoringService,
    AuthoringServiceError,
    BankNotFoundError,
    SkillMismatchError,
    SkillNotFoundError,
)
from qla_practice.domains.practice.exceptions import InvalidAnswerKeyError
from qla_practice.infrastructure.database.connection import DatabaseError
from qla_practice.models.authoring import (
    BankCreateRequest,
    BankResponse,
    QuestionCreateRequest,
    QuestionResponse,
    SkillCreatedResponse,
    SkillCreateRequest,
    SkillResponse,
    SkillUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _http_error(error: Exception) -> HTTPException:
    if isinstance(error, DatabaseError):
        logger.error("Authoring storage failure: %s", str(error))
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage temporarily unavailable, please retry",
        )
    if isinstance(error, (SkillNotFoundError, BankNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, (InvalidAnswerKeyError, SkillMismatchError)):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(error)
        )
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


@router.get(
    "/skills",
    response_model=list[SkillResponse],
    summary="List skills",
)
async def list_skills(
    grade: int | None = Query(None, ge=0, description="Filter by grade"),
    current_user: CurrentUser = Depends(require_instructor),
    service: AuthoringService = Depends(get_authoring_service),
) -> list[SkillResponse]:
    """List active skills."""
    try:
        skills = await service.list_skills(grade=grade)
    except DatabaseError as e:
        raise _http_error(e)
    return [SkillResponse.model_validate(s) for s in skills]


@router.post(
    "/skills",
    response_model=SkillCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create skill",
    description="Create a skill, optionally with a default question bank.",
)
async def create_skill(
    data: SkillCreateRequest,
    current_user: CurrentUser = Depends(require_instructor),
    service: AuthoringService = Depends(get_authoring_service),
) -> SkillCreatedResponse:
    """Create a new skill.

    Args:
        data: Skill fields and optional default bank name.
        current_user: Authenticated instructor.
        service: Authoring service.

    Returns:
        The created skill and bank.

    Raises:
        HTTPException: If a prerequisite is invalid or storage fails.
    """
    try:
        skill, bank = await service.create_skill(data, created_by=current_user.email)
    except (AuthoringServiceError, DatabaseError) as e:
        raise _http_error(e)

    return SkillCreatedResponse(
        skill=SkillResponse.model_validate(skill),
        bank=BankResponse.model_validate(bank) if bank is not None else None,
    )


@router.patch(
    "/skills/{skill_id}",
    response_model=SkillResponse,
    summary="Update skill",
)
async def update_skill(
    skill_id: UUID,
    data: SkillUpdateRequest,
    current_user: CurrentUser = Depends(require_instructor),
    service: AuthoringService = Depends(get_authoring_service),
) -> SkillResponse:
    """Update the provided fields of a skill."""
    try:
        skill = await service.update_skill(skill_id, data)
    except (AuthoringServiceError, DatabaseError) as e:
        raise _http_error(e)
    return SkillResponse.model_validate(skill)


@router.get(
    "/banks",
    response_model=list[BankResponse],
    summary="List banks",
)
async def list_banks(
    skill_id: UUID | None = Query(None, description="Filter by skill"),
    current_user: CurrentUser = Depends(require_instructor),
    service: AuthoringService = Depends(get_authoring_service),
) -> list[BankResponse]:
    try:
        banks = await service.list_banks(skill_id=skill_id)
    except DatabaseError as e:
        raise _http_error(e)
    return [BankResponse.model_validate(b) for b in banks]


@router.post(
    "/banks",
    response_model=BankResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create bank",
)
async def create_bank(
    data: BankCreateRequest,
    current_user: CurrentUser = Depends(require_instructor),
    service: AuthoringService = Depends(get_authoring_service),
) -> BankResponse:
    """Create a question bank for a skill."""
    try:
        bank = await service.create_bank(data, created_by=current_user.email)
    except (AuthoringServiceError, DatabaseError) as e:
        raise _http_error(e)
    return BankResponse.model_validate(bank)


@router.get(
    "/banks/{bank_id}/questions",
    response_model=list[QuestionResponse],
    summary="List bank questions",
)
async def list_questions(
    bank_id: UUID,
    current_user: CurrentUser = Depends(require_instructor),
    service: AuthoringService = Depends(get_authoring_service),
) -> list[QuestionResponse]:
    """List the questions of a bank, answer keys included."""
    try:
        questions = await service.list_questions(bank_id)
    except (AuthoringServiceError, DatabaseError) as e:
        raise _http_error(e)
    return [QuestionResponse.model_validate(q) for q in questions]


@router.post(
    "/questions",
    response_model=QuestionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create question",
    description="Add a question to a bank. The answer key is checked against the question type.",
)
async def create_question(
    data: QuestionCreateRequest,
    current_user: CurrentUser = Depends(require_instructor),
    service: AuthoringService = Depends(get_authoring_service),
) -> QuestionResponse:
    """Create a question.

    Raises:
        HTTPException: 404 unknown bank, 422 answer key that does not fit
            the question type or a skill that differs from the bank's.
    """
    try:
        question = await service.create_question(data)
    except (AuthoringServiceError, InvalidAnswerKeyError, DatabaseError) as e:
        raise _http_error(e)
    logger.info("Question %s created by %s", question.id, current_user.email)
    return QuestionResponse.model_validate(question)
