# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Practice API endpoints.

This module provides endpoints for practice sessions:
- POST /session/start - Start a practice session
- POST /answer - Submit an answer to one question
- POST /session/end - End a session and get its summary
- GET /progress - Progress dashboard
- GET /skills - Skills with the caller's mastery
- GET /recommendations - Suggested skills

A failed grading call always returns an error status; it is never
reported as an incorrect answer.

Example:
    POST /api/v1/practice/session/start
    {
        "mode": "targeted",
        "skill_id": "6f1c...",
        "num_questions": 10
    }
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from qla_practice.api.dependencies import get_practice_service, require_auth
from qla_practice.api.middleware.auth import CurrentUser
from qla_practice.domains.achievements.service import EarnedAchievement
from qla_practice.domains.practice.exceptions import (
    InvalidAnswerKeyError,
    PracticeServiceError,
    QuestionNotFoundError,
    QuestionNotInSessionError,
    SessionNotActiveError,
    SessionNotFoundError,
    SessionOwnershipError,
    SkillNotFoundError,
    SkillRequiredError,
)
from qla_practice.domains.practice.service import PracticeService
from qla_practice.infrastructure.database.connection import DatabaseError
from qla_practice.models.practice import (
    AchievementView,
    EndSessionRequest,
    EndSessionResponse,
    OverallStatsView,
    ProgressResponse,
    QuestionView,
    RecommendationsResponse,
    SessionStats,
    SkillDeltaView,
    SkillListResponse,
    SkillProgressView,
    StartSessionRequest,
    StartSessionResponse,
    StreakView,
    SubmitAnswerRequest,
    SubmitAnswerResponse,
    UnitProgressView,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_STATUS: dict[type[PracticeServiceError], int] = {
    SkillRequiredError: status.HTTP_400_BAD_REQUEST,
    SkillNotFoundError: status.HTTP_404_NOT_FOUND,
    SessionNotFoundError: status.HTTP_404_NOT_FOUND,
    QuestionNotFoundError: status.HTTP_404_NOT_FOUND,
    SessionOwnershipError: status.HTTP_403_FORBIDDEN,
    SessionNotActiveError: status.HTTP_409_CONFLICT,
    QuestionNotInSessionError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidAnswerKeyError: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def _http_error(error: Exception) -> HTTPException:
    """Translate a service error into an HTTP error."""
    if isinstance(error, DatabaseError):
        logger.error("Practice storage failure: %s", str(error))
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Practice storage temporarily unavailable, please retry",
        )
    for error_type, status_code in _ERROR_STATUS.items():
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


def _achievement_views(achievements: list[EarnedAchievement]) -> list[AchievementView]:
    return [AchievementView.model_validate(a, from_attributes=True) for a in achievements]


@router.post(
    "/session/start",
    response_model=StartSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start practice session",
    description="Select questions for a mode and start a session. "
    "An empty question list means there is nothing to practice.",
)
async def start_session(
    data: StartSessionRequest,
    current_user: CurrentUser = Depends(require_auth),
    service: PracticeService = Depends(get_practice_service),
) -> StartSessionResponse:
    """Start a practice session.

    Args:
        data: Session request.
        current_user: Authenticated user.
        service: Practice service.

    Returns:
        StartSessionResponse with the ordered questions.

    Raises:
        HTTPException: If the mode needs a skill, the skill is unknown,
            or storage fails.
    """
    logger.info(
        "Starting practice session: user=%s, mode=%s, skill=%s",
        current_user.email,
        data.mode.value,
        data.skill_id,
    )
    try:
        started = await service.start_session(
            current_user.email,
            data.mode,
            skill_id=data.skill_id,
            num_questions=data.num_questions,
        )
    except (PracticeServiceError, DatabaseError) as e:
        raise _http_error(e)

    questions = [QuestionView.model_validate(q) for q in started.questions]
    return StartSessionResponse(
        session_id=started.session.id,
        session_type=data.mode,
        questions=questions,
        total_questions=len(questions),
    )


@router.post(
    "/answer",
    response_model=SubmitAnswerResponse,
    summary="Submit answer",
    description="Grade one answer and update mastery atomically.",
)
async def submit_answer(
    data: SubmitAnswerRequest,
    current_user: CurrentUser = Depends(require_auth),
    service: PracticeService = Depends(get_practice_service),
) -> SubmitAnswerResponse:
    """Submit an answer for grading.

    Raises:
        HTTPException: 404 unknown session or question, 403 foreign
            session, 409 ended session, 422 question outside the session
            or malformed answer key, 503 storage failure.
    """
    try:
        outcome = await service.submit_answer(
            current_user.email,
            data.session_id,
            data.question_id,
            data.user_answer,
            hints_used=data.hints_used,
            time_taken_seconds=data.time_taken_seconds,
            confidence_level=data.confidence_level,
        )
    except (PracticeServiceError, DatabaseError) as e:
        raise _http_error(e)

    result = outcome.result
    return SubmitAnswerResponse(
        is_correct=result.is_correct,
        correct_answer=result.correct_answer,
        solution_steps=result.solution_steps,
        new_mastery_level=result.new_mastery_level,
        points_earned=result.points_earned,
        achievements_earned=_achievement_views(outcome.achievements),
    )


@router.post(
    "/session/end",
    response_model=EndSessionResponse,
    summary="End session",
    description="End the session and summarize its attempts. Safe to repeat.",
)
async def end_session(
    data: EndSessionRequest,
    current_user: CurrentUser = Depends(require_auth),
    service: PracticeService = Depends(get_practice_service),
) -> EndSessionResponse:
    """End a practice session.

    Raises:
        HTTPException: If the session is unknown, foreign, or storage fails.
    """
    try:
        outcome = await service.end_session(current_user.email, data.session_id)
    except (PracticeServiceError, DatabaseError) as e:
        raise _http_error(e)

    summary = outcome.summary
    return EndSessionResponse(
        session_stats=SessionStats.model_validate(summary),
        skill_progress=[SkillDeltaView.model_validate(d) for d in summary.skill_deltas],
        achievements_earned=_achievement_views(outcome.achievements),
    )


@router.get(
    "/progress",
    response_model=ProgressResponse,
    summary="Progress dashboard",
)
async def get_progress(
    current_user: CurrentUser = Depends(require_auth),
    service: PracticeService = Depends(get_practice_service),
) -> ProgressResponse:
    """Overall stats, skills, achievements, streak and unit completion."""
    try:
        report = await service.get_progress(current_user.email)
    except DatabaseError as e:
        raise _http_error(e)

    return ProgressResponse(
        overall_stats=OverallStatsView.model_validate(report.overall),
        skills=[SkillProgressView.model_validate(s) for s in report.skills],
        achievements=[AchievementView.model_validate(a) for a in report.achievements],
        streak=StreakView.model_validate(report.streak),
        unit_progress=[UnitProgressView.model_validate(u) for u in report.units],
    )


@router.get(
    "/skills",
    response_model=SkillListResponse,
    summary="List skills",
)
async def list_skills(
    grade: int | None = Query(None, ge=0, description="Filter by grade"),
    unit: int | None = Query(None, ge=0, description="Filter by unit"),
    current_user: CurrentUser = Depends(require_auth),
    service: PracticeService = Depends(get_practice_service),
) -> SkillListResponse:
    """Active skills with the caller's mastery and question counts."""
    try:
        skills = await service.list_skills(current_user.email, grade=grade, unit=unit)
    except DatabaseError as e:
        raise _http_error(e)

    return SkillListResponse(
        skills=[SkillProgressView.model_validate(s) for s in skills],
        total=len(skills),
    )


@router.get(
    "/recommendations",
    response_model=RecommendationsResponse,
    summary="Recommended skills",
)
async def get_recommendations(
    current_user: CurrentUser = Depends(require_auth),
    service: PracticeService = Depends(get_practice_service),
) -> RecommendationsResponse:
    """Skills to review, to start next and to take on as a challenge."""
    try:
        recommendations = await service.get_recommendations(current_user.email)
    except DatabaseError as e:
        raise _http_error(e)

    return RecommendationsResponse.model_validate(recommendations)
