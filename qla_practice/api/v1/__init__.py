# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    practice: Student practice sessions, progress and recommendations.
    teacher_practice: Instructor management of skills, banks and questions.
"""

from fastapi import APIRouter

from qla_practice.api.v1 import practice, teacher_practice

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(practice.router, prefix="/practice", tags=["Practice"])
router.include_router(
    teacher_practice.router, prefix="/teacher-practice", tags=["Teacher Practice"]
)

__all__ = ["router"]
