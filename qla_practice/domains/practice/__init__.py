# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Practice domain: session selection, grading and aggregation.

Example:
    service = PracticeService(db, settings.practice, event_bus)
    started = await service.start_session(email, SessionType.ADAPTIVE, num_questions=10)
    outcome = await service.submit_answer(email, started.session.id, question_id, 2)
    ended = await service.end_session(email, started.session.id)
"""

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
from qla_practice.domains.practice.selection import SessionType
from qla_practice.domains.practice.service import (
    AnswerOutcome,
    PracticeService,
    SessionOutcome,
)

__all__ = [
    "PracticeService",
    "AnswerOutcome",
    "SessionOutcome",
    "SessionType",
    "PracticeServiceError",
    "SkillRequiredError",
    "SkillNotFoundError",
    "SessionNotFoundError",
    "SessionOwnershipError",
    "SessionNotActiveError",
    "QuestionNotFoundError",
    "QuestionNotInSessionError",
    "InvalidAnswerKeyError",
]
