# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions raised by the practice engine.

Hierarchy:
- PracticeServiceError: base for every practice error
  - SkillRequiredError: targeted session without a skill
  - SkillNotFoundError: unknown or inactive skill
  - SessionNotFoundError: unknown session
  - SessionOwnershipError: session belongs to another user
  - SessionNotActiveError: session already ended
  - QuestionNotFoundError: unknown question
  - QuestionNotInSessionError: question was not handed out by the session
  - InvalidAnswerKeyError: malformed answer key or unsupported type

None of these leave state behind: they are raised before anything is
written, or the enclosing transaction is rolled back.
"""


class PracticeServiceError(Exception):
    """Base exception for practice service errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class SkillRequiredError(PracticeServiceError):
    """Raised when a targeted session is requested without a skill."""

    def __init__(self) -> None:
        super().__init__("skill_id is required for targeted practice")


class SkillNotFoundError(PracticeServiceError):
    """Raised when a skill does not exist or is inactive."""

    def __init__(self, skill_id: object) -> None:
        super().__init__(f"Skill not found: {skill_id}", {"skill_id": str(skill_id)})


class SessionNotFoundError(PracticeServiceError):
    """Raised when a practice session does not exist."""

    def __init__(self, session_id: object) -> None:
        super().__init__(
            f"Practice session not found: {session_id}", {"session_id": str(session_id)}
        )


class SessionOwnershipError(PracticeServiceError):
    """Raised when a session is used by someone other than its owner."""

    def __init__(self, session_id: object) -> None:
        super().__init__(
            "Practice session belongs to another user", {"session_id": str(session_id)}
        )


class SessionNotActiveError(PracticeServiceError):
    """Raised when answering in a session that has already ended."""

    def __init__(self, session_id: object) -> None:
        super().__init__(
            f"Practice session is not active: {session_id}", {"session_id": str(session_id)}
        )


class QuestionNotFoundError(PracticeServiceError):
    """Raised when a practice question does not exist."""

    def __init__(self, question_id: object) -> None:
        super().__init__(
            f"Question not found: {question_id}", {"question_id": str(question_id)}
        )


class QuestionNotInSessionError(PracticeServiceError):
    """Raised when a question was not part of the session's sequence."""

    def __init__(self, question_id: object, session_id: object) -> None:
        super().__init__(
            f"Question {question_id} is not part of session {session_id}",
            {"question_id": str(question_id), "session_id": str(session_id)},
        )


class InvalidAnswerKeyError(PracticeServiceError, ValueError):
    """Raised when an answer key is malformed or its type is unsupported.

    Attributes:
        question_type: The declared question type.
        reason: Why the key was rejected.
    """

    def __init__(self, question_type: str, reason: str) -> None:
        self.question_type = question_type
        self.reason = reason
        super().__init__(
            f"Invalid answer key for {question_type!r}: {reason}",
            {"question_type": question_type},
        )
