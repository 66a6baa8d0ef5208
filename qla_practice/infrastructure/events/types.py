# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Event type constants.

Every event is published after the transaction that produced it has
committed. Pattern subscribers (``practice.*``) pick up new constants
automatically.
"""


class EventTypes:
    """All event types organized by domain."""

    class Practice:
        """Practice domain events."""

        SESSION_STARTED = "practice.session.started"
        ANSWER_GRADED = "practice.answer.graded"
        SESSION_COMPLETED = "practice.session.completed"
        ACHIEVEMENT_EARNED = "practice.achievement.earned"

    class Authoring:
        """Instructor content events."""

        SKILL_CREATED = "authoring.skill.created"
        QUESTION_CREATED = "authoring.question.created"
