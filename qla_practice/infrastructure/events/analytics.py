# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Analytics recorder.

Subscribes to practice events and appends one ``practice_analytics`` row
per event, in a transaction of its own. Runs after the producing
operation has committed, so a failure here only loses the analytics row.
"""

import logging
from typing import Any, Optional
from uuid import UUID

from qla_practice.infrastructure.database.connection import Database
from qla_practice.infrastructure.database.models import PracticeAnalyticsEvent
from qla_practice.infrastructure.events.bus import EventBus, EventData
from qla_practice.infrastructure.events.types import EventTypes

logger = logging.getLogger(__name__)

# Ledger names used by the analytics tables and dashboards
ANALYTICS_EVENT_NAMES: dict[str, str] = {
    EventTypes.Practice.SESSION_STARTED: "session_start",
    EventTypes.Practice.ANSWER_GRADED: "answer_submitted",
    EventTypes.Practice.SESSION_COMPLETED: "session_end",
    EventTypes.Practice.ACHIEVEMENT_EARNED: "achievement_earned",
}

_ID_FIELDS = ("skill_id", "question_id", "session_id")


def _as_uuid(value: Any) -> Optional[UUID]:
    if value is None or isinstance(value, UUID):
        return value
    return UUID(str(value))


class PracticeAnalyticsRecorder:
    """Writes practice events into the analytics ledger.

    Attributes:
        database: Database handle used to open a dedicated session.
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    def build_row(self, event: EventData) -> Optional[PracticeAnalyticsEvent]:
        """Map an event onto an analytics row.

        Returns:
            The row to insert, or None for events that are not recorded.
        """
        name = ANALYTICS_EVENT_NAMES.get(event.event_type)
        if name is None:
            return None

        payload = dict(event.payload)
        user_email = payload.pop("user_email", None)
        if not user_email:
            logger.warning("Dropping %s event without user_email", event.event_type)
            return None

        ids = {key: _as_uuid(payload.pop(key, None)) for key in _ID_FIELDS}
        return PracticeAnalyticsEvent(
            user_email=user_email,
            event_type=name,
            event_data=payload,
            **ids,
        )

    async def handle(self, event: EventData) -> None:
        """Event bus handler."""
        row = self.build_row(event)
        if row is None:
            return
        async with self.database.session() as session:
            session.add(row)
        logger.debug("Recorded analytics event %s for %s", row.event_type, row.user_email)

    def register(self, bus: EventBus, pattern: str = "practice.*") -> None:
        """Subscribe the recorder to the bus."""
        bus.subscribe(pattern, self.handle)
