# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-memory event bus for post-commit side effects.

Practice operations publish an event once their transaction has
committed. Subscribers (the analytics recorder, achievement notifiers)
run after the fact and can never roll back or fail the operation that
produced the event.

The EventBus supports:
- Exact event type matching (e.g., "practice.answer.graded")
- Wildcard pattern matching (e.g., "practice.*")
- Multiple async handlers per event type

The bus is an ordinary object: the application lifespan creates one and
stores it on ``app.state``; services receive it through their
constructor.

Example:
    bus = EventBus()

    async def on_graded(event: EventData) -> None:
        print(event.payload["is_correct"])

    bus.subscribe(EventTypes.Practice.ANSWER_GRADED, on_graded)
    await bus.publish(
        EventTypes.Practice.ANSWER_GRADED,
        {"user_email": "s@example.com", "is_correct": True},
    )
"""

import asyncio
import fnmatch
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable
from uuid import uuid4

from qla_practice.utils.datetime import utc_now

logger = logging.getLogger(__name__)

EventHandler = Callable[["EventData"], Awaitable[None]]


@dataclass
class EventData:
    """Container for event data with metadata.

    Attributes:
        event_type: The event type string.
        payload: JSON-serializable event payload.
        event_id: Unique event identifier.
        timestamp: When the event was published.
    """

    event_type: str
    payload: dict[str, Any]
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=utc_now)


def _is_pattern(event_type: str) -> bool:
    return "*" in event_type or "?" in event_type


class EventBus:
    """In-memory async event bus with pattern matching support.

    Designed for single-process async use. Handler errors are logged and
    never propagate to the publisher.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}
        self._pattern_handlers: dict[str, list[EventHandler]] = {}

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Subscribe a handler to an event type or wildcard pattern.

        Args:
            event_type: Event type string or fnmatch-style pattern.
            handler: Async callable receiving the EventData.
        """
        registry = self._pattern_handlers if _is_pattern(event_type) else self._handlers
        registry.setdefault(event_type, []).append(handler)
        logger.debug("Subscribed handler to: %s", event_type)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> bool:
        """Unsubscribe a handler.

        Args:
            event_type: Event type string or pattern used at subscription.
            handler: The handler to remove.

        Returns:
            True if the handler was found and removed, False otherwise.
        """
        registry = self._pattern_handlers if _is_pattern(event_type) else self._handlers
        handlers = registry.get(event_type)
        if not handlers or handler not in handlers:
            return False
        handlers.remove(handler)
        if not handlers:
            del registry[event_type]
        return True

    def handlers_for(self, event_type: str) -> list[EventHandler]:
        """Return every handler matching an event type."""
        matched = list(self._handlers.get(event_type, []))
        for pattern, handlers in self._pattern_handlers.items():
            if fnmatch.fnmatch(event_type, pattern):
                matched.extend(handlers)
        return matched

    async def publish(self, event_type: str, payload: dict[str, Any]) -> EventData:
        """Publish an event to all matching subscribers.

        Handlers are called concurrently using asyncio.gather. Errors in
        individual handlers are logged but don't stop other handlers.

        Args:
            event_type: The event type string.
            payload: Event data dictionary.

        Returns:
            EventData object with event metadata.
        """
        event = EventData(event_type=event_type, payload=payload)

        handlers = self.handlers_for(event_type)
        if not handlers:
            logger.debug("No handlers for event: %s", event_type)
            return event

        logger.debug("Publishing event %s to %d handlers", event_type, len(handlers))

        async def safe_call(handler: EventHandler) -> None:
            try:
                await handler(event)
            except Exception as e:
                logger.error(
                    "Handler error for event %s: %s",
                    event_type,
                    str(e),
                    exc_info=True,
                )

        await asyncio.gather(*[safe_call(handler) for handler in handlers])
        return event

    def clear(self) -> None:
        """Remove all subscriptions."""
        self._handlers.clear()
        self._pattern_handlers.clear()
