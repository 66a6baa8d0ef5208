# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Event infrastructure.

Provides the in-process event bus, the event type constants and the
analytics recorder subscriber.
"""

from qla_practice.infrastructure.events.analytics import PracticeAnalyticsRecorder
from qla_practice.infrastructure.events.bus import EventBus, EventData, EventHandler
from qla_practice.infrastructure.events.types import EventTypes

__all__ = [
    "EventBus",
    "EventData",
    "EventHandler",
    "EventTypes",
    "PracticeAnalyticsRecorder",
]
