# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for the QLA practice service.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
"""

from qla_practice.utils.datetime import (
    days_ago,
    ensure_utc,
    hours_ago,
    is_older_than,
    utc_now,
)
from qla_practice.utils.logging import (
    bind_practice_context,
    clear_context,
    get_logger,
    setup_logging,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bind_practice_context",
    "clear_context",
    # Datetime
    "utc_now",
    "ensure_utc",
    "days_ago",
    "hours_ago",
    "is_older_than",
]
