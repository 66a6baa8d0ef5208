# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for the QLA practice service.

All timestamps are stored in UTC (PostgreSQL TIMESTAMPTZ) and every Python
datetime handled by the service is timezone-aware.

Usage:
------
    from qla_practice.utils.datetime import utc_now

    # For SQLAlchemy model defaults
    created_at = mapped_column(DateTime(timezone=True), default=utc_now)
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.

    Note:
        - If dt is None, returns None
        - If dt is naive, assumes UTC and adds tzinfo
        - If dt is aware, converts to UTC
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def days_ago(days: int, now: datetime | None = None) -> datetime:
    """Get a datetime N days before now.

    Args:
        days: Number of days to go back.
        now: Reference time (defaults to the current UTC time).

    Returns:
        Timezone-aware UTC datetime.
    """
    return (now or utc_now()) - timedelta(days=days)


def hours_ago(hours: int, now: datetime | None = None) -> datetime:
    """Get a datetime N hours before now.

    Args:
        hours: Number of hours to go back.
        now: Reference time (defaults to the current UTC time).

    Returns:
        Timezone-aware UTC datetime.
    """
    return (now or utc_now()) - timedelta(hours=hours)


def is_older_than(dt: datetime | None, days: int, now: datetime | None = None) -> bool:
    """Check whether a timestamp lies more than N days in the past.

    Args:
        dt: Timestamp to check; None is never considered stale.
        days: Age threshold in days.
        now: Reference time (defaults to the current UTC time).

    Returns:
        True if dt is older than the threshold.
    """
    if dt is None:
        return False
    return ensure_utc(dt) < days_ago(days, now)
