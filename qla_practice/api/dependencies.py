# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependencies.

The database handle and event bus live on ``app.state`` (created by the
application lifespan). Endpoints receive per-request sessions and
services through these dependencies, which tests override.

Example:
    @router.get("/progress")
    async def get_progress(
        service: PracticeService = Depends(get_practice_service),
        current_user: CurrentUser = Depends(require_auth),
    ):
        ...
"""

from typing import AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from qla_practice.api.middleware.auth import CurrentUser, get_current_user
from qla_practice.core.config import get_settings
from qla_practice.core.config.settings import PracticeSettings
from qla_practice.domains.authoring.service import AuthoringService
from qla_practice.domains.practice.service import PracticeService
from qla_practice.infrastructure.database.connection import Database
from qla_practice.infrastructure.events.bus import EventBus


def get_database(request: Request) -> Database:
    """Get the database handle created at startup.

    Raises:
        HTTPException: If the database was not initialized.
    """
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not initialized",
        )
    return database


async def get_db(
    database: Database = Depends(get_database),
) -> AsyncGenerator[AsyncSession, None]:
    """Get a database session for the request."""
    async with database.session() as session:
        yield session


def get_event_bus(request: Request) -> EventBus | None:
    """Get the application event bus, if any."""
    return getattr(request.app.state, "event_bus", None)


def get_practice_settings() -> PracticeSettings:
    """Get practice tuning parameters."""
    return get_settings().practice


def require_auth(request: Request) -> CurrentUser:
    """Require authenticated user.

    Raises:
        HTTPException: If not authenticated.
    """
    user = get_current_user(request)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_instructor(user: CurrentUser = Depends(require_auth)) -> CurrentUser:
    """Require teacher or admin user.

    Raises:
        HTTPException: If not teacher or admin.
    """
    if not user.is_instructor:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Teacher or admin access required",
        )
    return user


def get_practice_service(
    db: AsyncSession = Depends(get_db),
    event_bus: EventBus | None = Depends(get_event_bus),
    settings: PracticeSettings = Depends(get_practice_settings),
) -> PracticeService:
    """Get practice service for the request."""
    return PracticeService(db, settings, event_bus=event_bus)


def get_authoring_service(db: AsyncSession = Depends(get_db)) -> AuthoringService:
    """Get authoring service for the request."""
    return AuthoringService(db)
