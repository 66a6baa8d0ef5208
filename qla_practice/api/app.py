# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the QLA practice API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from qla_practice import __version__
from qla_practice.api.middleware.auth import AuthMiddleware
from qla_practice.api.routes import health
from qla_practice.api.v1 import router as v1_router
from qla_practice.core.config import Settings, get_settings
from qla_practice.infrastructure.database.connection import Database, DatabaseError
from qla_practice.infrastructure.database.seeds import seed_achievement_definitions
from qla_practice.infrastructure.events import EventBus, PracticeAnalyticsRecorder
from qla_practice.utils.logging import setup_logging

logger = logging.getLogger(__name__)


async def _database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    """Report storage failures that escape the routers as retryable."""
    logger.error("Unhandled storage failure on %s: %s", request.url.path, str(exc))
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Practice storage temporarily unavailable, please retry"},
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events for the application.
    Initializes and cleans up:
    - Database connection pool
    - Event bus and the analytics subscriber
    - Default achievement definitions

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    setup_logging(settings)
    logger.info(
        "Starting QLA practice API (environment=%s, debug=%s)",
        settings.environment,
        settings.debug,
    )

    # =========================================================================
    # Startup
    # =========================================================================

    database = Database.from_settings(settings)
    app.state.database = database

    event_bus = EventBus()
    app.state.event_bus = event_bus
    PracticeAnalyticsRecorder(database).register(event_bus)
    logger.info("Event bus initialized")

    # Seed default achievement definitions
    try:
        async with database.session() as session:
            created = await seed_achievement_definitions(session)
        if not created:
            logger.info("Achievement definitions already present, skipping seed")
    except Exception as e:
        logger.warning("Failed to seed achievement definitions: %s", str(e))

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================

    event_bus.clear()

    try:
        await database.dispose()
        logger.info("Database connections closed")
    except Exception as e:
        logger.warning("Error closing database connections: %s", str(e))

    logger.info("Shutting down QLA practice API")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    This factory function creates a new FastAPI instance with all
    middleware, routes, and configurations applied.

    Args:
        settings: Settings to use. Defaults to the cached environment settings.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="QLA Practice API",
        description="Mastery-adaptive practice sessions",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        # Redirects from /path to /path/ would drop the Authorization header
        redirect_slashes=False,
    )

    # =========================================================================
    # State
    # =========================================================================
    app.state.settings = settings

    # =========================================================================
    # Exception Handlers
    # =========================================================================
    app.add_exception_handler(DatabaseError, _database_error_handler)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================

    # Auth middleware - validates JWT tokens
    app.add_middleware(AuthMiddleware, settings=settings.jwt)

    # CORS middleware (added last to execute first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
