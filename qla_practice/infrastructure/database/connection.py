# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database connection management using SQLAlchemy async.

The practice database handle is an explicitly constructed object rather
than module-level state: the application lifespan creates one Database,
stores it on ``app.state`` and request dependencies hand out sessions
from it. Components receive an ``AsyncSession`` and never reach for a
global pool, so tests can substitute doubles freely.

Uses SQLAlchemy 2.0 async API with asyncpg driver.

Example:
    database = Database.from_settings(settings)

    async with database.session() as session:
        result = await session.execute(select(Skill))
        skills = result.scalars().all()

    await database.dispose()
"""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

if TYPE_CHECKING:
    from qla_practice.core.config.settings import Settings


class DatabaseError(Exception):
    """Base exception for database operations.

    Raised for connection and transaction failures. These are transient
    from the caller's point of view: the unit of work was rolled back and
    may be retried.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying SQLAlchemy or database error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        """Initialize the database error.

        Args:
            message: Human-readable error description.
            original_error: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class Database:
    """Owner of the async engine and session factory.

    Attributes:
        engine: SQLAlchemy async engine (connection pool).
        sessionmaker: Factory producing AsyncSession objects.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        sessionmaker: async_sessionmaker[AsyncSession] | None = None,
    ) -> None:
        """Initialize the database handle.

        Args:
            engine: Async engine to bind sessions to.
            sessionmaker: Optional pre-built session factory.
        """
        self.engine = engine
        self.sessionmaker = sessionmaker or async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "Database":
        """Create the connection pool from application settings.

        Args:
            settings: Application settings containing database configuration.

        Returns:
            Configured Database handle.

        Raises:
            DatabaseError: If connection pool creation fails.
        """
        try:
            engine = create_async_engine(
                settings.database.url,
                pool_size=settings.database.pool_size,
                max_overflow=settings.database.max_overflow,
                pool_pre_ping=True,
                pool_recycle=1800,
                echo=False,
            )
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to initialize database connection", e) from e
        return cls(engine)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Get an async session.

        Services commit their own units of work; whatever is still pending
        when the block exits cleanly is committed, and everything is rolled
        back on exception.

        Yields:
            AsyncSession for database operations.

        Raises:
            DatabaseError: If a database operation fails.
        """
        async with self.sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise DatabaseError("Database operation failed", e) from e
            except Exception:
                await session.rollback()
                raise

    async def check_connection(self) -> bool:
        """Check if the database is reachable.

        Returns:
            True if the database is reachable, False otherwise.
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()
