# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the QLA
practice service. Settings are loaded from environment variables with
sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from qla_practice.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.practice.mastered_threshold)
    85.0
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """PostgreSQL configuration for the practice database.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        url: Full connection URL (computed from components).
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
    )

    user: str = "qla"
    password: SecretStr = SecretStr("qla_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "qla_practice"
    pool_size: int = 10
    max_overflow: int = 20

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"


class JWTSettings(BaseSettings):
    """JWT validation configuration.

    Tokens are issued by the platform's authentication layer; this service
    only validates them and reads the caller identity.

    Attributes:
        secret_key: Secret key for token signatures.
        algorithm: Signing algorithm.
    """

    model_config = SettingsConfigDict(
        env_prefix="JWT_",
        extra="ignore",
    )

    secret_key: SecretStr = SecretStr("change-this-in-production")
    algorithm: str = "HS256"


class CORSSettings(BaseSettings):
    """CORS configuration.

    Attributes:
        origins: Comma-separated list of allowed origins.
        allow_credentials: Whether cookies are allowed cross-origin.
    """

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        extra="ignore",
    )

    origins: str = "http://localhost:3000"
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        """Split the configured origins into a list."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class PracticeSettings(BaseSettings):
    """Tuning parameters for practice selection and mastery tracking.

    Attributes:
        mastered_threshold: Mastery level at which a skill counts as mastered.
        learning_threshold: Mastery level below which a skill is still "learning".
        review_stale_days: Days without practice after which a skill needs review.
        review_mastery_threshold: Mastery below which a skill is picked for review.
        recommendation_mastery_threshold: Mastery below which a skill is recommended for review.
        default_numeric_tolerance: Tolerance applied to numeric keys that declare none.
        default_session_questions: Session size when the client does not ask for one.
        max_session_questions: Upper bound on questions handed out per session.
        achievements_enabled: Whether achievements are checked after grading.
    """

    model_config = SettingsConfigDict(
        env_prefix="PRACTICE_",
        extra="ignore",
    )

    mastered_threshold: float = 85.0
    learning_threshold: float = 70.0
    review_stale_days: int = 7
    review_mastery_threshold: float = 70.0
    recommendation_mastery_threshold: float = 50.0
    default_numeric_tolerance: float = 0.0
    default_session_questions: int = 10
    max_session_questions: int = 50
    achievements_enabled: bool = True

    @model_validator(mode="after")
    def validate_thresholds(self) -> Self:
        """Ensure the status thresholds are ordered and within range.

        Raises:
            ValueError: If thresholds are out of order or out of [0, 100].
        """
        if not 0 <= self.learning_threshold <= self.mastered_threshold <= 100:
            raise ValueError(
                "Expected 0 <= learning_threshold <= mastered_threshold <= 100"
            )
        if self.max_session_questions < 1:
            raise ValueError("max_session_questions must be at least 1")
        return self


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        database: Database settings.
        jwt: JWT validation settings.
        cors: CORS settings.
        practice: Practice engine tuning.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    jwt: JWTSettings = Field(default_factory=JWTSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    practice: PracticeSettings = Field(default_factory=PracticeSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with insecure defaults.
        """
        if self.environment == "production":
            default_jwt_secret = "change-this-in-production"
            if self.jwt.secret_key.get_secret_value() == default_jwt_secret:
                raise ValueError(
                    "JWT secret key must be changed from default in production. "
                    "Set JWT_SECRET_KEY environment variable."
                )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
