# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the content
loader. Settings are loaded from environment variables with sensible
defaults, optionally read from a ``.env`` file.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.database.isolation_level)
    'READ COMMITTED'
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DB_PASSWORD = "content_loader_password"


class ContentDatabaseSettings(BaseSettings):
    """Content database configuration.

    The content database holds categories, topics, lessons, code examples
    and quiz questions. Either a full ``url`` is given, or one is built
    from the individual components for the asyncpg driver.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        url_override: Full connection URL, takes precedence over components.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
        isolation_level: Isolation level of each load transaction.
        statement_timeout_ms: Per-statement timeout (0 disables it).
        transaction_timeout_seconds: Per-transaction timeout (0 disables it).
    """

    model_config = SettingsConfigDict(
        env_prefix="CONTENT_DB_",
        extra="ignore",
        populate_by_name=True,
    )

    user: str = "content_loader"
    password: SecretStr = SecretStr(DEFAULT_DB_PASSWORD)
    host: str = "localhost"
    port: int = 5432
    database: str = "interview_prep"
    url_override: str | None = Field(
        default=None,
        validation_alias="CONTENT_DB_URL",
    )
    pool_size: int = 5
    max_overflow: int = 10
    isolation_level: Literal["READ COMMITTED", "REPEATABLE READ", "SERIALIZABLE"] = (
        "READ COMMITTED"
    )
    statement_timeout_ms: int = Field(default=30_000, ge=0)
    transaction_timeout_seconds: float = Field(default=120.0, ge=0)

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        if self.url_override:
            return self.url_override
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"

    @property
    def sync_url(self) -> str:
        """Build the sync database URL for tools without async support."""
        return self.url.replace("+asyncpg", "").replace("+aiosqlite", "")


class LoaderSettings(BaseSettings):
    """Content loader behaviour.

    Attributes:
        content_dir: Root directory of the content files.
        max_attempts: Attempts per bundle when errors are transient.
        retry_backoff_seconds: Base delay of the exponential backoff.
        max_content_bytes: Upper bound for one lesson's markdown content.
    """

    model_config = SettingsConfigDict(
        env_prefix="LOADER_",
        extra="ignore",
    )

    content_dir: Path = Path("content")
    max_attempts: int = Field(default=3, ge=1)
    retry_backoff_seconds: float = Field(default=0.5, ge=0)
    max_content_bytes: int = Field(default=2 * 1024 * 1024, gt=0)


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        database: Content database settings.
        loader: Content loader settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    database: ContentDatabaseSettings = Field(default_factory=ContentDatabaseSettings)
    loader: LoaderSettings = Field(default_factory=LoaderSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with insecure defaults.
        """
        if self.environment == "production" and not self.database.url_override:
            if self.database.password.get_secret_value() == DEFAULT_DB_PASSWORD:
                raise ValueError(
                    "Database password must be changed from default in production. "
                    "Set CONTENT_DB_PASSWORD or CONTENT_DB_URL environment variable."
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

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
