"""
Configuration management for the Todo API.

This module handles all application settings loaded from environment variables,
providing type-safe configuration with validation and defaults.

Design decisions:
- Pydantic Settings for automatic env var loading and validation
- Separate sections for different concerns (server, storage, app)
- Field validators ensure data integrity at startup
- Properties for computed values (is_production)
"""

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PORT = 8080


class Settings(BaseSettings):
    """
    Application configuration loaded from environment variables.

    All settings can be overridden via environment variables.
    Example: PORT=9000 DB_PATH=/var/lib/todos.db python -m todo_api

    Configuration sections:
    1. Server - HTTP server configuration
    2. Storage - Embedded store location and locking behavior
    3. Application - Runtime behavior configuration
    """

    # ===== Server Configuration =====
    host: str = Field(
        default="0.0.0.0",
        description="Server bind host"
    )
    port: int = Field(
        default=DEFAULT_PORT,
        ge=1, le=65535,
        description="Server port (PORT env var, 8080 when unset or empty)"
    )

    # ===== Storage Configuration =====
    db_path: str = Field(
        default="todos.db",
        min_length=1,
        description="Path of the single-file embedded store"
    )
    store_busy_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound in seconds on how long a writer queues for the write lock before failing"
    )

    # ===== Application Settings =====
    app_env: str = Field(
        default="development",
        pattern="^(development|staging|production|test)$",
        description="Application environment"
    )
    log_level: str = Field(
        default="info",
        pattern="^(debug|info|warning|error|critical)$",
        description="Logging level"
    )
    log_format: str = Field(
        default="json",
        pattern="^(json|console)$",
        description="Log output format (json for prod, console for dev)"
    )

    @field_validator("port", mode="before")
    @classmethod
    def default_empty_port(cls, value: Any) -> Any:
        """Treat an empty PORT the same as an unset one."""
        if value is None or (isinstance(value, str) and value.strip() == ""):
            return DEFAULT_PORT
        return value

    @field_validator("log_level", "log_format", mode="before")
    @classmethod
    def normalize_case(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown env vars
    )


# Singleton instance - loaded once at module import
settings = Settings()
