"""
Configuration management for Pulpit Scheduler.

Uses Pydantic Settings for type-safe environment variable loading.
Configured via .env file in project root.
"""

from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be configured via .env file or environment variables.
    See .env.example for available options.
    """

    # Python & Application
    python_env: Literal["development", "production"] = Field(
        default="development",
        description="Application environment"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./data/pulpit_scheduler.db",
        description="Database connection URL"
    )

    # API Configuration
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=8000,
        description="API server port"
    )
    api_reload: bool = Field(
        default=True,
        description="Enable auto-reload in development"
    )

    # Timezone Configuration
    timezone: str = Field(
        default="Europe/Madrid",
        description="Civil timezone of the congregation (IANA timezone name)"
    )

    # Schedule generation
    holiday_shift_minutes: int = Field(
        default=60,
        ge=0,
        lt=24 * 60,
        description="Minutes a holiday-adjustable service moves earlier on a workday holiday"
    )

    # Playlist limits
    max_hymns_per_service: int = Field(
        default=3,
        ge=1,
        description="Maximum hymns in a service playlist"
    )
    max_choruses_per_service: int = Field(
        default=3,
        ge=1,
        description="Maximum choruses in a service playlist"
    )
    planner_max_hymns: int = Field(
        default=10,
        ge=1,
        description="Maximum hymns in a planning (calculator) session"
    )
    planner_max_choruses: int = Field(
        default=10,
        ge=1,
        description="Maximum choruses in a planning (calculator) session"
    )
    planner_max_saved_lists: int = Field(
        default=2,
        ge=0,
        description="Named lists a planning session can keep"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.python_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.python_env == "production"

    @property
    def uses_postgresql(self) -> bool:
        """Check if PostgreSQL is the configured database."""
        return "postgresql" in self.database_url.lower()

    @property
    def tzinfo(self) -> ZoneInfo:
        """The configured civil timezone."""
        return ZoneInfo(self.timezone)

    def validate_production_config(self) -> None:
        """
        Validate configuration for production environment.

        Raises:
            ValueError: If required production settings are missing or invalid
        """
        if not self.is_production:
            return

        errors = []

        # SQLite has no row locking for concurrent month generation
        if not self.uses_postgresql:
            errors.append(
                "Production requires PostgreSQL. "
                "Set DATABASE_URL to a PostgreSQL connection string."
            )

        if errors:
            raise ValueError("Production configuration errors:\n- " + "\n- ".join(errors))


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    This function is cached to ensure we only load settings once.
    Use this function throughout the application to access settings.

    Returns:
        Settings instance loaded from environment

    Example:
        >>> from pulpit_scheduler.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.database_url)
    """
    return Settings()
