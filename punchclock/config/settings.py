"""
Configuration Management for Punchclock

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The location of the three backing stores is the only thing the core
needs from the outside world, so it lives next to the logging knobs
and nowhere else.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Location of the pipe-delimited backing stores."""

    model_config = SettingsConfigDict(
        env_prefix="PUNCHCLOCK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path("csv"),
        description="Directory holding the three store files"
    )
    users_file: str = Field(
        default="users.csv",
        description="File name of the user store"
    )
    projects_file: str = Field(
        default="projects.csv",
        description="File name of the project store"
    )
    time_cards_file: str = Field(
        default="timeCard.csv",
        description="File name of the time card store"
    )
    atomic_writes: bool = Field(
        default=True,
        description="Write to a temporary file and rename it over the store"
    )

    @field_validator("users_file", "projects_file", "time_cards_file")
    @classmethod
    def validate_file_name(cls, v: str) -> str:
        """Store files must be plain names inside data_dir."""
        if not v or Path(v).name != v:
            raise ValueError(f"Store file must be a bare file name, got: {v!r}")
        return v

    @property
    def users_path(self) -> Path:
        return self.data_dir / self.users_file

    @property
    def projects_path(self) -> Path:
        return self.data_dir / self.projects_file

    @property
    def time_cards_path(self) -> Path:
        return self.data_dir / self.time_cards_file


class LoggingSettings(BaseSettings):
    """Structured logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PUNCHCLOCK_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    level: str = Field(
        default="WARNING",
        description="Minimum level written to the log"
    )
    json_output: bool = Field(
        default=False,
        description="Render log lines as JSON instead of key=value"
    )
    file: Optional[Path] = Field(
        default=None,
        description="Log file; stderr when unset"
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level = v.strip().upper()
        if level not in allowed:
            raise ValueError(f"Unknown log level: {v}. Allowed: {sorted(allowed)}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()
