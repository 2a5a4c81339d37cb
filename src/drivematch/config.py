"""Application settings loaded from ``DRIVEMATCH_*`` environment variables."""
from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class DatabaseConfig(BaseModel):
    """Database connection configuration."""

    dsn: str = Field(default="sqlite+pysqlite:///./drivematch.sqlite")
    echo: bool = Field(default=False)


class MatchingConfig(BaseModel):
    """Knobs for the matching lifecycle engine."""

    default_max_students_per_period: int = Field(
        default=10,
        ge=1,
        description="Capacity used when an instructor profile carries no explicit maximum.",
    )
    notification_workers: int = Field(default=4, ge=1, le=64)
    apply_notification_title: str = Field(default="Instructor assigned")
    apply_notification_message: str = Field(
        default="Dear {name}, your driving instructor has been assigned.",
    )


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    file: str | None = Field(default=None)

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: object) -> str:
        text = str(value or "").strip().upper()
        if text not in _LEVELS:
            raise ValueError(f"CONFIG_LOG_LEVEL_INVALID: unsupported log level {value!r}")
        return text

    @property
    def numeric_level(self) -> int:
        return logging.getLevelName(self.level)


class AppConfig(BaseSettings):
    """Service settings; nested sections use ``__`` as delimiter."""

    model_config = SettingsConfigDict(
        env_prefix="DRIVEMATCH_",
        env_nested_delimiter="__",
        extra="forbid",
    )

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables deterministically."""

        return cls()  # type: ignore[call-arg]


@lru_cache(maxsize=1)
def load_config() -> AppConfig:
    return AppConfig.from_env()


__all__ = ["AppConfig", "DatabaseConfig", "LoggingConfig", "MatchingConfig", "load_config"]
