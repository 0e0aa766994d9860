"""
Configuration settings for the wordnet review engine.

Uses Pydantic Settings for environment variable management with .env file support.
Every field can be overridden with a WORDNET_ prefixed variable, e.g.
WORDNET_DATABASE_URL or WORDNET_LOG_LEVEL.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .retention import RetentionConfig
from .scheduler import SM2Config


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="WORDNET_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///~/.wordnet/review.db",
        description="SQLAlchemy connection string (~ is expanded for sqlite paths)",
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL statements to the log",
    )

    # ========================================
    # SM-2 Scheduler
    # ========================================
    initial_easiness: float = Field(
        default=2.5,
        description="Easiness factor for new items",
    )
    minimum_easiness: float = Field(
        default=1.3,
        description="Lower bound for the easiness factor",
    )
    first_interval_days: int = Field(
        default=1,
        ge=1,
        description="Interval after the first successful review",
    )
    second_interval_days: int = Field(
        default=6,
        ge=1,
        description="Interval after the second successful review",
    )

    # ========================================
    # Retention Model
    # ========================================
    mastery_threshold: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Display strength at which an item counts as mastered",
    )

    # ========================================
    # Items & Queries
    # ========================================
    max_word_length: int = Field(
        default=50,
        ge=1,
        description="Maximum characters for a new item",
    )
    weak_item_limit: int = Field(
        default=10,
        ge=1,
        description="Default number of weak items to list",
    )
    due_query_batch: int = Field(
        default=50,
        ge=1,
        description="Due entries fetched per query while looking for the next item",
    )
    seed_file: str | None = Field(
        default=None,
        description="JSON word list used by `wordnet seed` when no path is given",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    def get_database_url(self) -> str:
        """Database URL with ~ expanded for file-based sqlite URLs."""
        prefix = "sqlite:///"
        if self.database_url.startswith(prefix) and self.database_url != "sqlite:///:memory:":
            path = Path(self.database_url.removeprefix(prefix)).expanduser()
            return f"{prefix}{path}"
        return self.database_url

    def get_sm2_config(self) -> SM2Config:
        """Build the SM-2 configuration."""
        return SM2Config(
            initial_easiness=self.initial_easiness,
            minimum_easiness=self.minimum_easiness,
            first_interval=self.first_interval_days,
            second_interval=self.second_interval_days,
        )

    def get_retention_config(self) -> RetentionConfig:
        """Build the retention model configuration."""
        return RetentionConfig(mastery_threshold=self.mastery_threshold)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
