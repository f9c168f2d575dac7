"""Configuration management for Slot Poll.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MergePolicy = Literal["replace_same_date", "fuzzy_union"]


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the SLOT_POLL_ prefix (e.g., SLOT_POLL_DB_PATH).
    """

    model_config = SettingsConfigDict(
        env_prefix="SLOT_POLL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Store Configuration
    db_path: Path = Field(
        default=Path("slot_poll.sqlite3"),
        description="Path to the SQLite database holding events, votes and patterns",
    )

    # Pattern learning
    default_slot_minutes: int = Field(
        default=60,
        gt=0,
        description="Span assumed for a time label that only names a start time",
    )
    fuzzy_union_tolerance_minutes: int = Field(
        default=60,
        ge=0,
        description="Largest gap (minutes) bridged when consolidating historical patterns",
    )
    merge_policy: MergePolicy = Field(
        default="replace_same_date",
        description=(
            "How a new submission updates stored patterns. replace_same_date lets the "
            "latest submission overwrite a date's patterns; fuzzy_union only ever grows them."
        ),
    )
    pattern_delete_batch_size: int = Field(
        default=100,
        gt=0,
        description="Number of pattern ids deleted per batch when the store has no transactions",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
