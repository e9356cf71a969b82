"""
Configuration settings for lessonpath.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Lesson Defaults
    # ========================================
    default_difficulty: Literal["beginner", "intermediate", "advanced"] = Field(
        default="beginner",
        description="Difficulty applied when a lesson does not declare one",
    )
    default_estimated_minutes: int = Field(
        default=30,
        ge=0,
        description="Estimated minutes applied when a lesson does not declare them",
    )
    default_mastery_threshold: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Lesson mastery threshold (0-1) when none is declared",
    )
    default_objective_category: str = Field(
        default="application",
        description="Bloom category assigned to parsed learning objectives",
    )

    # ========================================
    # Curriculum / Resolver
    # ========================================
    default_unit_mastery_threshold: float = Field(
        default=0.9,
        ge=0.0,
        le=1.0,
        description="Unit mastery threshold (0-1) for records that omit it",
    )
    next_steps_limit: int = Field(
        default=5,
        ge=0,
        description="Number of next-step items included in recommendations",
    )
    strict_dependencies: bool = Field(
        default=False,
        description="Log dangling graph dependencies at WARNING instead of DEBUG",
    )

    # ========================================
    # Import
    # ========================================
    content_file_pattern: str = Field(
        default="*.md",
        description="Glob used when importing a directory of lessons",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional log file path (rotated by loguru)",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
