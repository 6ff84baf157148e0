"""
Configuration settings for the adaptive practice scheduler.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

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
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum level for the stderr log sink",
    )

    # ========================================
    # Mastery Classification
    # ========================================
    mastery_turn_threshold: int = Field(
        default=5,
        description="Turns at or below which an attempt counts as mastered (basic mode)",
    )
    competent_turn_threshold: int = Field(
        default=10,
        description="Turns at or below which an attempt counts as competent (basic mode)",
    )
    expected_turns_per_step: int = Field(
        default=2,
        description="Baseline dialogue turns per solution step (step-based mode)",
    )

    # ========================================
    # Topic Strength
    # ========================================
    weak_topic_threshold: float = Field(
        default=0.6,
        description="Topics below this strength are prioritized for review",
    )
    strong_topic_threshold: float = Field(
        default=0.8,
        description="Topics at or above this strength are considered strong",
    )
    default_strength: float = Field(
        default=0.5,
        description="Starting strength for a never-seen topic",
    )
    strength_decay_factor: float = Field(
        default=0.2,
        description="Exponential decay applied to older attempts in strength history",
    )

    # ========================================
    # SM-2 Spaced Repetition
    # ========================================
    sm2_initial_ease_factor: float = Field(
        default=2.5,
        description="Ease factor assigned to a new topic",
    )
    sm2_min_ease_factor: float = Field(
        default=1.3,
        description="SM-2 ease factor floor",
    )
    sm2_first_interval: int = Field(
        default=1,
        description="Interval (days) after the first successful review",
    )
    sm2_second_interval: int = Field(
        default=6,
        description="Interval (days) after the second successful review",
    )

    # ========================================
    # Practice Sessions
    # ========================================
    practice_due_fraction: float = Field(
        default=0.5,
        description="Share of a session reserved for due reviews",
    )
    practice_min_spacing: int = Field(
        default=2,
        description="Minimum distance between topics of the same interference group",
    )
    practice_shuffle_attempts: int = Field(
        default=25,
        description="Shuffle attempts before keeping the spacing-optimized order",
    )
    practice_min_problems: int = Field(
        default=5,
        description="Smallest mixed practice session",
    )
    practice_max_problems: int = Field(
        default=8,
        description="Largest mixed practice session suggested from tracked topics",
    )

    # ========================================
    # Adaptive Intervals
    # ========================================
    adaptive_min_attempts: int = Field(
        default=5,
        description="Attempts required before tier classification is trusted",
    )
    adaptive_recent_window: int = Field(
        default=20,
        description="Number of most recent attempts used for tier rates",
    )

    # ========================================
    # Semantic Topic Classifier (optional)
    # ========================================
    semantic_classifier_enabled: bool = Field(
        default=True,
        description="Use the external classifier when an API key is configured",
    )
    openai_api_key: str = Field(
        default="",
        description="API key for the OpenAI-compatible classification endpoint",
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of the OpenAI-compatible API",
    )
    topic_classifier_model: str = Field(
        default="gpt-4o-mini",
        description="Chat model used for topic classification",
    )
    topic_classifier_timeout_seconds: float = Field(
        default=5.0,
        description="Hard timeout for one classification call",
    )
    topic_cache_ttl_seconds: int = Field(
        default=24 * 60 * 60,
        description="Lifetime of a cached semantic classification",
    )

    # ========================================
    # CLI Local Store
    # ========================================
    progress_store_path: Path = Field(
        default=Path.home() / ".adaptive_scheduler" / "progress.json",
        description="JSON file used by the CLI to keep topic schedule states",
    )

    # ========================================
    # Helper Methods
    # ========================================
    def has_semantic_classifier(self) -> bool:
        """Check if the external topic classifier can be used."""
        return bool(self.semantic_classifier_enabled and self.openai_api_key)

    def get_mastery_config(self) -> dict[str, Any]:
        """Get mastery classification thresholds as a dictionary."""
        return {
            "mastered_turns": self.mastery_turn_threshold,
            "competent_turns": self.competent_turn_threshold,
            "turns_per_step": self.expected_turns_per_step,
        }

    def get_sm2_config(self) -> dict[str, Any]:
        """Get SM-2 parameters as a dictionary."""
        return {
            "initial_ease_factor": self.sm2_initial_ease_factor,
            "min_ease_factor": self.sm2_min_ease_factor,
            "first_interval": self.sm2_first_interval,
            "second_interval": self.sm2_second_interval,
            "default_strength": self.default_strength,
        }

    def get_progress_config(self) -> dict[str, Any]:
        """Get topic strength thresholds for progress analytics."""
        return {
            "weak_threshold": self.weak_topic_threshold,
            "strong_threshold": self.strong_topic_threshold,
            "decay_factor": self.strength_decay_factor,
            "default_strength": self.default_strength,
        }

    def get_practice_config(self) -> dict[str, Any]:
        """Get practice session composition parameters."""
        return {
            "due_fraction": self.practice_due_fraction,
            "weak_threshold": self.weak_topic_threshold,
            "min_spacing": self.practice_min_spacing,
            "shuffle_attempts": self.practice_shuffle_attempts,
            "min_problems": self.practice_min_problems,
            "max_problems": self.practice_max_problems,
        }

    def get_classifier_config(self) -> dict[str, Any]:
        """Get semantic classifier configuration."""
        return {
            "enabled": self.has_semantic_classifier(),
            "base_url": self.openai_base_url,
            "model": self.topic_classifier_model,
            "timeout_seconds": self.topic_classifier_timeout_seconds,
            "cache_ttl_seconds": self.topic_cache_ttl_seconds,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
