"""
Configuration settings for the lsf-exercises library.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
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
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # Concept Catalog
    # ========================================
    concept_backend: Literal["memory", "http", "sql"] = Field(
        default="memory",
        description="Where concepts are read from",
    )
    concept_api_url: str = Field(
        default="http://127.0.0.1:8200/api",
        description="Base URL of the remote concept catalog",
    )
    concept_api_key: str | None = Field(
        default=None,
        description="Bearer token for the remote concept catalog",
    )
    concept_api_timeout: float = Field(
        default=10.0,
        description="Timeout (seconds) for concept catalog requests",
    )
    database_url: str = Field(
        default="sqlite:///lsf_concepts.db",
        description="SQLAlchemy URL of the concept catalog database",
    )
    concept_sample_size: int = Field(
        default=20,
        description="Maximum candidate concepts examined per generation request",
    )

    # ========================================
    # Exercise Generation
    # ========================================
    mcq_default_option_count: int = Field(
        default=4,
        description="Default number of options for multiple-choice exercises",
    )
    mcq_min_options: int = Field(
        default=2,
        description="Minimum options for multiple-choice exercises",
    )
    mcq_max_options: int = Field(
        default=10,
        description="Maximum options for multiple-choice exercises",
    )
    drag_drop_max_pairs: int = Field(
        default=6,
        description="Maximum item/target pairs for drag-drop exercises",
    )
    fill_blank_default_blanks: int = Field(
        default=3,
        description="Default number of blanks for fill-blank exercises (1-5)",
    )
    fill_blank_default_options: int = Field(
        default=6,
        description="Default number of options for fill-blank exercises (4-8)",
    )
    text_entry_similarity_threshold: float = Field(
        default=0.7,
        description="Similarity ratio above which a free-text answer is accepted",
    )
    exercise_passing_score: float = Field(
        default=0.7,
        description="Score at which a graded response counts as correct",
    )
    signing_practice_pass_score: float = Field(
        default=0.8,
        description="Average metric score below which a signer needs help",
    )
    signing_improvement_threshold: float = Field(
        default=0.6,
        description="Metric score below which an improvement suggestion is emitted",
    )

    # ========================================
    # Difficulty Adaptation
    # ========================================
    adapt_low_skill_threshold: float = Field(
        default=0.3,
        description="Skill estimate under which exercises are simplified",
    )
    adapt_high_skill_threshold: float = Field(
        default=0.7,
        description="Skill estimate over which exercises are made harder",
    )
    adapt_blend_factor: float = Field(
        default=0.3,
        description="Share of the skill gap folded into the adapted difficulty",
    )
    adapt_easy_time_factor: float = Field(
        default=1.5,
        description="Time limit multiplier for simplified exercises",
    )
    adapt_hard_time_factor: float = Field(
        default=0.8,
        description="Time limit multiplier for harder exercises",
    )

    # ========================================
    # Exercise Cache
    # ========================================
    exercise_cache_max_size: int = Field(
        default=100,
        description="Maximum number of cached exercises",
    )
    exercise_cache_max_age_seconds: float = Field(
        default=3600.0,
        description="Age after which a cached exercise is treated as a miss",
    )
    exercise_cache_cleanup_interval_seconds: float = Field(
        default=300.0,
        description="Interval of the background cache sweep",
    )
    exercise_cache_auto_cleanup: bool = Field(
        default=False,
        description="Run the background cache sweep",
    )

    # ========================================
    # Generator Factory
    # ========================================
    factory_default_strategy: Literal[
        "first_available",
        "highest_priority",
        "best_quality",
        "context_aware",
        "load_balanced",
        "performance_based",
        "round_robin",
        "weighted_random",
    ] = Field(
        default="highest_priority",
        description="Selection strategy used when the caller names none",
    )
    factory_cache_enabled: bool = Field(
        default=True,
        description="Cache resolved generators per type and context",
    )
    factory_max_cache_size: int = Field(
        default=100,
        description="Maximum resolved generators kept in the factory cache",
    )

    # ========================================
    # Learner Evolution
    # ========================================
    evolution_history_limit: int = Field(
        default=100,
        description="Metric snapshots retained per learner",
    )
    evolution_recent_window: int = Field(
        default=10,
        description="Recent experiences examined by the evolution detectors",
    )
    evolution_side_channel_limit: int = Field(
        default=50,
        description="Feedback, emotion and social entries retained per learner",
    )
    evolution_gradual_rate: float = Field(
        default=0.01,
        description="Maximum per-call increment of gradual evolution",
    )

    def get_generation_config(self) -> dict[str, Any]:
        """Get exercise generation configuration as a dictionary."""
        return {
            "mcq": {
                "default_options": self.mcq_default_option_count,
                "min_options": self.mcq_min_options,
                "max_options": self.mcq_max_options,
            },
            "drag_drop_max_pairs": self.drag_drop_max_pairs,
            "fill_blank": {
                "blanks": self.fill_blank_default_blanks,
                "options": self.fill_blank_default_options,
            },
            "text_entry_similarity_threshold": self.text_entry_similarity_threshold,
            "passing_score": self.exercise_passing_score,
            "signing": {
                "pass_score": self.signing_practice_pass_score,
                "improvement_threshold": self.signing_improvement_threshold,
            },
        }

    def get_adaptation_config(self) -> dict[str, float]:
        """Get difficulty adaptation thresholds."""
        return {
            "low_skill": self.adapt_low_skill_threshold,
            "high_skill": self.adapt_high_skill_threshold,
            "blend": self.adapt_blend_factor,
            "easy_time_factor": self.adapt_easy_time_factor,
            "hard_time_factor": self.adapt_hard_time_factor,
        }

    def get_cache_config(self) -> dict[str, Any]:
        """Get exercise cache configuration as a dictionary."""
        return {
            "max_size": self.exercise_cache_max_size,
            "max_age": self.exercise_cache_max_age_seconds,
            "cleanup_interval": self.exercise_cache_cleanup_interval_seconds,
            "auto_cleanup": self.exercise_cache_auto_cleanup,
        }

    def get_factory_config(self) -> dict[str, Any]:
        """Get generator factory configuration as a dictionary."""
        return {
            "default_strategy": self.factory_default_strategy,
            "cache_enabled": self.factory_cache_enabled,
            "max_cache_size": self.factory_max_cache_size,
        }

    def get_evolution_config(self) -> dict[str, Any]:
        """Get learner evolution configuration as a dictionary."""
        return {
            "history_limit": self.evolution_history_limit,
            "recent_window": self.evolution_recent_window,
            "side_channel_limit": self.evolution_side_channel_limit,
            "gradual_rate": self.evolution_gradual_rate,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
