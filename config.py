"""
Configuration settings for the adaptive tutor engine.

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
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///./adaptive_tutor.db",
        description="SQLAlchemy connection string for the performance store",
    )
    store_retry_attempts: int = Field(
        default=3,
        description="Read-modify-write attempts before a conflicting update is abandoned",
    )

    # ========================================
    # Question Generation Service
    # ========================================
    question_service_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of the question generation service",
    )
    question_service_api_key: str = Field(
        default="",
        description="Bearer token for the question generation service",
    )
    question_service_timeout_ms: int = Field(
        default=30000,
        description="Request timeout in milliseconds",
    )
    question_service_retry_attempts: int = Field(
        default=3,
        description="Retry attempts on timeouts and 5xx responses",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # ========================================
    # Adaptive Quiz
    # ========================================
    default_question_count: int = Field(
        default=10,
        description="Questions per adaptive quiz when not specified",
    )
    default_study_weeks: int = Field(
        default=8,
        description="Study plan timeframe in weeks when not specified",
    )

    # ========================================
    # Tutoring Flow
    # ========================================
    flow_enable_adaptive_difficulty: bool = Field(
        default=True,
        description="Let the flow controller suggest easier/harder explanations",
    )
    flow_max_hints_per_step: int = Field(
        default=3,
        description="Hints allowed per step before an alternative approach is offered",
    )
    flow_understanding_threshold: float = Field(
        default=70.0,
        description="Understanding progress (0-100) required to leave the understanding step",
    )
    flow_implementation_threshold: float = Field(
        default=60.0,
        description="Implementation progress (0-100) required to leave the implementation step",
    )
    flow_optimization_threshold: float = Field(
        default=50.0,
        description="Optimization progress (0-100) below which optimization counts as a struggle",
    )
    flow_requires_understanding: bool = Field(
        default=True,
        description="Block step advancement until the latest message shows understanding",
    )
    flow_allow_skip_steps: bool = Field(
        default=False,
        description="Allow skipping tutoring steps",
    )
    flow_auto_advance_on_success: bool = Field(
        default=True,
        description="Advance automatically when step criteria are met",
    )

    # ========================================
    # Session Storage
    # ========================================
    session_dir: str = Field(
        default="~/.adaptive_tutor/sessions",
        description="Directory for exported tutoring sessions",
    )
    max_stored_sessions: int = Field(
        default=10,
        description="Tutoring sessions kept in the session index",
    )
    session_retention_days: int = Field(
        default=30,
        description="Sessions inactive for longer than this are cleaned up",
    )

    # ========================================
    # Helper Methods
    # ========================================
    def get_flow_config(self) -> dict[str, Any]:
        """Get tutoring flow configuration as a dictionary."""
        return {
            "enable_adaptive_difficulty": self.flow_enable_adaptive_difficulty,
            "max_hints_per_step": self.flow_max_hints_per_step,
            "progress_thresholds": {
                "understanding": self.flow_understanding_threshold,
                "implementation": self.flow_implementation_threshold,
                "optimization": self.flow_optimization_threshold,
            },
            "step_transition_rules": {
                "requires_understanding": self.flow_requires_understanding,
                "allow_skip_steps": self.flow_allow_skip_steps,
                "auto_advance_on_success": self.flow_auto_advance_on_success,
            },
        }

    def get_question_service_config(self) -> dict[str, Any]:
        """Get question service client configuration as a dictionary."""
        return {
            "api_url": self.question_service_url,
            "api_key": self.question_service_api_key,
            "timeout_ms": self.question_service_timeout_ms,
            "retry_attempts": self.question_service_retry_attempts,
        }

    def has_question_service_configured(self) -> bool:
        """Check if the question service has credentials."""
        return bool(self.question_service_url and self.question_service_api_key)

    def get_session_dir(self) -> Path:
        """Resolve the session directory, expanding the user home."""
        return Path(self.session_dir).expanduser()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
