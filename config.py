"""
Configuration settings for the LearnHub AI service.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
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
    # Cloud Provider (Groq, OpenAI-compatible)
    # ========================================
    groq_api_key: str = Field(
        default="",
        description="Groq API key (BYOK); overridden by the stored preference",
    )
    groq_api_url: str = Field(
        default="https://api.groq.com/openai/v1/chat/completions",
        description="Chat completions endpoint",
    )
    groq_model: str = Field(
        default="openai/gpt-oss-20b",
        description="Primary text model",
    )
    groq_vision_model: str = Field(
        default="meta-llama/llama-4-maverick-17b-128e-instruct",
        description="Primary vision (multimodal) model",
    )
    request_timeout_seconds: float = Field(
        default=60.0,
        description="HTTP timeout for provider calls",
    )

    # ─── Throttling ─────────────────────────────────────────────────────────────
    rate_limit_delay_min_ms: int = Field(
        default=500,
        description="Lower bound of the randomised pre-request delay",
    )
    rate_limit_delay_max_ms: int = Field(
        default=1500,
        description="Upper bound of the randomised pre-request delay",
    )

    # ========================================
    # Provider Selection
    # ========================================
    model_preference: Literal["automatic", "cloud_only"] = Field(
        default="automatic",
        description="Default provider preference before the user picks one",
    )

    # ========================================
    # On-Device (Local) Model
    # ========================================
    local_model_enabled: bool = Field(
        default=False,
        description="Allow the local model runtime to serve requests",
    )
    local_model_name: str = Field(
        default="llama3.2",
        description="Model served by the local runtime",
    )
    local_model_host: str = Field(
        default="http://127.0.0.1:11434",
        description="Local model runtime URL",
    )

    # ========================================
    # Preferences
    # ========================================
    preferences_path: Path = Field(
        default=Path.home() / ".learnhub" / "preferences.json",
        description="JSON file holding user model preferences",
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

    # ========================================
    # Helper Methods
    # ========================================
    def get_rate_limit_delay(self) -> tuple[float, float]:
        """Return the pre-request delay bounds in seconds."""
        low = max(0, self.rate_limit_delay_min_ms) / 1000.0
        high = max(low, self.rate_limit_delay_max_ms / 1000.0)
        return low, high


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()
