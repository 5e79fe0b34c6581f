"""
Application Settings.

Centralized configuration using Pydantic Settings with environment variable loading.
Nothing is strictly required: AI normalization stays disabled until an
OpenAI API key is provided.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # AI Normalization
    # -------------------------------------------------------------------------
    openai_api_key: SecretStr | None = Field(
        default=None, description="API key for the chat-completions endpoint"
    )
    ai_provider: str = Field(default="openai", description="Normalizer provider")
    ai_model: str = Field(default="gpt-4.1-mini", description="Completion model name")
    ai_endpoint: str = Field(
        default="https://api.openai.com/v1/chat/completions",
        description="Chat-completions endpoint URL",
    )
    ai_max_batch: int = Field(
        default=25, ge=1, description="Targets sent in one completion request"
    )
    ai_max_concurrency: int = Field(
        default=10, ge=1, description="Concurrent completion requests per program"
    )
    ai_proxy: str | None = Field(
        default=None, description="Outbound proxy for completion requests"
    )
    ai_timeout_seconds: float = Field(
        default=45.0, gt=0, description="Timeout for one completion request"
    )

    # -------------------------------------------------------------------------
    # Polling
    # -------------------------------------------------------------------------
    poll_concurrency: int = Field(
        default=5, ge=1, description="Concurrent program fetches per platform"
    )
    poll_interval_hours: float = Field(
        default=6.0, gt=0, description="Hours between background poll cycles"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    @field_validator("ai_provider")
    @classmethod
    def _lower_provider(cls, value: str) -> str:
        return value.strip().lower() or "openai"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def ai_enabled(self) -> bool:
        """AI normalization is enabled once an API key is configured."""
        return bool(self.openai_api_key and self.openai_api_key.get_secret_value().strip())


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload settings if needed.
    """
    return Settings()
