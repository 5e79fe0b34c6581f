"""Unit tests for settings and logging configuration."""

import pytest
import structlog
from pydantic import ValidationError

from scopewatch.config import Settings, configure_logging, get_settings
from scopewatch.normalization import NormalizerConfig


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ("OPENAI_API_KEY", "AI_PROVIDER", "AI_MAX_BATCH", "AI_PROXY", "APP_ENV", "LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.ai_provider == "openai"
        assert settings.ai_model == "gpt-4.1-mini"
        assert settings.ai_max_batch == 25
        assert settings.ai_max_concurrency == 10
        assert settings.poll_concurrency == 5
        assert settings.poll_interval_hours == 6.0
        assert settings.ai_enabled is False
        assert settings.is_production is False

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("AI_PROVIDER", " OpenAI ")
        monkeypatch.setenv("AI_MAX_BATCH", "10")

        settings = Settings(_env_file=None)

        assert settings.ai_enabled is True
        assert settings.ai_provider == "openai"
        assert settings.ai_max_batch == 10
        assert settings.openai_api_key.get_secret_value() == "sk-env"

    def test_rejects_invalid_batch(self, monkeypatch):
        monkeypatch.setenv("AI_MAX_BATCH", "0")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_normalizer_config_from_settings(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("AI_PROXY", "http://127.0.0.1:8080")

        config = NormalizerConfig.from_settings(Settings(_env_file=None))

        assert config.api_key == "sk-env"
        assert config.proxy == "http://127.0.0.1:8080"
        assert config.max_batch == 25
        assert config.timeout == 45.0

    def test_normalizer_config_without_key(self):
        config = NormalizerConfig.from_settings(Settings(_env_file=None))

        assert config.api_key == ""


class TestConfigureLogging:
    """Tests for structlog setup."""

    def test_json_renderer_outside_development(self):
        configure_logging(Settings(_env_file=None, app_env="production", log_level="WARNING"))
        try:
            processors = structlog.get_config()["processors"]
            assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        finally:
            structlog.reset_defaults()

    def test_console_renderer_in_development(self):
        configure_logging(Settings(_env_file=None, app_env="development"))
        try:
            processors = structlog.get_config()["processors"]
            assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
        finally:
            structlog.reset_defaults()
