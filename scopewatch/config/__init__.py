"""
Configuration Management.

This module provides centralized configuration using Pydantic Settings:

- settings: Main Settings class with environment variable loading
- log_setup: structlog configuration for the whole process

Configuration sources (in order of precedence):
1. Environment variables
2. .env file
3. Default values

Example:
    from scopewatch.config import configure_logging, get_settings

    settings = get_settings()
    configure_logging(settings)
"""

from scopewatch.config.settings import Settings, get_settings
from scopewatch.config.log_setup import configure_logging

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
]
