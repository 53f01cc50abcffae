"""Configuration package."""

from src.config.settings import (
    AppSettings,
    DatabaseSettings,
    GeminiSettings,
    Settings,
    TelegramSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "DatabaseSettings",
    "GeminiSettings",
    "Settings",
    "TelegramSettings",
    "get_settings",
    "validate_all_settings",
]
