"""Configuration package."""

from moneytrack.config.settings import (
    EngineSettings,
    LoggingSettings,
    PreferenceSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "EngineSettings",
    "LoggingSettings",
    "PreferenceSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
