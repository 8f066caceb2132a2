"""
Configuration Management for MoneyTrack

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The calculation core never reads these values on its own; the flows and
validators pass them in as explicit arguments so the core stays pure.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Tunables for the calculation and recurrence engine."""

    model_config = SettingsConfigDict(
        env_prefix="MONEYTRACK_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    max_recurring_occurrences: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Upper bound on occurrences materialized per rule in one run"
    )
    near_limit_percentage: float = Field(
        default=80.0,
        ge=0.0,
        le=100.0,
        description="Budget usage (percent) at which a budget counts as near its limit"
    )
    upcoming_occurrences_count: int = Field(
        default=5,
        ge=1,
        le=365,
        description="Default number of dates in the upcoming-occurrences preview"
    )
    monthly_trend_months: int = Field(
        default=6,
        ge=1,
        le=120,
        description="Default number of months in the monthly trend"
    )
    top_categories_limit: int = Field(
        default=5,
        ge=1,
        description="How many categories the top-spending list returns"
    )
    future_date_tolerance_days: int = Field(
        default=366,
        ge=0,
        description="How many days in the future a transaction date can be before it is flagged"
    )


class PreferenceSettings(BaseSettings):
    """Defaults applied when the stored settings record has no value yet."""

    model_config = SettingsConfigDict(
        env_prefix="MONEYTRACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    default_currency: str = Field(
        default="IDR",
        min_length=3,
        max_length=3,
        description="ISO currency code used as a display label"
    )
    default_language: str = Field(
        default="id",
        pattern="^(en|id)$",
        description="Language for generated text"
    )

    @field_validator('default_currency')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.upper()


class LoggingSettings(BaseSettings):
    """structlog output configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MONEYTRACK_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        description="Minimum log level"
    )
    json_format: bool = Field(
        default=True,
        description="Render log lines as JSON (otherwise human-readable console output)"
    )

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def engine(self) -> EngineSettings:
        return EngineSettings()

    @property
    def preferences(self) -> PreferenceSettings:
        return PreferenceSettings()

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with an
    additional "<name>_error" entry for every invalid section.
    """
    results = {}

    settings = get_settings()

    for name in ("engine", "preferences", "logging"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
