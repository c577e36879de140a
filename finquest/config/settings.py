"""
Configuration Management for finquest

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Gamification constants (window lengths, canonical challenge ids,
the notification badge) live next to storage and app settings so
tests and deployments can override them the same way.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Persisted state configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINQUEST_STORAGE_",
        extra="ignore"
    )

    backend: str = Field(
        default="json",
        description="Storage backend: 'json' (one file per partition) or 'memory'"
    )
    data_dir: str = Field(
        default=".finquest",
        description="Directory holding the JSON partition files"
    )
    write_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times a partition write is attempted"
    )

    @field_validator('backend')
    @classmethod
    def validate_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("json", "memory"):
            raise ValueError(f"Unknown storage backend: {v}")
        return v

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)


class GamificationSettings(BaseSettings):
    """Challenge and reward configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINQUEST_GAME_",
        extra="ignore"
    )

    weekly_window_days: int = Field(
        default=7,
        ge=1,
        description="Length of the trailing window for the weekly challenge"
    )
    monthly_window_days: int = Field(
        default=30,
        ge=1,
        description="Length of the trailing window for the monthly challenge"
    )

    # Canonical challenge identifiers
    weekly_challenge_id: str = Field(default="weekly_saver")
    monthly_challenge_id: str = Field(default="monthly_saver")
    goal_master_challenge_id: str = Field(default="goal_master")
    transactions_pro_challenge_id: str = Field(default="transactions_pro")

    notification_count: int = Field(
        default=3,
        ge=0,
        description="Badge count shown on the profile (fixed in this version)"
    )
    top_up_points_per_unit: int = Field(
        default=1,
        ge=0,
        description="Reward points per whole currency unit added as balance"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FINQUEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug logging"
    )

    # Ledger conventions
    goal_transfer_category: str = Field(
        default="Metas",
        description="Category of the expense recorded when money moves into a goal"
    )
    top_up_category: str = Field(
        default="Saldo",
        description="Category of the income recorded by a balance top-up"
    )
    currency_symbol: str = Field(
        default="R$",
        description="Currency symbol used in result messages"
    )
    max_transaction_value: float = Field(
        default=10_000_000.0,
        gt=0,
        description="Largest single transaction value accepted"
    )

    # Simulated external latency (session stub only)
    simulated_delay_seconds: float = Field(
        default=1.0,
        ge=0.0,
        le=10.0,
        description="Pause applied by the login/register stub"
    )


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
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def gamification(self) -> GamificationSettings:
        return GamificationSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


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

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "gamification", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
