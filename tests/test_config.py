"""Tests for settings loading."""

import pytest
from pydantic import ValidationError

from finquest.config import (
    AppSettings,
    GamificationSettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)


class TestSettings:
    """Tests for environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("FINQUEST_STORAGE_BACKEND")
        app = AppSettings()
        game = GamificationSettings()
        assert app.goal_transfer_category == "Metas"
        assert app.currency_symbol == "R$"
        assert game.weekly_window_days == 7
        assert game.monthly_window_days == 30
        assert game.notification_count == 3
        assert StorageSettings().backend == "json"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("FINQUEST_GAME_WEEKLY_WINDOW_DAYS", "14")
        monkeypatch.setenv("FINQUEST_GOAL_TRANSFER_CATEGORY", "Goals")
        assert GamificationSettings().weekly_window_days == 14
        assert AppSettings().goal_transfer_category == "Goals"

    def test_backend_is_normalized(self, monkeypatch):
        monkeypatch.setenv("FINQUEST_STORAGE_BACKEND", " Memory ")
        assert StorageSettings().backend == "memory"

    def test_unknown_backend_rejected(self, monkeypatch):
        monkeypatch.setenv("FINQUEST_STORAGE_BACKEND", "sqlite")
        with pytest.raises(ValidationError):
            StorageSettings()

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_validate_all_settings(self, monkeypatch):
        assert validate_all_settings() == {"storage": True, "gamification": True, "app": True}

        monkeypatch.setenv("FINQUEST_STORAGE_BACKEND", "sqlite")
        results = validate_all_settings()
        assert results["storage"] is False
        assert "storage_error" in results
