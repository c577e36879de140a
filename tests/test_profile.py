"""Tests for the ProfileLedger, preferences and the session stub."""

import asyncio
from datetime import date

import pytest
from pydantic import ValidationError

from finquest.models import ErrorCode, PointsChanged
from finquest.stores import PreferencesStore, ProfileLedger, SessionStore

from factories import FixedClock


class TestPoints:
    """Tests for awarding and removing points."""

    def test_add_and_remove(self, profile):
        profile.add_points(120)
        profile.remove_points(20)
        assert profile.points == 100

    def test_points_floor_at_zero(self, profile):
        profile.add_points(10)
        result = profile.remove_points(50)
        assert result.success
        assert profile.points == 0

    @pytest.mark.parametrize("bad", [-1, 1.5, "10", True])
    def test_rejects_bad_amounts(self, profile, bad):
        profile.add_points(5)
        assert profile.add_points(bad).error == ErrorCode.VALIDATION_ERROR
        assert profile.remove_points(bad).error == ErrorCode.VALIDATION_ERROR
        assert profile.points == 5

    def test_publishes_only_real_changes(self, bus, profile):
        changes = []
        bus.subscribe(PointsChanged, changes.append)
        profile.add_points(0)
        profile.add_points(7)
        profile.remove_points(10)
        profile.remove_points(3)
        assert [(c.delta, c.points) for c in changes] == [(7, 7), (-7, 0)]


class TestAchievements:
    """Tests for the achievement log."""

    def test_newest_first_with_today(self, profile, clock):
        profile.add_achievement({"title": "First"})
        profile.add_achievement({"title": "Second", "icon": "star"})

        titles = [a.title for a in profile.achievements]
        assert titles == ["Second", "First"]
        assert profile.achievements[0].date == clock.now.date()
        assert profile.achievements[0].icon == "star"
        assert profile.achievements[1].icon == "trophy"

    def test_rejects_missing_title(self, profile):
        assert profile.add_achievement({"description": "no title"}).error == ErrorCode.VALIDATION_ERROR
        assert profile.achievements == []

    def test_notification_count_is_configured(self, profile):
        assert profile.get_notification_count() == 3

    def test_round_trip(self, bus, profile):
        profile.add_points(42)
        profile.add_achievement({"title": "Saved"})

        other = ProfileLedger(bus, clock=FixedClock())
        other.restore(profile.snapshot())

        assert other.points == 42
        assert other.achievements == profile.achievements
        assert other.achievements[0].date == date(2024, 6, 15)


class TestPreferences:
    """Tests for UI preferences."""

    def test_defaults(self, bus):
        prefs = PreferencesStore(bus)
        assert prefs.dark_mode is False
        assert prefs.sounds_enabled is True

    def test_toggle_and_set(self, bus):
        prefs = PreferencesStore(bus)
        assert prefs.toggle_dark_mode() is True
        assert prefs.toggle_sounds() is False
        prefs.set_dark_mode(False)
        prefs.set_sounds_enabled(True)
        assert (prefs.dark_mode, prefs.sounds_enabled) == (False, True)

    def test_round_trip(self, bus):
        prefs = PreferencesStore(bus)
        prefs.toggle_dark_mode()
        other = PreferencesStore(bus)
        other.restore(prefs.snapshot())
        assert other.dark_mode is True


class TestSession:
    """Tests for the login/register stub."""

    def test_login_accepts_anything(self, bus, app_settings):
        session = SessionStore(bus, settings=app_settings)

        user = asyncio.run(session.login("maria.silva@example.com", "whatever"))

        assert session.is_authenticated
        assert user.name == "Maria Silva"
        assert session.user.email == "maria.silva@example.com"

    def test_login_rejects_malformed_email(self, bus, app_settings):
        session = SessionStore(bus, settings=app_settings)
        with pytest.raises(ValidationError):
            asyncio.run(session.login("not-an-email", "x"))
        assert not session.is_authenticated

    def test_register_does_not_keep_password(self, bus, app_settings):
        session = SessionStore(bus, settings=app_settings)

        asyncio.run(session.register({
            "email": "ana@example.com",
            "name": "Ana",
            "password": "secret",
            "age": 30,
        }))

        assert session.user.name == "Ana"
        assert session.user.age == 30
        assert "secret" not in str(session.snapshot())

    def test_logout_clears_user(self, bus, app_settings):
        session = SessionStore(bus, settings=app_settings)
        asyncio.run(session.login("ana@example.com", "x"))
        session.logout()
        assert not session.is_authenticated
        assert session.user is None

    def test_set_user(self, bus, app_settings):
        session = SessionStore(bus, settings=app_settings)
        session.set_user({"email": "ana@example.com", "name": "Ana"})
        assert session.user.name == "Ana"
        assert not session.is_authenticated
