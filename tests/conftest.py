"""
Shared fixtures.

Every test gets its own bus and stores, a pinned clock, and settings
read from a clean environment. Nothing touches the real disk unless a
test asks for tmp_path.
"""

import pytest

from finquest.config import AppSettings, GamificationSettings, get_settings
from finquest.events import EventBus
from finquest.orchestrator import create_app_components
from finquest.services.storage import InMemoryStorage
from finquest.stores import BalanceView, ChallengeTracker, GoalBook, Ledger, ProfileLedger
from finquest.validation import InputValidator

from factories import FixedClock


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch, tmp_path):
    """Isolate every test from the developer's environment and .env."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("FINQUEST_SIMULATED_DELAY_SECONDS", "0")
    monkeypatch.setenv("FINQUEST_STORAGE_BACKEND", "memory")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def game_settings():
    return GamificationSettings()


@pytest.fixture
def app_settings():
    return AppSettings(simulated_delay_seconds=0)


@pytest.fixture
def validator(clock):
    return InputValidator(max_transaction_value=10_000_000, clock=clock)


@pytest.fixture
def balance_view(bus):
    return BalanceView(bus)


@pytest.fixture
def ledger(bus, validator, clock, game_settings, balance_view):
    return Ledger(bus, validator=validator, clock=clock, settings=game_settings)


@pytest.fixture
def goal_book(bus, ledger, balance_view, validator, clock, app_settings):
    return GoalBook(
        bus,
        ledger,
        balance_view,
        validator=validator,
        clock=clock,
        settings=app_settings,
    )


@pytest.fixture
def tracker(bus, clock, game_settings):
    return ChallengeTracker(bus, clock=clock, settings=game_settings)


@pytest.fixture
def profile(bus, clock, game_settings):
    return ProfileLedger(bus, clock=clock, settings=game_settings)


@pytest.fixture
def stores(balance_view, ledger, goal_book, tracker, profile):
    """All five core stores wired on one bus."""
    return {
        "balance": balance_view,
        "ledger": ledger,
        "goals": goal_book,
        "challenges": tracker,
        "profile": profile,
    }


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def app(storage, clock):
    return create_app_components(storage=storage, clock=clock)
