"""State stores package."""

from finquest.stores.balance import BalanceView, DashboardState
from finquest.stores.base import PersistentStore
from finquest.stores.challenges import ChallengeTracker, default_catalog
from finquest.stores.goals import GoalBook
from finquest.stores.ledger import Ledger
from finquest.stores.preferences import PreferencesStore
from finquest.stores.profile import ProfileLedger
from finquest.stores.session import Registration, SessionStore, User

__all__ = [
    "BalanceView",
    "ChallengeTracker",
    "DashboardState",
    "GoalBook",
    "Ledger",
    "PersistentStore",
    "PreferencesStore",
    "ProfileLedger",
    "Registration",
    "SessionStore",
    "User",
    "default_catalog",
]
