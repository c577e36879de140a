"""
Main Orchestrator for finquest

This module wires the stores together and is the single entry point
callers use:
1. Build (bus -> audit logger -> stores, each handed what it needs)
2. Load persisted partitions, one at a time
3. Run user actions, saving after each successful one

DESIGN DECISION: Stores never find each other through globals.
create_app_components constructs every store exactly once and passes
handles explicitly. Cross-store reactions run through the EventBus,
synchronously, inside the user action that caused them.

Persistence is best-effort per partition. A partition that is
missing or corrupted leaves that store at its defaults and does not
stop the others from loading.
"""

import math
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Union

import structlog

from finquest.audit import AuditLogger, configure_logging
from finquest.config import Settings, get_settings
from finquest.events import EventBus
from finquest.models.gamification import ChallengeAcceptance
from finquest.models.goals import GoalInput, GoalPatch
from finquest.models.ledger import TransactionInput, TransactionPatch, TransactionType
from finquest.models.results import GoalIncomeResult, GoalResult, OperationResult, TransactionResult
from finquest.queries import PeriodSummary, SummaryBuilder
from finquest.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    StateStorageInterface,
    StorageError,
)
from finquest.stores import (
    BalanceView,
    ChallengeTracker,
    GoalBook,
    Ledger,
    PersistentStore,
    PreferencesStore,
    ProfileLedger,
    SessionStore,
)
from finquest.stores.base import Clock
from finquest.validation import InputValidator

logger = structlog.get_logger(__name__)

TOP_UP_NAME = "Balance top-up"
SEED_BALANCE_NAME = "Opening balance"
SEED_BALANCE = Decimal("245.80")
SEED_GOALS = [
    {"title": "Headphone Gamer", "target_value": "300", "current_value": "180", "category": "Tecnologia"},
    {"title": "Apostila Concurso", "target_value": "150", "current_value": "75", "category": "Educação"},
    {"title": "Viagem de férias", "target_value": "500", "current_value": "50", "category": "Lazer"},
]


class FinanceApp:
    """
    Facade over every store.

    The stores are public attributes for reads. Mutations made through
    the facade are saved to storage when they succeed; mutations made
    on a store directly are saved on the next save() call.
    """

    def __init__(
        self,
        bus: EventBus,
        ledger: Ledger,
        balance_view: BalanceView,
        goals: GoalBook,
        challenges: ChallengeTracker,
        profile: ProfileLedger,
        preferences: PreferencesStore,
        session: SessionStore,
        audit_logger: AuditLogger,
        storage: Optional[StateStorageInterface] = None,
        settings: Optional[Settings] = None,
        autosave: bool = True,
    ):
        self.bus = bus
        self.ledger = ledger
        self.balance_view = balance_view
        self.goals = goals
        self.challenges = challenges
        self.profile = profile
        self.preferences = preferences
        self.session = session
        self.audit_logger = audit_logger
        self.storage = storage
        self.autosave = autosave
        self._settings = settings or get_settings()
        self._summary = SummaryBuilder(ledger)

    @property
    def stores(self) -> list[PersistentStore]:
        return [
            self.balance_view,
            self.goals,
            self.ledger,
            self.profile,
            self.challenges,
            self.preferences,
            self.session,
        ]

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> None:
        """
        Write every store to its partition.

        Raises:
            StorageError: If a partition cannot be written
        """
        if self.storage is None:
            return
        for store in self.stores:
            self.storage.save_partition(store.partition, store.snapshot())

    def load(self) -> dict[str, bool]:
        """
        Restore every store whose partition exists and is valid.

        Returns {partition: loaded}. Partitions are not cross-checked:
        a stale balance stays until the next Ledger mutation.
        """
        loaded = {}
        if self.storage is None:
            return loaded
        for store in self.stores:
            try:
                data = self.storage.load_partition(store.partition)
                if data is not None:
                    store.restore(data)
                loaded[store.partition] = data is not None
            except StorageError as e:
                logger.warning(
                    "partition_load_failed",
                    partition=store.partition,
                    error=str(e),
                )
                loaded[store.partition] = False
        return loaded

    def _after(self, result: OperationResult) -> Any:
        if result.success and self.autosave:
            self.save()
        return result

    @property
    def is_empty(self) -> bool:
        return self.ledger.count == 0 and not self.goals.goals

    def seed_demo_data(self) -> None:
        """Opening balance and the three demo goals."""
        self.ledger.add_transaction(TransactionInput(
            name=SEED_BALANCE_NAME,
            value=SEED_BALANCE,
            type=TransactionType.INCOME,
            category=self._settings.app.top_up_category,
        ))
        for goal in SEED_GOALS:
            self.goals.add_goal(goal)
        if self.autosave:
            self.save()

    # ------------------------------------------------------------------
    # Ledger
    # ------------------------------------------------------------------

    def add_transaction(self, data: Union[TransactionInput, dict]) -> TransactionResult:
        return self._after(self.ledger.add_transaction(data))

    def remove_transaction(self, transaction_id: str) -> OperationResult:
        return self._after(self.ledger.remove_transaction(transaction_id))

    def update_transaction(
        self,
        transaction_id: str,
        patch: Union[TransactionPatch, dict],
    ) -> TransactionResult:
        return self._after(self.ledger.update_transaction(transaction_id, patch))

    def top_up_balance(self, amount: Any) -> TransactionResult:
        """
        Add money to the balance as an income transaction.

        Awards floor(amount) * top_up_points_per_unit points on success.
        """
        result = self.ledger.add_transaction({
            "name": TOP_UP_NAME,
            "value": amount,
            "type": TransactionType.INCOME,
            "category": self._settings.app.top_up_category,
        })
        if result.success:
            points = math.floor(result.transaction.value) * self._settings.gamification.top_up_points_per_unit
            if points:
                self.profile.add_points(points)
        return self._after(result)

    def summary(self, start=None, end=None) -> PeriodSummary:
        return self._summary.build(start, end)

    def monthly_breakdown(self, start=None, end=None):
        return self._summary.monthly_breakdown(start, end)

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------

    def add_goal(self, data: Union[GoalInput, dict]) -> GoalResult:
        return self._after(self.goals.add_goal(data))

    def remove_goal(self, goal_id: str) -> OperationResult:
        return self._after(self.goals.remove_goal(goal_id))

    def update_goal(self, goal_id: str, patch: Union[GoalPatch, dict]) -> GoalResult:
        return self._after(self.goals.update_goal(goal_id, patch))

    def add_income_to_goal(self, goal_id: str, amount: Any) -> GoalIncomeResult:
        return self._after(self.goals.add_income_to_goal(goal_id, amount))

    # ------------------------------------------------------------------
    # Challenges
    # ------------------------------------------------------------------

    def accept_challenge(
        self,
        challenge_id: str,
        data: Union[ChallengeAcceptance, dict, None] = None,
    ) -> OperationResult:
        """Accept a catalog challenge by id, or a custom one when data is given."""
        if data is None:
            return self._after(self.challenges.accept_from_catalog(challenge_id))
        return self._after(self.challenges.accept_challenge(challenge_id, data))

    def abandon_challenge(self, challenge_id: str) -> OperationResult:
        return self._after(self.challenges.abandon_challenge(challenge_id))

    def update_challenge_progress(self, challenge_id: str, amount: Any) -> OperationResult:
        return self._after(self.challenges.update_challenge_progress(challenge_id, amount))


def _build_storage(settings: Settings) -> StateStorageInterface:
    storage_settings = settings.storage
    if storage_settings.backend == "memory":
        return InMemoryStorage()
    return JsonFileStorage(
        data_dir=storage_settings.data_path,
        write_attempts=storage_settings.write_attempts,
    )


def create_app_components(
    storage: Optional[StateStorageInterface] = None,
    use_storage: bool = True,
    seed_demo_data: bool = False,
    clock: Optional[Clock] = None,
    settings: Optional[Settings] = None,
) -> FinanceApp:
    """
    Factory function to create all application components.

    Args:
        storage: Backend to use. Built from settings when omitted.
        use_storage: Set to False to run purely in memory without
                    loading or saving anything.
        seed_demo_data: Add the demo balance and goals when nothing
                    was loaded.
        clock: Time source shared by every store (tests pin it).
        settings: Overrides get_settings().

    Returns:
        A FinanceApp with every store constructed and loaded.
    """
    settings = settings or get_settings()
    configure_logging(debug=settings.app.debug_mode)

    bus = EventBus()
    # Global subscriber: logs each event before its handlers run
    audit_logger = AuditLogger()
    audit_logger.attach(bus)

    validator = InputValidator(
        max_transaction_value=settings.app.max_transaction_value,
        clock=clock,
    )

    balance_view = BalanceView(bus)
    ledger = Ledger(bus, validator=validator, clock=clock, settings=settings.gamification)
    goals = GoalBook(
        bus,
        ledger,
        balance_view,
        validator=validator,
        clock=clock,
        settings=settings.app,
    )
    challenges = ChallengeTracker(bus, clock=clock, settings=settings.gamification)
    profile = ProfileLedger(bus, clock=clock, settings=settings.gamification)
    preferences = PreferencesStore(bus)
    session = SessionStore(bus, settings=settings.app)

    if not use_storage:
        storage = None
    elif storage is None:
        storage = _build_storage(settings)

    app = FinanceApp(
        bus=bus,
        ledger=ledger,
        balance_view=balance_view,
        goals=goals,
        challenges=challenges,
        profile=profile,
        preferences=preferences,
        session=session,
        audit_logger=audit_logger,
        storage=storage,
        settings=settings,
        autosave=storage is not None,
    )

    app.load()
    if seed_demo_data and app.is_empty:
        app.seed_demo_data()

    logger.info(
        "app_components_created",
        storage=type(storage).__name__ if storage else None,
        started_at=datetime.now().isoformat(),
    )
    return app
