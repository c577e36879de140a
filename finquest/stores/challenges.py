"""
ChallengeTracker - accepted challenges and completion detection.

At most one entry per challenge_id. Accepting twice is a no-op;
abandoning deletes the entry. ACTIVE -> COMPLETED is one-way and a
completed entry is never modified again.

Automatic progress:
    weekly/monthly savings  <- TransactionAdded (window sums, recomputed
                               from scratch; may go DOWN before completion
                               when old transactions leave the window)
    transactions logged     <- TransactionAdded (transaction count)
    goals completed         <- GoalCompleted (completed goal count)

Every ACTIVE -> COMPLETED transition publishes ChallengeCompleted,
which ProfileLedger turns into points and an achievement.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional, Union

import structlog
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from finquest.config import GamificationSettings, get_settings
from finquest.events import EventBus
from finquest.models.events import (
    ChallengeAbandoned,
    ChallengeAccepted,
    ChallengeCompleted,
    GoalCompleted,
    TransactionAdded,
)
from finquest.models.gamification import (
    AcceptedChallenge,
    ChallengeAcceptance,
    ChallengeDefinition,
    ChallengeKind,
    ChallengeStatus,
    ChallengeView,
)
from finquest.models.money import ZERO
from finquest.models.results import ErrorCode, OperationResult
from finquest.stores.base import Clock, PersistentStore

logger = structlog.get_logger(__name__)


def default_catalog(settings: GamificationSettings) -> list[ChallengeDefinition]:
    return [
        ChallengeDefinition(
            id=settings.weekly_challenge_id,
            title="Weekly Saver",
            description="Save R$ 50 this week",
            target=Decimal("50"),
            reward=100,
            kind=ChallengeKind.WEEKLY_SAVINGS,
            icon="wallet",
        ),
        ChallengeDefinition(
            id=settings.monthly_challenge_id,
            title="Monthly Saver",
            description="Save R$ 200 this month",
            target=Decimal("200"),
            reward=500,
            kind=ChallengeKind.MONTHLY_SAVINGS,
            icon="target",
        ),
        ChallengeDefinition(
            id=settings.goal_master_challenge_id,
            title="Goal Master",
            description="Complete 3 goals",
            target=Decimal("3"),
            reward=300,
            kind=ChallengeKind.GOALS_COMPLETED,
            icon="trophy",
        ),
        ChallengeDefinition(
            id=settings.transactions_pro_challenge_id,
            title="Transactions Pro",
            description="Log 10 transactions",
            target=Decimal("10"),
            reward=150,
            kind=ChallengeKind.TRANSACTIONS_LOGGED,
            icon="trending-up",
        ),
    ]


class ChallengeTrackerState(BaseModel):
    accepted: list[AcceptedChallenge] = Field(default_factory=list)


class ChallengeTracker(PersistentStore):
    partition = "challenges-storage"

    def __init__(
        self,
        bus: EventBus,
        catalog: Optional[list[ChallengeDefinition]] = None,
        clock: Optional[Clock] = None,
        settings: Optional[GamificationSettings] = None,
    ):
        super().__init__(bus, clock)
        self._settings = settings or get_settings().gamification
        self._catalog = {c.id: c for c in (catalog or default_catalog(self._settings))}
        self._accepted: dict[str, AcceptedChallenge] = {}

        bus.subscribe(TransactionAdded, self._on_transaction_added)
        bus.subscribe(GoalCompleted, self._on_goal_completed)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, challenge_id: str) -> Optional[AcceptedChallenge]:
        entry = self._accepted.get(challenge_id)
        return entry.model_copy() if entry else None

    @property
    def accepted(self) -> list[AcceptedChallenge]:
        return [c.model_copy() for c in self._accepted.values()]

    def active_challenges(self) -> list[AcceptedChallenge]:
        return [c for c in self.accepted if c.status == ChallengeStatus.ACTIVE]

    def completed_challenges(self) -> list[AcceptedChallenge]:
        return [c for c in self.accepted if c.status == ChallengeStatus.COMPLETED]

    def available_challenges(self) -> list[ChallengeView]:
        """Catalog entries with the user's acceptance, if any."""
        return [
            ChallengeView(definition=d, accepted=self.get(d.id))
            for d in self._catalog.values()
        ]

    # ------------------------------------------------------------------
    # Acceptance
    # ------------------------------------------------------------------

    def accept_challenge(
        self,
        challenge_id: str,
        data: Union[ChallengeAcceptance, ChallengeDefinition, dict],
    ) -> OperationResult:
        """Idempotent: an already accepted challenge is left as it is."""
        existing = self._accepted.get(challenge_id)
        if existing is not None:
            return OperationResult.ok(
                f"Challenge '{existing.title}' already accepted",
                entity_id=challenge_id,
            )

        try:
            if isinstance(data, ChallengeDefinition):
                data = data.model_dump(include={"title", "target", "reward"})
            acceptance = ChallengeAcceptance.model_validate(data)
        except PydanticValidationError as e:
            return self._reject(
                OperationResult,
                "accept_challenge",
                ErrorCode.VALIDATION_ERROR,
                str(e),
                entity_id=challenge_id,
            )

        entry = AcceptedChallenge(
            challenge_id=challenge_id,
            title=acceptance.title,
            target=acceptance.target,
            reward=acceptance.reward,
            accepted_at=self._clock(),
        )
        self._accepted[challenge_id] = entry
        self._bus.publish(ChallengeAccepted(challenge=entry))
        return OperationResult.ok(f"Challenge '{entry.title}' accepted", entity_id=challenge_id)

    def accept_from_catalog(self, challenge_id: str) -> OperationResult:
        definition = self._catalog.get(challenge_id)
        if definition is None:
            return self._reject(
                OperationResult,
                "accept_challenge",
                ErrorCode.NOT_FOUND,
                f"Challenge {challenge_id} is not in the catalog",
                entity_id=challenge_id,
            )
        return self.accept_challenge(challenge_id, definition)

    def abandon_challenge(self, challenge_id: str) -> OperationResult:
        if challenge_id not in self._accepted:
            return self._reject(
                OperationResult,
                "abandon_challenge",
                ErrorCode.NOT_FOUND,
                f"Challenge {challenge_id} was not accepted",
                entity_id=challenge_id,
            )
        del self._accepted[challenge_id]
        self._bus.publish(ChallengeAbandoned(challenge_id=challenge_id))
        return OperationResult.ok(f"Challenge {challenge_id} abandoned", entity_id=challenge_id)

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    def update_challenge_progress(self, challenge_id: str, amount: Decimal) -> OperationResult:
        """Add `amount` to an ACTIVE challenge, capped at its target."""
        entry = self._accepted.get(challenge_id)
        if entry is None:
            return self._reject(
                OperationResult,
                "update_challenge_progress",
                ErrorCode.NOT_FOUND,
                f"Challenge {challenge_id} was not accepted",
                entity_id=challenge_id,
            )
        if entry.status == ChallengeStatus.COMPLETED:
            return OperationResult.ok(
                f"Challenge '{entry.title}' is already completed",
                entity_id=challenge_id,
            )

        try:
            amount = Decimal(str(amount))
        except InvalidOperation:
            amount = None
        if amount is None or not amount.is_finite() or amount < 0:
            return self._reject(
                OperationResult,
                "update_challenge_progress",
                ErrorCode.VALIDATION_ERROR,
                "Progress amount must be a non-negative number",
                entity_id=challenge_id,
            )

        updated = self._set_progress(entry, entry.current + amount)
        return OperationResult.ok(
            f"Challenge '{updated.title}' at {updated.current}/{updated.target}",
            entity_id=challenge_id,
        )

    def sync_progress(self, challenge_id: str, value: Decimal) -> Optional[AcceptedChallenge]:
        """
        Overwrite an ACTIVE challenge's progress with a freshly computed value.

        Used by the automatic hooks. Returns the updated entry, or None if
        the challenge isn't accepted or is already completed.
        """
        entry = self._accepted.get(challenge_id)
        if entry is None or entry.status == ChallengeStatus.COMPLETED:
            return None
        return self._set_progress(entry, value)

    def _set_progress(self, entry: AcceptedChallenge, value: Decimal) -> AcceptedChallenge:
        current = min(max(value, ZERO), entry.target)
        changes = {"current": current}
        completed = current >= entry.target
        if completed:
            changes["status"] = ChallengeStatus.COMPLETED
            changes["completed_at"] = self._clock()

        updated = entry.model_copy(update=changes)
        self._accepted[entry.challenge_id] = updated

        if completed:
            logger.info("challenge_completed", challenge_id=entry.challenge_id, reward=entry.reward)
            self._bus.publish(ChallengeCompleted(challenge=updated))
        return updated

    def _on_transaction_added(self, event: TransactionAdded) -> None:
        s = self._settings
        self.sync_progress(s.weekly_challenge_id, event.weekly_savings)
        self.sync_progress(s.monthly_challenge_id, event.monthly_savings)
        self.sync_progress(s.transactions_pro_challenge_id, Decimal(event.transaction_count))

    def _on_goal_completed(self, event: GoalCompleted) -> None:
        self.sync_progress(self._settings.goal_master_challenge_id, Decimal(event.completed_goals))

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def snapshot(self) -> dict:
        return ChallengeTrackerState(accepted=list(self._accepted.values())).model_dump(mode="json")

    def restore(self, data: dict) -> None:
        state = self._load_state(ChallengeTrackerState, data)
        self._accepted = {c.challenge_id: c for c in state.accepted}
