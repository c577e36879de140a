"""
Domain Events

Stores never reach into each other's state. When something happens
that another store cares about, the owning store publishes one of
these on the EventBus and the interested store reacts.

Who publishes / who listens:
    BalanceRecalculated   Ledger    -> BalanceView
    TransactionAdded      Ledger    -> ChallengeTracker
    GoalsProgressChanged  GoalBook  -> BalanceView
    GoalCompleted         GoalBook  -> ChallengeTracker, ProfileLedger
    ChallengeCompleted    Tracker   -> ProfileLedger

Everything else is published for the audit log only.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from finquest.models.gamification import AcceptedChallenge, Achievement
from finquest.models.goals import Goal
from finquest.models.ledger import Transaction
from finquest.models.results import ErrorCode


class DomainEventType(str, Enum):
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_REMOVED = "transaction_removed"
    TRANSACTION_UPDATED = "transaction_updated"
    BALANCE_RECALCULATED = "balance_recalculated"
    BALANCE_DEBITED = "balance_debited"
    GOALS_PROGRESS_CHANGED = "goals_progress_changed"
    GOAL_FUNDED = "goal_funded"
    GOAL_COMPLETED = "goal_completed"
    CHALLENGE_ACCEPTED = "challenge_accepted"
    CHALLENGE_ABANDONED = "challenge_abandoned"
    CHALLENGE_COMPLETED = "challenge_completed"
    POINTS_CHANGED = "points_changed"
    ACHIEVEMENT_UNLOCKED = "achievement_unlocked"
    OPERATION_REJECTED = "operation_rejected"


class DomainEvent(BaseModel):
    """Base class of everything published on the bus."""

    event_type: ClassVar[DomainEventType]

    event_id: UUID = Field(default_factory=uuid4)
    occurred_at: datetime = Field(default_factory=datetime.now)

    def describe(self) -> str:
        return self.event_type.value.replace("_", " ")


class TransactionAdded(DomainEvent):
    """
    A transaction entered the ledger.

    Window savings are computed by the Ledger at publish time, from
    scratch, including this transaction.
    """
    event_type: ClassVar[DomainEventType] = DomainEventType.TRANSACTION_ADDED

    transaction: Transaction
    balance: Decimal
    transaction_count: int
    weekly_savings: Decimal
    monthly_savings: Decimal

    def describe(self) -> str:
        return f"Transaction added: {self.transaction.name} ({self.transaction.type.value} {self.transaction.value})"


class TransactionRemoved(DomainEvent):
    event_type: ClassVar[DomainEventType] = DomainEventType.TRANSACTION_REMOVED

    transaction: Transaction
    balance: Decimal
    transaction_count: int


class TransactionUpdated(DomainEvent):
    event_type: ClassVar[DomainEventType] = DomainEventType.TRANSACTION_UPDATED

    transaction: Transaction
    balance: Decimal


class BalanceRecalculated(DomainEvent):
    event_type: ClassVar[DomainEventType] = DomainEventType.BALANCE_RECALCULATED

    balance: Decimal
    transaction_count: int

    def describe(self) -> str:
        return f"Balance recalculated: {self.balance}"


class BalanceDebited(DomainEvent):
    event_type: ClassVar[DomainEventType] = DomainEventType.BALANCE_DEBITED

    amount: Decimal
    balance: Decimal


class GoalsProgressChanged(DomainEvent):
    event_type: ClassVar[DomainEventType] = DomainEventType.GOALS_PROGRESS_CHANGED

    progress: int


class GoalFunded(DomainEvent):
    event_type: ClassVar[DomainEventType] = DomainEventType.GOAL_FUNDED

    goal: Goal
    amount_added: Decimal

    def describe(self) -> str:
        return f"Goal funded: {self.goal.title} +{self.amount_added}"


class GoalCompleted(DomainEvent):
    event_type: ClassVar[DomainEventType] = DomainEventType.GOAL_COMPLETED

    goal: Goal
    completed_goals: int = Field(..., ge=1, description="Completed goals after this one")

    def describe(self) -> str:
        return f"Goal completed: {self.goal.title}"


class ChallengeAccepted(DomainEvent):
    event_type: ClassVar[DomainEventType] = DomainEventType.CHALLENGE_ACCEPTED

    challenge: AcceptedChallenge


class ChallengeAbandoned(DomainEvent):
    event_type: ClassVar[DomainEventType] = DomainEventType.CHALLENGE_ABANDONED

    challenge_id: str


class ChallengeCompleted(DomainEvent):
    event_type: ClassVar[DomainEventType] = DomainEventType.CHALLENGE_COMPLETED

    challenge: AcceptedChallenge

    def describe(self) -> str:
        return f"Challenge completed: {self.challenge.title} (+{self.challenge.reward} points)"


class PointsChanged(DomainEvent):
    event_type: ClassVar[DomainEventType] = DomainEventType.POINTS_CHANGED

    delta: int
    points: int


class AchievementUnlocked(DomainEvent):
    event_type: ClassVar[DomainEventType] = DomainEventType.ACHIEVEMENT_UNLOCKED

    achievement: Achievement

    def describe(self) -> str:
        return f"Achievement unlocked: {self.achievement.title}"


class OperationRejected(DomainEvent):
    """A business rule refused an operation. Nothing changed."""
    event_type: ClassVar[DomainEventType] = DomainEventType.OPERATION_REJECTED

    operation: str
    error: ErrorCode
    message: str
    entity_id: Optional[str] = None

    def describe(self) -> str:
        return f"{self.operation} rejected ({self.error.value}): {self.message}"
