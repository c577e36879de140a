"""
Data Models Package

This package contains all Pydantic models used in finquest.
All data flowing between stores must conform to these schemas.
"""

from finquest.models.audit import AuditEvent, AuditSeverity
from finquest.models.events import (
    AchievementUnlocked,
    BalanceDebited,
    BalanceRecalculated,
    ChallengeAbandoned,
    ChallengeAccepted,
    ChallengeCompleted,
    DomainEvent,
    DomainEventType,
    GoalCompleted,
    GoalFunded,
    GoalsProgressChanged,
    OperationRejected,
    PointsChanged,
    TransactionAdded,
    TransactionRemoved,
    TransactionUpdated,
)
from finquest.models.gamification import (
    AcceptedChallenge,
    Achievement,
    AchievementInput,
    ChallengeAcceptance,
    ChallengeDefinition,
    ChallengeKind,
    ChallengeStatus,
    ChallengeView,
    Profile,
)
from finquest.models.goals import Goal, GoalInput, GoalPatch
from finquest.models.ledger import (
    Transaction,
    TransactionInput,
    TransactionPatch,
    TransactionType,
)
from finquest.models.money import Money, format_money, to_money
from finquest.models.results import (
    ErrorCode,
    GoalIncomeResult,
    GoalResult,
    OperationResult,
    TransactionResult,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    # Ledger models
    "Transaction",
    "TransactionInput",
    "TransactionPatch",
    "TransactionType",
    # Goal models
    "Goal",
    "GoalInput",
    "GoalPatch",
    # Gamification models
    "AcceptedChallenge",
    "Achievement",
    "AchievementInput",
    "ChallengeAcceptance",
    "ChallengeDefinition",
    "ChallengeKind",
    "ChallengeStatus",
    "ChallengeView",
    "Profile",
    # Results
    "ErrorCode",
    "GoalIncomeResult",
    "GoalResult",
    "OperationResult",
    "TransactionResult",
    "ValidationIssue",
    "ValidationResult",
    # Audit
    "AuditEvent",
    "AuditSeverity",
    # Events
    "AchievementUnlocked",
    "BalanceDebited",
    "BalanceRecalculated",
    "ChallengeAbandoned",
    "ChallengeAccepted",
    "ChallengeCompleted",
    "DomainEvent",
    "DomainEventType",
    "GoalCompleted",
    "GoalFunded",
    "GoalsProgressChanged",
    "OperationRejected",
    "PointsChanged",
    "TransactionAdded",
    "TransactionRemoved",
    "TransactionUpdated",
    # Money
    "Money",
    "format_money",
    "to_money",
]
