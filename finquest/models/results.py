"""
Operation Results

Business-rule failures are values, not exceptions. Every fallible
store operation returns one of these, and a failed result always
means nothing was changed.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from finquest.models.goals import Goal
from finquest.models.ledger import Transaction
from finquest.models.money import ZERO, Money


class ErrorCode(str, Enum):
    """Why an operation was rejected."""
    NOT_FOUND = "not_found"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    GOAL_ALREADY_COMPLETE = "goal_already_complete"
    VALIDATION_ERROR = "validation_error"


class OperationResult(BaseModel):
    """Outcome of a fallible store operation."""

    success: bool
    message: str = ""
    error: Optional[ErrorCode] = None
    entity_id: Optional[str] = None

    @classmethod
    def ok(cls, message: str = "", **kwargs) -> "OperationResult":
        return cls(success=True, message=message, **kwargs)

    @classmethod
    def fail(cls, error: ErrorCode, message: str, **kwargs) -> "OperationResult":
        return cls(success=False, error=error, message=message, **kwargs)


class TransactionResult(OperationResult):
    transaction: Optional[Transaction] = None


class GoalResult(OperationResult):
    goal: Optional[Goal] = None


class GoalIncomeResult(OperationResult):
    """Outcome of moving balance into a goal."""

    new_value: Optional[Money] = Field(
        default=None,
        description="Goal's current_value after the call"
    )
    amount_added: Money = Field(
        default=ZERO,
        description="Amount actually applied (capped at the goal's headroom)"
    )


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Result of validating caller input before it reaches a store."""

    validated_at: datetime = Field(default_factory=datetime.now)
    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(i.severity == "error" for i in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "warning"]

    def summary(self) -> str:
        """Error messages joined into one line, for result messages."""
        return "; ".join(i.message for i in self.issues if i.severity == "error")

