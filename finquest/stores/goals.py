"""
GoalBook - savings goals and the transfer of balance into them.

add_income_to_goal is the one operation that writes to three
aggregates in a single call. It holds handles to the Ledger and the
BalanceView explicitly rather than reaching them through globals:

    checks (nothing mutated yet)
        1. amount is a positive number         VALIDATION_ERROR
        2. goal exists                          NOT_FOUND
        3. balance >= requested amount          INSUFFICIENT_FUNDS
        4. goal has headroom left               GOAL_ALREADY_COMPLETE
    effects
        debit BalanceView by the applied amount
        raise the goal's current_value
        record a synthetic expense in the Ledger
        republish overall progress

The applied amount is min(amount, remaining headroom). Anything above
what the goal needs is neither allocated nor debited.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Union

import structlog
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from finquest.config import AppSettings, get_settings
from finquest.events import EventBus
from finquest.models.events import GoalCompleted, GoalFunded, GoalsProgressChanged
from finquest.models.goals import Goal, GoalInput, GoalPatch
from finquest.models.ledger import TransactionInput, TransactionType
from finquest.models.money import format_money
from finquest.models.results import ErrorCode, GoalIncomeResult, GoalResult, OperationResult
from finquest.stores.balance import BalanceView
from finquest.stores.base import Clock, PersistentStore
from finquest.stores.ledger import Ledger
from finquest.validation import InputValidator

logger = structlog.get_logger(__name__)

TRANSFER_NAME_PREFIX = "Goal deposit: "


class GoalBookState(BaseModel):
    goals: list[Goal] = Field(default_factory=list)


class GoalBook(PersistentStore):
    partition = "goals-storage"

    def __init__(
        self,
        bus: EventBus,
        ledger: Ledger,
        balance_view: BalanceView,
        validator: Optional[InputValidator] = None,
        clock: Optional[Clock] = None,
        settings: Optional[AppSettings] = None,
    ):
        super().__init__(bus, clock)
        self._goals: list[Goal] = []
        self._ledger = ledger
        self._balance = balance_view
        self._validator = validator or InputValidator(clock=clock)
        self._settings = settings or get_settings().app

    @property
    def goals(self) -> list[Goal]:
        """In creation order. A copy."""
        return list(self._goals)

    def get_goal_by_id(self, goal_id: str) -> Optional[Goal]:
        return next((g for g in self._goals if g.id == goal_id), None)

    def completed_goal_count(self) -> int:
        return sum(1 for g in self._goals if g.is_complete)

    def calculate_overall_progress(self) -> int:
        """
        Mean of each goal's percentage, rounded half-up to a whole percent.
        0 when there are no goals.
        """
        if not self._goals:
            return 0
        total = sum(g.current_value / g.target_value * 100 for g in self._goals)
        mean = total / len(self._goals)
        return int(mean.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    def _publish_progress(self) -> None:
        self._bus.publish(GoalsProgressChanged(progress=self.calculate_overall_progress()))

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def add_goal(self, data: Union[GoalInput, dict]) -> GoalResult:
        goal_input, validation = self._validator.validate_goal(data)
        if goal_input is None:
            return self._reject(
                GoalResult,
                "add_goal",
                ErrorCode.VALIDATION_ERROR,
                validation.summary(),
            )

        goal = Goal(**goal_input.model_dump(), created_at=self._clock())
        self._goals.append(goal)
        self._publish_progress()
        logger.debug("goal_added", goal_id=goal.id, title=goal.title)
        return GoalResult.ok(f"Goal '{goal.title}' created", entity_id=goal.id, goal=goal)

    def remove_goal(self, goal_id: str) -> OperationResult:
        goal = self.get_goal_by_id(goal_id)
        if goal is None:
            return self._reject(
                OperationResult,
                "remove_goal",
                ErrorCode.NOT_FOUND,
                f"Goal {goal_id} not found",
                entity_id=goal_id,
            )

        self._goals = [g for g in self._goals if g.id != goal_id]
        self._publish_progress()
        return OperationResult.ok(f"Goal '{goal.title}' removed", entity_id=goal_id)

    def update_goal(self, goal_id: str, patch: Union[GoalPatch, dict]) -> GoalResult:
        goal = self.get_goal_by_id(goal_id)
        if goal is None:
            return self._reject(
                GoalResult,
                "update_goal",
                ErrorCode.NOT_FOUND,
                f"Goal {goal_id} not found",
                entity_id=goal_id,
            )

        try:
            if not isinstance(patch, GoalPatch):
                patch = GoalPatch.model_validate(patch)
            changes = patch.model_dump(exclude_unset=True)
            # Goal re-runs the current <= target check
            updated = Goal.model_validate({**goal.model_dump(), **changes})
        except PydanticValidationError as e:
            return self._reject(
                GoalResult,
                "update_goal",
                ErrorCode.VALIDATION_ERROR,
                str(e),
                entity_id=goal_id,
            )

        self._replace(updated)
        # Lowering the target onto the saved amount completes the goal
        if updated.is_complete and not goal.is_complete:
            self._bus.publish(GoalCompleted(
                goal=updated,
                completed_goals=self.completed_goal_count(),
            ))
        self._publish_progress()
        return GoalResult.ok(f"Goal '{updated.title}' updated", entity_id=goal_id, goal=updated)

    def _replace(self, goal: Goal) -> None:
        self._goals = [goal if g.id == goal.id else g for g in self._goals]

    # ------------------------------------------------------------------
    # Funding
    # ------------------------------------------------------------------

    def add_income_to_goal(self, goal_id: str, amount: Any) -> GoalIncomeResult:
        """
        Move `amount` of balance into a goal, capped at what the goal needs.

        Never raises for business-rule failures; returns a failed result
        and leaves every store untouched.
        """
        symbol = self._settings.currency_symbol

        requested, validation = self._validator.validate_amount(amount)
        if requested is None:
            return self._reject(
                GoalIncomeResult,
                "add_income_to_goal",
                ErrorCode.VALIDATION_ERROR,
                validation.summary(),
                entity_id=goal_id,
            )

        goal = self.get_goal_by_id(goal_id)
        if goal is None:
            return self._reject(
                GoalIncomeResult,
                "add_income_to_goal",
                ErrorCode.NOT_FOUND,
                f"Goal {goal_id} not found",
                entity_id=goal_id,
            )

        available = self._balance.balance
        if not self._balance.has_funds(requested):
            return self._reject(
                GoalIncomeResult,
                "add_income_to_goal",
                ErrorCode.INSUFFICIENT_FUNDS,
                (
                    f"Insufficient balance. Available: {format_money(available, symbol)}, "
                    f"requested: {format_money(requested, symbol)}"
                ),
                entity_id=goal_id,
                new_value=goal.current_value,
            )

        remaining = goal.remaining
        if remaining <= 0:
            return self._reject(
                GoalIncomeResult,
                "add_income_to_goal",
                ErrorCode.GOAL_ALREADY_COMPLETE,
                f"Goal '{goal.title}' is already complete",
                entity_id=goal_id,
                new_value=goal.current_value,
            )

        applied = min(requested, remaining)
        # Validated before anything changes: a failed transfer must leave no trace
        transfer = TransactionInput(
            name=(TRANSFER_NAME_PREFIX + goal.title)[:200],
            value=applied,
            type=TransactionType.EXPENSE,
            category=self._settings.goal_transfer_category,
            date=self._clock(),
        )
        _, transfer_check = self._validator.validate_transaction(transfer)
        if not transfer_check.is_valid:
            return self._reject(
                GoalIncomeResult,
                "add_income_to_goal",
                ErrorCode.VALIDATION_ERROR,
                transfer_check.summary(),
                entity_id=goal_id,
                new_value=goal.current_value,
            )

        self._balance.debit(applied)
        funded = goal.model_copy(update={"current_value": goal.current_value + applied})
        self._replace(funded)
        self._ledger.add_transaction(transfer)

        self._bus.publish(GoalFunded(goal=funded, amount_added=applied))
        if funded.is_complete:
            self._bus.publish(GoalCompleted(
                goal=funded,
                completed_goals=self.completed_goal_count(),
            ))
        self._publish_progress()

        message = f"{format_money(applied, symbol)} added to goal '{funded.title}'"
        if applied < requested:
            message += f" (goal needed only {format_money(applied, symbol)})"
        if funded.is_complete:
            message += ". Goal complete!"

        return GoalIncomeResult.ok(
            message,
            entity_id=goal_id,
            new_value=funded.current_value,
            amount_added=applied,
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def snapshot(self) -> dict:
        return GoalBookState(goals=self._goals).model_dump(mode="json")

    def restore(self, data: dict) -> None:
        self._goals = list(self._load_state(GoalBookState, data).goals)
