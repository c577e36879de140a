"""
BalanceView - the dashboard's cached scalars.

balance is a materialized view of Ledger.calculate_balance(). It is
overwritten after every Ledger mutation (BalanceRecalculated) and may
also be decremented directly by GoalBook when money moves into a goal.
The two agree again at the next Ledger recompute.

goals_progress and transactions_count are cached the same way from
GoalBook and Ledger events.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from finquest.events import EventBus
from finquest.models.events import BalanceDebited, BalanceRecalculated, GoalsProgressChanged
from finquest.models.money import ZERO, Money, to_money
from finquest.stores.base import PersistentStore


class DashboardState(BaseModel):
    balance: Money = ZERO
    goals_progress: int = Field(default=0, ge=0, le=100)
    transactions_count: int = Field(default=0, ge=0)


class BalanceView(PersistentStore):
    partition = "dashboard-storage"

    def __init__(
        self,
        bus: EventBus,
        initial: Optional[DashboardState] = None,
    ):
        super().__init__(bus)
        self._state = initial or DashboardState()
        bus.subscribe(BalanceRecalculated, self._on_balance_recalculated)
        bus.subscribe(GoalsProgressChanged, self._on_goals_progress_changed)

    @property
    def balance(self) -> Decimal:
        return self._state.balance

    @property
    def goals_progress(self) -> int:
        return self._state.goals_progress

    @property
    def transactions_count(self) -> int:
        return self._state.transactions_count

    @property
    def state(self) -> DashboardState:
        return self._state.model_copy()

    def update_balance(self, new_balance: Decimal) -> None:
        self._state = self._state.model_copy(update={"balance": to_money(new_balance)})

    def has_funds(self, amount: Decimal) -> bool:
        return self._state.balance >= amount

    def debit(self, amount: Decimal) -> Decimal:
        """
        Decrement the cached balance directly (goal transfers).

        The caller checks funds first; a debit that would overdraw is
        a programming error.
        """
        amount = to_money(amount)
        if amount <= 0:
            raise ValueError(f"Debit amount must be positive, got {amount}")
        if amount > self._state.balance:
            raise ValueError(
                f"Debit of {amount} exceeds balance {self._state.balance}"
            )
        self.update_balance(self._state.balance - amount)
        self._bus.publish(BalanceDebited(amount=amount, balance=self._state.balance))
        return self._state.balance

    def _on_balance_recalculated(self, event: BalanceRecalculated) -> None:
        self._state = self._state.model_copy(update={
            "balance": to_money(event.balance),
            "transactions_count": event.transaction_count,
        })

    def _on_goals_progress_changed(self, event: GoalsProgressChanged) -> None:
        self._state = self._state.model_copy(update={"goals_progress": event.progress})

    def snapshot(self) -> dict:
        return self._state.model_dump(mode="json")

    def restore(self, data: dict) -> None:
        self._state = self._load_state(DashboardState, data)
