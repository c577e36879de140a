"""
Ledger - owns the transaction list and derives the balance from it.

ORDERING: the internal list is most-recent-first (new transactions are
prepended). Read views sort by transaction date instead.

After every mutation the balance is recomputed from scratch and
published as BalanceRecalculated. add_transaction additionally
publishes TransactionAdded with the trailing weekly and monthly net
savings, which is what drives the savings challenges.

Removing a transaction never takes back challenge rewards that
transaction may have triggered.
"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional, Union

import structlog
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from finquest.config import GamificationSettings, get_settings
from finquest.events import EventBus
from finquest.models.events import (
    BalanceRecalculated,
    TransactionAdded,
    TransactionRemoved,
    TransactionUpdated,
)
from finquest.models.ledger import (
    Transaction,
    TransactionInput,
    TransactionPatch,
    TransactionType,
    normalize_datetime,
)
from finquest.models.money import ZERO
from finquest.models.results import ErrorCode, OperationResult, TransactionResult
from finquest.stores.base import Clock, PersistentStore
from finquest.validation import InputValidator

logger = structlog.get_logger(__name__)

ALL = "all"

TypeFilter = Union[TransactionType, str, None]
DateBound = Union[datetime, date, str, None]


class LedgerState(BaseModel):
    transactions: list[Transaction] = Field(default_factory=list)


def _matches(tx: Transaction, type_filter: TypeFilter, category_filter: Optional[str]) -> bool:
    if type_filter not in (None, ALL):
        wanted = type_filter.value if isinstance(type_filter, TransactionType) else str(type_filter)
        if tx.type.value != wanted:
            return False
    if category_filter not in (None, ALL) and tx.category != category_filter:
        return False
    return True


def parse_date_bound(value: DateBound) -> Optional[datetime]:
    """
    None for an open bound.

    Raises:
        ValueError: If the bound is neither a date nor an ISO date string
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return normalize_datetime(datetime.fromisoformat(value))
    if isinstance(value, date):
        return normalize_datetime(value)
    raise ValueError(f"Unsupported date bound: {value!r}")


class Ledger(PersistentStore):
    partition = "transactions-storage"

    def __init__(
        self,
        bus: EventBus,
        validator: Optional[InputValidator] = None,
        clock: Optional[Clock] = None,
        settings: Optional[GamificationSettings] = None,
    ):
        super().__init__(bus, clock)
        self._transactions: list[Transaction] = []
        self._validator = validator or InputValidator(clock=clock)
        self._settings = settings or get_settings().gamification

    @property
    def transactions(self) -> list[Transaction]:
        """Most recent first. A copy; mutate through the operations."""
        return list(self._transactions)

    @property
    def count(self) -> int:
        return len(self._transactions)

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return next((t for t in self._transactions if t.id == transaction_id), None)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_transaction(self, data: Union[TransactionInput, dict]) -> TransactionResult:
        """
        Record a transaction (prepended) and propagate the effects.

        Side effects, in order:
        1. balance recomputed -> BalanceRecalculated
        2. transaction count recomputed (same event)
        3. weekly/monthly net savings recomputed -> TransactionAdded
        """
        tx_input, validation = self._validator.validate_transaction(data)
        if tx_input is None:
            return self._reject(
                TransactionResult,
                "add_transaction",
                ErrorCode.VALIDATION_ERROR,
                validation.summary(),
            )
        if validation.warnings:
            logger.warning("transaction_input_warnings", warnings=validation.warnings)

        now = self._clock()
        fields = tx_input.model_dump()
        if "date" not in tx_input.model_fields_set:
            fields["date"] = now
        tx = Transaction(**fields, created_at=now)
        self._transactions.insert(0, tx)

        balance = self._publish_balance()
        self._bus.publish(TransactionAdded(
            transaction=tx,
            balance=balance,
            transaction_count=self.count,
            weekly_savings=self.window_savings(self._settings.weekly_window_days, now),
            monthly_savings=self.window_savings(self._settings.monthly_window_days, now),
        ))

        return TransactionResult.ok(
            f"Transaction '{tx.name}' recorded",
            entity_id=tx.id,
            transaction=tx,
        )

    def remove_transaction(self, transaction_id: str) -> OperationResult:
        tx = self.get_transaction(transaction_id)
        if tx is None:
            return self._reject(
                OperationResult,
                "remove_transaction",
                ErrorCode.NOT_FOUND,
                f"Transaction {transaction_id} not found",
                entity_id=transaction_id,
            )

        self._transactions = [t for t in self._transactions if t.id != transaction_id]
        balance = self._publish_balance()
        self._bus.publish(TransactionRemoved(
            transaction=tx,
            balance=balance,
            transaction_count=self.count,
        ))
        return OperationResult.ok(f"Transaction '{tx.name}' removed", entity_id=tx.id)

    def update_transaction(
        self,
        transaction_id: str,
        patch: Union[TransactionPatch, dict],
    ) -> TransactionResult:
        tx = self.get_transaction(transaction_id)
        if tx is None:
            return self._reject(
                TransactionResult,
                "update_transaction",
                ErrorCode.NOT_FOUND,
                f"Transaction {transaction_id} not found",
                entity_id=transaction_id,
            )

        try:
            if not isinstance(patch, TransactionPatch):
                patch = TransactionPatch.model_validate(patch)
            changes = patch.model_dump(exclude_unset=True)
            merged = {**tx.model_dump(exclude={"id", "created_at"}), **changes}
        except PydanticValidationError as e:
            return self._reject(
                TransactionResult,
                "update_transaction",
                ErrorCode.VALIDATION_ERROR,
                str(e),
                entity_id=transaction_id,
            )

        tx_input, validation = self._validator.validate_transaction(merged)
        if tx_input is None:
            return self._reject(
                TransactionResult,
                "update_transaction",
                ErrorCode.VALIDATION_ERROR,
                validation.summary(),
                entity_id=transaction_id,
            )

        updated = Transaction(**tx_input.model_dump(), id=tx.id, created_at=tx.created_at)
        self._transactions = [updated if t.id == tx.id else t for t in self._transactions]

        balance = self._publish_balance()
        self._bus.publish(TransactionUpdated(transaction=updated, balance=balance))
        return TransactionResult.ok(
            f"Transaction '{updated.name}' updated",
            entity_id=updated.id,
            transaction=updated,
        )

    def _publish_balance(self) -> Decimal:
        balance = self.calculate_balance()
        self._bus.publish(BalanceRecalculated(balance=balance, transaction_count=self.count))
        return balance

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def calculate_balance(self) -> Decimal:
        """Σincome - Σexpense. Decimal addition, so order never matters."""
        return sum((t.signed_value for t in self._transactions), ZERO)

    def window_savings(self, days: int, now: Optional[datetime] = None) -> Decimal:
        """
        Net savings over the trailing `days` window, floored at zero.

        Recomputed from the full list every time, so a backdated
        transaction can move the result either way.
        """
        now = now or self._clock()
        start = now - timedelta(days=days)
        net = sum(
            (t.signed_value for t in self._transactions if t.date >= start),
            ZERO,
        )
        return max(ZERO, net)

    def get_filtered_transactions(
        self,
        type_filter: TypeFilter = ALL,
        category_filter: Optional[str] = ALL,
    ) -> list[Transaction]:
        """Newest date first; filters are exact match, or "all"."""
        matching = [t for t in self._transactions if _matches(t, type_filter, category_filter)]
        return sorted(matching, key=lambda t: t.date, reverse=True)

    def get_transactions_by_period(
        self,
        start: DateBound = None,
        end: DateBound = None,
        type_filter: TypeFilter = ALL,
        category_filter: Optional[str] = ALL,
    ) -> list[Transaction]:
        """
        Transactions inside [start, end], whole days.

        A bound that cannot be parsed matches nothing: the result is
        empty and the bad input is logged.

        start and transaction dates are truncated to midnight and end is
        pushed to the last instant of its day, so boundary days count.
        """
        try:
            start_day = parse_date_bound(start)
            end_day = parse_date_bound(end)
        except ValueError as e:
            logger.warning(
                "invalid_period_bound",
                start=str(start),
                end=str(end),
                error=str(e),
            )
            return []
        if start_day is not None:
            start_day = datetime.combine(start_day.date(), time.min)
        if end_day is not None:
            end_day = datetime.combine(end_day.date(), time.max)

        result = []
        for t in self.get_filtered_transactions(type_filter, category_filter):
            day = datetime.combine(t.date.date(), time.min)
            if start_day is not None and day < start_day:
                continue
            if end_day is not None and day > end_day:
                continue
            result.append(t)
        return result

    def get_categories(self) -> list[str]:
        return sorted({t.category for t in self._transactions})

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def snapshot(self) -> dict:
        return LedgerState(transactions=self._transactions).model_dump(mode="json")

    def restore(self, data: dict) -> None:
        self._transactions = list(self._load_state(LedgerState, data).transactions)
