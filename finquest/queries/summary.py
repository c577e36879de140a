"""
Summary statistics over the ledger.

DESIGN DECISION: Summaries are DERIVED, never stored.
Every call reads the Ledger's current transactions and folds them
again, so a summary can never disagree with the balance.

GUARANTEES:
- Only real transactions are counted
- Period bounds are whole days, inclusive on both ends
- Category shares add up to 100 (up to rounding) when there are expenses
"""

from collections import defaultdict
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pydantic import BaseModel, Field

from finquest.models.ledger import Transaction, TransactionType
from finquest.models.money import ZERO, Money
from finquest.stores.ledger import DateBound, Ledger, parse_date_bound


class CategoryTotal(BaseModel):
    """Expense total for one category."""

    category: str
    total: Money
    count: int = Field(..., ge=0)
    share_percent: Decimal = Field(..., description="Share of all expenses, 1 decimal place")


class PeriodSummary(BaseModel):
    """Totals for a period of the ledger."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None
    total_income: Money = ZERO
    total_expense: Money = ZERO
    balance: Money = ZERO
    income_count: int = 0
    expense_count: int = 0
    expenses_by_category: list[CategoryTotal] = Field(default_factory=list)

    @property
    def transaction_count(self) -> int:
        return self.income_count + self.expense_count

    @property
    def has_data(self) -> bool:
        return self.transaction_count > 0


class MonthlyTotals(BaseModel):
    """Income and expense for one calendar month."""

    year: int
    month: int = Field(..., ge=1, le=12)
    total_income: Money = ZERO
    total_expense: Money = ZERO

    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_expense

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def _share(part: Decimal, whole: Decimal) -> Decimal:
    if whole == ZERO:
        return Decimal("0.0")
    return (part * 100 / whole).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


class SummaryBuilder:
    """Builds period summaries from a Ledger."""

    def __init__(self, ledger: Ledger):
        self._ledger = ledger

    def _transactions(self, start: DateBound, end: DateBound) -> list[Transaction]:
        return self._ledger.get_transactions_by_period(start, end)

    def build(self, start: DateBound = None, end: DateBound = None) -> PeriodSummary:
        """
        Summarize transactions dated inside [start, end].

        Either bound may be None for an open-ended period.
        """
        transactions = self._transactions(start, end)

        income = ZERO
        expense = ZERO
        income_count = 0
        by_category: dict[str, list[Decimal]] = defaultdict(list)

        for t in transactions:
            if t.type == TransactionType.INCOME:
                income += t.value
                income_count += 1
            else:
                expense += t.value
                by_category[t.category].append(t.value)

        categories = [
            CategoryTotal(
                category=name,
                total=sum(values, ZERO),
                count=len(values),
                share_percent=_share(sum(values, ZERO), expense),
            )
            for name, values in by_category.items()
        ]
        # Largest first, then by name for a stable order
        categories.sort(key=lambda c: (-c.total, c.category))

        return PeriodSummary(
            start=_as_datetime(start),
            end=_as_datetime(end),
            total_income=income,
            total_expense=expense,
            balance=income - expense,
            income_count=income_count,
            expense_count=len(transactions) - income_count,
            expenses_by_category=categories,
        )

    def monthly_breakdown(
        self,
        start: DateBound = None,
        end: DateBound = None,
    ) -> list[MonthlyTotals]:
        """Per-month income and expense, oldest month first. Empty months are skipped."""
        months: dict[tuple[int, int], MonthlyTotals] = {}
        for t in self._transactions(start, end):
            key = (t.date.year, t.date.month)
            totals = months.get(key) or MonthlyTotals(year=key[0], month=key[1])
            if t.type == TransactionType.INCOME:
                totals = totals.model_copy(update={"total_income": totals.total_income + t.value})
            else:
                totals = totals.model_copy(update={"total_expense": totals.total_expense + t.value})
            months[key] = totals
        return [months[k] for k in sorted(months)]


def _as_datetime(value: DateBound) -> Optional[datetime]:
    try:
        return parse_date_bound(value)
    except ValueError:
        # Ledger already logged it and matched nothing
        return None
