"""
Ledger Models

A Transaction is the only source of truth for the balance.
Everything the dashboard shows about money is derived from the
list of transactions the Ledger holds.

DESIGN DECISION: Transactions are frozen. Updates go through
Ledger.update_transaction, which builds a new validated instance.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from finquest.models.money import Money


DEFAULT_CATEGORY = "Outros"


def new_id() -> str:
    return uuid4().hex


def normalize_datetime(value: Any) -> Any:
    """
    Accept plain dates and timezone-aware datetimes.

    Dates become midnight; aware datetimes are converted to naive local
    time so they compare with the rest of the ledger.
    """
    if isinstance(value, dt.datetime):
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value
    if isinstance(value, dt.date):
        return dt.datetime.combine(value, dt.time.min)
    return value


class TransactionType(str, Enum):
    """Direction of a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


class TransactionInput(BaseModel):
    """
    What a caller provides to record a transaction.

    Amounts are expected to be normalized to 2 decimals already;
    we quantize again anyway.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Short description of the transaction"
    )
    value: Money = Field(
        ...,
        gt=0,
        description="Positive amount; the sign comes from the type"
    )
    type: TransactionType = Field(
        ...,
        description="income or expense"
    )
    category: str = Field(
        default=DEFAULT_CATEGORY,
        min_length=1,
        max_length=100,
    )
    date: dt.datetime = Field(
        default_factory=dt.datetime.now,
        description="When the money moved"
    )

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> Any:
        return normalize_datetime(v)


class Transaction(TransactionInput):
    """A recorded transaction, owned by the Ledger."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(default_factory=new_id)
    created_at: dt.datetime = Field(default_factory=dt.datetime.now)

    @property
    def signed_value(self) -> Decimal:
        """+value for income, -value for expense."""
        return self.value if self.type == TransactionType.INCOME else -self.value

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME


class TransactionPatch(BaseModel):
    """Partial update for a transaction. Unset fields are left alone."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    value: Optional[Money] = Field(default=None, gt=0)
    type: Optional[TransactionType] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    date: Optional[dt.datetime] = None

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> Any:
        return normalize_datetime(v)
