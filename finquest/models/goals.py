"""
Goal Models

A Goal is a savings target. Money only ever flows into a goal
(through GoalBook.add_income_to_goal); there is no withdrawal.

INVARIANT: 0 <= current_value <= target_value
"""

import datetime as dt
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from finquest.models.ledger import DEFAULT_CATEGORY, new_id, normalize_datetime
from finquest.models.money import ZERO, Money


class GoalInput(BaseModel):
    """What a caller provides to create a goal."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    target_value: Money = Field(
        ...,
        gt=0,
        description="Amount the goal is saving towards"
    )
    current_value: Money = Field(
        default=ZERO,
        ge=0,
        description="Amount already saved"
    )
    category: str = Field(
        default=DEFAULT_CATEGORY,
        min_length=1,
        max_length=100,
    )
    target_date: Optional[dt.datetime] = Field(
        default=None,
        description="When the user wants to reach the target"
    )

    @field_validator("target_date", mode="before")
    @classmethod
    def coerce_target_date(cls, v: Any) -> Any:
        return normalize_datetime(v)

    @model_validator(mode="after")
    def validate_not_overfunded(self) -> "GoalInput":
        if self.current_value > self.target_value:
            raise ValueError("Current value cannot exceed target value")
        return self


class Goal(GoalInput):
    """A savings goal owned by the GoalBook."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(default_factory=new_id)
    created_at: dt.datetime = Field(default_factory=dt.datetime.now)

    @property
    def remaining(self) -> Decimal:
        """Headroom left before the goal is complete."""
        return self.target_value - self.current_value

    @property
    def is_complete(self) -> bool:
        return self.current_value >= self.target_value

    @property
    def progress_percent(self) -> float:
        return float(self.current_value / self.target_value * 100)

    def days_remaining(self, now: Optional[dt.datetime] = None) -> Optional[int]:
        """Whole days until target_date (never negative), or None without a date."""
        if self.target_date is None:
            return None
        now = now or dt.datetime.now()
        return max(0, (self.target_date.date() - now.date()).days)


class GoalPatch(BaseModel):
    """
    Partial update for a goal.

    current_value is deliberately absent: saved money only moves
    through add_income_to_goal.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    target_value: Optional[Money] = Field(default=None, gt=0)
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    target_date: Optional[dt.datetime] = None

    @field_validator("target_date", mode="before")
    @classmethod
    def coerce_target_date(cls, v: Any) -> Any:
        return normalize_datetime(v)
