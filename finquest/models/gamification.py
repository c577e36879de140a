"""
Gamification Models

Challenges, achievements and the reward profile.

Lifecycle of an accepted challenge:
    (not accepted) --accept--> ACTIVE --reach target--> COMPLETED
    ACTIVE --abandon--> (not accepted)

COMPLETED is terminal. Abandoning removes the entry; there is no
"abandoned" status kept around.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from finquest.models.ledger import new_id
from finquest.models.money import ZERO


class ChallengeStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class ChallengeKind(str, Enum):
    """
    How a challenge's progress is measured.

    MANUAL challenges only move through update_challenge_progress.
    The others are driven by ledger and goal events.
    """
    WEEKLY_SAVINGS = "weekly_savings"
    MONTHLY_SAVINGS = "monthly_savings"
    GOALS_COMPLETED = "goals_completed"
    TRANSACTIONS_LOGGED = "transactions_logged"
    MANUAL = "manual"


class ChallengeDefinition(BaseModel):
    """A challenge the user may accept."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=500)
    target: Decimal = Field(..., gt=0)
    reward: int = Field(..., ge=0, description="Points awarded on completion")
    kind: ChallengeKind = ChallengeKind.MANUAL
    icon: str = "trophy"


class ChallengeAcceptance(BaseModel):
    """The data a caller passes along with accept_challenge."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    target: Decimal = Field(..., gt=0)
    reward: int = Field(default=0, ge=0)


class AcceptedChallenge(BaseModel):
    """An accepted challenge and its progress."""

    challenge_id: str
    title: str
    target: Decimal = Field(..., gt=0)
    reward: int = Field(default=0, ge=0)
    current: Decimal = Field(default=ZERO, ge=0)
    status: ChallengeStatus = ChallengeStatus.ACTIVE
    accepted_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.status == ChallengeStatus.COMPLETED

    @property
    def progress_percent(self) -> float:
        return min(float(self.current / self.target * 100), 100.0)


class ChallengeView(BaseModel):
    """A catalog entry merged with the user's acceptance, for display."""

    definition: ChallengeDefinition
    accepted: Optional[AcceptedChallenge] = None

    @property
    def status(self) -> Optional[ChallengeStatus]:
        return self.accepted.status if self.accepted else None


class AchievementInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=500)
    icon: str = Field(default="trophy", max_length=50)


class Achievement(AchievementInput):
    """An unlocked achievement. Append-only."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(default_factory=new_id)
    date: date


class Profile(BaseModel):
    """Reward points and unlocked achievements (newest first)."""

    points: int = Field(default=0, ge=0)
    achievements: list[Achievement] = Field(default_factory=list)
