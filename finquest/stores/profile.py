"""
ProfileLedger - reward points and unlocked achievements.

Points never go below zero. Achievements are append-only and kept
newest first. Rewards arrive as events: ChallengeCompleted credits
the challenge's points plus an achievement, GoalCompleted records an
achievement only.
"""

from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from finquest.config import GamificationSettings, get_settings
from finquest.events import EventBus
from finquest.models.events import AchievementUnlocked, ChallengeCompleted, GoalCompleted, PointsChanged
from finquest.models.gamification import Achievement, AchievementInput, Profile
from finquest.models.results import ErrorCode, OperationResult
from finquest.stores.base import Clock, PersistentStore


class ProfileLedger(PersistentStore):
    partition = "profile-storage"

    def __init__(
        self,
        bus: EventBus,
        clock: Optional[Clock] = None,
        settings: Optional[GamificationSettings] = None,
    ):
        super().__init__(bus, clock)
        self._profile = Profile()
        self._settings = settings or get_settings().gamification

        bus.subscribe(ChallengeCompleted, self._on_challenge_completed)
        bus.subscribe(GoalCompleted, self._on_goal_completed)

    @property
    def points(self) -> int:
        return self._profile.points

    @property
    def achievements(self) -> list[Achievement]:
        """Newest first."""
        return list(self._profile.achievements)

    def get_notification_count(self) -> int:
        # Fixed until notifications are tracked
        return self._settings.notification_count

    def _validate_points(self, operation: str, n) -> Optional[OperationResult]:
        if isinstance(n, bool) or not isinstance(n, int) or n < 0:
            return self._reject(
                OperationResult,
                operation,
                ErrorCode.VALIDATION_ERROR,
                f"Points must be a non-negative integer, got {n!r}",
            )
        return None

    def add_points(self, n: int) -> OperationResult:
        rejected = self._validate_points("add_points", n)
        if rejected:
            return rejected
        self._set_points(self._profile.points + n)
        return OperationResult.ok(f"+{n} points")

    def remove_points(self, n: int) -> OperationResult:
        """Floored at zero: removing more than the user has leaves 0."""
        rejected = self._validate_points("remove_points", n)
        if rejected:
            return rejected
        self._set_points(max(0, self._profile.points - n))
        return OperationResult.ok(f"-{n} points")

    def _set_points(self, points: int) -> None:
        delta = points - self._profile.points
        self._profile = self._profile.model_copy(update={"points": points})
        if delta:
            self._bus.publish(PointsChanged(delta=delta, points=points))

    def add_achievement(self, data: Union[AchievementInput, dict]) -> OperationResult:
        """Stamp a fresh id and today's date, and put it first."""
        try:
            if not isinstance(data, AchievementInput):
                data = AchievementInput.model_validate(data)
        except PydanticValidationError as e:
            return self._reject(
                OperationResult,
                "add_achievement",
                ErrorCode.VALIDATION_ERROR,
                str(e),
            )

        achievement = Achievement(**data.model_dump(), date=self._clock().date())
        self._profile = self._profile.model_copy(
            update={"achievements": [achievement] + self._profile.achievements}
        )
        self._bus.publish(AchievementUnlocked(achievement=achievement))
        return OperationResult.ok(f"Achievement unlocked: {achievement.title}", entity_id=achievement.id)

    def _on_challenge_completed(self, event: ChallengeCompleted) -> None:
        challenge = event.challenge
        self.add_points(challenge.reward)
        self.add_achievement(AchievementInput(
            title=f"{challenge.title} completed"[:200],
            description=f"Reached {challenge.target} and earned {challenge.reward} points",
            icon="trophy",
        ))

    def _on_goal_completed(self, event: GoalCompleted) -> None:
        self.add_achievement(AchievementInput(
            title=f"Goal reached: {event.goal.title}"[:200],
            description=f"Saved {event.goal.target_value} for '{event.goal.title}'"[:500],
            icon="target",
        ))

    def snapshot(self) -> dict:
        return self._profile.model_dump(mode="json")

    def restore(self, data: dict) -> None:
        self._profile = self._load_state(Profile, data)
