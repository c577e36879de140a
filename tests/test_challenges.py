"""Tests for the ChallengeTracker and the rewards it triggers."""

from datetime import timedelta
from decimal import Decimal

import pytest

from finquest.models import ChallengeCompleted, ChallengeStatus, ErrorCode
from finquest.services.storage import CorruptedStateError
from finquest.stores import ChallengeTracker

from factories import NOW, expense, goal, income

WEEKLY = "weekly_saver"
MONTHLY = "monthly_saver"


class TestAcceptAndAbandon:
    """Tests for the acceptance lifecycle."""

    def test_accept_custom_challenge(self, tracker):
        result = tracker.accept_challenge("read", {"title": "Read 5 books", "target": 5, "reward": 20})

        assert result.success
        entry = tracker.get("read")
        assert entry.status == ChallengeStatus.ACTIVE
        assert entry.current == 0
        assert entry.accepted_at == NOW

    def test_accept_is_idempotent(self, tracker):
        tracker.accept_challenge("read", {"title": "Read", "target": 5, "reward": 20})
        tracker.update_challenge_progress("read", 2)

        again = tracker.accept_challenge("read", {"title": "Other", "target": 99, "reward": 1})

        assert again.success
        assert len(tracker.accepted) == 1
        entry = tracker.get("read")
        assert entry.title == "Read"
        assert entry.current == Decimal("2")

    def test_accept_rejects_bad_data(self, tracker):
        result = tracker.accept_challenge("bad", {"title": "Bad", "target": 0})
        assert result.error == ErrorCode.VALIDATION_ERROR
        assert tracker.get("bad") is None

    def test_accept_from_catalog(self, tracker):
        result = tracker.accept_from_catalog(WEEKLY)
        assert result.success
        entry = tracker.get(WEEKLY)
        assert entry.target == Decimal("50")
        assert entry.reward == 100

    def test_accept_unknown_catalog_entry(self, tracker):
        assert tracker.accept_from_catalog("nope").error == ErrorCode.NOT_FOUND

    def test_available_challenges_show_acceptance(self, tracker):
        tracker.accept_from_catalog(MONTHLY)
        views = {v.definition.id: v for v in tracker.available_challenges()}
        assert set(views) == {"weekly_saver", "monthly_saver", "goal_master", "transactions_pro"}
        assert views[MONTHLY].status == ChallengeStatus.ACTIVE
        assert views[WEEKLY].status is None

    def test_abandon_removes_entry(self, tracker):
        tracker.accept_from_catalog(WEEKLY)
        assert tracker.abandon_challenge(WEEKLY).success
        assert tracker.get(WEEKLY) is None
        assert tracker.active_challenges() == []

    def test_abandon_unknown(self, tracker):
        assert tracker.abandon_challenge("nope").error == ErrorCode.NOT_FOUND


class TestManualProgress:
    """Tests for update_challenge_progress."""

    def test_adds_up_and_caps(self, tracker, clock):
        tracker.accept_challenge("read", {"title": "Read", "target": 5, "reward": 20})
        tracker.update_challenge_progress("read", 3)
        clock.now = NOW + timedelta(hours=1)
        tracker.update_challenge_progress("read", 4)

        entry = tracker.get("read")
        assert entry.current == Decimal("5")
        assert entry.status == ChallengeStatus.COMPLETED
        assert entry.completed_at == NOW + timedelta(hours=1)

    def test_completed_is_frozen(self, tracker):
        tracker.accept_challenge("read", {"title": "Read", "target": 5, "reward": 20})
        tracker.update_challenge_progress("read", 5)
        done = tracker.get("read")

        result = tracker.update_challenge_progress("read", 1)

        assert result.success
        assert tracker.get("read") == done

    def test_rejects_negative_amount(self, tracker):
        tracker.accept_challenge("read", {"title": "Read", "target": 5, "reward": 20})
        assert tracker.update_challenge_progress("read", -1).error == ErrorCode.VALIDATION_ERROR
        assert tracker.update_challenge_progress("read", "x").error == ErrorCode.VALIDATION_ERROR

    def test_unknown_challenge(self, tracker):
        assert tracker.update_challenge_progress("nope", 1).error == ErrorCode.NOT_FOUND

    def test_completion_awards_reward(self, tracker, profile):
        tracker.accept_challenge("read", {"title": "Read", "target": 5, "reward": 20})
        tracker.update_challenge_progress("read", 5)
        assert profile.points == 20
        assert profile.achievements[0].title == "Read completed"


class TestAutomaticProgress:
    """Tests for progress driven by ledger and goal events."""

    def test_weekly_saver_completes_once(self, stores, clock):
        """Crossing the target awards the reward once; later transactions change nothing."""
        ledger, tracker, profile = stores["ledger"], stores["challenges"], stores["profile"]
        tracker.accept_from_catalog(WEEKLY)

        ledger.add_transaction(income(30))
        assert tracker.get(WEEKLY).current == Decimal("30.00")
        assert profile.points == 0

        ledger.add_transaction(income(25))
        entry = tracker.get(WEEKLY)
        assert entry.status == ChallengeStatus.COMPLETED
        assert entry.current == Decimal("50")
        assert profile.points == 100
        assert len(profile.achievements) == 1

        ledger.add_transaction(expense(40))
        ledger.add_transaction(income(500))
        assert tracker.get(WEEKLY) == entry
        assert profile.points == 100
        assert len(profile.achievements) == 1

    def test_progress_may_go_down_before_completion(self, stores):
        ledger, tracker = stores["ledger"], stores["challenges"]
        tracker.accept_from_catalog(MONTHLY)

        ledger.add_transaction(income(120))
        ledger.add_transaction(expense(70))

        assert tracker.get(MONTHLY).current == Decimal("50.00")
        assert tracker.get(MONTHLY).status == ChallengeStatus.ACTIVE

    def test_window_excludes_old_income(self, stores, clock):
        ledger, tracker = stores["ledger"], stores["challenges"]
        tracker.accept_from_catalog(WEEKLY)
        tracker.accept_from_catalog(MONTHLY)

        ledger.add_transaction(income(45, date=clock.now - timedelta(days=10)))
        ledger.add_transaction(income(10))

        assert tracker.get(WEEKLY).current == Decimal("10.00")
        assert tracker.get(MONTHLY).current == Decimal("55.00")

    def test_not_accepted_challenges_are_ignored(self, stores):
        stores["ledger"].add_transaction(income(1000))
        assert stores["challenges"].accepted == []
        assert stores["profile"].points == 0

    def test_transactions_pro(self, stores):
        ledger, tracker, profile = stores["ledger"], stores["challenges"], stores["profile"]
        tracker.accept_from_catalog("transactions_pro")
        for _ in range(9):
            ledger.add_transaction(income(1))
        assert tracker.get("transactions_pro").current == Decimal("9")

        ledger.add_transaction(income(1))
        assert tracker.get("transactions_pro").is_completed
        assert profile.points == 150

    def test_goal_master(self, stores):
        ledger, goals, tracker, profile = (
            stores["ledger"], stores["goals"], stores["challenges"], stores["profile"],
        )
        tracker.accept_from_catalog("goal_master")
        ledger.add_transaction(income(100))

        for title in ("A", "B", "C"):
            g = goals.add_goal(goal(title=title, target="10")).goal
            goals.add_income_to_goal(g.id, 10)

        assert tracker.get("goal_master").is_completed
        assert profile.points == 300
        titles = [a.title for a in profile.achievements]
        assert "Goal Master completed" in titles
        assert titles.count("Goal reached: C") == 1

    def test_goal_completed_by_lowering_target(self, stores):
        goals, tracker, profile = stores["goals"], stores["challenges"], stores["profile"]
        tracker.accept_from_catalog("goal_master")
        g = goals.add_goal(goal(title="Bike", target="100", current="60")).goal

        goals.update_goal(g.id, {"target_value": "60"})

        assert tracker.get("goal_master").current == Decimal("1")
        assert [a.title for a in profile.achievements] == ["Goal reached: Bike"]

    def test_removal_does_not_revoke_rewards(self, stores):
        ledger, tracker, profile = stores["ledger"], stores["challenges"], stores["profile"]
        tracker.accept_from_catalog(WEEKLY)
        tx = ledger.add_transaction(income(60)).transaction
        assert profile.points == 100

        ledger.remove_transaction(tx.id)

        assert tracker.get(WEEKLY).is_completed
        assert profile.points == 100

    def test_challenge_completed_published_once(self, bus, stores):
        completed = []
        bus.subscribe(ChallengeCompleted, completed.append)
        stores["challenges"].accept_from_catalog(WEEKLY)
        for _ in range(3):
            stores["ledger"].add_transaction(income(50))
        assert [e.challenge.challenge_id for e in completed] == [WEEKLY]


class TestTrackerSnapshot:
    """Tests for challenge persistence."""

    def test_round_trip(self, tracker, bus, clock, game_settings):
        tracker.accept_from_catalog(WEEKLY)
        tracker.accept_challenge("read", {"title": "Read", "target": 5, "reward": 20})
        tracker.update_challenge_progress("read", 5)

        other = ChallengeTracker(bus, clock=clock, settings=game_settings)
        other.restore(tracker.snapshot())

        assert other.get("read").is_completed
        assert other.get(WEEKLY).status == ChallengeStatus.ACTIVE

    def test_restore_rejects_garbage(self, tracker):
        with pytest.raises(CorruptedStateError):
            tracker.restore({"accepted": [{"challenge_id": "x"}]})
