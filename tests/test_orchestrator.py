"""Integration tests for FinanceApp and create_app_components."""

import json
from decimal import Decimal

from finquest.config import get_settings
from finquest.models import DomainEventType, ErrorCode
from finquest.orchestrator import SEED_GOALS, create_app_components
from finquest.services.storage import InMemoryStorage, JsonFileStorage

from factories import FixedClock, expense, goal, income


class TestCreateAppComponents:
    """Tests for the factory."""

    def test_builds_empty_app(self, app):
        assert app.balance_view.balance == Decimal("0.00")
        assert app.ledger.count == 0
        assert app.goals.goals == []
        assert app.profile.points == 0
        assert app.is_empty

    def test_memory_backend_from_settings(self, clock):
        app = create_app_components(clock=clock)
        assert isinstance(app.storage, InMemoryStorage)

    def test_json_backend_from_settings(self, monkeypatch, tmp_path, clock):
        monkeypatch.setenv("FINQUEST_STORAGE_BACKEND", "json")
        monkeypatch.setenv("FINQUEST_STORAGE_DATA_DIR", str(tmp_path / "state"))
        get_settings.cache_clear()

        app = create_app_components(clock=clock)
        app.add_transaction(income(10))

        assert isinstance(app.storage, JsonFileStorage)
        saved = json.loads((tmp_path / "state" / "transactions-storage.json").read_text(encoding="utf-8"))
        assert saved["transactions"][0]["value"] == "10.00"

    def test_without_storage(self, clock):
        app = create_app_components(use_storage=False, clock=clock)
        assert app.storage is None
        assert app.add_transaction(income(10)).success
        assert app.load() == {}

    def test_seed_demo_data(self, clock):
        app = create_app_components(storage=InMemoryStorage(), seed_demo_data=True, clock=clock)

        assert app.balance_view.balance == Decimal("245.80")
        assert app.ledger.calculate_balance() == Decimal("245.80")
        assert [g.title for g in app.goals.goals] == [g["title"] for g in SEED_GOALS]
        assert app.balance_view.goals_progress == 40

    def test_seed_skipped_when_state_was_loaded(self, storage, clock):
        first = create_app_components(storage=storage, clock=clock)
        first.add_transaction(income(10))

        second = create_app_components(storage=storage, seed_demo_data=True, clock=clock)

        assert second.ledger.count == 1
        assert second.goals.goals == []


class TestPersistence:
    """Tests for save/load across app instances."""

    def test_state_survives_restart(self, storage, clock):
        app = create_app_components(storage=storage, clock=clock)
        app.add_transaction(income(200))
        g = app.add_goal(goal(target="100")).goal
        app.add_income_to_goal(g.id, 40)
        app.accept_challenge("weekly_saver")
        app.preferences.toggle_dark_mode()
        app.save()

        restarted = create_app_components(storage=storage, clock=clock)

        assert restarted.balance_view.balance == Decimal("160.00")
        assert restarted.ledger.count == 2
        assert restarted.goals.get_goal_by_id(g.id).current_value == Decimal("40.00")
        assert restarted.balance_view.goals_progress == 40
        assert restarted.challenges.get("weekly_saver") is not None
        assert restarted.preferences.dark_mode is True

    def test_every_partition_is_written(self, app, storage):
        app.add_transaction(income(1))
        assert set(storage.list_partitions()) == {
            "dashboard-storage",
            "goals-storage",
            "transactions-storage",
            "profile-storage",
            "challenges-storage",
            "preferences-storage",
            "auth-storage",
        }

    def test_failed_operation_is_not_saved(self, app, storage):
        app.add_transaction(income(0))
        assert storage.list_partitions() == []

    def test_corrupted_partition_keeps_defaults(self, clock):
        storage = InMemoryStorage({
            "profile-storage": {"points": -5},
            "preferences-storage": {"dark_mode": True, "sounds_enabled": False},
        })

        app = create_app_components(storage=storage, clock=clock)

        assert app.profile.points == 0
        assert app.preferences.dark_mode is True
        assert app.load()["profile-storage"] is False

    def test_stale_balance_is_reconciled_on_next_mutation(self, clock):
        storage = InMemoryStorage({
            "dashboard-storage": {"balance": "999.00", "goals_progress": 0, "transactions_count": 0},
        })
        app = create_app_components(storage=storage, clock=clock)
        assert app.balance_view.balance == Decimal("999.00")

        app.add_transaction(income(5))

        assert app.balance_view.balance == Decimal("5.00")


class TestScenarios:
    """End-to-end flows through the facade."""

    def test_income_and_expense(self, app):
        app.add_transaction(income(100))
        app.add_transaction(expense(30))
        assert app.balance_view.balance == Decimal("70.00")
        assert app.balance_view.transactions_count == 2

    def test_goal_funding_scenario(self, app):
        """Balance 100, goal 150 with 100 saved, add 80."""
        app.add_transaction(income(100))
        g = app.add_goal(goal(target="150", current="100")).goal

        result = app.add_income_to_goal(g.id, 80)

        assert result.amount_added == Decimal("50.00")
        assert result.new_value == Decimal("150.00")
        assert app.balance_view.balance == Decimal("50.00")
        metas = app.ledger.get_filtered_transactions("expense", "Metas")
        assert [t.value for t in metas] == [Decimal("50.00")]
        assert app.profile.achievements[0].title == f"Goal reached: {g.title}"

    def test_goal_already_complete(self, app):
        app.add_transaction(income(100))
        g = app.add_goal(goal(target="50", current="50")).goal
        result = app.add_income_to_goal(g.id, 10)
        assert result.error == ErrorCode.GOAL_ALREADY_COMPLETE
        assert app.balance_view.balance == Decimal("100.00")

    def test_top_up_awards_points(self, app):
        result = app.top_up_balance("25.90")

        assert result.success
        assert result.transaction.category == "Saldo"
        assert app.balance_view.balance == Decimal("25.90")
        assert app.profile.points == 25

    def test_top_up_rejects_bad_amount(self, app):
        result = app.top_up_balance(-1)
        assert result.error == ErrorCode.VALIDATION_ERROR
        assert app.profile.points == 0
        assert app.ledger.count == 0

    def test_top_up_can_complete_weekly_challenge(self, app):
        app.accept_challenge("weekly_saver")
        app.top_up_balance(50)
        # 50 for the top-up plus the weekly reward
        assert app.profile.points == 150

    def test_custom_challenge_through_facade(self, app):
        app.accept_challenge("read", {"title": "Read", "target": 2, "reward": 10})
        app.update_challenge_progress("read", 2)
        assert app.profile.points == 10
        assert app.abandon_challenge("read").success

    def test_summary(self, app):
        app.add_transaction(income(100))
        app.add_transaction(expense(40, category="Food"))
        summary = app.summary()
        assert summary.balance == Decimal("60.00")
        assert summary.expenses_by_category[0].category == "Food"
        assert len(app.monthly_breakdown()) == 1

    def test_rejections_reach_the_audit_log(self, app):
        app.remove_goal("missing")
        latest = app.audit_logger.recent(limit=1)[0]
        assert latest.event_type == DomainEventType.OPERATION_REJECTED
        assert latest.error_code == "not_found"

    def test_clock_is_shared(self, storage):
        clock = FixedClock()
        app = create_app_components(storage=storage, clock=clock)
        tx = app.add_transaction(income(1)).transaction
        assert tx.created_at == clock.now
