"""Tests for the rule evaluator."""

from datetime import timedelta
from decimal import Decimal

from aml_engine.models import AmlConfig
from aml_engine.screening.evaluator import RuleEvaluator, ScanContext
from tests.conftest import NOW, make_tx


class TestRuleEvaluator:
    def test_clean_transaction_no_alerts(self, config):
        evaluator = RuleEvaluator(config)
        assert evaluator.evaluate(make_tx(amount="500"), ScanContext()) == []

    def test_high_value_exactly_once(self, config):
        evaluator = RuleEvaluator(config)
        tx = make_tx(amount="60000")
        alerts = evaluator.evaluate(tx, ScanContext(user_created_at=NOW - timedelta(days=400)))
        high = [a for a in alerts if a.alert_type == "high_value_transaction"]
        assert len(high) == 1
        assert high[0].severity == "HIGH"
        assert high[0].amount == Decimal("60000")
        assert high[0].transaction_id == tx.id
        assert high[0].user_id == tx.user_id

    def test_all_four_rules_in_order(self, config):
        """A large withdrawal by a brand-new account right after a deposit hits every rule."""
        evaluator = RuleEvaluator(config)
        deposit = make_tx(tx_id=1, tx_type="deposit", amount="70000", timestamp="2026-03-10T10:30:00Z")
        withdrawal = make_tx(tx_id=2, tx_type="withdrawal", amount="60000", timestamp="2026-03-10T11:00:00Z")
        context = ScanContext(
            user_history=[deposit],
            recent_deposits=[deposit],
            user_created_at=NOW - timedelta(days=3),
        )
        alerts = evaluator.evaluate(withdrawal, context)
        assert [a.alert_type for a in alerts] == [
            "high_value_transaction",
            "structuring_suspected",
            "rapid_deposit_withdrawal",
            "new_user_high_value",
        ]
        assert [a.severity for a in alerts] == ["HIGH", "MEDIUM", "MEDIUM", "LOW"]

    def test_anonymous_transaction_only_high_value(self, config):
        """Without a user, only the amount rule can apply."""
        evaluator = RuleEvaluator(config)
        tx = make_tx(user_id=None, tx_type="withdrawal", amount="60000")
        alerts = evaluator.evaluate(tx, ScanContext())
        assert [a.alert_type for a in alerts] == ["high_value_transaction"]
        assert alerts[0].user_id is None

    def test_config_thresholds_injected(self):
        evaluator = RuleEvaluator(AmlConfig(high_amount_threshold=Decimal("1000")))
        alerts = evaluator.evaluate(make_tx(amount="1500"), ScanContext())
        assert [a.alert_type for a in alerts] == ["high_value_transaction"]

    def test_windows_anchored_on_transaction(self, config):
        evaluator = RuleEvaluator(config)
        tx = make_tx(timestamp="2026-03-10T11:00:00Z")
        start, end = evaluator.structuring_window(tx)
        assert end == tx.created_at
        assert end - start == timedelta(hours=1)
        start, end = evaluator.deposit_window(tx)
        assert end - start == timedelta(hours=2)
