"""Rule evaluator.

Runs the fixed rule set against one transaction and the context gathered
for it. Evaluation is pure: it reads the transaction and its context and
returns alert candidates without touching any store. Rules never suppress
each other, so a transaction may yield anywhere from 0 to 4 candidates, in
this order:
  1. High-value transaction (HIGH)
  2. Structuring suspected (MEDIUM)
  3. Rapid deposit-then-withdrawal (MEDIUM)
  4. New user high-value (LOW)
"""

from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, Field

from aml_engine.models import AlertCandidate, AmlConfig, Transaction
from aml_engine.screening.rules.high_value import check_high_value
from aml_engine.screening.rules.new_user import check_new_user
from aml_engine.screening.rules.rapid_withdrawal import check_rapid_withdrawal
from aml_engine.screening.rules.structuring import check_structuring


class ScanContext(BaseModel):
    """Everything the rules may look at besides the transaction itself."""
    user_history: list[Transaction] = Field(default_factory=list)
    recent_deposits: list[Transaction] = Field(default_factory=list)
    user_created_at: Optional[datetime] = None


class RuleEvaluator:
    """Evaluates the AML rule set with thresholds taken from `config`."""

    def __init__(self, config: AmlConfig) -> None:
        self.config = config

    def structuring_window(self, tx: Transaction) -> tuple[datetime, datetime]:
        start = tx.created_at - timedelta(hours=self.config.structuring_window_hours)
        return start, tx.created_at

    def deposit_window(self, tx: Transaction) -> tuple[datetime, datetime]:
        start = tx.created_at - timedelta(hours=self.config.rapid_withdrawal_window_hours)
        return start, tx.created_at

    def evaluate(self, tx: Transaction, context: ScanContext) -> list[AlertCandidate]:
        cfg = self.config
        hits = [check_high_value(amount=tx.amount, threshold=cfg.high_amount_threshold)]

        # The remaining rules look at the user's behaviour, so they need one
        if tx.user_id is not None:
            hits.append(
                check_structuring(
                    transaction_id=tx.id,
                    user_id=tx.user_id,
                    amount=tx.amount,
                    timestamp=tx.created_at,
                    history=context.user_history,
                    threshold=cfg.structuring_threshold,
                    window_hours=cfg.structuring_window_hours,
                )
            )
            hits.append(
                check_rapid_withdrawal(
                    tx_type=tx.type,
                    amount=tx.amount,
                    timestamp=tx.created_at,
                    deposits=context.recent_deposits,
                    window_hours=cfg.rapid_withdrawal_window_hours,
                    ratio=cfg.rapid_withdrawal_ratio,
                )
            )
            hits.append(
                check_new_user(
                    amount=tx.amount,
                    timestamp=tx.created_at,
                    user_created_at=context.user_created_at,
                    threshold=cfg.new_user_threshold,
                    max_age_days=cfg.new_user_max_age_days,
                )
            )

        return [
            AlertCandidate(
                transaction_id=tx.id,
                user_id=tx.user_id,
                alert_type=hit.alert_type,
                severity=hit.severity,
                description=hit.description,
                amount=tx.amount,
            )
            for hit in hits
            if hit is not None
        ]
