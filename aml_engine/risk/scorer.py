"""User risk scoring.

The composite score is DETERMINISTIC for a given state and clock. Four
independent factors each contribute points:
  - KYC level          0-25
  - Transaction volume 5-30
  - Alert history      0-30
  - Account age        0-15
The sum is clamped to [1, 100] and mapped to a band:
  - score <= 30 -> low
  - score <= 60 -> medium
  - otherwise   -> high
Scoring only reads state. It never writes alerts or audit entries.
"""

from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable

from aml_engine.formatting import money
from aml_engine.models import (
    Alert,
    AlertSummary,
    AmlConfig,
    RiskFactor,
    RiskReport,
    TransactionSummary,
    UserProfile,
    utcnow,
)
from aml_engine.storage.alerts import AlertStore
from aml_engine.storage.memory import MemoryLedger


def kyc_factor(user: UserProfile) -> RiskFactor:
    level = user.kyc_level
    if user.kyc_status == "approved" and level >= 3:
        return RiskFactor(factor="KYC Level", impact=5, description=f"Fully verified (Level {level})")
    if user.kyc_status == "approved" and level >= 2:
        return RiskFactor(factor="KYC Level", impact=10, description=f"Verified (Level {level})")
    if user.kyc_status == "approved":
        return RiskFactor(factor="KYC Level", impact=15, description=f"Basic verification (Level {level})")
    return RiskFactor(
        factor="KYC Level",
        impact=25,
        description=f"KYC not approved (status: {user.kyc_status})",
    )


def volume_factor(total_volume: Decimal, config: AmlConfig) -> RiskFactor:
    if total_volume > config.volume_very_high:
        impact, label = 30, "Very high volume"
    elif total_volume > config.volume_high:
        impact, label = 20, "High volume"
    elif total_volume > config.volume_moderate:
        impact, label = 10, "Moderate volume"
    else:
        impact, label = 5, "Low volume"
    return RiskFactor(
        factor="Transaction Volume",
        impact=impact,
        description=f"{label}: {money(total_volume)}",
    )


def summarize_alerts(alerts: Iterable[Alert]) -> AlertSummary:
    alerts = list(alerts)
    return AlertSummary(
        total_alerts=len(alerts),
        pending_alerts=sum(1 for a in alerts if a.status == "pending"),
        escalated_alerts=sum(1 for a in alerts if a.status == "escalated"),
        high_severity_alerts=sum(1 for a in alerts if a.severity == "HIGH"),
    )


def alert_history_factor(summary: AlertSummary, config: AmlConfig) -> RiskFactor:
    total = summary.total_alerts
    if summary.high_severity_alerts > 0 or summary.escalated_alerts > 0:
        return RiskFactor(
            factor="Alert History",
            impact=30,
            description=(
                f"{total} total alerts ({summary.high_severity_alerts} HIGH, "
                f"{summary.escalated_alerts} escalated, {summary.pending_alerts} pending)"
            ),
        )
    if total > config.frequent_alert_count:
        return RiskFactor(factor="Alert History", impact=20, description=f"{total} total alerts; frequent flags")
    if total > 0:
        return RiskFactor(factor="Alert History", impact=10, description=f"{total} total alert(s)")
    return RiskFactor(factor="Alert History", impact=0, description="No previous alerts")


def account_age_factor(age_days: float, config: AmlConfig) -> RiskFactor:
    if age_days < config.age_new_days:
        return RiskFactor(factor="Account Age", impact=15, description=f"New account ({round(age_days)} days)")
    if age_days < config.age_recent_days:
        return RiskFactor(factor="Account Age", impact=10, description=f"Recent account ({round(age_days)} days)")
    if age_days < config.age_established_days:
        return RiskFactor(
            factor="Account Age", impact=5, description=f"Established account ({round(age_days)} days)"
        )
    return RiskFactor(
        factor="Account Age", impact=0, description=f"Mature account ({round(age_days / 365)} years)"
    )


def risk_level(score: int, config: AmlConfig) -> str:
    if score <= config.risk_low_max:
        return "low"
    if score <= config.risk_medium_max:
        return "medium"
    return "high"


class RiskScorer:
    """Computes a user's composite AML risk report from current state."""

    def __init__(
        self,
        ledger: MemoryLedger,
        alert_store: AlertStore,
        config: AmlConfig,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.ledger = ledger
        self.alert_store = alert_store
        self.config = config
        self.clock = clock

    def score_user(self, user_id: int) -> RiskReport:
        """Build the risk report for `user_id`. Raises NotFound for unknown users."""
        user = self.ledger.get_user(user_id)

        transactions = self.ledger.list_by_user_in_window(user_id)
        total_volume = sum((t.amount for t in transactions), Decimal("0"))

        alert_summary = summarize_alerts(self.alert_store.list_by_filter(user_id=user_id))

        age_days = (self.clock() - user.created_at).total_seconds() / 86400

        factors = [
            kyc_factor(user),
            volume_factor(total_volume, self.config),
            alert_history_factor(alert_summary, self.config),
            account_age_factor(age_days, self.config),
        ]

        score = min(100, max(1, sum(f.impact for f in factors)))

        return RiskReport(
            user_id=user.id,
            email=user.email,
            name=user.display_name,
            risk_score=score,
            risk_level=risk_level(score, self.config),
            factors=factors,
            transaction_summary=TransactionSummary(
                total_transactions=len(transactions),
                total_volume=total_volume,
            ),
            alert_summary=alert_summary,
            account_age_days=round(age_days),
        )
