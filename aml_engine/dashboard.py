"""Read-only compliance dashboard rollups over the alert store."""

from datetime import datetime
from typing import Callable

from aml_engine.models import ALERT_STATUSES, SEVERITIES, AmlConfig, DashboardStats, utcnow
from aml_engine.review.queries import alert_view
from aml_engine.storage.alerts import AlertStore
from aml_engine.storage.memory import MemoryLedger


class DashboardAggregator:
    def __init__(
        self,
        alert_store: AlertStore,
        ledger: MemoryLedger,
        config: AmlConfig,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.alert_store = alert_store
        self.ledger = ledger
        self.config = config
        self.clock = clock

    def get_dashboard_stats(self) -> DashboardStats:
        """Count alerts by status and severity and collect high-risk users.

        A user is high-risk if any of their alerts is HIGH severity or has
        been escalated.
        """
        alerts = self.alert_store.all()

        by_status = {s: 0 for s in ALERT_STATUSES}
        by_severity = {s: 0 for s in SEVERITIES}
        high_risk_users: set[int] = set()

        for alert in alerts:
            by_status[alert.status] += 1
            by_severity[alert.severity] += 1
            if alert.user_id is not None and (
                alert.severity == "HIGH" or alert.status == "escalated"
            ):
                high_risk_users.add(alert.user_id)

        return DashboardStats(
            total_alerts=len(alerts),
            alerts_by_status=by_status,
            alerts_by_severity=by_severity,
            high_risk_user_ids=sorted(high_risk_users),
            high_risk_users_count=len(high_risk_users),
            recent_alerts=[
                alert_view(a, self.ledger) for a in alerts[: self.config.recent_alerts_limit]
            ],
            last_updated=self.clock(),
        )
