"""Scan orchestrator.

Drives the rule evaluator over ledger transactions and persists whatever it
raises:
  - scan_transaction: one transaction, called when it completes
  - scan_recent: a sequential sweep over a look-back window, followed by a
    single count-only notification to every admin if anything was flagged

Re-scanning a transaction appends a fresh copy of each alert unless
`deduplicate_alerts` is switched on, in which case an alert is only created
if none exists yet for the same (transaction, alert type) pair.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from aml_engine.errors import NotFound, TransientDependencyFailure, ValidationFailure
from aml_engine.models import (
    Alert,
    AmlConfig,
    BatchScanResult,
    FlaggedTransaction,
    Transaction,
    utcnow,
)
from aml_engine.screening.evaluator import RuleEvaluator, ScanContext
from aml_engine.storage.alerts import AlertStore
from aml_engine.storage.memory import MemoryLedger
from aml_engine.storage.notifications import NotificationOutbox

log = logging.getLogger(__name__)

EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


class ScanOrchestrator:
    """Runs single-transaction and batch AML scans."""

    def __init__(
        self,
        ledger: MemoryLedger,
        alert_store: AlertStore,
        notifier: NotificationOutbox,
        config: AmlConfig,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.ledger = ledger
        self.alert_store = alert_store
        self.notifier = notifier
        self.evaluator = RuleEvaluator(config)
        self.clock = clock

    @property
    def config(self) -> AmlConfig:
        return self.evaluator.config

    @config.setter
    def config(self, value: AmlConfig) -> None:
        self.evaluator.config = value

    def build_context(self, tx: Transaction) -> ScanContext:
        """Gather the user's windowed history the rules need for `tx`."""
        if tx.user_id is None:
            return ScanContext()

        start, end = self.evaluator.structuring_window(tx)
        history = self.ledger.list_by_user_in_window(
            tx.user_id, start=start, end=end, exclude_id=tx.id
        )

        deposits = []
        if tx.type == "withdrawal":
            start, end = self.evaluator.deposit_window(tx)
            deposits = self.ledger.list_by_user_in_window(
                tx.user_id, start=start, end=end, tx_type="deposit", status="completed"
            )

        try:
            user_created_at = self.ledger.get_user(tx.user_id).created_at
        except NotFound:
            user_created_at = None

        return ScanContext(
            user_history=history,
            recent_deposits=deposits,
            user_created_at=user_created_at,
        )

    def scan_transaction(self, transaction_id: int) -> list[Alert]:
        """Run every rule against one transaction and persist the alerts.

        Raises NotFound if the transaction does not exist.
        """
        tx = self.ledger.get(transaction_id)
        candidates = self.evaluator.evaluate(tx, self.build_context(tx))
        scanned_at = self.clock()

        alerts: list[Alert] = []
        for candidate in candidates:
            if self.config.deduplicate_alerts:
                existing = self.alert_store.find_for_rule(tx.id, candidate.alert_type)
                if existing is not None:
                    log.info(
                        "Skipping duplicate %s alert for transaction #%s (alert #%s)",
                        candidate.alert_type, tx.id, existing.id,
                    )
                    continue

            alert = self.alert_store.append(candidate, scanned_at=scanned_at)
            alerts.append(alert)
            log.warning(
                "AML alert [%s]: %s for transaction #%s",
                alert.severity, alert.alert_type, tx.id,
            )

        return alerts

    def scan_recent(self, hours_back: Optional[float] = None) -> BatchScanResult:
        """Scan every transaction created in the last `hours_back` hours.

        A failure on one transaction is logged and counted; it never stops
        the sweep. A window reaching past the earliest representable time
        covers the whole ledger.
        """
        if hours_back is None:
            hours_back = self.config.batch_hours_back
        if not hours_back > 0:
            raise ValidationFailure(f"hours_back must be positive, got {hours_back}")

        now = self.clock()
        try:
            since = now - timedelta(hours=hours_back)
        except OverflowError:
            since = EARLIEST
        refs = self.ledger.list_since(since)
        log.info("Batch AML scan: %d transactions in last %gh", len(refs), hours_back)

        total_alerts = 0
        flagged: list[FlaggedTransaction] = []
        failed: list[int] = []

        for ref in refs:
            try:
                alerts = self.scan_transaction(ref.id)
            except Exception as exc:
                log.error("Failed to scan transaction %s: %s", ref.id, exc)
                failed.append(ref.id)
                continue
            if alerts:
                total_alerts += len(alerts)
                flagged.append(FlaggedTransaction(transaction_id=ref.id, alert_count=len(alerts)))

        if total_alerts > 0:
            self._notify_admins(total_alerts, len(flagged), len(refs), hours_back)

        return BatchScanResult(
            transactions_scanned=len(refs),
            total_alerts=total_alerts,
            flagged_transactions=flagged,
            failed_transactions=failed,
            failed_count=len(failed),
            hours_back=hours_back,
            scanned_at=now,
        )

    def _notify_admins(
        self,
        total_alerts: int,
        flagged_count: int,
        scanned_count: int,
        hours_back: float,
    ) -> None:
        # Notification is best-effort; a delivery failure never fails the scan
        try:
            admins = self.ledger.list_users_by_role(self.config.admin_role)
        except Exception as exc:
            log.warning("Could not look up admins to notify: %s", exc)
            return

        for admin in admins:
            try:
                self.notifier.send(
                    admin.id,
                    "aml_scan_complete",
                    "AML Scan Complete",
                    f"Batch scan found {total_alerts} alert(s) across "
                    f"{flagged_count} transaction(s) in the last {hours_back:g} hours.",
                    {"total_alerts": total_alerts, "transactions_scanned": scanned_count},
                )
            except TransientDependencyFailure as exc:
                log.warning("Failed to notify admin %s of batch scan: %s", admin.id, exc)
