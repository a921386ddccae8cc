"""In-memory alert store and review audit log.

Alerts are typed rows with secondary indexes on status, severity, user id and
(transaction id, alert type), so filtered listing never scans the whole set.
Rows are only ever appended or patched one at a time.
"""

from datetime import datetime
from typing import Callable, Dict, List, Optional, Set, Tuple

from aml_engine.errors import NotFound, TransientDependencyFailure
from aml_engine.models import Alert, AlertCandidate, AuditEntry


class AlertStore:
    """Append-and-patch store for alerts."""

    def __init__(self) -> None:
        self._alerts: Dict[int, Alert] = {}
        self._by_status: Dict[str, Set[int]] = {}
        self._by_severity: Dict[str, Set[int]] = {}
        self._by_user: Dict[int, Set[int]] = {}
        self._by_rule: Dict[Tuple[int, str], List[int]] = {}
        self._next_id = 1

    def append(self, candidate: AlertCandidate, scanned_at: datetime) -> Alert:
        """Persist a new alert in `pending` status and return it with its id."""
        alert = Alert(
            id=self._next_id,
            status="pending",
            scanned_at=scanned_at,
            **candidate.model_dump(),
        )
        self._next_id += 1
        self._alerts[alert.id] = alert
        self._by_status.setdefault(alert.status, set()).add(alert.id)
        self._by_severity.setdefault(alert.severity, set()).add(alert.id)
        if alert.user_id is not None:
            self._by_user.setdefault(alert.user_id, set()).add(alert.id)
        self._by_rule.setdefault((alert.transaction_id, alert.alert_type), []).append(alert.id)
        return alert

    def find_for_rule(self, transaction_id: int, alert_type: str) -> Optional[Alert]:
        """Return the first alert a rule raised for a transaction, if any."""
        ids = self._by_rule.get((transaction_id, alert_type))
        if not ids:
            return None
        return self._alerts[ids[0]]

    def get(self, alert_id: int) -> Alert:
        alert = self._alerts.get(alert_id)
        if alert is None:
            raise NotFound("AML alert", alert_id)
        return alert

    def patch_status(self, alert_id: int, **fields) -> Alert:
        """Update status and review fields of a single alert."""
        allowed = {"status", "reviewed_at", "review_notes", "reviewed_by"}
        unknown = set(fields) - allowed
        if unknown:
            raise ValueError(f"Alert fields are immutable: {sorted(unknown)}")
        current = self.get(alert_id)
        updated = current.model_copy(update=fields)
        if updated.status != current.status:
            self._by_status[current.status].discard(alert_id)
            self._by_status.setdefault(updated.status, set()).add(alert_id)
        self._alerts[alert_id] = updated
        return updated

    def list_by_filter(
        self,
        status: Optional[str] = None,
        severity: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> List[Alert]:
        """Return matching alerts, newest first."""
        candidate_sets = []
        if status is not None:
            candidate_sets.append(self._by_status.get(status, set()))
        if severity is not None:
            candidate_sets.append(self._by_severity.get(severity, set()))
        if user_id is not None:
            candidate_sets.append(self._by_user.get(user_id, set()))

        if candidate_sets:
            ids = set.intersection(*candidate_sets)
        else:
            ids = set(self._alerts)

        alerts = [self._alerts[i] for i in ids]
        alerts.sort(key=lambda a: (a.scanned_at, a.id), reverse=True)
        return alerts

    def list_page(
        self,
        page: int,
        page_size: int,
        status: Optional[str] = None,
        severity: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Tuple[List[Alert], int]:
        """Return one page of filtered alerts plus the filtered total."""
        matching = self.list_by_filter(status=status, severity=severity, user_id=user_id)
        start = (page - 1) * page_size
        return matching[start:start + page_size], len(matching)

    def all(self) -> List[Alert]:
        return self.list_by_filter()


class AuditLog:
    """Append-only sink for review actions.

    With a transport configured, an entry is only kept once the transport has
    accepted it. Transport errors surface as TransientDependencyFailure.
    """

    def __init__(self, transport: Optional[Callable[[AuditEntry], None]] = None) -> None:
        self._entries: List[AuditEntry] = []
        self.transport = transport

    def next_id(self) -> int:
        return len(self._entries) + 1

    def record(self, entry: AuditEntry) -> None:
        if self.transport is not None:
            try:
                self.transport(entry)
            except Exception as exc:
                raise TransientDependencyFailure(
                    f"Audit entry for alert {entry.alert_id} not recorded: {exc}"
                ) from exc
        self._entries.append(entry)

    def entries(self, alert_id: Optional[int] = None) -> List[AuditEntry]:
        if alert_id is None:
            return list(self._entries)
        return [e for e in self._entries if e.alert_id == alert_id]
