"""Tests for the in-memory ledger, alert store and audit log."""

from datetime import datetime, timezone

import pytest

from aml_engine.errors import NotFound, TransientDependencyFailure
from aml_engine.models import AuditEntry
from aml_engine.storage.alerts import AuditLog
from tests.conftest import NOW, make_candidate, make_tx, make_user


class TestMemoryLedger:
    def test_add_and_get(self, ledger):
        ledger.add(make_tx(tx_id=1))
        assert ledger.get(1).id == 1

    def test_get_missing_not_found(self, ledger):
        with pytest.raises(NotFound):
            ledger.get(1)

    def test_duplicate_id_rejected(self, ledger):
        ledger.add(make_tx(tx_id=1))
        with pytest.raises(ValueError):
            ledger.add(make_tx(tx_id=1))

    def test_next_transaction_id(self, ledger):
        assert ledger.next_transaction_id() == 1
        ledger.add(make_tx(tx_id=4))
        assert ledger.next_transaction_id() == 5

    def test_window_bounds_inclusive(self, ledger):
        ledger.add(make_tx(tx_id=1, timestamp="2026-03-10T10:00:00Z"))
        ledger.add(make_tx(tx_id=2, timestamp="2026-03-10T11:00:00Z"))
        ledger.add(make_tx(tx_id=3, timestamp="2026-03-10T12:00:00Z"))
        start = datetime(2026, 3, 10, 10, 0, tzinfo=timezone.utc)
        end = datetime(2026, 3, 10, 11, 0, tzinfo=timezone.utc)
        assert [t.id for t in ledger.list_by_user_in_window(7, start, end)] == [1, 2]

    def test_window_exclude_type_and_status(self, ledger):
        ledger.add(make_tx(tx_id=1, tx_type="deposit"))
        ledger.add(make_tx(tx_id=2, tx_type="deposit", status="pending"))
        ledger.add(make_tx(tx_id=3, tx_type="withdrawal"))
        assert [t.id for t in ledger.list_by_user_in_window(7, exclude_id=3)] == [1, 2]
        assert [t.id for t in ledger.list_by_user_in_window(7, tx_type="deposit", status="completed")] == [1]

    def test_window_other_users_isolated(self, ledger):
        ledger.add(make_tx(tx_id=1, user_id=7))
        ledger.add(make_tx(tx_id=2, user_id=8))
        ledger.add(make_tx(tx_id=3, user_id=None))
        assert [t.id for t in ledger.list_by_user_in_window(8)] == [2]

    def test_list_since_newest_first(self, ledger):
        ledger.add(make_tx(tx_id=1, timestamp="2026-03-09T10:00:00Z"))
        ledger.add(make_tx(tx_id=2, timestamp="2026-03-10T10:00:00Z"))
        ledger.add(make_tx(tx_id=3, timestamp="2026-03-10T11:00:00Z"))
        since = datetime(2026, 3, 10, 0, 0, tzinfo=timezone.utc)
        assert [r.id for r in ledger.list_since(since)] == [3, 2]

    def test_naive_timestamps_treated_as_utc(self, ledger):
        tx = make_tx(timestamp="2026-03-10T10:00:00")
        assert tx.created_at.tzinfo is not None

    def test_users_by_role(self, ledger):
        ledger.add_user(make_user(user_id=1, role="admin"))
        ledger.add_user(make_user(user_id=2))
        assert [u.id for u in ledger.list_users_by_role("admin")] == [1]

    def test_missing_user_not_found(self, ledger):
        with pytest.raises(NotFound):
            ledger.get_user(3)


class TestAlertStore:
    def test_append_assigns_ids_and_pending(self, alert_store):
        first = alert_store.append(make_candidate(tx_id=1), scanned_at=NOW)
        second = alert_store.append(make_candidate(tx_id=2), scanned_at=NOW)
        assert (first.id, second.id) == (1, 2)
        assert first.status == "pending"
        assert first.scanned_at == NOW

    def test_same_transaction_may_have_many_alerts(self, alert_store):
        alert_store.append(make_candidate(tx_id=1, alert_type="high_value_transaction"), scanned_at=NOW)
        alert_store.append(make_candidate(tx_id=1, alert_type="structuring_suspected",
                                          severity="MEDIUM"), scanned_at=NOW)
        assert len(alert_store.all()) == 2

    def test_get_missing_not_found(self, alert_store):
        with pytest.raises(NotFound):
            alert_store.get(1)

    def test_filter_by_severity_and_user(self, alert_store):
        alert_store.append(make_candidate(tx_id=1, user_id=7, severity="HIGH"), scanned_at=NOW)
        alert_store.append(make_candidate(tx_id=2, user_id=8, severity="HIGH"), scanned_at=NOW)
        alert_store.append(make_candidate(tx_id=3, user_id=7, severity="LOW"), scanned_at=NOW)
        assert [a.transaction_id for a in alert_store.list_by_filter(severity="HIGH", user_id=7)] == [1]
        assert len(alert_store.list_by_filter(user_id=7)) == 2

    def test_patch_rejects_immutable_fields(self, alert_store):
        alert = alert_store.append(make_candidate(), scanned_at=NOW)
        with pytest.raises(ValueError):
            alert_store.patch_status(alert.id, amount=1)
        assert alert_store.get(alert.id).amount == alert.amount

    def test_find_for_rule(self, alert_store):
        assert alert_store.find_for_rule(1, "high_value_transaction") is None
        alert = alert_store.append(make_candidate(tx_id=1), scanned_at=NOW)
        assert alert_store.find_for_rule(1, "high_value_transaction").id == alert.id
        assert alert_store.find_for_rule(1, "structuring_suspected") is None

    def test_list_page(self, alert_store):
        for i in range(5):
            alert_store.append(make_candidate(tx_id=i), scanned_at=NOW)
        page, total = alert_store.list_page(2, 2)
        assert total == 5
        assert [a.id for a in page] == [3, 2]


class TestAuditLog:
    def _entry(self, audit_log, alert_id):
        return AuditEntry(
            id=audit_log.next_id(),
            alert_id=alert_id,
            transaction_id=1,
            previous_status="pending",
            new_status="cleared",
            reviewer_id=99,
            recorded_at=NOW,
        )

    def test_record_and_filter(self, audit_log):
        audit_log.record(self._entry(audit_log, 1))
        audit_log.record(self._entry(audit_log, 2))
        assert [e.id for e in audit_log.entries()] == [1, 2]
        assert [e.alert_id for e in audit_log.entries(alert_id=2)] == [2]

    def test_entries_returns_copy(self, audit_log):
        audit_log.record(self._entry(audit_log, 1))
        audit_log.entries().clear()
        assert len(audit_log.entries()) == 1

    def test_transport_receives_entries(self):
        shipped = []
        audit_log = AuditLog(transport=shipped.append)
        audit_log.record(self._entry(audit_log, 1))
        assert [e.alert_id for e in shipped] == [1]
        assert len(audit_log.entries()) == 1

    def test_transport_failure_not_recorded(self):
        def offline(entry):
            raise TimeoutError("audit service timed out")

        audit_log = AuditLog(transport=offline)
        with pytest.raises(TransientDependencyFailure):
            audit_log.record(self._entry(audit_log, 1))
        assert audit_log.entries() == []
