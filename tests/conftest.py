"""Shared fixtures for the test suite."""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from fastapi.testclient import TestClient

from aml_engine.dashboard import DashboardAggregator
from aml_engine.main import app
from aml_engine.models import AlertCandidate, AmlConfig, Transaction, UserProfile
from aml_engine.review.queries import AlertQueries
from aml_engine.review.workflow import ReviewWorkflow
from aml_engine.risk.scorer import RiskScorer
from aml_engine.screening.orchestrator import ScanOrchestrator
from aml_engine.storage.alerts import AlertStore, AuditLog
from aml_engine.storage.memory import MemoryLedger
from aml_engine.storage.notifications import NotificationOutbox


# Fixed "now" for every engine test so windows and account ages are stable
NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def parse_ts(ts: str) -> datetime:
    return datetime.fromisoformat(ts.replace("Z", "+00:00"))


def make_tx(
    tx_id=1,
    user_id=7,
    tx_type="deposit",
    amount="100",
    status="completed",
    timestamp="2026-03-10T11:00:00Z",
) -> Transaction:
    return Transaction(
        id=tx_id,
        user_id=user_id,
        type=tx_type,
        amount=Decimal(str(amount)),
        status=status,
        created_at=parse_ts(timestamp),
    )


def make_user(
    user_id=7,
    kyc_status="approved",
    kyc_level=3,
    role="investor",
    age_days=400,
) -> UserProfile:
    return UserProfile(
        id=user_id,
        email=f"user{user_id}@example.com",
        first_name="Test",
        last_name=f"User{user_id}",
        kyc_status=kyc_status,
        kyc_level=kyc_level,
        role=role,
        created_at=NOW - timedelta(days=age_days),
    )


def make_candidate(
    tx_id=1,
    user_id=7,
    alert_type="high_value_transaction",
    severity="HIGH",
    amount="60000",
) -> AlertCandidate:
    return AlertCandidate(
        transaction_id=tx_id,
        user_id=user_id,
        alert_type=alert_type,
        severity=severity,
        description="test alert",
        amount=Decimal(str(amount)),
    )


@pytest.fixture
def config():
    return AmlConfig()


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def ledger():
    return MemoryLedger()


@pytest.fixture
def alert_store():
    return AlertStore()


@pytest.fixture
def audit_log():
    return AuditLog()


@pytest.fixture
def notifier():
    return NotificationOutbox()


@pytest.fixture
def orchestrator(ledger, alert_store, notifier, config, clock):
    return ScanOrchestrator(ledger, alert_store, notifier, config, clock=clock)


@pytest.fixture
def scorer(ledger, alert_store, config, clock):
    return RiskScorer(ledger, alert_store, config, clock=clock)


@pytest.fixture
def workflow(alert_store, audit_log, clock):
    return ReviewWorkflow(alert_store, audit_log, clock=clock)


@pytest.fixture
def dashboard(alert_store, ledger, config, clock):
    return DashboardAggregator(alert_store, ledger, config, clock=clock)


@pytest.fixture
def queries(alert_store, ledger, config):
    return AlertQueries(alert_store, ledger, config)


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
