"""Pydantic models for the AML transaction-monitoring engine."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

AlertType = Literal[
    "high_value_transaction",
    "structuring_suspected",
    "rapid_deposit_withdrawal",
    "new_user_high_value",
]
Severity = Literal["LOW", "MEDIUM", "HIGH"]
AlertStatus = Literal["pending", "reviewed", "escalated", "cleared", "reported"]
ReviewStatus = Literal["reviewed", "escalated", "cleared", "reported"]
KycStatus = Literal["pending", "approved", "rejected"]
RiskLevel = Literal["low", "medium", "high"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

ALERT_STATUSES: tuple[str, ...] = ("pending", "reviewed", "escalated", "cleared", "reported")
REVIEW_STATUSES: tuple[str, ...] = ("reviewed", "escalated", "cleared", "reported")
SEVERITIES: tuple[str, ...] = ("LOW", "MEDIUM", "HIGH")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so window comparisons never mix kinds."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ---------------------------------------------------------------------------
# Ledger and user directory (read-only to the engine)
# ---------------------------------------------------------------------------


class Transaction(BaseModel):
    """A ledger transaction. Immutable once completed."""
    id: int
    user_id: Optional[int] = None
    type: str  # deposit | withdrawal | investment | ...
    amount: Decimal = Field(ge=0)
    status: str = "completed"
    created_at: datetime
    gateway: Optional[str] = None

    @field_validator("created_at")
    @classmethod
    def created_at_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class TransactionRequest(BaseModel):
    """Incoming ledger transaction; the ledger assigns the id."""
    user_id: Optional[int] = None
    type: str
    amount: Decimal = Field(ge=0)
    status: str = "completed"
    created_at: Optional[datetime] = None
    gateway: Optional[str] = None


class TransactionRef(BaseModel):
    """Minimal projection returned by window listings."""
    id: int
    created_at: datetime


class UserProfile(BaseModel):
    """Snapshot of a platform user as the engine sees it."""
    id: int
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    kyc_status: KycStatus = "pending"
    kyc_level: int = Field(default=0, ge=0)
    role: str = "investor"
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def created_at_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def display_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------


class RuleHit(BaseModel):
    """Output of an individual rule that fired."""
    alert_type: AlertType
    severity: Severity
    description: str


class AlertCandidate(BaseModel):
    """An alert produced by the evaluator, not yet persisted."""
    transaction_id: int
    user_id: Optional[int] = None
    alert_type: AlertType
    severity: Severity
    description: str
    amount: Decimal


class Alert(AlertCandidate):
    """A persisted alert. Only status and the review fields ever change."""
    id: int
    status: AlertStatus = "pending"
    scanned_at: datetime
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    reviewed_by: Optional[int] = None


class AlertUser(BaseModel):
    """Who an alert is about, as shown next to it in listings."""
    id: int
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class AlertUserDetail(AlertUser):
    kyc_status: KycStatus
    kyc_level: int


class AlertView(Alert):
    """A persisted alert plus its user, if the user is still in the directory."""
    user: Optional[AlertUser] = None


class AlertDetail(BaseModel):
    """An alert together with the transaction that triggered it and its user."""
    alert: Alert
    transaction: Optional[Transaction] = None
    user: Optional[AlertUserDetail] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class AlertPage(BaseModel):
    data: list[AlertView]
    pagination: Pagination


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------


class FlaggedTransaction(BaseModel):
    transaction_id: int
    alert_count: int


class BatchScanResult(BaseModel):
    """Outcome of sweeping every transaction in a look-back window."""
    transactions_scanned: int
    total_alerts: int
    flagged_transactions: list[FlaggedTransaction]
    failed_transactions: list[int]
    failed_count: int
    hours_back: float
    scanned_at: datetime


class LedgerPostResult(BaseModel):
    """A transaction appended to the ledger plus any alerts its scan raised."""
    transaction: Transaction
    alerts: list[Alert]


# ---------------------------------------------------------------------------
# Review workflow and audit trail
# ---------------------------------------------------------------------------


class ReviewRequest(BaseModel):
    """Compliance reviewer's decision on an alert."""
    status: ReviewStatus
    notes: Optional[str] = None


class ReviewResult(BaseModel):
    message: str
    alert_id: int
    previous_status: AlertStatus
    new_status: AlertStatus
    reviewed_at: datetime


class AuditEntry(BaseModel):
    """Immutable record of a review action."""
    id: int
    action: str = "aml_alert_reviewed"
    alert_id: int
    transaction_id: int
    previous_status: AlertStatus
    new_status: AlertStatus
    notes: Optional[str] = None
    reviewer_id: int
    recorded_at: datetime


class Notification(BaseModel):
    user_id: int
    kind: str
    title: str
    body: str
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


# ---------------------------------------------------------------------------
# Risk scoring
# ---------------------------------------------------------------------------


class RiskFactor(BaseModel):
    factor: str
    impact: int
    description: str


class TransactionSummary(BaseModel):
    total_transactions: int
    total_volume: Decimal


class AlertSummary(BaseModel):
    total_alerts: int
    pending_alerts: int
    escalated_alerts: int
    high_severity_alerts: int


class RiskReport(BaseModel):
    """Composite risk score for a user. Computed on demand, never stored."""
    user_id: int
    email: Optional[str] = None
    name: str = ""
    risk_score: int = Field(ge=1, le=100)
    risk_level: RiskLevel
    factors: list[RiskFactor]
    transaction_summary: TransactionSummary
    alert_summary: AlertSummary
    account_age_days: int


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


class DashboardStats(BaseModel):
    total_alerts: int
    alerts_by_status: dict[str, int]
    alerts_by_severity: dict[str, int]
    high_risk_user_ids: list[int]
    high_risk_users_count: int
    recent_alerts: list[AlertView]
    last_updated: datetime


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class AmlConfig(BaseModel):
    """Tunable thresholds for the rule set, the risk scorer and the service.

    Windows, thresholds and page sizes must be positive; a config that would
    make later scans or listings fail is rejected when it is loaded.
    """
    # Rule evaluator
    high_amount_threshold: Decimal = Field(default=Decimal("50000"), gt=0)
    structuring_threshold: Decimal = Field(default=Decimal("20000"), gt=0)
    structuring_window_hours: float = Field(default=1, gt=0)
    rapid_withdrawal_window_hours: float = Field(default=2, gt=0)
    rapid_withdrawal_ratio: Decimal = Field(default=Decimal("0.8"), gt=0)
    new_user_threshold: Decimal = Field(default=Decimal("10000"), gt=0)
    new_user_max_age_days: int = Field(default=30, ge=0)

    # Risk scorer
    volume_very_high: Decimal = Field(default=Decimal("500000"), gt=0)
    volume_high: Decimal = Field(default=Decimal("100000"), gt=0)
    volume_moderate: Decimal = Field(default=Decimal("25000"), gt=0)
    frequent_alert_count: int = Field(default=5, ge=0)
    age_new_days: int = Field(default=30, ge=0)
    age_recent_days: int = Field(default=90, ge=0)
    age_established_days: int = Field(default=365, ge=0)
    risk_low_max: int = Field(default=30, ge=1, le=100)
    risk_medium_max: int = Field(default=60, ge=1, le=100)

    # Orchestration and service
    batch_hours_back: float = Field(default=24, gt=0)
    recent_alerts_limit: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)
    admin_role: str = "admin"
    deduplicate_alerts: bool = False
    scan_on_completion: bool = True
    # Applied to the root logger at startup and on every config update
    log_level: LogLevel = "INFO"
