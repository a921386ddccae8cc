"""Alert lookups for compliance staff: filtered pages and single-alert detail."""

import math
from typing import Optional

from aml_engine.errors import NotFound, ValidationFailure
from aml_engine.models import (
    Alert,
    AlertDetail,
    AlertPage,
    AlertUser,
    AlertUserDetail,
    AlertView,
    AmlConfig,
    Pagination,
    UserProfile,
)
from aml_engine.storage.alerts import AlertStore
from aml_engine.storage.memory import MemoryLedger

DEFAULT_PAGE_SIZE = 20


def find_user(ledger: MemoryLedger, user_id: Optional[int]) -> Optional[UserProfile]:
    if user_id is None:
        return None
    try:
        return ledger.get_user(user_id)
    except NotFound:
        return None


def alert_view(alert: Alert, ledger: MemoryLedger) -> AlertView:
    """Attach the alert's user (id, email, name) when the directory has them."""
    user = find_user(ledger, alert.user_id)
    snapshot = None
    if user is not None:
        snapshot = AlertUser(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
        )
    return AlertView(**alert.model_dump(), user=snapshot)


class AlertQueries:
    def __init__(self, alert_store: AlertStore, ledger: MemoryLedger, config: AmlConfig) -> None:
        self.alert_store = alert_store
        self.ledger = ledger
        self.config = config

    def list_alerts(
        self,
        status: Optional[str] = None,
        severity: Optional[str] = None,
        user_id: Optional[int] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> AlertPage:
        """Return one page of alerts, newest first, each with its user.

        Filters are applied before paging, so `total` is the number of
        matching alerts. `limit` is capped at `max_page_size`.
        """
        if page < 1 or limit < 1:
            raise ValidationFailure("page and limit must be positive")
        limit = min(limit, self.config.max_page_size)

        alerts, total = self.alert_store.list_page(
            page, limit, status=status, severity=severity, user_id=user_id
        )
        return AlertPage(
            data=[alert_view(a, self.ledger) for a in alerts],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                total_pages=math.ceil(total / limit),
            ),
        )

    def get_alert(self, alert_id: int) -> AlertDetail:
        """Return an alert with its triggering transaction and its user's KYC
        standing. Either is None once it is gone from the ledger."""
        alert = self.alert_store.get(alert_id)
        try:
            transaction = self.ledger.get(alert.transaction_id)
        except NotFound:
            transaction = None

        user = find_user(self.ledger, alert.user_id)
        snapshot = None
        if user is not None:
            snapshot = AlertUserDetail(
                id=user.id,
                email=user.email,
                first_name=user.first_name,
                last_name=user.last_name,
                kyc_status=user.kyc_status,
                kyc_level=user.kyc_level,
            )
        return AlertDetail(alert=alert, transaction=transaction, user=snapshot)
