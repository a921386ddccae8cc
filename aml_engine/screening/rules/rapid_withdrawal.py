"""Rapid deposit-then-withdrawal rule.

Layering often shows up as money that arrives and leaves almost at once. For
a withdrawal, we total the user's completed deposits in the preceding window;
if the withdrawal takes out most of that total the rule fires.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from aml_engine.formatting import money
from aml_engine.models import RuleHit, Transaction


def check_rapid_withdrawal(
    tx_type: str,
    amount: Decimal,
    timestamp: datetime,
    deposits: Iterable[Transaction],
    window_hours: float = 2,
    ratio: Decimal = Decimal("0.8"),
) -> Optional[RuleHit]:
    """Flag a withdrawal of at least `ratio` of the recent deposit total.

    Only completed deposits created within `window_hours` before `timestamp`
    count. Non-withdrawals never fire.
    """
    if tx_type != "withdrawal":
        return None

    window_start = timestamp - timedelta(hours=window_hours)
    deposit_total = sum(
        (
            t.amount
            for t in deposits
            if t.type == "deposit"
            and t.status == "completed"
            and window_start <= t.created_at <= timestamp
        ),
        Decimal("0"),
    )

    if deposit_total > 0 and amount >= deposit_total * ratio:
        return RuleHit(
            alert_type="rapid_deposit_withdrawal",
            severity="MEDIUM",
            description=(
                f"Withdrawal of {money(amount)} shortly after deposits "
                f"totaling {money(deposit_total)}; potential layering"
            ),
        )

    return None
