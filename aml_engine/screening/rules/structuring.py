"""Structuring detection rule.

Identifies attempts to split a large movement of funds into several smaller
transactions to stay under reporting thresholds. Example: three deposits of
$8,000 inside one hour instead of a single $24,000 deposit.

The window is anchored to the scanned transaction's own timestamp rather than
to the wall clock, so a batch re-scan days later reaches the same verdict as
the scan performed when the transaction completed.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from aml_engine.formatting import hours, money
from aml_engine.models import RuleHit, Transaction


def check_structuring(
    transaction_id: int,
    user_id: int,
    amount: Decimal,
    timestamp: datetime,
    history: Iterable[Transaction],
    threshold: Decimal = Decimal("20000"),
    window_hours: float = 1,
) -> Optional[RuleHit]:
    """Detect potential structuring by the user.

    Sums every other transaction by the user created in the `window_hours`
    before `timestamp`, adds the scanned amount, and fires when the total is
    strictly above `threshold`.
    """
    window_start = timestamp - timedelta(hours=window_hours)

    total = amount
    for t in history:
        if t.id == transaction_id:
            continue
        if window_start <= t.created_at <= timestamp:
            total += t.amount

    if total > threshold:
        return RuleHit(
            alert_type="structuring_suspected",
            severity="MEDIUM",
            description=(
                f"Multiple transactions from user {user_id} within "
                f"{hours(window_hours)} totaling {money(total)} "
                f"(>{money(threshold)})"
            ),
        )

    return None
