"""New-user high-value rule.

Freshly opened accounts moving large sums are a common mule pattern. Account
age is measured at the transaction's timestamp, not at scan time.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from aml_engine.formatting import money
from aml_engine.models import RuleHit


def check_new_user(
    amount: Decimal,
    timestamp: datetime,
    user_created_at: Optional[datetime],
    threshold: Decimal = Decimal("10000"),
    max_age_days: int = 30,
) -> Optional[RuleHit]:
    """Flag amounts above `threshold` from accounts younger than `max_age_days`."""
    if amount <= threshold or user_created_at is None:
        return None

    age_days = (timestamp - user_created_at).total_seconds() / 86400

    if age_days < max_age_days:
        return RuleHit(
            alert_type="new_user_high_value",
            severity="LOW",
            description=(
                f"New user ({round(age_days)} days old) with transaction "
                f"of {money(amount)} > {money(threshold)}"
            ),
        )

    return None
