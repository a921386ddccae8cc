"""High-value transaction rule.

Any single transaction above the threshold is flagged HIGH. Large
individual movements are the simplest laundering signal and usually also
trigger regulatory reporting on their own.
"""

from decimal import Decimal
from typing import Optional

from aml_engine.formatting import money
from aml_engine.models import RuleHit


def check_high_value(
    amount: Decimal,
    threshold: Decimal = Decimal("50000"),
) -> Optional[RuleHit]:
    """Flag the transaction if its amount is strictly above `threshold`."""
    if amount > threshold:
        return RuleHit(
            alert_type="high_value_transaction",
            severity="HIGH",
            description=(
                f"Transaction amount {money(amount)} exceeds "
                f"{money(threshold)} threshold"
            ),
        )

    return None
