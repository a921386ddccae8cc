"""Human-readable formatting shared by alert and risk-factor descriptions."""

from decimal import Decimal


def money(amount: Decimal) -> str:
    """Format an amount in the reporting currency, e.g. ``$60,000``."""
    return f"${amount:,}"


def hours(value: float) -> str:
    return f"{value:g}h"
