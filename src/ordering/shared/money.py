"""Monetary rounding shared by discount resolution and order placement."""

from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("0.01")


def to_money(amount) -> float:
    """Round an amount to 2 decimal places, half-up, as stored on orders."""
    return float(Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP))
