"""
Money helpers shared by the writer and the aggregator.

All arithmetic stays in Decimal; floats only appear at the display edge
(percentages rounded to 2 places).

Usage:
    from homebudget.utils.money import percentage, to_display_percent

    percentage(Decimal("1300"), Decimal("1500"))  -> Decimal("86.666...")
    to_display_percent(Decimal("86.666"))         -> 86.67
"""
from decimal import Decimal, ROUND_HALF_UP

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def percentage(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole * 100, or 0 when whole is not positive."""
    if whole <= ZERO:
        return ZERO
    return part / whole * HUNDRED


def to_display_percent(value: Decimal) -> float:
    """Round an unrounded percentage for responses (2 decimal places)."""
    return float(value.quantize(CENT, rounding=ROUND_HALF_UP))
