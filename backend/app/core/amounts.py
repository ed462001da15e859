"""
Conversions between user-facing decimal amounts and stored fixed-point units.

USD amounts and token prices are persisted as integers scaled by
AMOUNT_PRECISION so that running totals are exact integer additions.
"""

from decimal import Decimal, InvalidOperation, ROUND_DOWN

from app.core.constants import AMOUNT_PRECISION, MAX_AMOUNT_UNITS

_QUANTUM = Decimal(1) / Decimal(AMOUNT_PRECISION)


def parse_decimal(value) -> Decimal | None:
    """Coerce int/float/str/Decimal into a Decimal, or None if it is not a number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() keeps the shortest repr, so 99.999999 stays 99.999999
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return None


def to_units(amount: Decimal) -> int:
    """Convert a decimal amount to units, truncating below the storage precision."""
    return int(amount.quantize(_QUANTUM, rounding=ROUND_DOWN) * AMOUNT_PRECISION)


def from_units(units: int) -> Decimal:
    return (Decimal(units) / AMOUNT_PRECISION).normalize()


def tokens_for(amount_units: int, price_units: int) -> int:
    """Whole tokens bought by `amount_units` at `price_units` per token (floor)."""
    return amount_units // price_units


# Largest decimal amount whose units fit the storage columns; compare before to_units
MAX_AMOUNT = from_units(MAX_AMOUNT_UNITS)
