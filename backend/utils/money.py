from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

from exceptions import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# Largest gap tolerated between a client-submitted amount and the server-derived one
TOLERANCE = Decimal("0.01")


def to_money(value, field: Optional[str] = None) -> Decimal:
    """Coerce a number to a 2-place Decimal (half-up). None becomes 0.00.

    Floats go through str() so 0.1 stays 0.10 instead of its binary expansion.
    """
    if value is None:
        return ZERO
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError.for_field(field or "amount", f"'{value}' is not a valid amount.")


def clamp_non_negative(value) -> Decimal:
    return max(ZERO, to_money(value))


def money_equal(a, b, tolerance: Decimal = TOLERANCE) -> bool:
    return abs(to_money(a) - to_money(b)) <= tolerance
