"""Currency helpers. Amounts are stored as NUMERIC(12,2)."""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

CENT = Decimal("0.01")


def parse_amount(value: Any) -> float:
    """Lenient amount parsing: anything that is not a finite number becomes 0.

    Rounds to cents half-up, the way NUMERIC(12,2) does.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return 0.0
    if not amount.is_finite():
        return 0.0
    return float(amount.quantize(CENT, rounding=ROUND_HALF_UP))
