# ledger/services/money.py

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from ledger.services.exceptions import InvalidLineItem

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Normalize to a 2dp Decimal. None / "" count as zero."""
    if value is None or value == "":
        return ZERO

    if isinstance(value, Decimal):
        amt = value
    else:
        try:
            amt = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise InvalidLineItem(f"Invalid money value: {value!r}") from exc

    if not amt.is_finite():
        raise InvalidLineItem(f"Invalid money value: {value!r}")

    return amt.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def total(amounts) -> Decimal:
    return sum((to_money(a) for a in amounts), ZERO).quantize(
        TWOPLACES, rounding=ROUND_HALF_UP
    )
