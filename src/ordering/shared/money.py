"""Fixed-point money helpers.

Amounts travel as ``Decimal`` quantized to cents and are persisted as integer
minor units. Floats are rejected so binary rounding never leaks into totals.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")


def to_amount(value) -> Decimal:
    """Parse ``value`` (Decimal, int or numeric string) without rounding it."""
    if isinstance(value, float):
        raise TypeError("Money must not be built from float; pass a Decimal or string")
    if isinstance(value, bool):
        raise TypeError("Money must not be built from bool")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid monetary amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Invalid monetary amount: {value!r}")
    return amount


def to_money(value) -> Decimal:
    """Coerce ``value`` to a 2-place Decimal."""
    return to_amount(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(value) -> int:
    return int(to_money(value) * 100)


def from_cents(cents: int | None) -> Decimal:
    return (Decimal(cents or 0) / 100).quantize(CENT)
