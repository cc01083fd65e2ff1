"""
Fulfillment Money Primitive
===========================
Decimal amounts quantized to cents.

RULES (NON-NEGOTIABLE):
- No floats ever. Inputs are Decimal, int or numeric strings.
- Every stored money value is quantized to 0.01, ROUND_HALF_UP.
- Totals are derived from already-quantized parts, so a stored
  breakdown always re-adds to its stored total.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")

MoneyLike = Union[Decimal, int, str]


def to_decimal(value: MoneyLike, *, field_name: str = "amount") -> Decimal:
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"{field_name} must be Decimal, int or numeric string, not {type(value).__name__}.")
    try:
        result = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValueError(f"{field_name} must be numeric, got {value!r}.") from exc
    if not result.is_finite():
        raise ValueError(f"{field_name} must be finite.")
    return result


def to_money(value: MoneyLike) -> Decimal:
    """Quantize to cents, half-up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, rate: Decimal) -> Decimal:
    """`rate` percent of `amount`, quantized to cents."""
    return to_money(amount * rate / HUNDRED)


def money_sum(values: Iterable[Decimal]) -> Decimal:
    return to_money(sum(values, ZERO))
