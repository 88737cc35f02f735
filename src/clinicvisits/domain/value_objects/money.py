"""Money helpers.

Amounts are ``Decimal`` values with at most two fractional digits. Sums stay
exact; rounding for display happens only in ``format_money``.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Union

from ..errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# Keeps every amount, line total and visit total exact in the default context
MAX_AMOUNT = Decimal("1000000000000.00")

MoneyInput = Union[Decimal, int, float, str]


def to_money(value: MoneyInput, field: str = "amount") -> Decimal:
    """Parse a non-negative amount with at most two decimal places.

    Floats are converted through ``str`` so 25.5 becomes Decimal("25.5") and
    not its binary expansion.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", field=field)
    try:
        amount = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be a number", field=field, value=str(value))

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number", field=field)
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative", field=field, value=str(amount))
    ensure_within_limit(amount, field)
    if amount != amount.quantize(CENT):
        raise ValidationError(
            f"{field} cannot have more than two decimal places",
            field=field,
            value=str(amount),
        )
    return amount.quantize(CENT)


def ensure_within_limit(amount: Decimal, field: str = "amount") -> Decimal:
    if amount > MAX_AMOUNT:
        raise ValidationError(
            f"{field} cannot exceed {MAX_AMOUNT}",
            field=field,
            value=str(amount),
            limit=str(MAX_AMOUNT),
        )
    return amount


def money_sum(amounts: Iterable[Decimal]) -> Decimal:
    return sum(amounts, ZERO)


def format_money(amount: Decimal) -> str:
    """Render an amount with exactly two decimals, e.g. ``"125.50"``."""
    return str(amount.quantize(CENT, rounding=ROUND_HALF_UP))


def to_cents(amount: Decimal) -> int:
    return int((amount * 100).to_integral_value(rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)
