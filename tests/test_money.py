from __future__ import annotations

from decimal import Decimal

import pytest

from clinicvisits.domain.errors import ValidationError
from clinicvisits.domain.value_objects.money import (
    MAX_AMOUNT,
    format_money,
    from_cents,
    money_sum,
    to_cents,
    to_money,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (25, Decimal("25.00")),
        (25.5, Decimal("25.50")),
        ("125.5", Decimal("125.50")),
        (Decimal("0.1"), Decimal("0.10")),
        (0, Decimal("0.00")),
    ],
)
def test_to_money_accepts_up_to_two_decimals(raw, expected) -> None:
    assert to_money(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [-1, "-0.01", "12.345", "abc", None, True, float("nan"), "Infinity", "1e30", "1000000000000.01"],
)
def test_to_money_rejects_invalid_amounts(raw) -> None:
    with pytest.raises(ValidationError) as excinfo:
        to_money(raw, field="unit_price")
    assert excinfo.value.details["field"] == "unit_price"


def test_float_sums_stay_exact() -> None:
    total = money_sum([to_money(0.1), to_money(0.2)])
    assert total == Decimal("0.30")
    assert format_money(total) == "0.30"


def test_cents_conversion() -> None:
    assert to_cents(Decimal("125.50")) == 12550
    assert from_cents(12550) == Decimal("125.50")
    assert from_cents(0) == Decimal("0.00")


def test_format_money_pads_to_two_places() -> None:
    assert format_money(Decimal("60")) == "60.00"
    assert format_money(Decimal("66.666")) == "66.67"


def test_largest_amount_is_accepted_and_stored_exactly() -> None:
    amount = to_money("1000000000000")
    assert amount == MAX_AMOUNT
    assert to_cents(amount) == 100000000000000
    assert format_money(amount) == "1000000000000.00"
