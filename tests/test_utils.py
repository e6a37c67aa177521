"""Money and calendar helpers."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from cardfund.utils.amount import amounts_match, quantize_money, to_decimal
from cardfund.utils.dates import first_day_of_next_month, start_of_month


@pytest.mark.parametrize(
    ("amount", "expected"),
    [
        ("2.345", "2.35"),
        ("2.344", "2.34"),
        ("0.005", "0.01"),
        ("-2.345", "-2.35"),
    ],
)
def test_quantize_money_rounds_half_up(amount, expected):
    assert quantize_money(Decimal(amount)) == Decimal(expected)


def test_to_decimal_from_float():
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal(3) == Decimal("3")


def test_amounts_match_tolerance():
    assert amounts_match(Decimal("10.00"), Decimal("10.01"))
    assert not amounts_match(Decimal("10.00"), Decimal("10.02"))


@pytest.mark.parametrize(
    ("day", "expected"),
    [
        (date(2026, 1, 31), date(2026, 2, 1)),
        (date(2026, 12, 1), date(2027, 1, 1)),
        (date(2024, 2, 29), date(2024, 3, 1)),
    ],
)
def test_first_day_of_next_month(day, expected):
    assert first_day_of_next_month(day) == expected


def test_start_of_month():
    assert start_of_month(datetime(2026, 5, 17, 13, 45, 2, 99)) == datetime(2026, 5, 1)
