"""Money amount utilities."""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")

# Difference below which two balances are considered equal
BALANCE_TOLERANCE = Decimal("0.01")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Convert an amount to Decimal without binary float artifacts.

    Floats are converted through their shortest repr, so 0.1 -> Decimal("0.1").
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def quantize_money(amount: Decimal) -> Decimal:
    """Round to 2 decimal places, half-up.

    Example: 2.345 -> 2.35, 2.344 -> 2.34
    """
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def percentage_of(amount: Decimal, percentage: Decimal) -> Decimal:
    """Exact ``amount * percentage / 100`` (not rounded)."""
    return amount * percentage / Decimal("100")


def amounts_match(a: Decimal, b: Decimal) -> bool:
    """Whether two amounts are equal within the balance tolerance."""
    return abs(a - b) <= BALANCE_TOLERANCE
