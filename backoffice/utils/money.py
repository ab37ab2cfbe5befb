"""Conversions between API decimals and stored integer cents."""

from decimal import Decimal

from backoffice.core.exceptions import InvalidAmountError

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def to_cents(amount: Decimal) -> int:
    """Convert a decimal amount to integer cents. Sub-cent precision is rejected."""
    amount = Decimal(amount)
    cents = amount * 100
    if cents != cents.to_integral_value():
        raise InvalidAmountError(f"Amount {amount} has more than two decimal places")
    return int(cents)


def from_cents(cents: int) -> Decimal:
    """Convert integer cents back to a two-place decimal."""
    return Decimal(int(cents)).scaleb(-2)
