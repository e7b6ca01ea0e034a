"""Conversions between major currency units and wallet cents."""
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize(amount) -> Decimal:
    return to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount) -> int:
    """Convert a major-unit amount to integer cents."""

    return int((quantize(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / Decimal(100)).quantize(CENT)


def format_cents(cents: int) -> str:
    return f"{from_cents(cents):.2f}"


__all__ = ["CENT", "to_decimal", "quantize", "to_cents", "from_cents", "format_cents"]
