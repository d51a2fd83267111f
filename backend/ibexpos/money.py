# Overview: Decimal helpers for money, rates and coordinates.

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .validation import ValidationError

CENT = Decimal("0.01")
RATE = Decimal("0.0001")
ZERO = Decimal("0")


def to_decimal(value, field: str = "amount") -> Decimal:
    """
    Parse a JSON number or numeric string into a Decimal.

    Floats go through str() so 0.1 stays 0.1 rather than its binary expansion.
    """
    if value is None or value == "":
        raise ValidationError(f"{field} is required")
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{field} must be a number")
    if not result.is_finite():
        raise ValidationError(f"{field} must be a number")
    return result


def quantize_money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def quantize_rate(value) -> Decimal:
    return Decimal(value).quantize(RATE, rounding=ROUND_HALF_UP)


def money_str(value) -> str | None:
    """Serialize a money column the way the database driver hands numerics out: '12.50'."""
    if value is None:
        return None
    return str(quantize_money(value))


def decimal_str(value) -> str | None:
    if value is None:
        return None
    return str(Decimal(value))


def as_number(value) -> float:
    """Balances shown in the portal are plain JSON numbers."""
    if value is None:
        return 0.0
    return float(quantize_money(value))
