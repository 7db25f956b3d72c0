"""Fixed-point money helpers.

Amounts are plain ``int`` minor units (cents). Rates are ``Decimal`` fractions.
All rounding goes through :func:`round_minor_units`, which rounds half-up.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from .exceptions import ConfigurationError, InvalidInputError

MINOR_UNITS = 100
_ONE = Decimal("1")

MajorAmount = Union[Decimal, str, int]


def ensure_amount(value: object, field: str = "amount") -> int:
    """Validate a monetary amount in minor units and return it."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{field} must be an integer number of cents, got {value!r}")
    if value < 0:
        raise InvalidInputError(f"{field} must not be negative, got {value}")
    return value


def round_minor_units(value: Decimal) -> int:
    return int(value.quantize(_ONE, rounding=ROUND_HALF_UP))


def apply_rate(amount: int, rate: Decimal) -> int:
    return round_minor_units(Decimal(amount) * rate)


def to_minor_units(value: MajorAmount) -> int:
    """Convert a major-unit amount such as ``"1000.00"`` to cents."""
    if isinstance(value, (bool, float)):
        raise InvalidInputError(f"Use a decimal string for money, not {type(value).__name__}")
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidInputError(f"Not a monetary amount: {value!r}") from exc
    if not amount.is_finite():
        raise InvalidInputError(f"Monetary amount must be finite, got {value!r}")
    if amount.normalize().as_tuple().exponent < -2:
        raise InvalidInputError(f"Monetary amount has fractions of a cent: {value!r}")
    return round_minor_units(amount * MINOR_UNITS)


def to_major_units(amount: int) -> Decimal:
    return (Decimal(amount) / MINOR_UNITS).quantize(Decimal("0.01"))


def format_money(amount: int, symbol: str = "$") -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{to_major_units(abs(amount)):,}"


def parse_rate(value: object, field: str = "rate") -> Decimal:
    if isinstance(value, (bool, float)):
        value = str(value)
    try:
        rate = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ConfigurationError(f"{field} is not a number: {value!r}") from exc
    if not rate.is_finite() or rate < 0 or rate > 1:
        raise ConfigurationError(f"{field} must be a fraction between 0 and 1, got {value!r}")
    return rate
