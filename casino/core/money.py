"""
Money arithmetic. All amounts are Decimal with two decimal places; the
store keeps them as integer cents so balances never drift.
"""

from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Union

CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_amount(value: Number) -> Decimal:
    """
    Convert user input to a Decimal amount.
    Floats go through str() so 0.1 stays 0.1 instead of its binary expansion.
    Raises ValueError for anything that is not a finite number.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not an amount: {value!r}")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError):
        raise ValueError(f"Not an amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Amount must be finite: {value!r}")
    return amount


def has_cent_precision(amount: Decimal) -> bool:
    try:
        return amount == amount.quantize(CENT)
    except InvalidOperation:
        # Too many digits to hold at cent precision
        return False


def payout_for(stake: Decimal, multiplier: Union[Decimal, int, str]) -> Decimal:
    """stake x multiplier, rounded down to the cent."""
    return (stake * Decimal(str(multiplier))).quantize(CENT, rounding=ROUND_DOWN)


def to_cents(amount: Decimal) -> int:
    return int(amount.quantize(CENT) * 100)


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)
