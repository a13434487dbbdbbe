"""
Rounding helpers for report figures.

The reporting UI formats these values without re-deriving them, so halves
always round up (12.5 -> 13, 0.125 -> 0.13, 1.005 -> 1.01) instead of
Python's round-half-to-even. Values are rounded as their shortest decimal
repr, so binary float error does not pull a written half below the line.
All report figures are non-negative.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float]


def round_half_up(value: Number, digits: int = 0) -> float:
    """Round to `digits` decimals with halves rounded up."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def percentage(part: Number, whole: Number) -> int:
    """Whole-number percentage of part/whole; 0 when whole is 0."""
    if not whole:
        return 0
    return int(round_half_up(part / whole * 100))


def round_currency(value: Number) -> float:
    """Two-decimal currency amount."""
    return round_half_up(value, 2)
