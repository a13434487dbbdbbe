"""Mess Engine Shared Utilities"""

from .hashing import (
    canonical_json,
    content_hash,
    matches_hash,
)
from .rounding import (
    round_half_up,
    percentage,
    round_currency,
)

__all__ = [
    "canonical_json",
    "content_hash",
    "matches_hash",
    "round_half_up",
    "percentage",
    "round_currency",
]
