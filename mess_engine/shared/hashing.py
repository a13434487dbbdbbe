"""
Content hashing for allergen-check seals and offer-set selections.

A hash covers what a result says, not when it was produced: timestamps and
the hash fields themselves are left out, so re-running the same check or
selection reproduces the same digest.
"""

import hashlib
import hmac
import json
from typing import Any, FrozenSet

from pydantic import BaseModel

HASH_PREFIX = "sha256:"

# Never part of hashed content
UNHASHED_FIELDS = frozenset([
    "checked_at",
    "recorded_at",
    "generated_at",
    "timestamp",
    "audit_hash",
    "selection_hash",
])


def _plain(obj: Any, exclude: FrozenSet[str]) -> Any:
    if isinstance(obj, BaseModel):
        obj = obj.model_dump(mode="json")
    if isinstance(obj, dict):
        return {k: _plain(v, exclude) for k, v in obj.items() if k not in exclude}
    if isinstance(obj, (list, tuple)):
        return [_plain(item, exclude) for item in obj]
    if isinstance(obj, float) and obj.is_integer():
        # 40 and 40.0 are the same price
        return int(obj)
    return obj


def canonical_json(obj: Any, exclude: FrozenSet[str] = UNHASHED_FIELDS) -> str:
    """
    Serialize models, dicts and lists to one stable JSON string.

    Keys are sorted at every level; fields named in `exclude` are dropped
    at every level.
    """
    return json.dumps(
        _plain(obj, exclude),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
    )


def content_hash(obj: Any, exclude: FrozenSet[str] = UNHASHED_FIELDS) -> str:
    """Return "sha256:<hex>" over the canonical JSON of obj."""
    digest = hashlib.sha256(canonical_json(obj, exclude).encode("utf-8")).hexdigest()
    return f"{HASH_PREFIX}{digest}"


def matches_hash(obj: Any, expected: str, exclude: FrozenSet[str] = UNHASHED_FIELDS) -> bool:
    """True when obj hashes to `expected`."""
    return hmac.compare_digest(
        content_hash(obj, exclude).encode("utf-8"),
        (expected or "").encode("utf-8"),
    )
