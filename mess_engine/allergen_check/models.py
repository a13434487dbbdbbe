"""
Allergen Check Models

Pydantic models for the pre-serving allergen check of one student against
one meal variant, and for manager overrides of severe-allergen holds.

CRITICAL CONSTRAINTS:
- ANAPHYLAXIS is an absolute block, never overridable
- SEVERE needs a recorded manager override before serving
- VERIFIED (mild/moderate) may be served, student aware
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class CheckStatus(str, Enum):
    CLEAR = "CLEAR"                          # no conflicts
    CAUTION = "CAUTION"                      # mild/moderate only
    OVERRIDE_REQUIRED = "OVERRIDE_REQUIRED"  # severe present
    BLOCKED = "BLOCKED"                      # anaphylaxis present


class AllergenSeverity(str, Enum):
    VERIFIED = "VERIFIED"
    SEVERE = "SEVERE"
    ANAPHYLAXIS = "ANAPHYLAXIS"


SEVERITY_RANK = {
    AllergenSeverity.ANAPHYLAXIS: 3,
    AllergenSeverity.SEVERE: 2,
    AllergenSeverity.VERIFIED: 1,
}


class AllergenConflict(BaseModel):
    """An allergen present in the variant that the student reacts to."""
    allergen_id: str
    severity: AllergenSeverity = Field(
        description="Most severe bucket holding this allergen for the student"
    )

    class Config:
        extra = "forbid"


class AllergenCheckResult(BaseModel):
    """
    Outcome of checking one variant for one student.

    `safe` means servable without further action (CLEAR or CAUTION).
    """
    student_id: str
    variant_id: str
    status: CheckStatus
    safe: bool
    requires_manager_override: bool = False
    conflicting_allergens: List[AllergenConflict] = Field(default_factory=list)
    reason_codes: List[str] = Field(
        default_factory=list,
        description="e.g. ['BLOCK_ANAPHYLAXIS_PEANUT', 'CAUTION_VERIFIED_DAIRY']"
    )
    block_reason: Optional[str] = None
    notes: Optional[str] = None
    checked_at: datetime
    audit_hash: str = Field(
        default="",
        description="Hash of the check content, checked_at excluded"
    )

    class Config:
        extra = "forbid"


class OverrideRecord(BaseModel):
    """Accountability record for serving despite a severe allergen."""
    student_id: str
    variant_id: str
    overridden_by: str
    override_reason: str
    check_hash: str
    recorded_at: datetime

    class Config:
        extra = "forbid"
