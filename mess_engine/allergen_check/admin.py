"""
Allergen Check Endpoints

API endpoints for the pre-serving allergen check.

GET  /api/v1/mess/allergen-check/health      - Health check
POST /api/v1/mess/allergen-check/check       - One student, one variant
POST /api/v1/mess/allergen-check/check/batch - One student, many variants
POST /api/v1/mess/allergen-check/override    - Manager override (admin key)

Security: override requires X-Admin-API-Key when ADMIN_API_KEY is set.
"""

import os
import logging
from datetime import datetime, timezone
from typing import List
from fastapi import APIRouter, Header, HTTPException, Depends
from pydantic import BaseModel, Field

from .models import AllergenCheckResult, CheckStatus, OverrideRecord
from .check import (
    check_variant,
    check_variants,
    record_override,
    OverrideNotPermittedError,
)
from mess_engine.variants.models import StudentDietaryProfile, VariantOption

logger = logging.getLogger(__name__)

MODULE_VERSION = "allergen_check_v1"


# Router
router = APIRouter(
    prefix="/api/v1/mess/allergen-check",
    tags=["mess-allergen-check"],
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


# Request/Response models

class CheckRequest(BaseModel):
    student: StudentDietaryProfile
    variant: VariantOption


class BatchCheckRequest(BaseModel):
    student: StudentDietaryProfile
    variants: List[VariantOption]


class OverrideRequest(BaseModel):
    """
    Override of a severe-allergen hold.

    Carries the sealed check plus the student and variant it was issued
    for; the server re-runs the check before accepting.
    """
    check: AllergenCheckResult
    student: StudentDietaryProfile
    variant: VariantOption
    manager_user_id: str = Field(min_length=1)
    reason: str = Field(min_length=1, description="Why serving is acceptable")


class CheckResponse(BaseModel):
    success: bool = True
    result: AllergenCheckResult
    generated_at: datetime = Field(default_factory=_now)


class BatchCheckResponse(BaseModel):
    success: bool = True
    student_id: str
    results: List[AllergenCheckResult]
    servable_variant_ids: List[str]
    blocked_count: int
    override_required_count: int
    generated_at: datetime = Field(default_factory=_now)


class OverrideResponse(BaseModel):
    success: bool = True
    record: OverrideRecord
    message: str = "Override recorded. Meal may be served with caution."


# Admin key verification (for protected operations)
def verify_admin_key(x_admin_api_key: str = Header(None, alias="X-Admin-API-Key")) -> str:
    """Verify admin API key from header."""
    expected_key = os.environ.get("ADMIN_API_KEY")

    if not expected_key:
        return "dev_mode"

    if not x_admin_api_key:
        raise HTTPException(status_code=401, detail="Missing X-Admin-API-Key header")

    if x_admin_api_key != expected_key:
        raise HTTPException(status_code=401, detail="Invalid admin API key")

    return x_admin_api_key


# Endpoints

@router.get("/health")
async def allergen_check_health():
    """
    Health check for the allergen check module.

    Does not require authentication.
    """
    return {
        "status": "ok",
        "module": "allergen_check",
        "version": MODULE_VERSION,
        "override_protected": bool(os.environ.get("ADMIN_API_KEY")),
        "timestamp": _now().isoformat(),
    }


@router.post("/check", response_model=CheckResponse)
async def check_endpoint(request: CheckRequest):
    """
    Check whether one variant may be served to one student.

    BLOCKED results can never be served; OVERRIDE_REQUIRED results need
    a manager override via /override.
    """
    try:
        return CheckResponse(result=check_variant(request.student, request.variant))
    except Exception as e:
        logger.exception("Allergen check failed")
        raise HTTPException(status_code=500, detail=f"Allergen check error: {str(e)}")


@router.post("/check/batch", response_model=BatchCheckResponse)
async def batch_check_endpoint(request: BatchCheckRequest):
    """Check every posted variant for one student."""
    try:
        results = check_variants(request.student, request.variants)

        return BatchCheckResponse(
            student_id=request.student.student_id,
            results=results,
            servable_variant_ids=[r.variant_id for r in results if r.safe],
            blocked_count=sum(1 for r in results if r.status == CheckStatus.BLOCKED),
            override_required_count=sum(1 for r in results if r.requires_manager_override),
        )
    except Exception as e:
        logger.exception("Batch allergen check failed")
        raise HTTPException(status_code=500, detail=f"Allergen check error: {str(e)}")


@router.post("/override", response_model=OverrideResponse)
async def override_endpoint(
    request: OverrideRequest,
    admin_key: str = Depends(verify_admin_key),
):
    """
    Record a manager override for a SEVERE allergen hold.

    ANAPHYLAXIS blocks, and checks that a fresh check of the same
    student and variant does not reproduce, are refused with 409.
    """
    try:
        record = record_override(
            request.check,
            request.student,
            request.variant,
            request.manager_user_id,
            request.reason,
        )
        return OverrideResponse(record=record)
    except OverrideNotPermittedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.exception("Override failed")
        raise HTTPException(status_code=500, detail=f"Override error: {str(e)}")
