"""
Meal Variant Endpoints

API endpoints over the variant engine. All are pure computations on the
posted cohort and catalogue; nothing is stored.

GET  /api/v1/mess/variants/health          - Health check
POST /api/v1/mess/variants/match/student   - One student's partition
POST /api/v1/mess/variants/match/cohort    - Cohort partition + slot counts
POST /api/v1/mess/variants/optimal         - Offer-set selection
POST /api/v1/mess/variants/preferences     - Preference distribution
POST /api/v1/mess/variants/allergen-filter - Flat allergen filter
POST /api/v1/mess/variants/nutrition       - Nutrition target matching
POST /api/v1/mess/variants/cost            - Cost exposure
POST /api/v1/mess/variants/matrix          - Compatibility matrix
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from .models import (
    StudentDietaryProfile,
    VariantOption,
    NutritionProfile,
    MatchResult,
    CohortMatchResult,
    OptimalVariantSet,
    PreferenceProfile,
    AllergenFilterResult,
    NutritionMatchResult,
    CostAnalysis,
    CompatibilityMatrix,
)
from .match import match_student, match_cohort, profile_preferences, filter_by_allergens
from .selection import select_optimal_variants
from .nutrition import match_by_nutrition
from .cost import analyze_cost
from .matrix import build_compatibility_matrix

logger = logging.getLogger(__name__)

MODULE_VERSION = "mess_variants_v1"


# Router
router = APIRouter(
    prefix="/api/v1/mess/variants",
    tags=["mess-variants"],
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


# Request models

class StudentMatchRequest(BaseModel):
    student: StudentDietaryProfile
    variants: List[VariantOption]


class CohortRequest(BaseModel):
    """Cohort and catalogue for one meal."""
    students: List[StudentDietaryProfile]
    variants: List[VariantOption]


class PreferenceRequest(BaseModel):
    students: List[StudentDietaryProfile]


class AllergenFilterRequest(BaseModel):
    variants: List[VariantOption]
    allergen_ids: List[str] = Field(
        description="Allergen ids to exclude e.g. ['peanut', 'dairy']"
    )


class NutritionRequest(BaseModel):
    variants: List[VariantOption]
    target: NutritionProfile
    tolerance_percent: Optional[float] = Field(
        default=None,
        ge=0,
        allow_inf_nan=False,
        description="Band width in percent of target; server default if omitted"
    )


# Response models

class MatchStudentResponse(BaseModel):
    success: bool = True
    result: MatchResult
    generated_at: datetime = Field(default_factory=_now)


class MatchCohortResponse(BaseModel):
    success: bool = True
    result: CohortMatchResult
    generated_at: datetime = Field(default_factory=_now)


class OptimalSetResponse(BaseModel):
    success: bool = True
    result: OptimalVariantSet
    generated_at: datetime = Field(default_factory=_now)


class PreferenceResponse(BaseModel):
    success: bool = True
    result: PreferenceProfile
    generated_at: datetime = Field(default_factory=_now)


class AllergenFilterResponse(BaseModel):
    success: bool = True
    result: AllergenFilterResult
    generated_at: datetime = Field(default_factory=_now)


class NutritionResponse(BaseModel):
    success: bool = True
    result: NutritionMatchResult
    generated_at: datetime = Field(default_factory=_now)


class CostResponse(BaseModel):
    success: bool = True
    result: CostAnalysis
    generated_at: datetime = Field(default_factory=_now)


class MatrixResponse(BaseModel):
    success: bool = True
    result: CompatibilityMatrix
    generated_at: datetime = Field(default_factory=_now)


def _engine_error(area: str, e: Exception) -> HTTPException:
    logger.exception(f"{area} failed")
    return HTTPException(status_code=500, detail=f"{area} error: {str(e)}")


# Endpoints

@router.get("/health")
async def variants_health():
    """
    Health check for the variant engine.

    Does not require authentication.
    """
    return {
        "status": "ok",
        "module": "mess_variants",
        "version": MODULE_VERSION,
        "timestamp": _now().isoformat(),
    }


@router.post("/match/student", response_model=MatchStudentResponse)
async def match_student_endpoint(request: StudentMatchRequest):
    """Partition the catalogue into recommended / safe / warning / blocked for one student."""
    try:
        return MatchStudentResponse(result=match_student(request.student, request.variants))
    except Exception as e:
        raise _engine_error("Matching", e)


@router.post("/match/cohort", response_model=MatchCohortResponse)
async def match_cohort_endpoint(request: CohortRequest):
    """Partition for every student, plus acceptable/warning/blocked slot counts."""
    try:
        return MatchCohortResponse(result=match_cohort(request.students, request.variants))
    except Exception as e:
        raise _engine_error("Matching", e)


@router.post("/optimal", response_model=OptimalSetResponse)
async def optimal_set_endpoint(request: CohortRequest):
    """
    Choose the offer set for a meal.

    At most one variant per category, highest distinct-student coverage first.
    """
    try:
        return OptimalSetResponse(
            result=select_optimal_variants(request.students, request.variants)
        )
    except Exception as e:
        raise _engine_error("Selection", e)


@router.post("/preferences", response_model=PreferenceResponse)
async def preferences_endpoint(request: PreferenceRequest):
    try:
        return PreferenceResponse(result=profile_preferences(request.students))
    except Exception as e:
        raise _engine_error("Preference profile", e)


@router.post("/allergen-filter", response_model=AllergenFilterResponse)
async def allergen_filter_endpoint(request: AllergenFilterRequest):
    try:
        return AllergenFilterResponse(
            result=filter_by_allergens(request.variants, request.allergen_ids)
        )
    except Exception as e:
        raise _engine_error("Allergen filter", e)


@router.post("/nutrition", response_model=NutritionResponse)
async def nutrition_endpoint(request: NutritionRequest):
    """Bucket variants as exact / close / other against a nutrition target."""
    try:
        return NutritionResponse(
            result=match_by_nutrition(
                request.variants,
                request.target,
                request.tolerance_percent,
            )
        )
    except Exception as e:
        raise _engine_error("Nutrition matching", e)


@router.post("/cost", response_model=CostResponse)
async def cost_endpoint(request: CohortRequest):
    try:
        return CostResponse(result=analyze_cost(request.students, request.variants))
    except Exception as e:
        raise _engine_error("Cost analysis", e)


@router.post("/matrix", response_model=MatrixResponse)
async def matrix_endpoint(request: CohortRequest):
    """Student x variant allergen-safety grid for audit reports."""
    try:
        return MatrixResponse(
            result=build_compatibility_matrix(request.students, request.variants)
        )
    except Exception as e:
        raise _engine_error("Matrix", e)
