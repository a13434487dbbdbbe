"""
Meal Variant Models

Pydantic models for student dietary profiles, meal-variant offerings and
every report the variant engine produces.

Inputs are validated here, at construction, so the matching functions stay
total: a negative cost or a NaN calorie count never reaches them.
"""

from enum import Enum
from typing import List, Optional, Dict
from pydantic import BaseModel, Field, field_validator


class VariantType(str, Enum):
    """Dietary rendition of a meal offering."""
    VEG = "VEG"
    NON_VEG = "NON_VEG"
    VEGAN = "VEGAN"


class DietaryPreference(str, Enum):
    """What a student prefers to eat. ANY accepts every variant type."""
    VEG = "VEG"
    NON_VEG = "NON_VEG"
    VEGAN = "VEGAN"
    ANY = "ANY"


class MatchBucket(str, Enum):
    """Per student/variant classification, in decreasing desirability."""
    RECOMMENDED = "recommended"
    SAFE = "safe"
    WARNING = "warning"
    BLOCKED = "blocked"


def _normalize_ids(v):
    """Drop blanks and duplicates, keep first-seen order."""
    if v is None:
        return []
    if isinstance(v, str):
        v = v.split(',')
    seen = []
    for item in v:
        item = str(item).strip()
        if item and item not in seen:
            seen.append(item)
    return seen


# ============================================================================
# Inputs
# ============================================================================

class NutritionProfile(BaseModel):
    """
    Macro profile of one serving. Also used as a nutrition target.
    """
    calories: float = Field(ge=0, allow_inf_nan=False)
    protein: float = Field(ge=0, allow_inf_nan=False)
    carbs: float = Field(ge=0, allow_inf_nan=False)
    fat: float = Field(ge=0, allow_inf_nan=False)

    class Config:
        extra = "forbid"


class StudentDietaryProfile(BaseModel):
    """
    One student's dietary profile for a matching call.

    Allergy buckets increase in medical risk:
    verified < severe < anaphylaxis. An allergen id may sit in more than
    one bucket; classification always honours the most severe one.
    """
    student_id: str = Field(min_length=1)
    variant_preference: DietaryPreference
    verified_allergy_ids: List[str] = Field(
        default_factory=list,
        description="Doctor-verified allergies (mild/moderate)"
    )
    severe_allergy_ids: List[str] = Field(
        default_factory=list,
        description="Severe allergies - serving needs a manager override"
    )
    anaphylaxis_allergy_ids: List[str] = Field(
        default_factory=list,
        description="Life-threatening allergies - never served"
    )
    custom_restrictions: List[str] = Field(
        default_factory=list,
        description="Free-text restrictions; carried through, not matched on"
    )

    class Config:
        extra = "ignore"

    @field_validator(
        'verified_allergy_ids', 'severe_allergy_ids', 'anaphylaxis_allergy_ids',
        mode='before'
    )
    @classmethod
    def normalize_allergy_ids(cls, v):
        return _normalize_ids(v)

    @field_validator('custom_restrictions', mode='before')
    @classmethod
    def default_restrictions(cls, v):
        return v or []

    def has_any_allergy(self) -> bool:
        return bool(
            self.verified_allergy_ids
            or self.severe_allergy_ids
            or self.anaphylaxis_allergy_ids
        )


class VariantOption(BaseModel):
    """
    One offerable meal variant for a given meal/date.
    """
    variant_id: str = Field(min_length=1)
    variant_type: VariantType
    recipe_name: str
    cost: float = Field(ge=0, allow_inf_nan=False)
    allergens: List[str] = Field(default_factory=list)
    nutrition: NutritionProfile

    class Config:
        extra = "ignore"

    @field_validator('allergens', mode='before')
    @classmethod
    def normalize_allergens(cls, v):
        return _normalize_ids(v)


# ============================================================================
# Results
# ============================================================================

class MatchResult(BaseModel):
    """
    Partition of the catalogue for one student.

    Every catalogue variant lands in exactly one of the four lists.
    """
    student_id: str
    recommended: List[VariantOption] = Field(default_factory=list)
    safe: List[VariantOption] = Field(default_factory=list)
    warning: List[VariantOption] = Field(default_factory=list)
    blocked: List[VariantOption] = Field(default_factory=list)

    class Config:
        extra = "forbid"

    def acceptable(self) -> List[VariantOption]:
        """Variants the student can eat: recommended first, then safe."""
        return self.recommended + self.safe


class CohortMatchResult(BaseModel):
    """
    Per-student matches plus flat slot counts over the whole cohort.

    Slot counts are sums of per-student list sizes: five students who can
    all eat variant X contribute five acceptable slots.
    """
    matches: List[MatchResult]
    total_students: int
    total_variants: int
    total_acceptable_slots: int = Field(
        description="Sum over students of |recommended| + |safe|"
    )
    blocked_slots: int
    warning_slots: int

    class Config:
        extra = "forbid"


class CoverageSummary(BaseModel):
    """Distinct-student coverage of a chosen offer set."""
    percentage: int = Field(ge=0, le=100)
    details: Dict[str, int] = Field(
        default_factory=dict,
        description="Chosen variant_id -> distinct students who can eat it"
    )
    distinct_students_covered: int
    total_students: int

    class Config:
        extra = "forbid"


class OptimalVariantSet(BaseModel):
    """Offer set chosen for a meal, at most one variant per category."""
    optimal: List[VariantOption]
    coverage: CoverageSummary
    recommendations: List[str]
    selection_hash: str

    class Config:
        extra = "forbid"


class PreferenceProfile(BaseModel):
    """Raw dietary-preference distribution of a cohort."""
    veg_preference: int
    non_veg_preference: int
    vegan_preference: int
    any_preference: int
    total_students: int
    percentages: Dict[str, int]

    class Config:
        extra = "forbid"


class AllergenFilterResult(BaseModel):
    safe: List[VariantOption]
    unsafe: List[VariantOption]

    class Config:
        extra = "forbid"


class NutritionMatchResult(BaseModel):
    """Catalogue split against a nutrition target."""
    exact_match: List[VariantOption]
    close_match: List[VariantOption] = Field(
        description="Sorted by calorie + protein deviation, best first"
    )
    other_options: List[VariantOption]
    tolerance_percent: float

    class Config:
        extra = "forbid"


class CostAnalysis(BaseModel):
    """Cost exposure if every eligible student were served every acceptable variant."""
    total_cost: float = Field(ge=0)
    avg_cost_per_student: float = Field(ge=0)
    cost_per_variant: Dict[str, float] = Field(default_factory=dict)
    recommendations: List[str] = Field(default_factory=list)
    cheapest_variant_id: Optional[str] = None
    most_expensive_variant_id: Optional[str] = None

    class Config:
        extra = "forbid"


class MatrixSummary(BaseModel):
    safe: int
    unsafe: int
    percent: int = Field(ge=0, le=100)

    class Config:
        extra = "forbid"


class CompatibilityMatrix(BaseModel):
    """student_id -> variant_id -> allergen-safe?"""
    matrix: Dict[str, Dict[str, bool]]
    summary: MatrixSummary

    class Config:
        extra = "forbid"
