"""
Meal Variant Engine

Student × variant matching and offer-set allocation for the mess module.

This package answers: "Given who is eating and what could be cooked,
what can each student safely eat, and what should we offer?"

Design Principles:
- PURE: no side effects, inputs never mutated
- ALLERGENS FIRST: anaphylaxis > severe > verified > preference
- BOUNDED: at most one variant per category in an offer set
- DETERMINISTIC: explicit tie-breaks, same input -> same output
"""

from .models import (
    VariantType,
    DietaryPreference,
    MatchBucket,
    NutritionProfile,
    StudentDietaryProfile,
    VariantOption,
    MatchResult,
    CohortMatchResult,
    CoverageSummary,
    OptimalVariantSet,
    PreferenceProfile,
    AllergenFilterResult,
    NutritionMatchResult,
    CostAnalysis,
    CompatibilityMatrix,
)
from .match import (
    classify_variant,
    match_student,
    match_cohort,
    profile_preferences,
    filter_by_allergens,
)
from .selection import select_optimal_variants
from .nutrition import match_by_nutrition
from .cost import analyze_cost
from .matrix import build_compatibility_matrix
from .admin import router as admin_router

__all__ = [
    # Models
    "VariantType",
    "DietaryPreference",
    "MatchBucket",
    "NutritionProfile",
    "StudentDietaryProfile",
    "VariantOption",
    "MatchResult",
    "CohortMatchResult",
    "CoverageSummary",
    "OptimalVariantSet",
    "PreferenceProfile",
    "AllergenFilterResult",
    "NutritionMatchResult",
    "CostAnalysis",
    "CompatibilityMatrix",
    # Functions
    "classify_variant",
    "match_student",
    "match_cohort",
    "profile_preferences",
    "filter_by_allergens",
    "select_optimal_variants",
    "match_by_nutrition",
    "analyze_cost",
    "build_compatibility_matrix",
    # Router
    "admin_router",
]

__version__ = "mess_variants_v1"
