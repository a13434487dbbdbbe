"""
Offer-Set Selection

Chooses which variants to actually cook for a meal.

Rules:
- A variant's value is the SET of distinct students who can eat it
  (recommended or safe), not how often it shows up in a union.
- Highest coverage first; ties keep catalogue order.
- At most one variant per category, at most `max_categories` categories
  (one veg, one non-veg, one vegan by default).
- Fewer categories in the catalogue means fewer variants, never padding.
"""

import logging
from typing import Dict, List, Optional, Set

from .models import (
    CoverageSummary,
    OptimalVariantSet,
    StudentDietaryProfile,
    VariantOption,
    VariantType,
)
from .match import match_cohort
from mess_engine import config
from mess_engine.shared.hashing import content_hash
from mess_engine.shared.rounding import percentage

logger = logging.getLogger(__name__)

ALLERGY_SHORTFALL_MESSAGE = (
    "{count} student(s) cannot eat optimal variants due to allergies. "
    "Consider adding alternative recipes."
)
PREFERENCE_SHORTFALL_MESSAGE = (
    "{count} student(s) have dietary preference mismatches. "
    "Current selection may not accommodate all preferences."
)
FULL_COVERAGE_MESSAGE = "All students can safely eat at least one variant."


def compute_variant_coverage(
    students: List[StudentDietaryProfile],
    variants: List[VariantOption]
) -> Dict[str, Set[str]]:
    """
    Map each variant_id to the distinct students who can eat it.

    Every catalogue variant gets an entry, possibly empty.
    """
    coverage: Dict[str, Set[str]] = {v.variant_id: set() for v in variants}

    cohort = match_cohort(students, variants)
    for match in cohort.matches:
        for variant in match.acceptable():
            coverage[variant.variant_id].add(match.student_id)

    return coverage


def pick_one_per_category(
    ranked: List[VariantOption],
    max_categories: int
) -> List[VariantOption]:
    """
    Walk a ranked list, keeping the first variant of each unseen category.

    Stops as soon as `max_categories` categories are held.
    """
    chosen: List[VariantOption] = []
    seen_types: Set[VariantType] = set()

    for variant in ranked:
        if len(seen_types) >= max_categories:
            break
        if variant.variant_type in seen_types:
            continue
        seen_types.add(variant.variant_type)
        chosen.append(variant)

    return chosen


def coverage_percentage(covered_count: int, total: int) -> int:
    """
    Whole-number coverage; 100 only when nobody is left out.

    199/200 rounds to 100 under half-up rounding, so partial coverage is
    capped at 99.
    """
    value = percentage(covered_count, total)
    if covered_count < total and value == 100:
        return 99
    return value


def build_recommendations(
    students: List[StudentDietaryProfile],
    covered: Set[str]
) -> List[str]:
    """
    Explain a coverage shortfall.

    Uncovered students with any allergy entry are counted as allergy
    shortfalls; the rest are pure preference mismatches. An empty cohort
    has nothing to explain.
    """
    if not students:
        return []

    uncovered = [s for s in students if s.student_id not in covered]
    if not uncovered:
        return [FULL_COVERAGE_MESSAGE]

    allergy_count = sum(1 for s in uncovered if s.has_any_allergy())
    preference_count = len(uncovered) - allergy_count

    recommendations: List[str] = []
    if allergy_count > 0:
        recommendations.append(ALLERGY_SHORTFALL_MESSAGE.format(count=allergy_count))
    if preference_count > 0:
        recommendations.append(PREFERENCE_SHORTFALL_MESSAGE.format(count=preference_count))

    return recommendations


def select_optimal_variants(
    students: List[StudentDietaryProfile],
    variants: List[VariantOption],
    max_categories: Optional[int] = None
) -> OptimalVariantSet:
    """
    Choose a bounded offer set maximizing distinct students served.

    Pipeline:
    1. Distinct-student coverage per variant
    2. Rank by coverage (descending), catalogue order on ties
    3. Keep first variant per category until the cap is reached
    4. Distinct-student coverage percentage of the chosen set
    5. Shortfall recommendations

    Args:
        students: Cohort for the meal
        variants: Catalogue on offer
        max_categories: Category cap, defaults to MESS_MAX_OFFER_CATEGORIES

    Returns:
        OptimalVariantSet with chosen variants, coverage and recommendations
    """
    if max_categories is None:
        max_categories = config.MAX_OFFER_CATEGORIES
    if max_categories < 1:
        raise ValueError(f"max_categories must be >= 1, got {max_categories}")

    variant_coverage = compute_variant_coverage(students, variants)

    # Step 2: rank without touching the caller's list
    order = {id(v): index for index, v in enumerate(variants)}
    ranked = sorted(
        variants,
        key=lambda v: (-len(variant_coverage[v.variant_id]), order[id(v)])
    )

    # Step 3: one per category
    optimal = pick_one_per_category(ranked, max_categories)

    # Step 4: distinct students reached by the chosen set
    covered: Set[str] = set()
    for variant in optimal:
        covered.update(variant_coverage[variant.variant_id])

    coverage = CoverageSummary(
        percentage=coverage_percentage(len(covered), len(students)),
        details={v.variant_id: len(variant_coverage[v.variant_id]) for v in optimal},
        distinct_students_covered=len(covered),
        total_students=len(students),
    )

    # Step 5: explain any shortfall
    recommendations = build_recommendations(students, covered)

    selection_hash = content_hash({
        "optimal": [v.variant_id for v in optimal],
        "coverage": coverage,
    })

    logger.debug(
        f"Selected {[v.variant_id for v in optimal]} covering "
        f"{len(covered)}/{len(students)} students ({coverage.percentage}%)"
    )

    return OptimalVariantSet(
        optimal=optimal,
        coverage=coverage,
        recommendations=recommendations,
        selection_hash=selection_hash,
    )
