"""
Meal Variant Matching Core Logic

This module implements the per-student classifier and its cohort roll-up:
1. Classifies each student/variant pair by allergen severity, then preference
2. Partitions a catalogue per student (recommended / safe / warning / blocked)
3. Aggregates slot counts across a cohort
4. Profiles a cohort's dietary preferences
5. Filters a catalogue against a flat allergen list

PRINCIPLE: Allergens decide first. Preference only orders what is already safe.

Every function is pure: inputs are never mutated, outputs are fresh models.
"""

import logging
from typing import Dict, Iterable, List

from .models import (
    AllergenFilterResult,
    CohortMatchResult,
    DietaryPreference,
    MatchBucket,
    MatchResult,
    PreferenceProfile,
    StudentDietaryProfile,
    VariantOption,
)
from mess_engine.shared.rounding import percentage

logger = logging.getLogger(__name__)


def _intersects(allergens: Iterable[str], allergy_ids: Iterable[str]) -> bool:
    return not set(allergens).isdisjoint(allergy_ids)


def classify_variant(
    student: StudentDietaryProfile,
    variant: VariantOption
) -> MatchBucket:
    """
    Decide which bucket one variant falls into for one student.

    Checked in strict priority order, first hit wins:
    1. anaphylaxis allergen present  -> BLOCKED
    2. severe allergen present       -> WARNING
    3. verified allergen present     -> WARNING
    4. preference ANY or same type   -> RECOMMENDED
    5. otherwise                     -> SAFE
    """
    if _intersects(variant.allergens, student.anaphylaxis_allergy_ids):
        return MatchBucket.BLOCKED

    if _intersects(variant.allergens, student.severe_allergy_ids):
        return MatchBucket.WARNING

    if _intersects(variant.allergens, student.verified_allergy_ids):
        return MatchBucket.WARNING

    preference = student.variant_preference
    if preference == DietaryPreference.ANY or preference.value == variant.variant_type.value:
        return MatchBucket.RECOMMENDED

    return MatchBucket.SAFE


def is_allergen_safe(
    student: StudentDietaryProfile,
    variant: VariantOption
) -> bool:
    """True when no allergy bucket of the student touches the variant."""
    return not (
        _intersects(variant.allergens, student.anaphylaxis_allergy_ids)
        or _intersects(variant.allergens, student.severe_allergy_ids)
        or _intersects(variant.allergens, student.verified_allergy_ids)
    )


def match_student(
    student: StudentDietaryProfile,
    variants: List[VariantOption]
) -> MatchResult:
    """
    Partition the catalogue for one student.

    Args:
        student: Student dietary profile
        variants: Variants on offer for the meal

    Returns:
        MatchResult whose four lists hold every variant exactly once,
        each list in catalogue order
    """
    buckets: Dict[MatchBucket, List[VariantOption]] = {
        bucket: [] for bucket in MatchBucket
    }

    for variant in variants:
        buckets[classify_variant(student, variant)].append(variant)

    return MatchResult(
        student_id=student.student_id,
        recommended=buckets[MatchBucket.RECOMMENDED],
        safe=buckets[MatchBucket.SAFE],
        warning=buckets[MatchBucket.WARNING],
        blocked=buckets[MatchBucket.BLOCKED],
    )


def match_cohort(
    students: List[StudentDietaryProfile],
    variants: List[VariantOption]
) -> CohortMatchResult:
    """
    Match every student and aggregate slot counts.

    Matches keep student input order so callers can re-key by student_id.
    Counts are sums of list sizes, not distinct students.
    """
    matches = [match_student(student, variants) for student in students]

    acceptable_slots = sum(len(m.recommended) + len(m.safe) for m in matches)
    blocked_slots = sum(len(m.blocked) for m in matches)
    warning_slots = sum(len(m.warning) for m in matches)

    logger.debug(
        f"Cohort match: {len(students)} students x {len(variants)} variants -> "
        f"{acceptable_slots} acceptable, {warning_slots} warning, {blocked_slots} blocked"
    )

    return CohortMatchResult(
        matches=matches,
        total_students=len(students),
        total_variants=len(variants),
        total_acceptable_slots=acceptable_slots,
        blocked_slots=blocked_slots,
        warning_slots=warning_slots,
    )


def profile_preferences(
    students: List[StudentDietaryProfile]
) -> PreferenceProfile:
    """
    Tally the cohort's dietary preferences, ignoring allergens.
    """
    counts = {preference: 0 for preference in DietaryPreference}
    for student in students:
        counts[student.variant_preference] += 1

    total = len(students)

    return PreferenceProfile(
        veg_preference=counts[DietaryPreference.VEG],
        non_veg_preference=counts[DietaryPreference.NON_VEG],
        vegan_preference=counts[DietaryPreference.VEGAN],
        any_preference=counts[DietaryPreference.ANY],
        total_students=total,
        percentages={
            preference.value: percentage(count, total)
            for preference, count in counts.items()
        },
    )


def filter_by_allergens(
    variants: List[VariantOption],
    allergen_ids: List[str]
) -> AllergenFilterResult:
    """
    Split a catalogue by a flat allergen list, e.g. "everything with peanut".

    A variant is unsafe iff it carries any of the given allergens.
    """
    wanted = {a.strip() for a in allergen_ids if a and a.strip()}

    safe: List[VariantOption] = []
    unsafe: List[VariantOption] = []
    for variant in variants:
        if _intersects(variant.allergens, wanted):
            unsafe.append(variant)
        else:
            safe.append(variant)

    return AllergenFilterResult(safe=safe, unsafe=unsafe)
