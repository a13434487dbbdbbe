"""
Nutrition, Cost and Compatibility Matrix Tests

Tests validate:
- Exact / close / other nutrition buckets and close-match ordering
- Tolerance validation
- Cost tallies per student occurrence, averages and the cost gap sentence
- Empty cohort behaviour
- Allergen-only compatibility matrix and its summary
"""

import math
import pytest
from typing import List

from mess_engine import config
from mess_engine.variants.models import (
    StudentDietaryProfile,
    VariantOption,
    NutritionProfile,
)
from mess_engine.variants.nutrition import match_by_nutrition, deviation_score
from mess_engine.variants.cost import analyze_cost
from mess_engine.variants.matrix import build_compatibility_matrix


# ============================================================================
# Test Fixtures
# ============================================================================

TARGET = NutritionProfile(calories=500, protein=30, carbs=50, fat=20)


def make_student(
    student_id: str,
    preference: str = "ANY",
    verified: List[str] = None,
    severe: List[str] = None,
    anaphylaxis: List[str] = None,
) -> StudentDietaryProfile:
    """Helper to create test students."""
    return StudentDietaryProfile(
        student_id=student_id,
        variant_preference=preference,
        verified_allergy_ids=verified or [],
        severe_allergy_ids=severe or [],
        anaphylaxis_allergy_ids=anaphylaxis or [],
    )


def make_variant(
    variant_id: str,
    variant_type: str = "VEG",
    allergens: List[str] = None,
    cost: float = 50.0,
    calories: float = 500,
    protein: float = 30,
    carbs: float = 50,
    fat: float = 20,
) -> VariantOption:
    """Helper to create test variants."""
    return VariantOption(
        variant_id=variant_id,
        variant_type=variant_type,
        recipe_name=f"Recipe {variant_id}",
        cost=cost,
        allergens=allergens or [],
        nutrition=NutritionProfile(calories=calories, protein=protein, carbs=carbs, fat=fat),
    )


def ids(variants: List[VariantOption]) -> List[str]:
    return [v.variant_id for v in variants]


# ============================================================================
# Nutrition Matching Tests
# ============================================================================

class TestNutritionMatching:
    """Target 500/30/50/20 at 10%: bands 50/3/5/2, close bands 75/4.5."""

    def test_exact_target_is_exact_match(self):
        result = match_by_nutrition([make_variant("E1")], TARGET, 10)

        assert ids(result.exact_match) == ["E1"]
        assert result.close_match == []
        assert result.other_options == []

    def test_band_edge_is_inclusive(self):
        variant = make_variant("E1", calories=550, protein=27, carbs=55, fat=18)

        result = match_by_nutrition([variant], TARGET, 10)

        assert ids(result.exact_match) == ["E1"]

    def test_close_match_ignores_carbs_and_fat(self):
        variant = make_variant("C1", calories=560, protein=34, carbs=90, fat=45)

        result = match_by_nutrition([variant], TARGET, 10)

        assert ids(result.close_match) == ["C1"]

    def test_protein_outside_close_band(self):
        variant = make_variant("O1", calories=500, protein=35)

        result = match_by_nutrition([variant], TARGET, 10)

        assert ids(result.other_options) == ["O1"]

    def test_calories_outside_close_band(self):
        variant = make_variant("O1", calories=600)

        result = match_by_nutrition([variant], TARGET, 10)

        assert ids(result.other_options) == ["O1"]

    def test_close_matches_sorted_by_deviation(self):
        variants = [
            make_variant("C1", calories=570, protein=30, carbs=90),  # 70
            make_variant("C2", calories=540, protein=34, carbs=90),  # 44
            make_variant("C3", calories=460, protein=33, fat=40),    # 43
        ]

        result = match_by_nutrition(variants, TARGET, 10)

        assert ids(result.close_match) == ["C3", "C2", "C1"]
        scores = [deviation_score(v, TARGET) for v in result.close_match]
        assert scores == sorted(scores)

    def test_equal_deviation_keeps_catalogue_order(self):
        variants = [
            make_variant("C1", calories=540, carbs=90),
            make_variant("C2", calories=460, carbs=90),
        ]

        result = match_by_nutrition(variants, TARGET, 10)

        assert ids(result.close_match) == ["C1", "C2"]

    def test_buckets_partition_catalogue(self):
        variants = [
            make_variant("E1"),
            make_variant("C1", calories=560, carbs=90),
            make_variant("O1", calories=900),
            make_variant("O2", protein=5),
        ]

        result = match_by_nutrition(variants, TARGET, 10)

        all_ids = ids(result.exact_match) + ids(result.close_match) + ids(result.other_options)
        assert sorted(all_ids) == sorted(ids(variants))
        assert len(all_ids) == len(set(all_ids))

    def test_zero_tolerance_requires_equality(self):
        variants = [make_variant("E1"), make_variant("O1", calories=501)]

        result = match_by_nutrition(variants, TARGET, 0)

        assert ids(result.exact_match) == ["E1"]
        assert ids(result.other_options) == ["O1"]

    def test_default_tolerance_from_config(self):
        result = match_by_nutrition([make_variant("E1")], TARGET)

        assert result.tolerance_percent == config.DEFAULT_TOLERANCE_PERCENT

    @pytest.mark.parametrize("tolerance", [-1, math.nan, math.inf])
    def test_invalid_tolerance_rejected(self, tolerance):
        with pytest.raises(ValueError):
            match_by_nutrition([make_variant("E1")], TARGET, tolerance)


# ============================================================================
# Cost Analysis Tests
# ============================================================================

@pytest.fixture
def priced_catalogue() -> List[VariantOption]:
    return [
        make_variant("V1", "VEG", [], cost=40),
        make_variant("V2", "NON_VEG", ["egg"], cost=65),
        make_variant("V3", "VEGAN", ["soy"], cost=55.5),
    ]


class TestCostAnalysis:

    def test_empty_cohort(self, priced_catalogue):
        result = analyze_cost([], priced_catalogue)

        assert result.total_cost == 0
        assert result.avg_cost_per_student == 0
        assert result.cost_per_variant == {}
        assert result.recommendations == []

    def test_cost_counted_per_eligible_student(self, priced_catalogue):
        students = [
            make_student("A", "VEG"),                        # V1 V2 V3 = 160.5
            make_student("B", anaphylaxis=["egg"]),          # V1 V3    = 95.5
            make_student("C", verified=["soy"]),             # V1 V2    = 105
        ]

        result = analyze_cost(students, priced_catalogue)

        assert result.total_cost == 361.0
        assert result.avg_cost_per_student == 120.33
        assert result.cost_per_variant == {"V1": 120.0, "V2": 130.0, "V3": 111.0}
        assert result.cheapest_variant_id == "V3"
        assert result.most_expensive_variant_id == "V2"
        assert result.recommendations == [
            f"Cost difference between variants: {config.CURRENCY_SYMBOL}19.00. "
            "Consider most economical options."
        ]

    def test_single_variant_has_no_gap_sentence(self):
        students = [make_student("A"), make_student("B")]
        variants = [make_variant("V1", cost=30)]

        result = analyze_cost(students, variants)

        assert result.cost_per_variant == {"V1": 60.0}
        assert result.recommendations == []
        assert result.cheapest_variant_id is None

    def test_zero_cost_tallies_ignored_for_gap(self):
        students = [make_student("A")]
        variants = [make_variant("V1", cost=0), make_variant("V2", cost=10)]

        result = analyze_cost(students, variants)

        assert result.cost_per_variant == {"V1": 0.0, "V2": 10.0}
        assert result.recommendations == []

    def test_blocked_and_warning_variants_not_costed(self):
        students = [make_student("A", anaphylaxis=["egg"], verified=["soy"])]
        variants = [
            make_variant("V1", allergens=["egg"], cost=100),
            make_variant("V2", allergens=["soy"], cost=100),
        ]

        result = analyze_cost(students, variants)

        assert result.total_cost == 0
        assert result.cost_per_variant == {}

    def test_average_rounds_half_up(self):
        result = analyze_cost([make_student("A")], [make_variant("V1", cost=0.125)])

        assert result.avg_cost_per_student == 0.13
        assert result.total_cost >= 0


# ============================================================================
# Compatibility Matrix Tests
# ============================================================================

class TestCompatibilityMatrix:

    def test_matrix_and_summary(self):
        students = [make_student("A", anaphylaxis=["peanut"]), make_student("B")]
        variants = [make_variant("V1", allergens=["peanut"]), make_variant("V2")]

        result = build_compatibility_matrix(students, variants)

        assert result.matrix == {
            "A": {"V1": False, "V2": True},
            "B": {"V1": True, "V2": True},
        }
        assert result.summary.safe == 3
        assert result.summary.unsafe == 1
        assert result.summary.percent == 75

    def test_preference_is_ignored(self):
        students = [make_student("A", "VEGAN")]
        variants = [make_variant("V1", "NON_VEG")]

        result = build_compatibility_matrix(students, variants)

        assert result.matrix["A"]["V1"] is True

    def test_every_severity_bucket_is_unsafe(self):
        students = [
            make_student("A", verified=["x"]),
            make_student("B", severe=["x"]),
            make_student("C", anaphylaxis=["x"]),
        ]
        variants = [make_variant("V1", allergens=["x"])]

        result = build_compatibility_matrix(students, variants)

        assert all(row["V1"] is False for row in result.matrix.values())
        assert result.summary.percent == 0

    def test_empty_matrix(self):
        result = build_compatibility_matrix([], [make_variant("V1")])

        assert result.matrix == {}
        assert result.summary.safe == 0
        assert result.summary.unsafe == 0
        assert result.summary.percent == 0
