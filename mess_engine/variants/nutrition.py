"""
Nutrition Matching

Buckets a catalogue against a nutrition target using percentage bands.

- exact_match: calories, protein, carbs and fat all within tolerance
- close_match: calories and protein within CLOSE_MATCH_FACTOR x tolerance
- other_options: everything else
"""

import logging
import math
from typing import List, Optional

from .models import NutritionMatchResult, NutritionProfile, VariantOption
from mess_engine import config

logger = logging.getLogger(__name__)

MACROS = ("calories", "protein", "carbs", "fat")

# Looser band for close matches, applied to calories and protein only
CLOSE_MATCH_FACTOR = 1.5


def _within(actual: float, target: float, tolerance: float) -> bool:
    return abs(actual - target) <= tolerance


def deviation_score(variant: VariantOption, target: NutritionProfile) -> float:
    """Calorie plus protein deviation from target. Lower is better."""
    return (
        abs(variant.nutrition.calories - target.calories)
        + abs(variant.nutrition.protein - target.protein)
    )


def match_by_nutrition(
    variants: List[VariantOption],
    target: NutritionProfile,
    tolerance_percent: Optional[float] = None
) -> NutritionMatchResult:
    """
    Split variants into exact / close / other against a target.

    Args:
        variants: Catalogue to classify
        target: Target macros per serving
        tolerance_percent: Band width as percent of each target macro,
            defaults to MESS_DEFAULT_TOLERANCE_PERCENT (10)

    Returns:
        NutritionMatchResult; close matches best first, ties in catalogue order

    Raises:
        ValueError: tolerance_percent negative or not finite
    """
    if tolerance_percent is None:
        tolerance_percent = config.DEFAULT_TOLERANCE_PERCENT
    if not math.isfinite(tolerance_percent) or tolerance_percent < 0:
        raise ValueError(f"tolerance_percent must be a finite value >= 0, got {tolerance_percent}")

    tolerance = {
        macro: getattr(target, macro) * tolerance_percent / 100
        for macro in MACROS
    }

    exact_match: List[VariantOption] = []
    close_match: List[VariantOption] = []
    other_options: List[VariantOption] = []

    for variant in variants:
        nutrition = variant.nutrition

        is_exact = all(
            _within(getattr(nutrition, macro), getattr(target, macro), tolerance[macro])
            for macro in MACROS
        )
        if is_exact:
            exact_match.append(variant)
            continue

        is_close = (
            _within(nutrition.calories, target.calories, tolerance["calories"] * CLOSE_MATCH_FACTOR)
            and _within(nutrition.protein, target.protein, tolerance["protein"] * CLOSE_MATCH_FACTOR)
        )
        if is_close:
            close_match.append(variant)
        else:
            other_options.append(variant)

    # sorted() is stable, so equal scores keep catalogue order
    close_match = sorted(close_match, key=lambda v: deviation_score(v, target))

    logger.debug(
        f"Nutrition match at {tolerance_percent}%: {len(exact_match)} exact, "
        f"{len(close_match)} close, {len(other_options)} other"
    )

    return NutritionMatchResult(
        exact_match=exact_match,
        close_match=close_match,
        other_options=other_options,
        tolerance_percent=tolerance_percent,
    )
