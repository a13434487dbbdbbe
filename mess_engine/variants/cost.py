"""
Cost Exposure

Total cost if every eligible student were served every variant they can
eat, per-student average, and the spread between variant tallies.
"""

import logging
from typing import Dict, List

from .models import CostAnalysis, StudentDietaryProfile, VariantOption
from .match import match_cohort
from mess_engine import config
from mess_engine.shared.rounding import round_currency

logger = logging.getLogger(__name__)

COST_GAP_MESSAGE = (
    "Cost difference between variants: {symbol}{gap:.2f}. "
    "Consider most economical options."
)


def analyze_cost(
    students: List[StudentDietaryProfile],
    variants: List[VariantOption]
) -> CostAnalysis:
    """
    Sum acceptable-variant costs across the cohort.

    A variant's cost is counted once per student who can eat it, both in
    total_cost and in its cost_per_variant tally.
    """
    cohort = match_cohort(students, variants)

    total_cost = 0.0
    cost_per_variant: Dict[str, float] = {}

    for match in cohort.matches:
        for variant in match.acceptable():
            cost_per_variant[variant.variant_id] = (
                cost_per_variant.get(variant.variant_id, 0.0) + variant.cost
            )
            total_cost += variant.cost

    avg_cost_per_student = round_currency(total_cost / len(students)) if students else 0.0

    recommendations: List[str] = []
    cheapest_variant_id = None
    most_expensive_variant_id = None

    priced = {vid: tally for vid, tally in cost_per_variant.items() if tally > 0}
    if len(priced) >= 2:
        cheapest_variant_id = min(priced, key=priced.get)
        most_expensive_variant_id = max(priced, key=priced.get)
        gap = priced[most_expensive_variant_id] - priced[cheapest_variant_id]
        recommendations.append(
            COST_GAP_MESSAGE.format(symbol=config.CURRENCY_SYMBOL, gap=round_currency(gap))
        )

    logger.debug(
        f"Cost analysis: {len(students)} students, total {total_cost:.2f}, "
        f"{len(cost_per_variant)} variants in use"
    )

    return CostAnalysis(
        total_cost=round_currency(total_cost),
        avg_cost_per_student=avg_cost_per_student,
        cost_per_variant={vid: round_currency(tally) for vid, tally in cost_per_variant.items()},
        recommendations=recommendations,
        cheapest_variant_id=cheapest_variant_id,
        most_expensive_variant_id=most_expensive_variant_id,
    )
