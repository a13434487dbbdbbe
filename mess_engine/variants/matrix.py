"""
Compatibility Matrix

Dense student x variant grid of pure allergen safety, for audit reports.
Dietary preference plays no part here.
"""

from typing import Dict, List

from .models import (
    CompatibilityMatrix,
    MatrixSummary,
    StudentDietaryProfile,
    VariantOption,
)
from .match import is_allergen_safe
from mess_engine.shared.rounding import percentage


def build_compatibility_matrix(
    students: List[StudentDietaryProfile],
    variants: List[VariantOption]
) -> CompatibilityMatrix:
    """
    Build matrix[student_id][variant_id] = can safely eat.

    Summary counts are taken from the built grid, so repeated ids
    collapse to their last entry.
    """
    matrix: Dict[str, Dict[str, bool]] = {}

    for student in students:
        matrix[student.student_id] = {
            variant.variant_id: is_allergen_safe(student, variant)
            for variant in variants
        }

    cells = [cell for row in matrix.values() for cell in row.values()]
    safe = sum(1 for cell in cells if cell)

    return CompatibilityMatrix(
        matrix=matrix,
        summary=MatrixSummary(
            safe=safe,
            unsafe=len(cells) - safe,
            percent=percentage(safe, len(cells)),
        ),
    )
