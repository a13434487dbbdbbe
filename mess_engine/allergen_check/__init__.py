"""
Allergen Check Module

Pre-serving safety check: can THIS student be served THIS variant now?

PRINCIPLE: Anaphylaxis does not negotiate. Severe needs a manager.
Mild is served with the student aware.
"""

from .models import (
    CheckStatus,
    AllergenSeverity,
    AllergenConflict,
    AllergenCheckResult,
    OverrideRecord,
)
from .check import (
    check_variant,
    check_variants,
    safe_variants_for_student,
    record_override,
    OverrideNotPermittedError,
)
from .admin import router as admin_router

__all__ = [
    # Models
    "CheckStatus",
    "AllergenSeverity",
    "AllergenConflict",
    "AllergenCheckResult",
    "OverrideRecord",
    # Functions
    "check_variant",
    "check_variants",
    "safe_variants_for_student",
    "record_override",
    "OverrideNotPermittedError",
    # Router
    "admin_router",
]

__version__ = "allergen_check_v1"
