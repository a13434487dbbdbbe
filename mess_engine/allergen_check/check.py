"""
Allergen Check Core Logic

Pre-serving check of one student against one meal variant.

This module implements:
1. Cross-checking every variant allergen against the student's buckets
2. Absolute block on ANAPHYLAXIS
3. Manager-override hold on SEVERE
4. Pass-with-note on VERIFIED (mild/moderate)
5. An audit log line for every check and every override

Zero tolerance for false negatives: an allergen sitting in several buckets
is always reported at its most severe one.

Persisting the audit trail is the caller's job; this module emits it on the
`mess_engine.allergen_check.audit` logger.
"""

import logging
from datetime import datetime, timezone
from typing import List

from .models import (
    AllergenCheckResult,
    AllergenConflict,
    AllergenSeverity,
    CheckStatus,
    OverrideRecord,
    SEVERITY_RANK,
)
from mess_engine.variants.models import StudentDietaryProfile, VariantOption
from mess_engine.shared.hashing import content_hash, matches_hash

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("mess_engine.allergen_check.audit")

REASON_PREFIX = {
    AllergenSeverity.ANAPHYLAXIS: "BLOCK_ANAPHYLAXIS",
    AllergenSeverity.SEVERE: "OVERRIDE_SEVERE",
    AllergenSeverity.VERIFIED: "CAUTION_VERIFIED",
}


class OverrideNotPermittedError(ValueError):
    """Raised when a check result cannot be overridden."""


def find_conflicts(
    student: StudentDietaryProfile,
    variant: VariantOption
) -> List[AllergenConflict]:
    """
    List variant allergens the student reacts to, at their worst severity.

    Sorted most severe first, then by allergen id.
    """
    conflicts = []
    for allergen_id in variant.allergens:
        if allergen_id in student.anaphylaxis_allergy_ids:
            severity = AllergenSeverity.ANAPHYLAXIS
        elif allergen_id in student.severe_allergy_ids:
            severity = AllergenSeverity.SEVERE
        elif allergen_id in student.verified_allergy_ids:
            severity = AllergenSeverity.VERIFIED
        else:
            continue
        conflicts.append(AllergenConflict(allergen_id=allergen_id, severity=severity))

    conflicts.sort(key=lambda c: (-SEVERITY_RANK[c.severity], c.allergen_id))
    return conflicts


def _seal(result: AllergenCheckResult) -> AllergenCheckResult:
    audit_hash = content_hash(result)
    return result.model_copy(update={"audit_hash": audit_hash})


def _audit(result: AllergenCheckResult) -> None:
    level = logging.INFO if result.safe else logging.WARNING
    audit_logger.log(
        level,
        f"ALLERGEN_CHECK student={result.student_id} variant={result.variant_id} "
        f"status={result.status.value} codes={','.join(result.reason_codes) or '-'} "
        f"hash={result.audit_hash}"
    )


def _implied_status(conflicts: List[AllergenConflict]) -> CheckStatus:
    severities = {c.severity for c in conflicts}
    if AllergenSeverity.ANAPHYLAXIS in severities:
        return CheckStatus.BLOCKED
    if AllergenSeverity.SEVERE in severities:
        return CheckStatus.OVERRIDE_REQUIRED
    if conflicts:
        return CheckStatus.CAUTION
    return CheckStatus.CLEAR


def _evaluate(
    student: StudentDietaryProfile,
    variant: VariantOption
) -> AllergenCheckResult:
    conflicts = find_conflicts(student, variant)
    status = _implied_status(conflicts)
    reason_codes = sorted(
        f"{REASON_PREFIX[c.severity]}_{c.allergen_id.upper()}" for c in conflicts
    )

    fields = dict(
        student_id=student.student_id,
        variant_id=variant.variant_id,
        status=status,
        conflicting_allergens=conflicts,
        reason_codes=reason_codes,
        checked_at=datetime.now(timezone.utc),
    )

    if status == CheckStatus.BLOCKED:
        result = AllergenCheckResult(
            safe=False,
            requires_manager_override=False,
            block_reason="CRITICAL: Meal contains life-threatening allergen (ANAPHYLAXIS)",
            notes="This meal CANNOT be served to this student under ANY circumstances",
            **fields,
        )
    elif status == CheckStatus.OVERRIDE_REQUIRED:
        result = AllergenCheckResult(
            safe=False,
            requires_manager_override=True,
            block_reason="Meal contains SEVERE allergen - Manager override required",
            notes="Contact manager/doctor before serving",
            **fields,
        )
    elif status == CheckStatus.CAUTION:
        result = AllergenCheckResult(
            safe=True,
            notes="Meal safe to serve. Mild/moderate allergens present - student aware",
            **fields,
        )
    else:
        result = AllergenCheckResult(
            safe=True,
            notes="Meal safe to serve - no allergen conflicts",
            **fields,
        )

    return _seal(result)


def check_variant(
    student: StudentDietaryProfile,
    variant: VariantOption
) -> AllergenCheckResult:
    """
    Check whether a variant may be served to a student.

    Returns:
        AllergenCheckResult with status, conflicts, reason codes and an
        audit hash. Also written to the audit log.
    """
    result = _evaluate(student, variant)
    _audit(result)
    return result


def check_variants(
    student: StudentDietaryProfile,
    variants: List[VariantOption]
) -> List[AllergenCheckResult]:
    """Check several variants for one student, in catalogue order."""
    return [check_variant(student, variant) for variant in variants]


def safe_variants_for_student(
    student: StudentDietaryProfile,
    variants: List[VariantOption]
) -> List[VariantOption]:
    """Variants that may be served to the student without an override."""
    return [
        variant
        for variant, check in zip(variants, check_variants(student, variants))
        if check.safe
    ]


def record_override(
    check: AllergenCheckResult,
    student: StudentDietaryProfile,
    variant: VariantOption,
    manager_user_id: str,
    reason: str
) -> OverrideRecord:
    """
    Record a manager override of a severe-allergen hold.

    The posted check is never trusted on its own: the check is re-run for
    the given student and variant and must reproduce the same audit hash.

    Raises:
        OverrideNotPermittedError: the check is an anaphylaxis block, needs
            no override, belongs to another student or variant, or does not
            match a fresh check of the same pair
    """
    if check.student_id != student.student_id or check.variant_id != variant.variant_id:
        raise OverrideNotPermittedError(
            "Check result was issued for a different student or variant"
        )

    if not matches_hash(check, check.audit_hash):
        raise OverrideNotPermittedError(
            "Check result does not match its audit hash - re-run the allergen check"
        )

    if any(c.severity == AllergenSeverity.ANAPHYLAXIS for c in check.conflicting_allergens):
        raise OverrideNotPermittedError(
            "ANAPHYLAXIS allergen present - this block cannot be overridden"
        )

    if check.status != _implied_status(check.conflicting_allergens):
        raise OverrideNotPermittedError(
            f"Check status {check.status.value} does not match its conflicts - re-run the allergen check"
        )

    fresh = _evaluate(student, variant)
    if fresh.status == CheckStatus.BLOCKED:
        raise OverrideNotPermittedError(
            "ANAPHYLAXIS allergen present - this block cannot be overridden"
        )

    if fresh.audit_hash != check.audit_hash:
        raise OverrideNotPermittedError(
            "Check result does not match a fresh allergen check - re-run the allergen check"
        )

    if not fresh.requires_manager_override:
        raise OverrideNotPermittedError(
            f"Check status {fresh.status.value} does not require an override"
        )

    record = OverrideRecord(
        student_id=fresh.student_id,
        variant_id=fresh.variant_id,
        overridden_by=manager_user_id,
        override_reason=reason,
        check_hash=fresh.audit_hash,
        recorded_at=datetime.now(timezone.utc),
    )

    audit_logger.warning(
        f"ALLERGEN_OVERRIDE student={record.student_id} variant={record.variant_id} "
        f"by={record.overridden_by} codes={','.join(fresh.reason_codes)} "
        f"reason={record.override_reason!r}"
    )
    logger.debug(f"Override recorded for check {fresh.audit_hash}")

    return record
