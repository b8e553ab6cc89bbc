"""
Conflict Detector.

Aggregates rule violations for a candidate verdict into a pass/fail decision.
The category rules themselves come from a collaborator on the RuleContext;
this module only merges their results, adds the auto-verdict check and
decides whether the save may proceed.

Decision:
    can_save is False only when at least one conflict has severity "error"
    and verdict_override is not set. An override authorizes saving despite
    error-level conflicts; it does not bypass the legal-defense gate.

Failure policy:
    If the category-rule collaborator raises, the product is treated as having
    no category rules (empty conflict set) and the save continues. The failure
    is logged, sent to Sentry and recorded as an "error" audit entry.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from reviews.choices import AuditAction, AuditSourceType, ConflictSeverity
from reviews.monitoring.sentry_integration import capture_rule_error
from reviews.rules.context import AuditEntry, Document, RuleContext, StageResult

logger = logging.getLogger(__name__)


@dataclass
class Conflict:
    """A single rule violation for a candidate verdict."""

    type: str
    severity: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def coerce(cls, value) -> "Conflict":
        if isinstance(value, Conflict):
            return value
        return cls(
            type=value.get("type", "rule_violation"),
            severity=value.get("severity", ConflictSeverity.WARNING),
            message=value["message"],
            details=value.get("details") or {},
        )

    @property
    def is_error(self) -> bool:
        return self.severity == ConflictSeverity.ERROR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "severity": str(self.severity),
            "message": self.message,
            "details": self.details,
        }


@dataclass
class ConflictResult:
    has_conflicts: bool
    conflicts: List[Conflict]
    can_save: bool
    lookup_error: Optional[str] = None

    @property
    def error_messages(self) -> List[str]:
        return [c.message for c in self.conflicts if c.is_error]


def resolve_category_id(category) -> Optional[int]:
    """Accept a category id or a resolved category reference ({"id": ...} or model)."""
    if category is None or category == "":
        return None
    if isinstance(category, dict):
        return category.get("id")
    if hasattr(category, "pk"):
        return category.pk
    return int(category)


def _auto_verdict_conflicts(candidate: Document) -> Iterable[Conflict]:
    auto_verdict = candidate.get("auto_verdict")
    verdict = candidate.get("verdict")
    if not auto_verdict or not verdict or candidate.get("verdict_override"):
        return []
    if auto_verdict == verdict:
        return []
    return [
        Conflict(
            type="auto_verdict_mismatch",
            severity=ConflictSeverity.WARNING,
            message=(
                f"Verdict '{verdict}' differs from computed verdict '{auto_verdict}'. "
                f"Enable Verdict Override and give a reason to keep it."
            ),
            details={"verdict": verdict, "auto_verdict": auto_verdict},
        )
    ]


def detect_conflicts(candidate: Document, context: RuleContext) -> ConflictResult:
    """
    Detect conflicts between a candidate verdict and the rules that apply to it.

    Args:
        candidate: Document with at least verdict, verdict_override and category
        context: Rule context carrying the category_rules collaborator

    Returns:
        ConflictResult with has_conflicts, conflicts and can_save
    """
    conflicts: List[Conflict] = []
    lookup_error = None

    if context.category_rules is not None:
        try:
            conflicts.extend(Conflict.coerce(c) for c in context.category_rules(candidate) or [])
        except Exception as e:
            # Fail open: an unavailable lookup must not block publishing
            lookup_error = f"{type(e).__name__}: {e}"
            logger.warning(
                f"Category rule lookup failed for product {candidate.get('id')}, "
                f"treating as no category: {e}"
            )
            capture_rule_error(
                e,
                stage="conflict_detection",
                product_id=candidate.get("id"),
                extra_context={"category": resolve_category_id_safe(candidate.get("category"))},
            )
            conflicts = []

    conflicts.extend(_auto_verdict_conflicts(candidate))

    has_errors = any(c.is_error for c in conflicts)
    can_save = not (has_errors and not candidate.get("verdict_override"))

    return ConflictResult(
        has_conflicts=bool(conflicts),
        conflicts=conflicts,
        can_save=can_save,
        lookup_error=lookup_error,
    )


def resolve_category_id_safe(category) -> Optional[int]:
    try:
        return resolve_category_id(category)
    except (TypeError, ValueError):
        return None


def check_conflicts(document: Document, context: RuleContext) -> StageResult:
    """
    Pipeline stage: run the Conflict Detector and store its result on the document.

    The stored conflict list always reflects this save. A conflict_detected
    audit entry is produced whenever conflicts exist.
    """
    doc = copy.deepcopy(document)
    result = detect_conflicts(doc, context)

    doc["conflicts"] = {
        "items": [c.to_dict() for c in result.conflicts],
        "checked_at": context.now.isoformat(),
    }

    entries = []
    if result.has_conflicts:
        entries.append(AuditEntry(
            action=AuditAction.CONFLICT_DETECTED,
            source_type=AuditSourceType.RULE,
            target_id=doc.get("id"),
            target_name=doc.get("name") or "",
            metadata={
                "conflicts": doc["conflicts"]["items"],
                "can_save": result.can_save,
                "verdict": doc.get("verdict"),
                "verdict_override": bool(doc.get("verdict_override")),
            },
        ))

    if result.lookup_error:
        entries.append(AuditEntry(
            action=AuditAction.ERROR,
            source_type=AuditSourceType.SYSTEM,
            target_id=doc.get("id"),
            target_name=doc.get("name") or "",
            metadata={
                "error_category": "conflict_detection_error",
                "error_message": result.lookup_error,
                "category": resolve_category_id_safe(doc.get("category")),
            },
        ))

    if not result.can_save:
        logger.info(
            f"Save blocked for product {doc.get('id')}: "
            f"{len(result.error_messages)} verdict conflict(s) without override"
        )
        return StageResult(
            document=doc,
            errors=result.error_messages,
            fatal=True,
            rejection_entries=entries,
            error_heading="Cannot save: verdict conflicts with product rules (enable Verdict Override to save anyway):",
        )

    return StageResult(document=doc, audit_entries=entries)
