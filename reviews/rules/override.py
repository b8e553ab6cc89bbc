"""
Verdict Override Auditor.

When a human first diverges from the computed verdict (verdict_override goes
from false to true), stamp who did it and when, and emit an immutable
manual_override audit entry with the before/after verdict and the reason.

Re-saving with the override already on does not re-stamp. Turning the
override off leaves the stamps in place as a permanent audit trail.
"""

import copy
import logging

from reviews.choices import AuditAction, AuditSourceType
from reviews.rules.context import AuditEntry, Document, RuleContext, StageResult

logger = logging.getLogger(__name__)


def override_turned_on(document: Document, context: RuleContext) -> bool:
    """True when this save flips verdict_override from off (or new) to on."""
    was_on = bool((context.previous or {}).get("verdict_override"))
    return bool(document.get("verdict_override")) and not was_on


def audit_verdict_override(document: Document, context: RuleContext) -> StageResult:
    """Pipeline stage: stamp override attribution on a false->true transition."""
    if not override_turned_on(document, context):
        return StageResult(document=document)

    doc = copy.deepcopy(document)
    user = context.user
    previous = context.previous or {}

    doc["verdict_overridden_by"] = user.id if user else None
    doc["verdict_overridden_at"] = context.now

    before_verdict = previous.get("verdict") or doc.get("auto_verdict")

    entry = AuditEntry(
        action=AuditAction.MANUAL_OVERRIDE,
        source_type=AuditSourceType.MANUAL,
        target_id=doc.get("id"),
        target_name=doc.get("name") or "",
        before={"verdict": before_verdict, "auto_verdict": doc.get("auto_verdict")},
        after={"verdict": doc.get("verdict")},
        metadata={
            "reason": doc.get("verdict_override_reason") or "",
            "overridden_by": user.name if user else "",
            "overridden_at": context.now.isoformat(),
        },
    )

    logger.info(
        f"Verdict override on product {doc.get('id')}: "
        f"{before_verdict} -> {doc.get('verdict')} by {user.name if user else 'unknown'}"
    )

    return StageResult(document=doc, audit_entries=[entry])
