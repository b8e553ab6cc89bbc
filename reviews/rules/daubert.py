"""
Legal-Defense Gate (Daubert validation).

A FLAGGED verdict is a public claim that must survive an evidentiary
challenge. Before a flagged product may be published, the document has to
carry:

    1. Scientific validation  - no primary detection rests on screening data alone
    2. Chain of custody       - retailer type recorded
    3. Chain of custody       - purchase receipt or purchase photo
    4. Chain of custody       - split sample not discarded
    5. Selection rationale    - why this product was tested
    6. Method validation      - validation package, completed expert review,
                                or third-party lab verification

Every requirement is checked independently and all violations are reported
together. The strings are shown verbatim to the editor.

verdict_override does not bypass this gate.
"""

import copy
import logging
from typing import List

from reviews.choices import (
    AuditAction,
    AuditSourceType,
    ConfirmationLevel,
    DisplayMode,
    Verdict,
)
from reviews.rules.context import AuditEntry, Document, RuleContext, StageResult, is_publishing

logger = logging.getLogger(__name__)

PUBLISH_BLOCKED_HEADING = "Cannot publish FLAGGED verdict - legal defense requirements not met:"

SCREENING_ONLY_ERROR = (
    "SCIENTIFIC VALIDATION: Primary detections are screening-level only ({compounds}). "
    "Confirm against a reference standard or quantify before publishing a FLAGGED verdict."
)
RETAILER_TYPE_ERROR = (
    "CHAIN OF CUSTODY: Retailer Type is required. Record where the tested sample was purchased."
)
RECEIPT_ERROR = (
    "CHAIN OF CUSTODY: Purchase Receipt or purchase photo is required to prove the sample was bought at retail."
)
SPLIT_SAMPLE_ERROR = (
    "CHAIN OF CUSTODY: Split Sample must be retained so the manufacturer can request an independent retest."
)
SELECTION_RATIONALE_ERROR = (
    "SELECTION RATIONALE: Explain why this product was selected for testing."
)
METHOD_VALIDATION_ERROR = (
    "METHOD VALIDATION: Provide a Method Validation Package, a completed Expert Review "
    "(reviewer name and review date), or third-party lab verification."
)


def requires_legal_defense(document: Document) -> bool:
    """The gate applies only to saves that publish a FLAGGED verdict."""
    return is_publishing(document) and document.get("verdict") == Verdict.FLAGGED


def _has_value(value) -> bool:
    if isinstance(value, str):
        return bool(value.strip())
    return bool(value)


def screening_only_compounds(document: Document) -> List[str]:
    """Compounds shown as primary findings that only have screening-level confirmation."""
    return [
        d.get("compound") or "unnamed compound"
        for d in document.get("detections") or []
        if d.get("display_mode") == DisplayMode.PRIMARY
        and d.get("confirmation_level") == ConfirmationLevel.SCREENING
    ]


def has_method_validation(document: Document) -> bool:
    """Validation package OR expert review (name and date) OR third-party verification."""
    expert_review_complete = (
        _has_value(document.get("expert_reviewer_name"))
        and _has_value(document.get("expert_review_date"))
    )
    return (
        _has_value(document.get("method_validation_package"))
        or expert_review_complete
        or bool(document.get("verified_by_third_party"))
    )


def validate_publication(document: Document) -> List[str]:
    """
    Return every missing-evidence error for a FLAGGED publish.

    Returns an empty list when the gate does not apply (not publishing, or a
    non-FLAGGED verdict) or when all requirements are satisfied.
    """
    if not requires_legal_defense(document):
        return []

    errors = []

    compounds = screening_only_compounds(document)
    if compounds:
        errors.append(SCREENING_ONLY_ERROR.format(compounds=", ".join(compounds)))

    if not _has_value(document.get("retailer_type")):
        errors.append(RETAILER_TYPE_ERROR)

    if not (_has_value(document.get("purchase_receipt")) or _has_value(document.get("purchase_photo"))):
        errors.append(RECEIPT_ERROR)

    # Unknown retention (None) is tolerated; only an explicit "discarded" blocks
    if document.get("split_sample_retained") is False:
        errors.append(SPLIT_SAMPLE_ERROR)

    if not _has_value(document.get("selection_rationale")):
        errors.append(SELECTION_RATIONALE_ERROR)

    if not has_method_validation(document):
        errors.append(METHOD_VALIDATION_ERROR)

    return errors


def check_legal_defense(document: Document, context: RuleContext) -> StageResult:
    """Pipeline stage: block FLAGGED publishes that lack their evidence bundle."""
    errors = validate_publication(document)
    if not errors:
        return StageResult(document=document)

    logger.info(
        f"Publish blocked for product {document.get('id')}: "
        f"{len(errors)} legal defense requirement(s) missing"
    )

    entry = AuditEntry(
        action=AuditAction.PUBLISH_BLOCKED,
        source_type=AuditSourceType.RULE,
        target_id=document.get("id"),
        target_name=document.get("name") or "",
        before={"status": context.previous_status},
        after={"status": document.get("status"), "verdict": document.get("verdict")},
        metadata={
            "errors": list(errors),
            "blocked_at": context.now.isoformat(),
            "gate": "legal_defense",
        },
    )

    return StageResult(
        document=copy.deepcopy(document),
        errors=errors,
        fatal=True,
        rejection_entries=[entry],
        error_heading=PUBLISH_BLOCKED_HEADING,
    )
