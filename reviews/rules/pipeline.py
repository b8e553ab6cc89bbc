"""
Product save pipeline.

Runs the publication rules over one candidate document in a fixed order:

    1. classify_detections   derive display_mode / detection_type
    2. check_conflicts       category-rule conflicts, blocks unless overridden
    3. audit_verdict_override stamp override attribution
    4. check_legal_defense   Daubert evidence for FLAGGED publishes
    5. lint_publication      prohibited terms in published copy

Each stage is a pure function ``(document, context) -> StageResult``. The
pipeline stops at the first fatal stage. Stages that lint (legal defense,
prohibited terms) collect every violation before reporting.

On rejection the caller gets back the original document untouched, the
error strings, and only the audit entries that record the rejection itself.
"""

import logging
from typing import Callable, List, Sequence, Tuple

from reviews.rules.conflicts import check_conflicts
from reviews.rules.context import Document, PipelineOutcome, RuleContext, StageResult
from reviews.rules.daubert import check_legal_defense
from reviews.rules.detections import classify_detections
from reviews.rules.override import audit_verdict_override
from reviews.rules.prohibited_terms import lint_publication

logger = logging.getLogger(__name__)

Stage = Callable[[Document, RuleContext], StageResult]

DEFAULT_STAGES: Tuple[Tuple[str, Stage], ...] = (
    ("classify_detections", classify_detections),
    ("check_conflicts", check_conflicts),
    ("audit_verdict_override", audit_verdict_override),
    ("check_legal_defense", check_legal_defense),
    ("lint_publication", lint_publication),
)


def run_save_pipeline(
    document: Document,
    context: RuleContext,
    stages: Sequence[Tuple[str, Stage]] = DEFAULT_STAGES,
) -> PipelineOutcome:
    """
    Evaluate a candidate document against every publication rule.

    Args:
        document: Full candidate field set for the product being saved
        context: Rule context (user, previous version, clock, collaborators)
        stages: Ordered (name, stage) pairs; defaults to DEFAULT_STAGES

    Returns:
        PipelineOutcome. When accepted, ``document`` carries the derived
        fields and ``audit_entries`` lists everything to write. When rejected,
        ``document`` is the input unchanged.
    """
    current = document
    pending_entries: List = []

    for name, stage in stages:
        result = stage(current, context)

        if result.fatal:
            logger.info(
                f"Save pipeline rejected product {document.get('id')} at {name} "
                f"with {len(result.errors)} error(s)"
            )
            return PipelineOutcome(
                accepted=False,
                document=document,
                errors=list(result.errors),
                audit_entries=list(result.rejection_entries),
                stage=name,
                error_heading=result.error_heading,
                evaluated_document=result.document,
            )

        current = result.document
        pending_entries.extend(result.audit_entries)

    return PipelineOutcome(
        accepted=True,
        document=current,
        audit_entries=pending_entries,
        evaluated_document=current,
    )


def preflight(document: Document, context: RuleContext) -> PipelineOutcome:
    """
    Evaluate a document as if it were being published, without side effects.

    Used by the editor's pre-flight check. The status is forced to published
    so every publication gate runs.
    """
    candidate = dict(document)
    candidate["status"] = "published"
    return run_save_pipeline(candidate, context)
