"""
Publication rule engine.

Pure functions over a product document and an explicit RuleContext. No
database access happens here; the Django-backed collaborators live in
reviews.services.
"""

from reviews.rules.conflicts import Conflict, ConflictResult, check_conflicts, detect_conflicts
from reviews.rules.context import Actor, AuditEntry, PipelineOutcome, RuleContext, StageResult
from reviews.rules.daubert import check_legal_defense, validate_publication
from reviews.rules.detections import (
    classify_detection,
    classify_detections,
    get_display_mode,
    is_fragrance_component,
)
from reviews.rules.override import audit_verdict_override
from reviews.rules.pipeline import preflight, run_save_pipeline
from reviews.rules.prohibited_terms import contains_prohibited_terms, lint_publication
from reviews.rules.tables import RuleTables, load_rule_tables, reset_rule_tables_cache

__all__ = [
    "Actor",
    "AuditEntry",
    "Conflict",
    "ConflictResult",
    "PipelineOutcome",
    "RuleContext",
    "RuleTables",
    "StageResult",
    "audit_verdict_override",
    "check_conflicts",
    "check_legal_defense",
    "classify_detection",
    "classify_detections",
    "contains_prohibited_terms",
    "detect_conflicts",
    "get_display_mode",
    "is_fragrance_component",
    "lint_publication",
    "load_rule_tables",
    "preflight",
    "reset_rule_tables_cache",
    "run_save_pipeline",
    "validate_publication",
]
