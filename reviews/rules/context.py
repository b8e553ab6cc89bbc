"""
Explicit context and result types for the publication rule engine.

Rule functions receive everything they need through ``RuleContext`` (the
acting user, the previously persisted document, the clock, collaborators
and rule tables) and report back through ``StageResult``. Nothing is read
from request-global state.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from django.utils import timezone

from reviews.choices import ProductStatus
from reviews.rules.tables import RuleTables, load_rule_tables

Document = Dict[str, Any]


@dataclass(frozen=True)
class Actor:
    """The user performing a save, as far as audit stamping needs it."""

    id: Optional[int]
    name: str = ""


@dataclass
class AuditEntry:
    """One record for the audit-log sink."""

    action: str
    target_id: Optional[int] = None
    target_name: str = ""
    source_type: str = "system"
    target_collection: str = "products"
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "source_type": self.source_type,
            "target_collection": self.target_collection,
            "target_id": self.target_id,
            "target_name": self.target_name,
            "before": self.before,
            "after": self.after,
            "metadata": self.metadata,
        }


@dataclass
class RuleContext:
    """
    Inputs to a single save evaluation.

    Attributes:
        user: Actor performing the save (used only for audit stamps)
        previous: Previously persisted document, or None for a new product
        now: Timestamp used for every stamp written during this save
        category_rules: Collaborator returning category-rule conflicts for a
            candidate document. May raise; callers treat failures as no rules.
        tables: Rule tables (fragrance whitelist, blocklists)
    """

    user: Optional[Actor] = None
    previous: Optional[Document] = None
    now: datetime = field(default_factory=timezone.now)
    category_rules: Optional[Callable[[Document], List[Any]]] = None
    tables: RuleTables = field(default_factory=load_rule_tables)

    @property
    def previous_status(self) -> Optional[str]:
        return (self.previous or {}).get("status")


@dataclass
class StageResult:
    """Outcome of one pipeline stage."""

    document: Document
    errors: List[str] = field(default_factory=list)
    fatal: bool = False
    audit_entries: List[AuditEntry] = field(default_factory=list)
    # Audit entries that must be written even though the save is rejected
    rejection_entries: List[AuditEntry] = field(default_factory=list)
    error_heading: str = ""


@dataclass
class PipelineOutcome:
    """Result of running the full save pipeline over one document."""

    accepted: bool
    document: Document
    errors: List[str] = field(default_factory=list)
    audit_entries: List[AuditEntry] = field(default_factory=list)
    stage: str = ""
    error_heading: str = ""
    # Document as the last stage left it, derived fields included, even on rejection
    evaluated_document: Dict[str, Any] = field(default_factory=dict)

    @property
    def conflicts(self) -> List[Dict[str, Any]]:
        source = self.evaluated_document or self.document
        return (source.get("conflicts") or {}).get("items", [])

    @property
    def error_message(self) -> str:
        """All errors in one numbered message, as presented to the editor."""
        if not self.errors:
            return ""
        numbered = "\n".join(f"{i}. {error}" for i, error in enumerate(self.errors, start=1))
        heading = self.error_heading or "Save rejected:"
        return f"{heading}\n{numbered}"


def is_publishing(document: Document) -> bool:
    """True when the save would leave the document in the published state."""
    return document.get("status") == ProductStatus.PUBLISHED
