"""
Prohibited-Term Linter.

Published copy must read like an instrument report, not an accusation.
Words such as "toxic" or "fraud" are blocked from the summary, the full
review and the pros/cons before a product can be published.
"""

import logging
from typing import List, Optional, Tuple

from reviews.rules.context import Document, RuleContext, StageResult, is_publishing
from reviews.rules.tables import RuleTables, load_rule_tables

logger = logging.getLogger(__name__)

PROHIBITED_TERMS_HEADING = "Cannot publish - prohibited language found:"


def contains_prohibited_terms(text: str, tables: Optional[RuleTables] = None) -> List[str]:
    """
    Return the prohibited terms found in ``text`` (case-insensitive substring match).

    Terms are returned in blocklist order.

    >>> contains_prohibited_terms("This product is TOXIC")
    ['toxic']
    """
    if not text:
        return []
    tables = tables or load_rule_tables()
    lower_text = text.lower()
    return [term for term in tables.prohibited_terms if term.lower() in lower_text]


def _list_text(items) -> str:
    parts = []
    for item in items or []:
        if isinstance(item, dict):
            item = item.get("item") or ""
        parts.append(str(item))
    return " ".join(parts)


def publishable_text_fields(document: Document) -> List[Tuple[str, str]]:
    """(label, text) pairs for every free-text field that goes public."""
    pros_cons = " ".join(
        part for part in (_list_text(document.get("pros")), _list_text(document.get("cons"))) if part
    )
    return [
        ("Summary", document.get("summary") or ""),
        ("Full Review", document.get("full_review") or ""),
        ("Pros/Cons", pros_cons),
    ]


def lint_publication(document: Document, context: RuleContext) -> StageResult:
    """Pipeline stage: reject a publish whose copy contains prohibited terms."""
    if not is_publishing(document):
        return StageResult(document=document)

    errors = []
    for label, text in publishable_text_fields(document):
        matched = contains_prohibited_terms(text, context.tables)
        if matched:
            quoted = ", ".join(f'"{term}"' for term in matched)
            errors.append(f"{label} contains prohibited terms: {quoted}")

    if errors:
        logger.info(
            f"Publish blocked for product {document.get('id')}: prohibited terms in "
            f"{len(errors)} field(s)"
        )
        return StageResult(
            document=document,
            errors=errors,
            fatal=True,
            error_heading=PROHIBITED_TERMS_HEADING,
        )

    return StageResult(document=document)
