"""
Detection Classifier.

Derives the display tier and disclosure category of each lab detection:

- display_mode from NIST match probability (low-confidence gatekeeper):
    >= 80  -> primary
    50-79  -> low_confidence
    < 50   -> hidden
- detection_type from the compound name and the full package text:
    fragrance_component  whitelisted fragrance allergen that the package
                         discloses (by name or via a generic fragrance keyword)
    hidden_contaminant   compound on the known-contaminant list
    standard             everything else

Values already present on a detection are never overwritten, so repeat saves
are stable.
"""

import copy
import logging
from typing import Any, Dict, Optional

from reviews.choices import ConfirmationLevel, DetectionType, DisplayMode
from reviews.rules.context import Document, RuleContext, StageResult
from reviews.rules.tables import RuleTables, load_rule_tables

logger = logging.getLogger(__name__)

PRIMARY_THRESHOLD = 80
LOW_CONFIDENCE_THRESHOLD = 50


def get_display_mode(match_probability: float) -> str:
    """Map a 0-100 match probability to a display tier (boundaries inclusive upward)."""
    if match_probability >= PRIMARY_THRESHOLD:
        return DisplayMode.PRIMARY.value
    if match_probability >= LOW_CONFIDENCE_THRESHOLD:
        return DisplayMode.LOW_CONFIDENCE.value
    return DisplayMode.HIDDEN.value


def is_fragrance_component(compound: str, tables: Optional[RuleTables] = None) -> bool:
    """True if the compound name contains a whitelisted fragrance component."""
    tables = tables or load_rule_tables()
    lower_compound = compound.lower()
    return any(fc.lower() in lower_compound for fc in tables.fragrance_components)


def classify_detection(
    compound: str,
    full_package_text: str,
    tables: Optional[RuleTables] = None,
) -> str:
    """
    Classify a detected compound against what the package discloses.

    Args:
        compound: Detected compound name
        full_package_text: All text from the package (ingredients, warnings, allergens)
        tables: Rule tables; defaults to the configured tables

    Returns:
        One of the DetectionType values
    """
    tables = tables or load_rule_tables()
    lower_text = (full_package_text or "").lower()
    lower_compound = (compound or "").lower()

    compound_mentioned = bool(lower_compound) and lower_compound in lower_text
    has_fragrance_disclosure = any(
        keyword.lower() in lower_text for keyword in tables.fragrance_disclosure_keywords
    )

    if is_fragrance_component(lower_compound, tables) and (compound_mentioned or has_fragrance_disclosure):
        return DetectionType.FRAGRANCE_COMPONENT.value

    # Contaminants are never treated as fragrance, disclosed or not
    if any(c.lower() in lower_compound for c in tables.known_contaminants):
        return DetectionType.HIDDEN_CONTAMINANT.value

    return DetectionType.STANDARD.value


def _classify_one(detection: Dict[str, Any], package_text: str, tables: RuleTables) -> Dict[str, Any]:
    if not detection.get("display_mode") and detection.get("match_probability") is not None:
        detection["display_mode"] = get_display_mode(float(detection["match_probability"]))

    if not detection.get("detection_type") and detection.get("compound"):
        detection["detection_type"] = classify_detection(
            detection["compound"], package_text, tables
        )

    if not detection.get("confirmation_level"):
        detection["confirmation_level"] = ConfirmationLevel.SCREENING.value

    return detection


def classify_detections(document: Document, context: RuleContext) -> StageResult:
    """Pipeline stage: fill in missing display_mode / detection_type on every detection."""
    doc = copy.deepcopy(document)
    package_text = doc.get("package_text") or ""

    detections = doc.get("detections") or []
    doc["detections"] = [
        _classify_one(dict(detection), package_text, context.tables)
        for detection in detections
    ]

    if detections:
        logger.debug(
            f"Classified {len(detections)} detections for product {doc.get('id')}"
        )

    return StageResult(document=doc)
