"""
Liability shield for FLAGGED products.

Non-premium readers still see that a product is flagged, but the detailed
analysis (ingredients, pros/cons, review text, purchase links) is withheld.
"""

from typing import Any, Dict

from reviews.choices import Verdict

SHIELDED_FIELDS = (
    "ingredients",
    "package_text",
    "pros",
    "cons",
    "full_review",
    "summary",
    "detections",
    "detection_summaries",
    "detection_overview",
    "purchase_links",
)

SHIELDED_VERDICT_REASON = (
    "This product was flagged by our screening. Upgrade to see the full lab analysis."
)


def apply_liability_shield(product: Dict[str, Any], is_premium: bool) -> Dict[str, Any]:
    """Return a copy of ``product`` with sensitive fields stripped when required."""
    shielded = dict(product)
    if is_premium or product.get("verdict") != Verdict.FLAGGED:
        shielded["is_shielded"] = False
        return shielded

    for name in SHIELDED_FIELDS:
        if name in shielded:
            value = shielded[name]
            shielded[name] = [] if isinstance(value, list) else None

    shielded["verdict_reason"] = SHIELDED_VERDICT_REASON
    shielded["is_shielded"] = True
    return shielded
