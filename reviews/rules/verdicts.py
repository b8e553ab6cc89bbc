"""
Verdict helpers: computed baseline verdict and content freshness.
"""

from datetime import datetime
from typing import Iterable, Optional

from reviews.choices import Verdict

VERDICT_SEVERITY = {
    Verdict.RECOMMEND.value: 0,
    Verdict.CAUTION.value: 1,
    Verdict.FLAGGED.value: 2,
}


def compute_auto_verdict(ingredient_verdicts: Iterable[str]) -> Optional[str]:
    """
    Worst verdict across the product's researched ingredients.

    Ingredients still marked "unknown" do not count. Returns None when no
    researched ingredient is linked.
    """
    worst = None
    for verdict in ingredient_verdicts:
        if verdict not in VERDICT_SEVERITY:
            continue
        if worst is None or VERDICT_SEVERITY[verdict] > VERDICT_SEVERITY[worst]:
            worst = verdict
    return worst


def calculate_freshness(
    last_tested_at: Optional[datetime],
    now: datetime,
    threshold_days: int = 180,
) -> dict:
    """
    How current a product's lab results are.

    Returns:
        Dict with status (fresh / needs_review / stale), days_since_last_review
        and a short message for the editor.
    """
    if last_tested_at is None:
        return {
            "status": "needs_review",
            "days_since_last_review": None,
            "message": "Never reviewed",
        }

    days_since = (now - last_tested_at).days

    if days_since > threshold_days:
        return {
            "status": "stale",
            "days_since_last_review": days_since,
            "message": f"Last reviewed {days_since} days ago",
        }

    if days_since > threshold_days / 2:
        return {
            "status": "needs_review",
            "days_since_last_review": days_since,
            "message": f"Review recommended ({days_since} days since last review)",
        }

    return {
        "status": "fresh",
        "days_since_last_review": days_since,
        "message": f"Reviewed {days_since} days ago",
    }
