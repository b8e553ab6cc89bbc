"""
Legally protective copy used in published product reports.

Detections are phrased as instrument readings ("screening detected peaks
consistent with X"), every report carries a batch disclaimer, and verdicts
map to approved headline language. Do not edit without legal review.
"""

from typing import Dict, Optional

from reviews.choices import Verdict

SCREENING_WATERMARK = {
    "primary": "Preliminary Mass Spec Screening / Non-Regulatory",
    "short": "Screening Data / Non-Regulatory",
    "a11y_label": "This is preliminary screening data, not regulatory testing",
}

BATCH_DISCLAIMER_TEMPLATE = "Results valid for Sample #{sample_id} only. Formulas may vary by batch."
BATCH_DISCLAIMER_GENERIC = "Results valid for tested sample only. Formulas may vary by batch."

DETECTION_TEMPLATES = {
    "voc_detected": (
        "Screening detected volatility peaks consistent with {compound} "
        "(Match Probability: {probability}%)."
    ),
    "contaminant": "Mass spec identified peaks consistent with {contaminant} (NIST Match: {match}%).",
    "multiple_detections": "Screening flagged {count} finding(s). See detailed results below.",
    "clean_result": "Screening detected no undisclosed volatile compounds above reporting threshold.",
}

VERDICT_LANGUAGE: Dict[str, Dict[str, str]] = {
    Verdict.RECOMMEND.value: {
        "headline": "Screening Passed",
        "subheadline": "No concerning findings detected",
        "detail": (
            "Our screening detected no undisclosed volatile compounds or significant label variances."
        ),
    },
    Verdict.CAUTION.value: {
        "headline": "Notable Findings",
        "subheadline": "Review screening results",
        "detail": "Our screening detected findings that warrant review. See detailed results below.",
    },
    Verdict.FLAGGED.value: {
        "headline": "Screening Flagged",
        "subheadline": "Significant findings detected",
        "detail": (
            "Our screening detected significant findings. "
            "Review the detailed data and consider alternatives."
        ),
    },
}


class _KeepMissing(dict):
    def __missing__(self, key):
        return "{" + key + "}"


def format_detection(template: str, **values) -> str:
    """Fill a detection template; placeholders without a value are left as-is."""
    return template.format_map(_KeepMissing({k: str(v) for k, v in values.items()}))


def format_batch_disclaimer(sample_id: Optional[str] = None) -> str:
    """N=1 disclaimer naming the tested sample when its ID is known."""
    if sample_id:
        return BATCH_DISCLAIMER_TEMPLATE.format(sample_id=sample_id)
    return BATCH_DISCLAIMER_GENERIC


def get_verdict_language(verdict: Optional[str]) -> Optional[Dict[str, str]]:
    return VERDICT_LANGUAGE.get(verdict) if verdict else None


def _is_visible(detection: Dict) -> bool:
    return detection.get("display_mode") != "hidden" and bool(detection.get("compound"))


def describe_detection(detection: Dict) -> Optional[str]:
    """Weather-report sentence for a detection, or None when it is hidden."""
    if not _is_visible(detection):
        return None
    probability = detection.get("match_probability", "?")
    if detection.get("detection_type") == "hidden_contaminant":
        return format_detection(
            DETECTION_TEMPLATES["contaminant"],
            contaminant=detection["compound"],
            match=probability,
        )
    return format_detection(
        DETECTION_TEMPLATES["voc_detected"],
        compound=detection["compound"],
        probability=probability,
    )


def describe_detections_overview(detections) -> str:
    """One-line lead for the results section: finding count or a clean result."""
    count = sum(1 for detection in detections or [] if _is_visible(detection))
    if not count:
        return DETECTION_TEMPLATES["clean_result"]
    return format_detection(DETECTION_TEMPLATES["multiple_detections"], count=count)
