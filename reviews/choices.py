"""
Enumerations shared by the product models and the publication rule engine.

Kept outside models.py so the pure rule functions can use them without
touching the ORM.
"""

from django.db import models


class Verdict(models.TextChoices):
    """Published safety conclusion for a product."""

    RECOMMEND = "recommend", "Recommend"
    CAUTION = "caution", "Caution"
    FLAGGED = "flagged", "Flagged"


class IngredientVerdict(models.TextChoices):
    """Research conclusion for a single ingredient."""

    RECOMMEND = "recommend", "Recommend"
    CAUTION = "caution", "Caution"
    FLAGGED = "flagged", "Flagged"
    UNKNOWN = "unknown", "Unknown (needs research)"


class ProductStatus(models.TextChoices):
    """Publication lifecycle of a product review."""

    AI_DRAFT = "ai_draft", "AI Draft"
    DRAFT = "draft", "Draft"
    TESTING = "testing", "Testing"
    WRITING = "writing", "Writing"
    REVIEW = "review", "Review"
    PUBLISHED = "published", "Published"


class DisplayMode(models.TextChoices):
    """How prominently a lab detection is shown, derived from match probability."""

    PRIMARY = "primary", "Primary"
    LOW_CONFIDENCE = "low_confidence", "Low Confidence"
    HIDDEN = "hidden", "Hidden"


class DetectionType(models.TextChoices):
    """Classification of a lab detection against the package disclosure."""

    STANDARD = "standard", "Standard"
    FRAGRANCE_COMPONENT = "fragrance_component", "Fragrance Component"
    HIDDEN_CONTAMINANT = "hidden_contaminant", "Hidden Contaminant"


class ConfirmationLevel(models.TextChoices):
    """Analytical certainty of a lab detection."""

    SCREENING = "screening", "Screening"
    CONFIRMED = "confirmed", "Confirmed (reference standard)"
    QUANTIFIED = "quantified", "Quantified (calibrated)"


class RetailerType(models.TextChoices):
    """Where the tested sample was purchased."""

    AUTHORIZED_RETAILER = "authorized_retailer", "Authorized Retailer"
    BRAND_DIRECT = "brand_direct", "Brand Direct"
    MARKETPLACE_FIRST_PARTY = "marketplace_first_party", "Marketplace (sold by marketplace)"
    MARKETPLACE_THIRD_PARTY = "marketplace_third_party", "Marketplace (third-party seller)"
    PHARMACY = "pharmacy", "Pharmacy"
    GROCERY = "grocery", "Grocery"
    OTHER = "other", "Other"


class AuditAction(models.TextChoices):
    """Kinds of audit log entries written by the rule engine."""

    CONFLICT_DETECTED = "conflict_detected", "Conflict Detected"
    MANUAL_OVERRIDE = "manual_override", "Manual Override"
    PUBLISH_BLOCKED = "publish_blocked", "Publish Blocked"
    AI_VERDICT_SET = "ai_verdict_set", "AI Verdict Set"
    ERROR = "error", "Error"


class AuditSourceType(models.TextChoices):
    """Origin of an audited change."""

    MANUAL = "manual", "Manual"
    SYSTEM = "system", "System"
    RULE = "rule", "Rule"


class ConflictSeverity(models.TextChoices):
    ERROR = "error", "Error"
    WARNING = "warning", "Warning"
