"""
Sentry error tracking for the publication rule engine.

Collaborator failures (category lookup, audit writes, background recounts)
never block a save. They are captured here with enough context to find the
product and the stage that degraded.

Usage:
    from reviews.monitoring import capture_rule_error

    try:
        conflicts = context.category_rules(candidate)
    except Exception as e:
        capture_rule_error(e, stage="conflict_detection", product_id=candidate.get("id"))
"""

import logging
from typing import Any, Dict, Optional

import sentry_sdk

logger = logging.getLogger(__name__)

# Sensitive fields to filter from Sentry events
SENSITIVE_FIELDS = {
    "password",
    "secret",
    "token",
    "api_key",
    "authorization",
    "purchase_receipt",
}


def _filter_sensitive_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Replace values whose key looks sensitive, recursing into nested dicts."""
    if not isinstance(data, dict):
        return data

    filtered = {}
    for key, value in data.items():
        key_lower = str(key).lower()
        if any(sensitive in key_lower for sensitive in SENSITIVE_FIELDS):
            filtered[key] = "[Filtered]"
        elif isinstance(value, dict):
            filtered[key] = _filter_sensitive_data(value)
        else:
            filtered[key] = value

    return filtered


def add_rule_breadcrumb(
    stage: str,
    message: str,
    product_id: Optional[int] = None,
    level: str = "info",
    extra_data: Optional[Dict[str, Any]] = None,
) -> None:
    """Add a breadcrumb describing a rule-engine step."""
    data = {"stage": stage, "product_id": product_id}
    if extra_data:
        data.update(_filter_sensitive_data(extra_data))

    try:
        sentry_sdk.add_breadcrumb(
            category="rules",
            message=message,
            level=level,
            data=data,
        )
    except Exception as e:
        logger.debug(f"Failed to add Sentry breadcrumb: {e}")


def capture_rule_error(
    error: Exception,
    stage: str,
    product_id: Optional[int] = None,
    extra_context: Optional[Dict[str, Any]] = None,
) -> Optional[str]:
    """
    Capture a rule-engine collaborator failure in Sentry.

    Args:
        error: The exception raised by the collaborator
        stage: Pipeline stage or task name where it happened
        product_id: Product being saved, if known
        extra_context: Additional context data

    Returns:
        Sentry event ID, or None if capture failed
    """
    try:
        with sentry_sdk.new_scope() as scope:
            scope.set_tag("rule_stage", stage)
            if product_id is not None:
                scope.set_tag("product_id", str(product_id))
            scope.set_context("rules", _filter_sensitive_data({
                "stage": stage,
                "product_id": product_id,
                **(extra_context or {}),
            }))
            return sentry_sdk.capture_exception(error)
    except Exception as e:
        logger.debug(f"Failed to capture error in Sentry: {e}")
        return None
