"""
Error records for rule-engine collaborator failures.

Writes an AuditLog entry with action "error" so editors can see in the admin
that a lookup degraded, and captures the exception in Sentry.

Usage:
    from reviews.monitoring import log_error_with_context

    log_error_with_context(
        error=exception,
        category="conflict_detection_error",
        message="Category rule lookup failed",
        target_id=product.id,
        target_name=product.name,
    )
"""

import logging
import traceback
from typing import Any, Dict, Optional

from .sentry_integration import capture_rule_error

logger = logging.getLogger(__name__)

ERROR_CATEGORIES = {
    "conflict_detection_error",
    "aggregate_update_error",
    "unknown_error",
}


def _error_details(error: Optional[BaseException]) -> Dict[str, Any]:
    if error is None:
        return {}

    stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
    return {
        "error_name": type(error).__name__,
        "error_message": str(error),
        # First frames are enough to locate the failure in the admin
        "error_stack": "\n".join(stack.splitlines()[:5]),
    }


def log_error_with_context(
    error: Optional[BaseException],
    category: str,
    message: str,
    target_id: Optional[int] = None,
    target_name: str = "",
    metadata: Optional[Dict[str, Any]] = None,
):
    """
    Log a collaborator failure to the audit log and Sentry.

    Args:
        error: The exception that occurred (may be None for soft failures)
        category: One of ERROR_CATEGORIES
        message: Human-readable summary
        target_id: Product the failure relates to
        target_name: Product name for easy identification
        metadata: Extra context stored with the audit entry

    Returns:
        AuditLog instance, or None if the record could not be written
    """
    from reviews.models import AuditLog
    from reviews.choices import AuditAction, AuditSourceType

    if category not in ERROR_CATEGORIES:
        category = "unknown_error"

    logger.error(f"[{category}] {message}: {error}")

    if error is not None:
        capture_rule_error(
            error,
            stage=category,
            product_id=target_id,
            extra_context=metadata,
        )

    try:
        return AuditLog.objects.create(
            action=AuditAction.ERROR,
            source_type=AuditSourceType.SYSTEM,
            target_collection="products",
            target_id=target_id,
            target_name=target_name or "",
            metadata={
                "error_category": category,
                **(metadata or {}),
                **_error_details(error),
            },
            success=False,
            error_message=message,
        )
    except Exception as e:
        logger.error(f"Failed to create error audit record: {e}")
        return None
