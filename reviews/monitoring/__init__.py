"""
Monitoring for the publication rule engine.

- Sentry capture for collaborator failures that are allowed to fail open
- Audit-log error records for admin visibility
"""

from .sentry_integration import capture_rule_error, add_rule_breadcrumb
from .error_logger import log_error_with_context

__all__ = [
    "capture_rule_error",
    "add_rule_breadcrumb",
    "log_error_with_context",
]
