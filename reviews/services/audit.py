"""
Audit-log sink.

Writes AuditEntry records produced by the rule pipeline. Writes are
fire-and-forget: a failure is logged and never interrupts the save.
"""

import logging
from typing import Iterable, Optional

from django.db import transaction

from reviews.rules.context import AuditEntry

logger = logging.getLogger(__name__)


class AuditLogSink:
    """Persists audit entries as AuditLog rows."""

    def write(self, entry: AuditEntry, user=None):
        """
        Write one entry.

        Returns:
            AuditLog instance, or None if the write failed
        """
        from reviews.models import AuditLog

        performed_by = user if user is not None and getattr(user, "is_authenticated", False) else None

        try:
            # Own savepoint, so a failed insert leaves the surrounding save usable
            with transaction.atomic():
                record = AuditLog.objects.create(performed_by=performed_by, **entry.to_dict())
        except Exception as e:
            logger.error(f"Failed to create audit log ({entry.action}) for product {entry.target_id}: {e}")
            return None

        logger.debug(f"Audit log {record.pk}: {entry.action} on product {entry.target_id}")
        return record

    def write_many(self, entries: Iterable[AuditEntry], user=None, target_id: Optional[int] = None) -> int:
        """Write entries, filling in ``target_id`` where the pipeline did not know it yet."""
        written = 0
        for entry in entries:
            if entry.target_id is None and target_id is not None:
                entry.target_id = target_id
            if self.write(entry, user) is not None:
                written += 1
        return written
