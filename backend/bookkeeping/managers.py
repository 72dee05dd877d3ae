# bookkeeping/managers.py
import logging

from django.core.exceptions import ValidationError
from django.db import models

logger = logging.getLogger(__name__)


class ValidationQuerySet(models.QuerySet):
    """Append-only queryset: bulk updates and deletes are refused."""

    def for_transaction(self, transaction_id):
        return self.filter(transaction_id=transaction_id).order_by("created_at", "id")

    def update(self, **kwargs):
        logger.error(
            "Bulk update of validation records refused",
            extra={
                "fields": sorted(kwargs),
                "action": "validation_bulk_update_refused",
                "component": "ValidationQuerySet",
                "severity": "critical",
            },
        )
        raise ValidationError("Validation records are immutable.")

    def delete(self):
        logger.error(
            "Bulk delete of validation records refused",
            extra={
                "action": "validation_bulk_delete_refused",
                "component": "ValidationQuerySet",
                "severity": "critical",
            },
        )
        raise ValidationError("Validation records cannot be deleted.")
