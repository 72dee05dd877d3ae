"""
Signals of the bookkeeping app.

``transition_recorded`` is sent after the database transaction holding an
accepted workflow transition commits. Receivers get ``transaction_id``,
``record`` (the Validation row) and ``actor``; delivery of any notification
is up to them.
"""

import logging

from django.dispatch import Signal, receiver

logger = logging.getLogger(__name__)

transition_recorded = Signal()


@receiver(transition_recorded)
def log_transition_recorded(sender, transaction_id, record, actor, **kwargs):
    """Audit trail entry for every committed transition."""
    logger.info(
        "Transition committed",
        extra={
            "transaction_id": str(transaction_id),
            "validation_id": record.id,
            "from_status": record.from_status,
            "to_status": record.to_status,
            "user_id": actor.id,
            "role": actor.role,
            "action": "transition_committed",
            "component": "bookkeeping.signals",
        },
    )
