# bookkeeping/services/validation_history.py
"""
Append-only validation history.

Records are written once per accepted transition and read back in
(created_at, id) order. Replaying them from ``draft`` must reproduce the
stored status; ``verify`` reports any transaction where it does not.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..exceptions import HistoryIntegrityError
from ..models import Validation, ValidationStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationResult:
    transaction_id: str
    stored_status: str
    replayed_status: Optional[str]
    record_count: int
    error: Optional[str] = None

    @property
    def ok(self):
        return self.error is None and self.stored_status == self.replayed_status


class ValidationHistoryLog:
    """Write-once store of ``Validation`` records."""

    def append(self, *, transaction, action, from_status, to_status, actor, comment=None) -> Validation:
        """
        Insert one history record.

        Must run inside the same database transaction as the status update
        it documents.
        """
        comment = (comment or "").strip() or None
        record = Validation.objects.create(
            transaction=transaction,
            action=action,
            from_status=from_status,
            to_status=to_status,
            validated_by_id=actor.id,
            actor_role=actor.role,
            comment=comment,
        )

        logger.info(
            "Validation record appended",
            extra={
                "validation_id": record.id,
                "transaction_id": str(transaction.pk),
                "from_status": from_status,
                "to_status": to_status,
                "user_id": actor.id,
                "role": actor.role,
                "action": "validation_record_appended",
                "component": "ValidationHistoryLog",
            },
        )
        return record

    def list_for(self, transaction_id):
        """All records of a transaction, oldest first."""
        return Validation.objects.for_transaction(transaction_id).select_related(
            "validated_by"
        )

    def replay(self, records, transaction_id=None) -> str:
        """
        Reconstruct a status by applying records in order, starting at draft.

        Raises:
            HistoryIntegrityError: If a record does not start from the status
                the previous one ended in
        """
        status = ValidationStatus.DRAFT
        for record in records:
            if record.from_status != status:
                raise HistoryIntegrityError(
                    f"Record {record.pk} starts from '{record.from_status}' "
                    f"but history is at '{status}'.",
                    transaction_id=transaction_id,
                    record_id=record.pk,
                )
            status = ValidationStatus(record.to_status)
        return status

    def verify(self, transaction) -> VerificationResult:
        """Compare the replayed history of a transaction with its stored status."""
        records = list(self.list_for(transaction.pk))
        try:
            replayed = self.replay(records, transaction_id=transaction.pk)
            error = None
        except HistoryIntegrityError as e:
            replayed = None
            error = str(e)

        result = VerificationResult(
            transaction_id=str(transaction.pk),
            stored_status=transaction.validation_status,
            replayed_status=replayed,
            record_count=len(records),
            error=error,
        )

        if not result.ok:
            logger.error(
                "Validation history does not match stored status",
                extra={
                    "transaction_id": result.transaction_id,
                    "stored_status": result.stored_status,
                    "replayed_status": result.replayed_status,
                    "record_count": result.record_count,
                    "error": error,
                    "action": "history_verification_failed",
                    "component": "ValidationHistoryLog",
                    "severity": "critical",
                },
            )

        return result
