# bookkeeping/services/transaction_store.py
"""
Persistence of transaction records.

``update_status`` is the only code path that writes ``validation_status`` and
it is a compare-and-set: the UPDATE is conditioned on the status the caller
read, so a concurrent writer that got there first makes it return False.
"""

import logging

from django.core.exceptions import ValidationError
from django.db import transaction as db_transaction
from django.utils import timezone

from ..exceptions import TransactionNotFound
from ..models import Transaction, ValidationStatus

logger = logging.getLogger(__name__)


class TransactionStore:
    """Reads and conditional writes of ``Transaction`` rows."""

    def get(self, transaction_id, for_update=False) -> Transaction:
        """
        Load a transaction.

        With ``for_update`` the row is locked until the surrounding atomic
        block ends, so no transition can commit in between.

        Raises:
            TransactionNotFound: Unknown id, or an id that is not a valid UUID
        """
        try:
            queryset = Transaction.objects.all()
            if for_update:
                queryset = queryset.select_for_update()
            return queryset.get(pk=transaction_id)
        except (Transaction.DoesNotExist, ValueError, ValidationError):
            logger.info(
                "Transaction not found",
                extra={
                    "transaction_id": str(transaction_id),
                    "action": "transaction_not_found",
                    "component": "TransactionStore",
                },
            )
            raise TransactionNotFound(transaction_id=transaction_id)

    @db_transaction.atomic
    def create(self, data, created_by) -> Transaction:
        """
        Create a draft transaction.

        Args:
            data: Business field values (validated by the caller's serializer)
            created_by: User recorded as author

        Raises:
            ValidationError: If the data violates model validation
        """
        data = dict(data)
        data.pop("validation_status", None)

        transaction = Transaction(
            created_by=created_by, validation_status=ValidationStatus.DRAFT, **data
        )
        transaction.full_clean()
        transaction.save()

        logger.info(
            "Transaction created",
            extra={
                "transaction_id": str(transaction.id),
                "user_id": created_by.id,
                "transaction_type": transaction.transaction_type,
                "amount": transaction.amount,
                "action": "transaction_created",
                "component": "TransactionStore",
            },
        )
        return transaction

    def update_status(self, transaction_id, expected_current_status, new_status) -> bool:
        """
        Move a transaction from ``expected_current_status`` to ``new_status``.

        Returns:
            bool: False when the stored status no longer equals the expected one
        """
        updated = Transaction.objects.filter(
            pk=transaction_id, validation_status=expected_current_status
        ).update(validation_status=new_status, updated_at=timezone.now())

        if not updated:
            logger.warning(
                "Conditional status update lost",
                extra={
                    "transaction_id": str(transaction_id),
                    "expected_status": expected_current_status,
                    "new_status": new_status,
                    "action": "status_update_conflict",
                    "component": "TransactionStore",
                    "severity": "medium",
                },
            )
            return False

        logger.debug(
            "Transaction status updated",
            extra={
                "transaction_id": str(transaction_id),
                "from_status": expected_current_status,
                "to_status": new_status,
                "action": "status_updated",
                "component": "TransactionStore",
            },
        )
        return True
