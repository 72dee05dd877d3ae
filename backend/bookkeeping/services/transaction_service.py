"""
Service for transaction operations with proper error handling and logging.

Creation, editing and deletion of draft transactions, listing filters and the
dashboard summary. Status changes never go through here: they belong to
ValidationWorkflowService.
"""

import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction as db_transaction
from django.db.models import Count, ProtectedError, Q, Sum

from ..models import Transaction, TransactionType, ValidationStatus
from .role_authority import RoleAuthority
from .transaction_store import TransactionStore

# Get structured logger for this module
logger = logging.getLogger(__name__)

PENDING_STATUSES = (ValidationStatus.DRAFT, ValidationStatus.SUBMITTED)
APPROVED_STATUSES = (ValidationStatus.DG_VALIDATED, ValidationStatus.LOCKED)


class TransactionService:
    """
    Draft lifecycle of transactions.

    Every write requires an actor with write capability; observers
    (cabinet, auditeur) are refused with PermissionError.
    """

    def __init__(self, store=None, authority=None):
        self.store = store or TransactionStore()
        self.authority = authority or RoleAuthority()

    def _require_write(self, actor, operation, transaction_id=None):
        if actor is not None and self.authority.can_write(actor.role):
            return

        logger.warning(
            "Transaction write denied",
            extra={
                "user_id": getattr(actor, "id", None),
                "role": getattr(actor, "role", None),
                "transaction_id": str(transaction_id) if transaction_id else None,
                "operation": operation,
                "action": "transaction_write_denied",
                "component": "TransactionService",
                "severity": "medium",
            },
        )
        raise PermissionError("Your role does not allow modifying transactions.")

    def _require_draft(self, transaction, operation):
        if transaction.is_draft:
            return

        logger.warning(
            "Operation on non-draft transaction refused",
            extra={
                "transaction_id": str(transaction.pk),
                "validation_status": transaction.validation_status,
                "operation": operation,
                "action": "transaction_not_draft",
                "component": "TransactionService",
                "severity": "medium",
            },
        )
        raise ValidationError(
            f"Only draft transactions can be {operation}d; "
            f"this one is {transaction.validation_status}."
        )

    def create_transaction(self, data, actor, user) -> Transaction:
        """
        Create a draft transaction authored by ``user``.

        Raises:
            PermissionError: Actor has no write capability
            ValidationError: Model validation failed
        """
        self._require_write(actor, "create")
        return self.store.create(data, created_by=user)

    @db_transaction.atomic
    def update_transaction(self, transaction_id, data, actor) -> Transaction:
        """
        Update business fields of a draft transaction.

        Raises:
            TransactionNotFound: Unknown transaction
            PermissionError: Actor has no write capability
            ValidationError: Transaction is not a draft or data is invalid
        """
        self._require_write(actor, "update", transaction_id)
        transaction = self.store.get(transaction_id, for_update=True)
        self._require_draft(transaction, "update")

        changed_fields = []
        for field, value in data.items():
            if field in ("validation_status", "created_by", "id"):
                continue
            if getattr(transaction, field) != value:
                setattr(transaction, field, value)
                changed_fields.append(field)

        transaction.full_clean()
        if changed_fields:
            transaction.save(update_fields=changed_fields + ["updated_at"])

        logger.info(
            "Transaction updated",
            extra={
                "transaction_id": str(transaction.pk),
                "user_id": actor.id,
                "changed_fields": changed_fields,
                "action": "transaction_updated",
                "component": "TransactionService",
            },
        )
        return transaction

    @db_transaction.atomic
    def delete_transaction(self, transaction_id, actor):
        """
        Hard-delete a draft transaction.

        Raises:
            TransactionNotFound: Unknown transaction
            PermissionError: Actor has no write capability
            ValidationError: Transaction is not a draft
        """
        self._require_write(actor, "delete", transaction_id)
        transaction = self.store.get(transaction_id, for_update=True)
        self._require_draft(transaction, "delete")

        transaction_pk = str(transaction.pk)
        try:
            transaction.delete()
        except ProtectedError:
            logger.warning(
                "Deletion refused - transaction has validation history",
                extra={
                    "transaction_id": transaction_pk,
                    "user_id": actor.id,
                    "action": "transaction_delete_protected",
                    "component": "TransactionService",
                    "severity": "medium",
                },
            )
            raise ValidationError(
                "Only draft transactions can be deleted; this one has validation history."
            )

        logger.info(
            "Transaction deleted",
            extra={
                "transaction_id": transaction_pk,
                "user_id": actor.id,
                "action": "transaction_deleted",
                "component": "TransactionService",
            },
        )

    @staticmethod
    def filter_transactions(queryset, params):
        """
        Apply list filters from query parameters.

        Supported: type, status, department, start_date, end_date.
        """
        transaction_type = params.get("type")
        if transaction_type:
            queryset = queryset.filter(transaction_type=transaction_type)

        status = params.get("status")
        if status:
            queryset = queryset.filter(validation_status=status)

        department = params.get("department")
        if department:
            if not str(department).isdigit():
                raise ValidationError({"department": "Department must be an id."})
            queryset = queryset.filter(department_id=int(department))

        start_date = params.get("start_date")
        if start_date:
            queryset = queryset.filter(date__gte=start_date)

        end_date = params.get("end_date")
        if end_date:
            queryset = queryset.filter(date__lte=end_date)

        return queryset

    @staticmethod
    def get_summary(queryset=None) -> dict:
        """
        Totals for the dashboard.

        Returns:
            dict: total_income, total_expenses, balance, pending_count,
                approved_count and a per-status count
        """
        if queryset is None:
            queryset = Transaction.objects.all()

        totals = queryset.aggregate(
            total_income=Sum("amount", filter=Q(transaction_type=TransactionType.INCOME)),
            total_expenses=Sum("amount", filter=Q(transaction_type=TransactionType.EXPENSE)),
            pending_count=Count("id", filter=Q(validation_status__in=PENDING_STATUSES)),
            approved_count=Count("id", filter=Q(validation_status__in=APPROVED_STATUSES)),
        )

        total_income = totals["total_income"] or Decimal("0")
        total_expenses = totals["total_expenses"] or Decimal("0")

        status_counts = {status.value: 0 for status in ValidationStatus}
        for row in queryset.order_by().values("validation_status").annotate(count=Count("id")):
            status_counts[row["validation_status"]] = row["count"]

        return {
            "total_income": total_income,
            "total_expenses": total_expenses,
            "balance": total_income - total_expenses,
            "pending_count": totals["pending_count"],
            "approved_count": totals["approved_count"],
            "by_status": status_counts,
        }
