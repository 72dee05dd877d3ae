"""
API views for the bookkeeping system.

Thin viewsets: authorization context comes from ActorContextMixin, business
rules live in TransactionService and ValidationWorkflowService, and service
errors are translated by ServiceExceptionHandlerMixin.
"""

import logging

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .mixins.actor_context import ActorContextMixin
from .mixins.service_exception_handler import ServiceExceptionHandlerMixin
from .models import Transaction
from .permissions import CanWriteTransactions, HasAssignedRole
from .serializers import (
    TransactionListSerializer,
    TransactionSerializer,
    TransactionSummarySerializer,
    TransitionRequestSerializer,
    TransitionResultSerializer,
    ValidationRecordSerializer,
)
from .services.transaction_service import TransactionService
from .services.validation_history import ValidationHistoryLog
from .services.validation_workflow import ValidationWorkflowService

# Get structured logger for this module
logger = logging.getLogger(__name__)


class TransactionViewSet(ActorContextMixin, ServiceExceptionHandlerMixin, viewsets.ModelViewSet):
    """
    Transactions and their validation workflow.

    Every role can read; writers create and edit drafts; transitions are
    authorized per action by the workflow service.
    """

    serializer_class = TransactionSerializer
    permission_classes = [IsAuthenticated, HasAssignedRole, CanWriteTransactions]
    workflow_actions = ("transition",)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.transaction_service = TransactionService()
        self.workflow_service = ValidationWorkflowService()
        self.history_log = ValidationHistoryLog()

    def get_serializer_class(self):
        if self.action == "list" and self.request.query_params.get("light") == "true":
            return TransactionListSerializer
        return TransactionSerializer

    def get_queryset(self):
        qs = Transaction.objects.select_related("created_by", "department")

        if self.action in ("list", "summary"):
            qs = self.handle_service_call(
                self.transaction_service.filter_transactions,
                qs,
                self.request.query_params,
            )

        return qs

    def perform_create(self, serializer):
        logger.debug(
            "Transaction creation delegated to service",
            extra={
                "user_id": self.request.user.id,
                "action": "transaction_create_delegated",
                "component": "TransactionViewSet",
            },
        )

        serializer.instance = self.handle_service_call(
            self.transaction_service.create_transaction,
            serializer.validated_data,
            self.get_actor(),
            self.request.user,
        )

    def perform_update(self, serializer):
        logger.debug(
            "Transaction update delegated to service",
            extra={
                "user_id": self.request.user.id,
                "transaction_id": str(serializer.instance.pk),
                "action": "transaction_update_delegated",
                "component": "TransactionViewSet",
            },
        )

        serializer.instance = self.handle_service_call(
            self.transaction_service.update_transaction,
            serializer.instance.pk,
            serializer.validated_data,
            self.get_actor(),
        )

    def perform_destroy(self, instance):
        logger.info(
            "Transaction deletion delegated to service",
            extra={
                "user_id": self.request.user.id,
                "transaction_id": str(instance.pk),
                "action": "transaction_delete_delegated",
                "component": "TransactionViewSet",
            },
        )

        self.handle_service_call(
            self.transaction_service.delete_transaction,
            instance.pk,
            self.get_actor(),
        )

    @action(detail=True, methods=["post"])
    def transition(self, request, pk=None):
        """
        Apply a workflow action.

        Body: ``{action, comment?, expected_status?}``. Responds 200 with the
        new status and history record, or 403/404/409/422 with ``code``.
        """
        serializer = TransitionRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        logger.info(
            "Transition requested",
            extra={
                "user_id": request.user.id,
                "transaction_id": pk,
                "requested_action": data["action"],
                "expected_status": data.get("expected_status"),
                "action": "transition_requested",
                "component": "TransactionViewSet",
            },
        )

        result = self.handle_service_call(
            self.workflow_service.transition_with_retry,
            pk,
            self.get_actor(),
            data["action"],
            comment=data.get("comment"),
            expected_status=data.get("expected_status"),
        )

        return Response(TransitionResultSerializer(result).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["get"])
    def history(self, request, pk=None):
        """Validation history of a transaction, oldest first."""
        transaction = self.get_object()
        records = self.history_log.list_for(transaction.pk)
        return Response(ValidationRecordSerializer(records, many=True).data)

    @action(detail=False, methods=["get"])
    def summary(self, request):
        """Income/expense totals and per-status counts over the filtered set."""
        summary = self.handle_service_call(
            self.transaction_service.get_summary, self.get_queryset()
        )
        return Response(TransactionSummarySerializer(summary).data)
