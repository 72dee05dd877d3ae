"""
Serializers for the bookkeeping API.

Serializers validate input and shape output only. Writes are performed by
TransactionService and ValidationWorkflowService from the views; the
``validation_status`` field is always read-only here.
"""

import logging

from rest_framework import serializers

from .models import (
    MAX_AMOUNT,
    MIN_AMOUNT,
    Transaction,
    TransitionAction,
    Validation,
    ValidationStatus,
)
from .services.role_authority import RoleAuthority

logger = logging.getLogger(__name__)

_authority = RoleAuthority()

# -------------------------------------------------------------------
# TRANSACTION SERIALIZERS
# -------------------------------------------------------------------


class TransactionSerializer(serializers.ModelSerializer):
    """
    Full transaction representation.

    ``available_actions`` lists the workflow actions the requesting actor may
    take now; it is a hint for the UI, every transition is re-checked.
    """

    amount = serializers.DecimalField(
        max_digits=20, decimal_places=2, min_value=MIN_AMOUNT, max_value=MAX_AMOUNT
    )
    validation_status_label = serializers.CharField(
        source="get_validation_status_display", read_only=True
    )
    created_by_name = serializers.CharField(
        source="created_by.display_name", read_only=True
    )
    available_actions = serializers.SerializerMethodField()

    class Meta:
        model = Transaction
        fields = [
            "id",
            "date",
            "amount",
            "currency",
            "transaction_type",
            "nature",
            "description",
            "reference",
            "payment_method",
            "source",
            "department",
            "project",
            "account",
            "stakeholder",
            "associate",
            "created_by",
            "created_by_name",
            "validation_status",
            "validation_status_label",
            "available_actions",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "created_by",
            "validation_status",
            "created_at",
            "updated_at",
        ]

    def get_available_actions(self, obj):
        request = self.context.get("request")
        actor = getattr(request, "actor", None) if request else None
        return _authority.available_actions(
            getattr(actor, "role", None), obj.validation_status
        )

    def validate(self, data):
        """Project and department must agree when both are given."""
        project = data.get("project")
        department = data.get("department")

        if project and department and project.department_id not in (None, department.id):
            logger.warning(
                "Transaction project/department mismatch",
                extra={
                    "project_id": project.id,
                    "department_id": department.id,
                    "action": "transaction_project_department_mismatch",
                    "component": "TransactionSerializer",
                    "severity": "low",
                },
            )
            raise serializers.ValidationError(
                {"project": "Project belongs to a different department."}
            )

        return data


class TransactionListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for transaction lists."""

    validation_status_label = serializers.CharField(
        source="get_validation_status_display", read_only=True
    )
    department_name = serializers.CharField(
        source="department.name", read_only=True, default=None
    )
    available_actions = serializers.SerializerMethodField()

    class Meta:
        model = Transaction
        fields = [
            "id",
            "date",
            "amount",
            "currency",
            "transaction_type",
            "nature",
            "reference",
            "department",
            "department_name",
            "validation_status",
            "validation_status_label",
            "available_actions",
        ]
        read_only_fields = fields

    def get_available_actions(self, obj):
        request = self.context.get("request")
        actor = getattr(request, "actor", None) if request else None
        return _authority.available_actions(
            getattr(actor, "role", None), obj.validation_status
        )


# -------------------------------------------------------------------
# WORKFLOW SERIALIZERS
# -------------------------------------------------------------------


class ValidationRecordSerializer(serializers.ModelSerializer):
    """One entry of a transaction's validation history."""

    validated_by_name = serializers.CharField(
        source="validated_by.display_name", read_only=True
    )

    class Meta:
        model = Validation
        fields = [
            "id",
            "transaction",
            "action",
            "from_status",
            "to_status",
            "validated_by",
            "validated_by_name",
            "actor_role",
            "comment",
            "created_at",
        ]
        read_only_fields = fields


class TransitionRequestSerializer(serializers.Serializer):
    """Payload of ``POST /transactions/{id}/transition/``."""

    action = serializers.ChoiceField(choices=TransitionAction.choices)
    comment = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, max_length=2000
    )
    expected_status = serializers.ChoiceField(
        choices=ValidationStatus.choices, required=False, allow_null=True
    )


class TransitionResultSerializer(serializers.Serializer):
    status = serializers.CharField()
    record = ValidationRecordSerializer()


class TransactionSummarySerializer(serializers.Serializer):
    total_income = serializers.DecimalField(max_digits=22, decimal_places=2)
    total_expenses = serializers.DecimalField(max_digits=22, decimal_places=2)
    balance = serializers.DecimalField(max_digits=22, decimal_places=2)
    pending_count = serializers.IntegerField()
    approved_count = serializers.IntegerField()
    by_status = serializers.DictField(child=serializers.IntegerField())
