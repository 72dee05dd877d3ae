"""
Database models for the bookkeeping system.

This module defines the reference entities a transaction can be linked to
(departments, projects, chart of accounts, stakeholders, associates), the
transaction record itself and the append-only validation history that tracks
every workflow transition.
"""

import logging
import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models, transaction as db_transaction
from django.utils import timezone

from users.models import AppRole

from .managers import ValidationQuerySet

# Get structured logger for this module
logger = logging.getLogger(__name__)

MIN_AMOUNT = Decimal("1")
MAX_AMOUNT = Decimal("10000000000")


# -------------------------------------------------------------------
# CHOICES
# -------------------------------------------------------------------


class ValidationStatus(models.TextChoices):
    """Workflow states of a transaction."""

    DRAFT = "draft", "Brouillon"
    SUBMITTED = "submitted", "Soumis"
    RAF_VALIDATED = "raf_validated", "Validé RAF"
    DG_VALIDATED = "dg_validated", "Validé DG"
    LOCKED = "locked", "Verrouillé"
    REJECTED = "rejected", "Rejeté"


class TransitionAction(models.TextChoices):
    """Actions an actor can request on a transaction."""

    SUBMIT = "submit", "Soumettre"
    VALIDATE_RAF = "validate_raf", "Valider (RAF)"
    VALIDATE_DG = "validate_dg", "Valider (DG)"
    LOCK = "lock", "Verrouiller"
    REJECT = "reject", "Rejeter"


class TransactionType(models.TextChoices):
    INCOME = "income", "Recette"
    EXPENSE = "expense", "Dépense"


class PaymentMethod(models.TextChoices):
    CASH = "cash", "Espèces"
    BANK = "bank", "Banque"
    MOBILE_MONEY = "mobile_money", "Mobile Money"
    CHEQUE = "cheque", "Chèque"
    TRANSFER = "transfer", "Virement"


class OperationalStatus(models.TextChoices):
    EMPLOYE_INTERNE = "employe_interne", "Employé interne"
    PRESTATAIRE_INTERNE = "prestataire_interne", "Prestataire interne"
    PRESTATAIRE_EXTERNE = "prestataire_externe", "Prestataire externe"
    CONSULTANT = "consultant", "Consultant"
    FOURNISSEUR = "fournisseur", "Fournisseur"
    AUTRE = "autre", "Autre"


# -------------------------------------------------------------------
# REFERENCE ENTITIES
# -------------------------------------------------------------------
# Managed through the admin site; transactions only link to them


class Department(models.Model):
    """Organizational department a transaction can be booked against."""

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]

    def __str__(self):
        return f"{self.code} - {self.name}"


class Project(models.Model):
    """Budgeted project, optionally owned by a department."""

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=150)
    description = models.TextField(blank=True)
    department = models.ForeignKey(
        Department,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="projects",
    )
    budget = models.DecimalField(max_digits=20, decimal_places=2, default=Decimal("0"))
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["code"]

    def __str__(self):
        return f"{self.code} - {self.name}"

    def clean(self):
        super().clean()
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError({"end_date": "End date cannot precede start date."})


class Account(models.Model):
    """Chart of accounts entry."""

    account_number = models.CharField(max_length=20, unique=True)
    account_name = models.CharField(max_length=150)
    account_type = models.CharField(max_length=50)
    parent_account = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="sub_accounts",
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["account_number"]

    def __str__(self):
        return f"{self.account_number} {self.account_name}"


class Stakeholder(models.Model):
    """Employee, contractor or supplier a transaction concerns."""

    name = models.CharField(max_length=150)
    operational_status = models.CharField(
        max_length=30, choices=OperationalStatus.choices, default=OperationalStatus.AUTRE
    )
    contract_type = models.CharField(max_length=50, blank=True)
    department = models.ForeignKey(
        Department,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="stakeholders",
    )
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=30, blank=True)
    address = models.TextField(blank=True)
    bank_account = models.CharField(max_length=50, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.get_operational_status_display()})"


class Associate(models.Model):
    """Shareholder whose capital contributions are recorded as transactions."""

    full_name = models.CharField(max_length=150)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=30, blank=True)
    entry_date = models.DateField(default=timezone.localdate)
    participation_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
    )
    notes = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["full_name"]

    def __str__(self):
        return self.full_name


# -------------------------------------------------------------------
# TRANSACTIONS
# -------------------------------------------------------------------
# Financial records routed through the validation workflow


class Transaction(models.Model):
    """
    Financial transaction record.

    Created as a draft, edited and deletable only while draft, and moved
    through the validation workflow exclusively by ValidationWorkflowService.
    ``validation_status`` is never written through ``save()``: the workflow
    uses a conditional update so that concurrent validations cannot both win.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    date = models.DateField()
    amount = models.DecimalField(
        max_digits=20,
        decimal_places=2,
        validators=[MinValueValidator(MIN_AMOUNT), MaxValueValidator(MAX_AMOUNT)],
    )
    currency = models.CharField(max_length=3, default="XOF")
    transaction_type = models.CharField(max_length=10, choices=TransactionType.choices)
    nature = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    reference = models.CharField(max_length=100, blank=True)
    payment_method = models.CharField(
        max_length=20, choices=PaymentMethod.choices, blank=True
    )
    source = models.CharField(max_length=255, blank=True)

    department = models.ForeignKey(
        Department,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transactions",
    )
    project = models.ForeignKey(
        Project,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transactions",
    )
    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transactions",
    )
    stakeholder = models.ForeignKey(
        Stakeholder,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transactions",
    )
    associate = models.ForeignKey(
        Associate,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transactions",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="created_transactions",
    )
    validation_status = models.CharField(
        max_length=20,
        choices=ValidationStatus.choices,
        default=ValidationStatus.DRAFT,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["validation_status"], name="idx_tx_status"),
            models.Index(fields=["transaction_type", "date"], name="idx_tx_type_date"),
            models.Index(fields=["department", "date"], name="idx_tx_department_date"),
            models.Index(fields=["date"], name="idx_tx_date"),
        ]
        ordering = ["-date", "-created_at"]

    @property
    def is_draft(self):
        return self.validation_status == ValidationStatus.DRAFT

    def save(self, *args, **kwargs):
        """Save transaction, refusing status changes and edits after draft."""
        if self._state.adding:
            if self.validation_status != ValidationStatus.DRAFT:
                logger.warning(
                    "Transaction creation refused - not a draft",
                    extra={
                        "transaction_id": str(self.id),
                        "validation_status": self.validation_status,
                        "action": "transaction_create_not_draft",
                        "component": "Transaction",
                        "severity": "high",
                    },
                )
                raise ValidationError("Transactions are always created as drafts.")
            super().save(*args, **kwargs)
            return

        # validation_status is written only by the conditional update in the store
        update_fields = kwargs.get("update_fields")
        if update_fields is None:
            update_fields = [
                field.name
                for field in self._meta.concrete_fields
                if not field.primary_key
            ]
        kwargs["update_fields"] = [
            name for name in update_fields if name != "validation_status"
        ]

        with db_transaction.atomic():
            self._guard_stored_status()
            super().save(*args, **kwargs)

    def _guard_stored_status(self):
        """Compare against the stored row, locked until the update commits."""
        try:
            stored_status = (
                Transaction.objects.select_for_update()
                .filter(pk=self.pk)
                .values_list("validation_status", flat=True)
                .get()
            )
        except Transaction.DoesNotExist:
            return

        if stored_status != self.validation_status:
            logger.warning(
                "Direct status change refused",
                extra={
                    "transaction_id": str(self.pk),
                    "stored_status": stored_status,
                    "requested_status": self.validation_status,
                    "action": "transaction_status_write_refused",
                    "component": "Transaction",
                    "severity": "high",
                },
            )
            raise ValidationError(
                "Validation status only changes through the validation workflow."
            )

        if stored_status != ValidationStatus.DRAFT:
            logger.warning(
                "Edit of non-draft transaction refused",
                extra={
                    "transaction_id": str(self.pk),
                    "validation_status": stored_status,
                    "action": "transaction_edit_refused",
                    "component": "Transaction",
                    "severity": "medium",
                },
            )
            raise ValidationError("Only draft transactions can be edited.")

    def delete(self, *args, **kwargs):
        """Delete a draft; anything past draft is part of the audit trail."""
        if not self.is_draft:
            logger.warning(
                "Deletion of non-draft transaction refused",
                extra={
                    "transaction_id": str(self.pk),
                    "validation_status": self.validation_status,
                    "action": "transaction_delete_refused",
                    "component": "Transaction",
                    "severity": "medium",
                },
            )
            raise ValidationError("Only draft transactions can be deleted.")
        return super().delete(*args, **kwargs)

    def clean(self):
        """Validate transaction data and business rules."""
        super().clean()

        if self.amount is not None and self.amount <= 0:
            raise ValidationError({"amount": "Transaction amount must be positive."})

        if (
            self.project_id
            and self.department_id
            and self.project.department_id
            and self.project.department_id != self.department_id
        ):
            raise ValidationError(
                {"project": "Project belongs to a different department."}
            )

    def __str__(self):
        """String representation of Transaction."""
        return (
            f"{self.date} | {self.transaction_type} | {self.amount} {self.currency}"
            f" | {self.validation_status}"
        )


# -------------------------------------------------------------------
# VALIDATION HISTORY
# -------------------------------------------------------------------
# Append-only ledger: one row per accepted transition


class Validation(models.Model):
    """
    One accepted workflow transition.

    Rows are written once by ValidationHistoryLog.append and never updated or
    deleted; ordering by (created_at, id) replays the transaction's history.
    """

    transaction = models.ForeignKey(
        Transaction, on_delete=models.PROTECT, related_name="validations"
    )
    action = models.CharField(max_length=20, choices=TransitionAction.choices)
    from_status = models.CharField(max_length=20, choices=ValidationStatus.choices)
    to_status = models.CharField(max_length=20, choices=ValidationStatus.choices)
    validated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="validations_performed",
    )
    actor_role = models.CharField(max_length=20, choices=AppRole.choices)
    comment = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now, editable=False)

    objects = ValidationQuerySet.as_manager()

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["transaction", "created_at"], name="idx_validation_tx_time"),
        ]

    def save(self, *args, **kwargs):
        """Insert only; an existing history row is never rewritten."""
        if not self._state.adding:
            logger.error(
                "Attempt to modify validation record",
                extra={
                    "validation_id": self.pk,
                    "transaction_id": str(self.transaction_id),
                    "action": "validation_record_modify_refused",
                    "component": "Validation",
                    "severity": "critical",
                },
            )
            raise ValidationError("Validation records are immutable.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        logger.error(
            "Attempt to delete validation record",
            extra={
                "validation_id": self.pk,
                "transaction_id": str(self.transaction_id),
                "action": "validation_record_delete_refused",
                "component": "Validation",
                "severity": "critical",
            },
        )
        raise ValidationError("Validation records cannot be deleted.")

    def __str__(self):
        """String representation of Validation."""
        return f"{self.transaction_id}: {self.from_status} → {self.to_status}"
