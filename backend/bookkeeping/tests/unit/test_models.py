# bookkeeping/tests/unit/test_models.py
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.db.models import ProtectedError

from bookkeeping.models import Transaction, Validation, ValidationStatus

from ..factories import DepartmentFactory, ProjectFactory, TransactionFactory

S = ValidationStatus


@pytest.mark.django_db
class TestTransactionModel:
    def test_defaults(self, draft_transaction):
        assert draft_transaction.validation_status == S.DRAFT
        assert draft_transaction.currency == "XOF"
        assert draft_transaction.is_draft

    def test_create_non_draft_refused(self, comptable):
        user, _ = comptable
        with pytest.raises(ValidationError):
            Transaction.objects.create(
                date="2025-01-01",
                amount=Decimal("10"),
                transaction_type="income",
                created_by=user,
                validation_status=S.LOCKED,
            )

    def test_draft_can_be_edited(self, draft_transaction):
        draft_transaction.description = "Achat fournitures"
        draft_transaction.save()
        draft_transaction.refresh_from_db()
        assert draft_transaction.description == "Achat fournitures"

    def test_status_cannot_be_saved_directly(self, draft_transaction):
        draft_transaction.validation_status = S.LOCKED
        with pytest.raises(ValidationError):
            draft_transaction.save()
        assert Transaction.objects.get(pk=draft_transaction.pk).validation_status == S.DRAFT

    def test_non_draft_cannot_be_edited(self, transaction_in):
        transaction = transaction_in(S.SUBMITTED)
        transaction.amount = Decimal("1.00")
        with pytest.raises(ValidationError):
            transaction.save()

    def test_draft_can_be_deleted(self, draft_transaction):
        pk = draft_transaction.pk
        draft_transaction.delete()
        assert not Transaction.objects.filter(pk=pk).exists()

    def test_non_draft_cannot_be_deleted(self, transaction_in):
        transaction = transaction_in(S.RAF_VALIDATED)
        with pytest.raises(ValidationError):
            transaction.delete()
        assert Transaction.objects.filter(pk=transaction.pk).exists()

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("0.99"), Decimal("10000000000.01")])
    def test_amount_bounds(self, draft_transaction, amount):
        draft_transaction.amount = amount
        with pytest.raises(ValidationError):
            draft_transaction.full_clean()

    def test_project_must_match_department(self, comptable):
        user, _ = comptable
        transaction = TransactionFactory.build(
            created_by=user,
            department=DepartmentFactory(),
            project=ProjectFactory(),
        )
        with pytest.raises(ValidationError) as exc_info:
            transaction.full_clean()
        assert "project" in exc_info.value.message_dict

    def test_department_in_use_is_protected(self, comptable):
        user, _ = comptable
        department = DepartmentFactory()
        TransactionFactory(created_by=user, department=department)
        with pytest.raises(ProtectedError):
            department.delete()


@pytest.mark.django_db
class TestValidationModel:
    def test_record_is_immutable(self, transaction_in):
        record = transaction_in(S.SUBMITTED).validations.get()
        record.comment = "rewritten"
        with pytest.raises(ValidationError):
            record.save()

    def test_record_cannot_be_deleted(self, transaction_in):
        record = transaction_in(S.SUBMITTED).validations.get()
        with pytest.raises(ValidationError):
            record.delete()

    def test_queryset_update_and_delete_refused(self, transaction_in):
        transaction = transaction_in(S.LOCKED)
        with pytest.raises(ValidationError):
            Validation.objects.filter(transaction=transaction).update(comment="x")
        with pytest.raises(ValidationError):
            Validation.objects.filter(transaction=transaction).delete()
        assert transaction.validations.count() == 4

    def test_str(self, transaction_in):
        record = transaction_in(S.SUBMITTED).validations.get()
        assert str(record).endswith("draft → submitted")
