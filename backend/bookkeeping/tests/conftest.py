# bookkeeping/tests/conftest.py
import pytest
from django.core.cache import cache

from bookkeeping.models import TransitionAction, ValidationStatus
from bookkeeping.services.validation_workflow import ValidationWorkflowService
from users.models import AppRole
from users.services.identity_service import Actor

from .factories import DepartmentFactory, TransactionFactory, UserFactory

# Actions that take a fresh draft to each status
WORKFLOW_PATHS = {
    ValidationStatus.DRAFT: [],
    ValidationStatus.SUBMITTED: [TransitionAction.SUBMIT],
    ValidationStatus.RAF_VALIDATED: [TransitionAction.SUBMIT, TransitionAction.VALIDATE_RAF],
    ValidationStatus.DG_VALIDATED: [
        TransitionAction.SUBMIT,
        TransitionAction.VALIDATE_RAF,
        TransitionAction.VALIDATE_DG,
    ],
    ValidationStatus.LOCKED: [
        TransitionAction.SUBMIT,
        TransitionAction.VALIDATE_RAF,
        TransitionAction.VALIDATE_DG,
        TransitionAction.LOCK,
    ],
    ValidationStatus.REJECTED: [TransitionAction.SUBMIT, TransitionAction.REJECT],
}


@pytest.fixture(autouse=True)
def clear_cache():
    """Role cache keys are per user id and ids are reused between tests."""
    cache.clear()
    yield
    cache.clear()


# =============================================================================
# USER / ACTOR FIXTURES
# =============================================================================


def actor_for(user):
    role = user.app_role.role if hasattr(user, "app_role") else None
    return Actor(id=user.id, role=AppRole(role) if role else None)


@pytest.fixture
def make_actor(db):
    """Create a user with the given role and return ``(user, actor)``."""

    def _make(role):
        user = UserFactory(role=role)
        return user, actor_for(user)

    return _make


@pytest.fixture
def comptable(make_actor):
    return make_actor(AppRole.COMPTABLE)


@pytest.fixture
def raf(make_actor):
    return make_actor(AppRole.RAF)


@pytest.fixture
def admin_actor(make_actor):
    return make_actor(AppRole.ADMIN)


@pytest.fixture
def super_admin(make_actor):
    return make_actor(AppRole.SUPER_ADMIN)


@pytest.fixture
def auditeur(make_actor):
    return make_actor(AppRole.AUDITEUR)


# =============================================================================
# TRANSACTION FIXTURES
# =============================================================================


@pytest.fixture
def workflow():
    return ValidationWorkflowService()


@pytest.fixture
def department(db):
    return DepartmentFactory(code="FIN", name="Finance")


@pytest.fixture
def draft_transaction(comptable):
    user, _ = comptable
    return TransactionFactory(created_by=user)


@pytest.fixture
def transaction_in(db, workflow, super_admin):
    """Factory: a transaction walked through the workflow to ``status``."""
    _, actor = super_admin

    def _make(status, **kwargs):
        transaction = TransactionFactory(**kwargs)
        for action in WORKFLOW_PATHS[status]:
            workflow.transition(transaction.pk, actor, action)
        transaction.refresh_from_db()
        return transaction

    return _make
