# bookkeeping/tests/unit/test_validation_workflow.py
from unittest.mock import Mock, patch

import pytest

from bookkeeping.exceptions import (
    TerminalStateError,
    TransactionNotFound,
    TransitionConflict,
    TransitionForbidden,
)
from bookkeeping.models import Transaction, TransitionAction, Validation, ValidationStatus
from bookkeeping.services.transaction_store import TransactionStore
from bookkeeping.services.validation_workflow import TERMINAL_STATUSES, next_status
from bookkeeping.signals import transition_recorded
from users.models import AppRole

S = ValidationStatus
T = TransitionAction


# -------------------------------------------------------------------
# next_status
# -------------------------------------------------------------------


@pytest.mark.parametrize(
    "current,action,expected",
    [
        (S.DRAFT, T.SUBMIT, S.SUBMITTED),
        (S.SUBMITTED, T.VALIDATE_RAF, S.RAF_VALIDATED),
        (S.RAF_VALIDATED, T.VALIDATE_DG, S.DG_VALIDATED),
        (S.DG_VALIDATED, T.LOCK, S.LOCKED),
        (S.SUBMITTED, T.REJECT, S.REJECTED),
        (S.RAF_VALIDATED, T.REJECT, S.REJECTED),
    ],
)
def test_next_status_edges(current, action, expected):
    assert next_status(current, action) == expected


@pytest.mark.parametrize(
    "current,action",
    [
        (S.DRAFT, T.REJECT),
        (S.DG_VALIDATED, T.REJECT),
        (S.SUBMITTED, T.LOCK),
        (S.DRAFT, T.VALIDATE_RAF),
        (S.SUBMITTED, T.SUBMIT),
        (S.LOCKED, T.LOCK),
        (S.REJECTED, T.SUBMIT),
    ],
)
def test_next_status_without_edge(current, action):
    assert next_status(current, action) is None


def test_terminal_statuses():
    assert TERMINAL_STATUSES == {S.LOCKED, S.REJECTED}


# -------------------------------------------------------------------
# transition
# -------------------------------------------------------------------


@pytest.mark.django_db
class TestTransition:
    def test_linear_progression_reaches_locked(self, workflow, draft_transaction, comptable, raf, super_admin, admin_actor):
        steps = [
            (comptable[1], T.SUBMIT, S.SUBMITTED),
            (raf[1], T.VALIDATE_RAF, S.RAF_VALIDATED),
            (super_admin[1], T.VALIDATE_DG, S.DG_VALIDATED),
            (admin_actor[1], T.LOCK, S.LOCKED),
        ]
        for actor, action, expected in steps:
            result = workflow.transition(draft_transaction.pk, actor, action)
            assert result.status == expected
            assert result.record.to_status == expected
            assert result.record.validated_by_id == actor.id
            assert result.record.actor_role == actor.role

        draft_transaction.refresh_from_db()
        assert draft_transaction.validation_status == S.LOCKED

        records = list(Validation.objects.for_transaction(draft_transaction.pk))
        assert [(r.from_status, r.to_status) for r in records] == [
            (S.DRAFT, S.SUBMITTED),
            (S.SUBMITTED, S.RAF_VALIDATED),
            (S.RAF_VALIDATED, S.DG_VALIDATED),
            (S.DG_VALIDATED, S.LOCKED),
        ]

    @pytest.mark.parametrize("terminal", [S.LOCKED, S.REJECTED])
    @pytest.mark.parametrize("action", list(TransitionAction))
    def test_terminal_absorbs_every_action(self, workflow, transaction_in, super_admin, terminal, action):
        transaction = transaction_in(terminal)
        count_before = transaction.validations.count()

        with pytest.raises(TerminalStateError) as exc_info:
            workflow.transition(transaction.pk, super_admin[1], action)

        assert exc_info.value.code == "terminal_state"
        transaction.refresh_from_db()
        assert transaction.validation_status == terminal
        assert transaction.validations.count() == count_before

    @pytest.mark.parametrize("status", [S.SUBMITTED, S.RAF_VALIDATED])
    def test_reject_from_reviewable_states(self, workflow, transaction_in, raf, status):
        transaction = transaction_in(status)

        result = workflow.transition(transaction.pk, raf[1], T.REJECT, comment="Pièce manquante")

        assert result.status == S.REJECTED
        assert result.record.from_status == status
        assert result.record.comment == "Pièce manquante"

    @pytest.mark.parametrize("status", [S.DRAFT, S.DG_VALIDATED])
    def test_reject_elsewhere_is_forbidden(self, workflow, transaction_in, super_admin, status):
        transaction = transaction_in(status)

        with pytest.raises(TransitionForbidden):
            workflow.transition(transaction.pk, super_admin[1], T.REJECT)

        transaction.refresh_from_db()
        assert transaction.validation_status == status

    @pytest.mark.parametrize(
        "role,status,action",
        [
            (AppRole.COMPTABLE, S.SUBMITTED, T.VALIDATE_RAF),
            (AppRole.RAF, S.RAF_VALIDATED, T.VALIDATE_DG),
            (AppRole.ADMIN, S.RAF_VALIDATED, T.VALIDATE_DG),
            (AppRole.RAF, S.DG_VALIDATED, T.LOCK),
            (AppRole.COMPTABLE, S.SUBMITTED, T.REJECT),
            (AppRole.AUDITEUR, S.DRAFT, T.SUBMIT),
            (AppRole.CABINET, S.DRAFT, T.SUBMIT),
            (AppRole.SUPER_ADMIN, S.SUBMITTED, T.LOCK),
        ],
    )
    def test_gating_leaves_no_trace(self, workflow, transaction_in, make_actor, role, status, action):
        transaction = transaction_in(status)
        count_before = transaction.validations.count()
        _, actor = make_actor(role)

        with pytest.raises(TransitionForbidden) as exc_info:
            workflow.transition(transaction.pk, actor, action)

        assert exc_info.value.code == "forbidden"
        transaction.refresh_from_db()
        assert transaction.validation_status == status
        assert transaction.validations.count() == count_before

    def test_actor_without_role_is_forbidden(self, workflow, draft_transaction, make_actor):
        _, actor = make_actor(None)
        assert actor.role is None

        with pytest.raises(TransitionForbidden):
            workflow.transition(draft_transaction.pk, actor, T.SUBMIT)

    def test_unknown_transaction(self, workflow, comptable):
        with pytest.raises(TransactionNotFound) as exc_info:
            workflow.transition("00000000-0000-0000-0000-000000000000", comptable[1], T.SUBMIT)
        assert exc_info.value.code == "not_found"

    def test_malformed_id_is_not_found(self, workflow, comptable):
        with pytest.raises(TransactionNotFound):
            workflow.transition("not-a-uuid", comptable[1], T.SUBMIT)

    def test_blank_comment_stored_as_null(self, workflow, draft_transaction, comptable):
        result = workflow.transition(draft_transaction.pk, comptable[1], T.SUBMIT, comment="   ")
        assert result.record.comment is None

    def test_expected_status_mismatch_is_conflict(self, workflow, draft_transaction, comptable):
        with pytest.raises(TransitionConflict) as exc_info:
            workflow.transition(
                draft_transaction.pk, comptable[1], T.SUBMIT, expected_status=S.SUBMITTED
            )

        assert exc_info.value.code == "conflict"
        assert not draft_transaction.validations.exists()

    @pytest.mark.parametrize(
        "terminal,expected_status,action",
        [
            (S.LOCKED, S.DG_VALIDATED, T.LOCK),
            (S.REJECTED, S.SUBMITTED, T.VALIDATE_RAF),
            (S.REJECTED, S.RAF_VALIDATED, T.REJECT),
        ],
    )
    def test_terminal_wins_over_stale_expected_status(
        self, workflow, transaction_in, super_admin, terminal, expected_status, action
    ):
        transaction = transaction_in(terminal)
        count_before = transaction.validations.count()

        with pytest.raises(TerminalStateError) as exc_info:
            workflow.transition(
                transaction.pk, super_admin[1], action, expected_status=expected_status
            )

        assert exc_info.value.code == "terminal_state"
        transaction.refresh_from_db()
        assert transaction.validation_status == terminal
        assert transaction.validations.count() == count_before

    def test_expected_status_match_is_applied(self, workflow, draft_transaction, comptable):
        result = workflow.transition(
            draft_transaction.pk, comptable[1], T.SUBMIT, expected_status=S.DRAFT
        )
        assert result.status == S.SUBMITTED

    def test_concurrent_transitions_exactly_one_wins(self, workflow, transaction_in, raf):
        transaction = transaction_in(S.SUBMITTED)
        stale_read = Transaction.objects.get(pk=transaction.pk)

        # First caller wins from "submitted"
        workflow.transition(transaction.pk, raf[1], T.VALIDATE_RAF)

        # Second caller acts on the same "submitted" read
        with patch.object(workflow.store, "get", return_value=stale_read):
            with pytest.raises(TransitionConflict):
                workflow.transition(transaction.pk, raf[1], T.REJECT)

        transaction.refresh_from_db()
        assert transaction.validation_status == S.RAF_VALIDATED
        assert transaction.validations.count() == 2

    def test_history_failure_rolls_back_status(self, workflow, draft_transaction, comptable):
        with patch.object(workflow.history, "append", side_effect=RuntimeError("disk full")):
            with pytest.raises(RuntimeError):
                workflow.transition(draft_transaction.pk, comptable[1], T.SUBMIT)

        draft_transaction.refresh_from_db()
        assert draft_transaction.validation_status == S.DRAFT
        assert not draft_transaction.validations.exists()

    def test_replay_reproduces_status(self, workflow, transaction_in):
        for status in ValidationStatus:
            transaction = transaction_in(status)
            records = workflow.history.list_for(transaction.pk)
            assert workflow.history.replay(records) == transaction.validation_status


@pytest.mark.django_db
class TestTransitionWithRetry:
    def test_retries_once_after_lost_update(self, workflow, transaction_in, raf):
        transaction = transaction_in(S.SUBMITTED)
        stale_read = Transaction.objects.get(pk=transaction.pk)
        workflow.transition(transaction.pk, raf[1], T.VALIDATE_RAF)
        fresh_read = TransactionStore().get(transaction.pk)

        with patch.object(workflow.store, "get", side_effect=[stale_read, fresh_read]):
            result = workflow.transition_with_retry(transaction.pk, raf[1], T.REJECT)

        assert result.status == S.REJECTED
        assert result.record.from_status == S.RAF_VALIDATED
        assert transaction.validations.count() == 3

    def test_no_retry_when_expected_status_pinned(self, workflow, draft_transaction, comptable):
        with patch.object(workflow, "transition", wraps=workflow.transition) as spy:
            with pytest.raises(TransitionConflict):
                workflow.transition_with_retry(
                    draft_transaction.pk, comptable[1], T.SUBMIT, expected_status=S.SUBMITTED
                )
        assert spy.call_count == 1

    def test_no_retry_when_disabled(self, settings, workflow, transaction_in, raf):
        settings.BOOKKEEPING_TRANSITION_RETRY_ON_CONFLICT = False
        transaction = transaction_in(S.SUBMITTED)
        stale_read = Transaction.objects.get(pk=transaction.pk)
        workflow.transition(transaction.pk, raf[1], T.VALIDATE_RAF)

        with patch.object(workflow.store, "get", return_value=stale_read):
            with pytest.raises(TransitionConflict):
                workflow.transition_with_retry(transaction.pk, raf[1], T.REJECT)


@pytest.mark.django_db
def test_transition_recorded_sent_on_commit(workflow, draft_transaction, comptable, django_capture_on_commit_callbacks):
    handler = Mock()
    transition_recorded.connect(handler, weak=False)
    try:
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            result = workflow.transition(draft_transaction.pk, comptable[1], T.SUBMIT)
            handler.assert_not_called()
    finally:
        transition_recorded.disconnect(handler)

    assert len(callbacks) >= 1
    handler.assert_called_once()
    kwargs = handler.call_args.kwargs
    assert kwargs["transaction_id"] == draft_transaction.pk
    assert kwargs["record"] == result.record
    assert kwargs["actor"] == comptable[1]


@pytest.mark.django_db
def test_rejected_then_terminal_scenario(workflow, make_actor, comptable):
    """Transaction X walked by actors A (comptable), B (raf), C (comptable), D (super_admin)."""
    author, actor_a = comptable
    _, actor_b = make_actor(AppRole.RAF)
    _, actor_c = make_actor(AppRole.COMPTABLE)
    _, actor_d = make_actor(AppRole.SUPER_ADMIN)
    x = Transaction.objects.create(
        date="2025-01-15",
        amount="250000.00",
        transaction_type="expense",
        created_by=author,
    )
    assert x.validation_status == S.DRAFT

    assert workflow.transition(x.pk, actor_a, T.SUBMIT).status == S.SUBMITTED
    assert x.validations.count() == 1

    assert workflow.transition(x.pk, actor_b, T.VALIDATE_RAF).status == S.RAF_VALIDATED
    assert x.validations.count() == 2

    with pytest.raises(TransitionForbidden):
        workflow.transition(x.pk, actor_c, T.VALIDATE_DG)
    x.refresh_from_db()
    assert x.validation_status == S.RAF_VALIDATED
    assert x.validations.count() == 2

    result = workflow.transition(x.pk, actor_d, T.REJECT)
    assert result.status == S.REJECTED
    assert (result.record.from_status, result.record.to_status) == (S.RAF_VALIDATED, S.REJECTED)
    assert x.validations.count() == 3

    with pytest.raises(TerminalStateError):
        workflow.transition(x.pk, actor_d, T.LOCK)
    assert x.validations.count() == 3
