# bookkeeping/services/validation_workflow.py
"""
Validation state machine for transactions.

    draft --submit--> submitted --validate_raf--> raf_validated
          --validate_dg--> dg_validated --lock--> locked
    submitted | raf_validated --reject--> rejected

``locked`` and ``rejected`` are terminal. Every accepted transition changes
the stored status with a compare-and-set and appends exactly one history
record in the same database transaction.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.db import transaction as db_transaction

from ..exceptions import TerminalStateError, TransitionConflict, TransitionForbidden
from ..models import TransitionAction, Validation, ValidationStatus
from ..signals import transition_recorded
from .role_authority import RoleAuthority
from .transaction_store import TransactionStore
from .validation_history import ValidationHistoryLog

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({ValidationStatus.LOCKED, ValidationStatus.REJECTED})

# Linear chain: state -> (action leaving it, next state)
_FORWARD_EDGES = {
    ValidationStatus.DRAFT: (TransitionAction.SUBMIT, ValidationStatus.SUBMITTED),
    ValidationStatus.SUBMITTED: (TransitionAction.VALIDATE_RAF, ValidationStatus.RAF_VALIDATED),
    ValidationStatus.RAF_VALIDATED: (TransitionAction.VALIDATE_DG, ValidationStatus.DG_VALIDATED),
    ValidationStatus.DG_VALIDATED: (TransitionAction.LOCK, ValidationStatus.LOCKED),
}

_REJECTABLE = frozenset({ValidationStatus.SUBMITTED, ValidationStatus.RAF_VALIDATED})


def next_status(current, action) -> Optional[ValidationStatus]:
    """
    Target status of ``action`` from ``current``, independent of role.

    Returns None when no edge with that action leaves ``current``.
    """
    if action == TransitionAction.REJECT:
        return ValidationStatus.REJECTED if current in _REJECTABLE else None

    edge = _FORWARD_EDGES.get(current)
    if edge is None or edge[0] != action:
        return None
    return edge[1]


@dataclass(frozen=True)
class TransitionResult:
    status: ValidationStatus
    record: Validation


class ValidationWorkflowService:
    """
    Applies workflow actions on behalf of an explicit actor.

    Failures are raised as ``TransitionError`` subclasses and leave the
    transaction and its history unchanged.
    """

    def __init__(self, store=None, history=None, authority=None):
        self.store = store or TransactionStore()
        self.history = history or ValidationHistoryLog()
        self.authority = authority or RoleAuthority()

    def transition(self, transaction_id, actor, action, comment=None, expected_status=None) -> TransitionResult:
        """
        Apply ``action`` to a transaction.

        Args:
            transaction_id: Transaction primary key
            actor: ``Actor(id, role)`` requesting the action
            action: TransitionAction value
            comment: Optional free text stored on the history record
            expected_status: Status the caller last saw; a mismatch is a conflict

        Returns:
            TransitionResult: New status and the created history record

        Raises:
            TransactionNotFound: Unknown transaction
            TransitionConflict: Stale ``expected_status`` or lost compare-and-set
            TerminalStateError: Transaction is locked or rejected
            TransitionForbidden: Role may not apply ``action`` in this state
        """
        transaction = self.store.get(transaction_id)
        current = ValidationStatus(transaction.validation_status)
        context = {
            "transaction_id": transaction_id,
            "current_status": current,
            "action": action,
        }

        if current in TERMINAL_STATUSES:
            logger.info(
                "Transition refused - terminal state",
                extra={
                    "transaction_id": str(transaction_id),
                    "current_status": current,
                    "requested_action": action,
                    "user_id": getattr(actor, "id", None),
                    "action": "transition_terminal_state",
                    "component": "ValidationWorkflowService",
                },
            )
            raise TerminalStateError(**context)

        if expected_status is not None and expected_status != current:
            logger.info(
                "Transition refused - stale expected status",
                extra={
                    "transaction_id": str(transaction_id),
                    "expected_status": expected_status,
                    "current_status": current,
                    "requested_action": action,
                    "user_id": getattr(actor, "id", None),
                    "action": "transition_stale_expected_status",
                    "component": "ValidationWorkflowService",
                },
            )
            raise TransitionConflict(**context)

        target = next_status(current, action)
        if target is None or not self.authority.check(actor, current, action, transaction_id):
            raise TransitionForbidden(**context)

        with db_transaction.atomic():
            if not self.store.update_status(transaction.pk, current, target):
                raise TransitionConflict(**context)

            record = self.history.append(
                transaction=transaction,
                action=action,
                from_status=current,
                to_status=target,
                actor=actor,
                comment=comment,
            )

            db_transaction.on_commit(
                lambda: transition_recorded.send(
                    sender=self.__class__,
                    transaction_id=transaction.pk,
                    record=record,
                    actor=actor,
                )
            )

        logger.info(
            "Transaction transition applied",
            extra={
                "transaction_id": str(transaction.pk),
                "from_status": current,
                "to_status": target,
                "requested_action": action,
                "user_id": actor.id,
                "role": actor.role,
                "validation_id": record.id,
                "action": "transition_applied",
                "component": "ValidationWorkflowService",
            },
        )

        return TransitionResult(status=target, record=record)

    def transition_with_retry(self, transaction_id, actor, action, comment=None, expected_status=None) -> TransitionResult:
        """
        ``transition`` with one automatic retry after a lost compare-and-set.

        Only retried when the caller did not pin ``expected_status`` and
        BOOKKEEPING_TRANSITION_RETRY_ON_CONFLICT is enabled. The retry starts
        from a fresh read, so it can still end terminal or forbidden.
        """
        try:
            return self.transition(transaction_id, actor, action, comment, expected_status)
        except TransitionConflict:
            if expected_status is not None or not getattr(
                settings, "BOOKKEEPING_TRANSITION_RETRY_ON_CONFLICT", True
            ):
                raise

            logger.info(
                "Retrying transition after conflict",
                extra={
                    "transaction_id": str(transaction_id),
                    "requested_action": action,
                    "user_id": getattr(actor, "id", None),
                    "action": "transition_conflict_retry",
                    "component": "ValidationWorkflowService",
                },
            )
            return self.transition(transaction_id, actor, action, comment)
