# bookkeeping/services/role_authority.py
"""
Role-based authorization for workflow actions.

A single table maps each action to the roles allowed to request it and the
states it may be requested from. Denial is an ordinary ``False`` result; the
workflow service turns it into ``TransitionForbidden``.
"""

import logging
from typing import Optional

from users.models import AppRole

from ..models import TransitionAction, ValidationStatus

logger = logging.getLogger(__name__)


_VALIDATORS = frozenset({AppRole.RAF, AppRole.ADMIN, AppRole.SUPER_ADMIN})

# action -> (allowed roles, states the action may be requested from)
PERMISSION_TABLE = {
    TransitionAction.SUBMIT: (AppRole.writers(), frozenset({ValidationStatus.DRAFT})),
    TransitionAction.VALIDATE_RAF: (_VALIDATORS, frozenset({ValidationStatus.SUBMITTED})),
    TransitionAction.VALIDATE_DG: (
        frozenset({AppRole.SUPER_ADMIN}),
        frozenset({ValidationStatus.RAF_VALIDATED}),
    ),
    TransitionAction.LOCK: (
        frozenset({AppRole.ADMIN, AppRole.SUPER_ADMIN}),
        frozenset({ValidationStatus.DG_VALIDATED}),
    ),
    TransitionAction.REJECT: (
        _VALIDATORS,
        frozenset({ValidationStatus.SUBMITTED, ValidationStatus.RAF_VALIDATED}),
    ),
}


def _coerce(enum_class, value):
    """Map a raw value onto a choices enum, None when it is not a member."""
    if value is None or value == "":
        return None
    try:
        return enum_class(value)
    except ValueError:
        return None


class RoleAuthority:
    """Pure decisions over (role, state, action); no database access."""

    def authorize(self, role, current_state, requested_action) -> bool:
        """
        Decide whether ``role`` may request ``requested_action`` on a
        transaction currently in ``current_state``.

        Unknown roles, states or actions are denied, as is an actor without
        any role.
        """
        role = _coerce(AppRole, role)
        state = _coerce(ValidationStatus, current_state)
        action = _coerce(TransitionAction, requested_action)

        if role is None or state is None or action is None:
            return False

        allowed_roles, allowed_states = PERMISSION_TABLE[action]
        return role in allowed_roles and state in allowed_states

    def can_write(self, role) -> bool:
        """Write capability: create, edit and delete drafts."""
        role = _coerce(AppRole, role)
        return role is not None and role in AppRole.writers()

    def available_actions(self, role, current_state) -> list:
        """Actions ``authorize`` allows for the role and state, in workflow order."""
        return [
            action.value
            for action in TransitionAction
            if self.authorize(role, current_state, action)
        ]

    def check(self, actor, current_state, requested_action, transaction_id=None) -> bool:
        """``authorize`` for an actor, with the decision logged."""
        role: Optional[AppRole] = getattr(actor, "role", None)
        allowed = self.authorize(role, current_state, requested_action)

        if allowed:
            logger.debug(
                "Workflow action authorized",
                extra={
                    "user_id": getattr(actor, "id", None),
                    "role": role,
                    "transaction_id": str(transaction_id) if transaction_id else None,
                    "current_status": current_state,
                    "requested_action": requested_action,
                    "action": "workflow_action_authorized",
                    "component": "RoleAuthority",
                },
            )
        else:
            logger.warning(
                "Workflow action denied",
                extra={
                    "user_id": getattr(actor, "id", None),
                    "role": role,
                    "transaction_id": str(transaction_id) if transaction_id else None,
                    "current_status": current_state,
                    "requested_action": requested_action,
                    "action": "workflow_action_denied",
                    "component": "RoleAuthority",
                    "severity": "medium",
                },
            )

        return allowed
