# permissions.py
import logging

from rest_framework import permissions

from .services.role_authority import RoleAuthority

logger = logging.getLogger(__name__)

_authority = RoleAuthority()


class HasAssignedRole(permissions.BasePermission):
    """
    Any authenticated user with an application role.

    Relies on ``request.actor`` set by ActorContextMixin. Users without a
    role can sign in but see nothing of the bookkeeping data.
    """

    message = "An application role is required."

    def has_permission(self, request, view):
        actor = getattr(request, "actor", None)

        if actor is not None and actor.has_role:
            return True

        logger.warning(
            "Bookkeeping access denied - no role",
            extra={
                "user_id": getattr(request.user, "id", None),
                "view": view.__class__.__name__,
                "action": "bookkeeping_access_denied_no_role",
                "component": "HasAssignedRole",
                "severity": "medium",
            },
        )
        return False


class CanWriteTransactions(permissions.BasePermission):
    """
    Read access for every role, write access for roles that can write.

    Safe methods pass; unsafe methods require write capability. Workflow
    transitions are authorized separately per action by the workflow
    service, so views exempt them through ``workflow_actions``.
    """

    message = "Your role does not allow modifying transactions."

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True

        if getattr(view, "action", None) in getattr(view, "workflow_actions", ()):
            return True

        actor = getattr(request, "actor", None)
        role = getattr(actor, "role", None)

        if _authority.can_write(role):
            logger.debug(
                "Transaction write access granted",
                extra={
                    "user_id": getattr(actor, "id", None),
                    "role": role,
                    "method": request.method,
                    "action": "transaction_write_granted",
                    "component": "CanWriteTransactions",
                },
            )
            return True

        logger.warning(
            "Transaction write access denied",
            extra={
                "user_id": getattr(actor, "id", None),
                "role": role,
                "method": request.method,
                "view": view.__class__.__name__,
                "action": "transaction_write_denied",
                "component": "CanWriteTransactions",
                "severity": "medium",
            },
        )
        return False
