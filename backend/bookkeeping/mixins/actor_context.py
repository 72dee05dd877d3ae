# bookkeeping/mixins/actor_context.py
"""
Actor context mixin.
Resolves the workflow actor once per request, before permission checks.
"""

import logging

from users.services.identity_service import IdentityService

logger = logging.getLogger(__name__)


class ActorContextMixin:
    """
    Sets ``request.actor`` (``Actor`` or None) before DRF runs permissions.

    Permission classes and views read the role from ``request.actor`` and
    never look it up themselves.
    """

    identity_service = IdentityService()

    def initial(self, request, *args, **kwargs):
        """
        Resolve the actor, then run authentication-dependent checks.

        DRF authenticates lazily on first access to ``request.user``, so the
        actor is resolved from the authenticated user before
        ``super().initial()`` evaluates permission classes.
        """
        self.perform_authentication(request)
        request.actor = self.identity_service.resolve_actor(request.user)

        logger.debug(
            "Actor context initialized before permission checks",
            extra={
                "user_id": getattr(request.user, "id", "anonymous"),
                "role": getattr(request.actor, "role", None),
                "action": "actor_context_initialized",
                "component": "ActorContextMixin",
            },
        )

        super().initial(request, *args, **kwargs)

    def get_actor(self):
        return getattr(self.request, "actor", None)
