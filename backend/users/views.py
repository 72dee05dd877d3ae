"""
Identity views: who is calling, and role assignment.

The frontend reads ``/me/`` to decide which workflow buttons to show; the
server re-checks every action regardless.
"""

import logging

from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from bookkeeping.mixins.service_exception_handler import ServiceExceptionHandlerMixin

from .serializers import (
    CurrentActorSerializer,
    RoleAssignmentSerializer,
    UserRoleSerializer,
)
from .services.identity_service import IdentityService

logger = logging.getLogger(__name__)
User = get_user_model()


class CurrentActorView(APIView):
    """Return the authenticated user with their resolved role."""

    permission_classes = [IsAuthenticated]
    identity_service = IdentityService()

    def get(self, request):
        actor = self.identity_service.resolve_actor(request.user)
        serializer = CurrentActorSerializer(request.user, context={"actor": actor})

        logger.debug(
            "Current actor resolved",
            extra={
                "user_id": request.user.id,
                "role": actor.role if actor else None,
                "action": "current_actor_resolved",
                "component": "CurrentActorView",
            },
        )
        return Response(serializer.data)


class RoleAssignmentView(ServiceExceptionHandlerMixin, APIView):
    """
    Assign (or re-assign) the role of a user.

    Permission rules live in IdentityService.assign_role; this view only
    validates the payload and translates service errors.
    """

    permission_classes = [IsAuthenticated]
    identity_service = IdentityService()

    def put(self, request, pk=None):
        target_user = get_object_or_404(User, pk=pk)

        serializer = RoleAssignmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        logger.info(
            "Role assignment requested",
            extra={
                "user_id": request.user.id,
                "target_user_id": target_user.id,
                "requested_role": serializer.validated_data["role"],
                "action": "role_assignment_requested",
                "component": "RoleAssignmentView",
            },
        )

        user_role = self.handle_service_call(
            self.identity_service.assign_role,
            user=target_user,
            role=serializer.validated_data["role"],
            assigned_by=request.user,
        )
        return Response(UserRoleSerializer(user_role).data)
