"""
Serializers for the identity endpoints.

Expose the authenticated actor (id and role) to the frontend and validate
role assignment requests.
"""

import logging

from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import AppRole, UserRole

logger = logging.getLogger(__name__)
User = get_user_model()


class CurrentActorSerializer(serializers.ModelSerializer):
    """
    The authenticated user as the workflow sees them.

    ``role`` and ``can_write`` come from the resolved actor placed in the
    serializer context, not from the request session.
    """

    role = serializers.SerializerMethodField()
    role_label = serializers.SerializerMethodField()
    can_write = serializers.SerializerMethodField()
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "display_name",
            "title",
            "role",
            "role_label",
            "can_write",
        ]
        read_only_fields = fields

    def _actor(self):
        return self.context.get("actor")

    def get_role(self, obj):
        actor = self._actor()
        return actor.role if actor and actor.role else None

    def get_role_label(self, obj):
        actor = self._actor()
        return actor.role.label if actor and actor.role else None

    def get_can_write(self, obj):
        actor = self._actor()
        return bool(actor and actor.role in AppRole.writers())


class RoleAssignmentSerializer(serializers.Serializer):
    """Validates a role assignment request."""

    role = serializers.ChoiceField(choices=AppRole.choices)


class UserRoleSerializer(serializers.ModelSerializer):
    """Stored role assignment."""

    role_label = serializers.CharField(source="get_role_display", read_only=True)

    class Meta:
        model = UserRole
        fields = ["user", "role", "role_label", "assigned_by", "assigned_at"]
        read_only_fields = fields
