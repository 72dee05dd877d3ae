# users/services/identity_service.py
"""
Identity and role source for the validation workflow.

Resolves an authenticated user into an explicit ``Actor(id, role)`` value that
every workflow operation receives as an argument. Role lookups go through the
Django cache; signals on ``UserRole`` invalidate the cached entry whenever a
role is assigned, changed or removed.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.core.cache import cache
from django.core.exceptions import ValidationError
from django.db import transaction

from ..models import AppRole, UserRole

logger = logging.getLogger(__name__)

# Cached marker for "user has no role", distinct from a cache miss
_NO_ROLE = ""


@dataclass(frozen=True)
class Actor:
    """The authenticated caller of a workflow operation."""

    id: int
    role: Optional[AppRole]

    @property
    def has_role(self):
        return self.role is not None


class IdentityService:
    """
    Resolves actors and manages role assignments.

    The workflow trusts the role returned here as-is; credential checks belong
    to the authentication layer in front of it.
    """

    CACHE_KEY_TEMPLATE = "user_role_{user_id}"
    VERSION_KEY_TEMPLATE = "user_role_version_{user_id}"

    def _cache_key(self, user_id):
        return self.CACHE_KEY_TEMPLATE.format(user_id=user_id)

    def _version_key(self, user_id):
        return self.VERSION_KEY_TEMPLATE.format(user_id=user_id)

    def _role_version(self, user_id):
        """Current role version stamp of a user, created on first use."""
        version_key = self._version_key(user_id)
        version = cache.get(version_key)
        if version is None:
            cache.add(version_key, uuid.uuid4().hex, None)
            version = cache.get(version_key)
        return version

    def get_role(self, user_id) -> Optional[AppRole]:
        """
        Get the role assigned to a user, cached.

        Args:
            user_id: Target user ID

        Returns:
            AppRole or None: Assigned role, None when the user has no role
        """
        cache_key = self._cache_key(user_id)
        # Read before the database so a concurrent invalidation makes this entry stale
        version = self._role_version(user_id)
        cached = cache.get(cache_key)

        if cached is not None and cached[0] == version:
            cached_role = cached[1]
            logger.debug(
                "User role cache hit",
                extra={
                    "user_id": user_id,
                    "role": cached_role or None,
                    "action": "role_cache_hit",
                    "component": "IdentityService",
                },
            )
            return AppRole(cached_role) if cached_role else None

        role_value = (
            UserRole.objects.filter(user_id=user_id)
            .values_list("role", flat=True)
            .first()
        )
        cache.set(
            cache_key,
            (version, role_value or _NO_ROLE),
            settings.BOOKKEEPING_ROLE_CACHE_TIMEOUT,
        )

        logger.debug(
            "User role loaded from database",
            extra={
                "user_id": user_id,
                "role": role_value,
                "action": "role_cache_miss",
                "component": "IdentityService",
            },
        )

        return AppRole(role_value) if role_value else None

    def resolve_actor(self, user) -> Optional[Actor]:
        """
        Build the workflow actor for an authenticated user.

        Returns:
            Actor or None: None for anonymous users
        """
        if user is None or not getattr(user, "is_authenticated", False):
            return None
        return Actor(id=user.id, role=self.get_role(user.id))

    @transaction.atomic
    def assign_role(self, user, role, assigned_by) -> UserRole:
        """
        Assign a role to a user, replacing any previous assignment.

        Args:
            user: User receiving the role
            role: AppRole value (or its string form)
            assigned_by: User performing the assignment

        Returns:
            UserRole: The stored assignment

        Raises:
            ValidationError: If the role is unknown
            PermissionError: If the assigning user may not grant this role
        """
        try:
            new_role = AppRole(role)
        except ValueError:
            logger.warning(
                "Role assignment rejected - unknown role",
                extra={
                    "user_id": user.id,
                    "requested_role": role,
                    "assigned_by_id": getattr(assigned_by, "id", None),
                    "action": "role_assignment_invalid",
                    "component": "IdentityService",
                    "severity": "medium",
                },
            )
            raise ValidationError(f"Unknown role '{role}'.")

        assigner_role = self.get_role(assigned_by.id) if assigned_by else None
        self._check_can_assign(user, new_role, assigned_by, assigner_role)

        previous_role = self.get_role(user.id)
        user_role, created = UserRole.objects.update_or_create(
            user=user, defaults={"role": new_role, "assigned_by": assigned_by}
        )
        transaction.on_commit(lambda: self.invalidate_role_cache(user.id))

        logger.info(
            "User role assigned",
            extra={
                "user_id": user.id,
                "previous_role": previous_role,
                "new_role": new_role,
                "assigned_by_id": getattr(assigned_by, "id", None),
                "created": created,
                "action": "role_assigned",
                "component": "IdentityService",
            },
        )

        return user_role

    def _check_can_assign(self, user, new_role, assigned_by, assigner_role):
        """Enforce who may grant which role."""
        # Django superusers bootstrap the first super_admin
        if assigned_by is not None and assigned_by.is_superuser:
            return

        if assigner_role not in AppRole.role_managers():
            logger.warning(
                "Role assignment permission denied",
                extra={
                    "user_id": user.id,
                    "requested_role": new_role,
                    "assigned_by_id": getattr(assigned_by, "id", None),
                    "assigner_role": assigner_role,
                    "action": "role_assignment_denied",
                    "component": "IdentityService",
                    "severity": "high",
                },
            )
            raise PermissionError("Only administrators can assign roles.")

        touches_super_admin = (
            new_role == AppRole.SUPER_ADMIN
            or self.get_role(user.id) == AppRole.SUPER_ADMIN
        )
        if touches_super_admin and assigner_role != AppRole.SUPER_ADMIN:
            logger.warning(
                "Super admin role change denied",
                extra={
                    "user_id": user.id,
                    "requested_role": new_role,
                    "assigned_by_id": assigned_by.id,
                    "assigner_role": assigner_role,
                    "action": "super_admin_assignment_denied",
                    "component": "IdentityService",
                    "severity": "high",
                },
            )
            raise PermissionError("Only a super admin can grant or revoke super admin.")

    def invalidate_role_cache(self, user_id):
        """Drop the cached role of a user and retire entries still being written."""
        cache.set(self._version_key(user_id), uuid.uuid4().hex, None)
        cache.delete(self._cache_key(user_id))
        logger.debug(
            "User role cache invalidated",
            extra={
                "user_id": user_id,
                "action": "role_cache_invalidated",
                "component": "IdentityService",
            },
        )
