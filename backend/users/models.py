"""
User models for the bookkeeping application.

This module defines the CustomUser model and the single role assignment every
staff member carries. The role is the only input the validation workflow uses
to decide who may move a transaction forward.
"""

import logging

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models

logger = logging.getLogger(__name__)


class AppRole(models.TextChoices):
    """Closed set of application roles."""

    SUPER_ADMIN = "super_admin", "Super Admin"
    ADMIN = "admin", "Administrateur"
    COMPTABLE = "comptable", "Comptable"
    RAF = "raf", "RAF"
    CABINET = "cabinet", "Cabinet comptable"
    AUDITEUR = "auditeur", "Auditeur"

    @classmethod
    def observers(cls):
        """Read-only roles: they may look at everything and change nothing."""
        return frozenset({cls.CABINET, cls.AUDITEUR})

    @classmethod
    def writers(cls):
        """Roles allowed to record transactions and submit them."""
        return frozenset(role for role in cls if role not in cls.observers())

    @classmethod
    def role_managers(cls):
        """Roles allowed to assign roles to other users."""
        return frozenset({cls.SUPER_ADMIN, cls.ADMIN})


class CustomUser(AbstractUser):
    """
    Custom user model extending Django's AbstractUser.

    Email is unique and mandatory; profile fields mirror what the staff
    directory shows next to validation history entries.
    """

    # Email field - unique and required for all users
    email = models.EmailField(
        unique=True,
        blank=False,
        help_text="User's unique email address, required for all accounts",
    )

    phone = models.CharField(max_length=30, blank=True)
    title = models.CharField(
        max_length=100, blank=True, help_text="Job title shown in audit trails"
    )

    @property
    def display_name(self):
        """Full name when available, otherwise username."""
        return self.get_full_name() or self.username

    def __str__(self):
        """
        String representation of the user model.

        Returns:
            str: The username if available, otherwise a default representation
        """
        return self.username or f"User {self.id} ({self.email})"


class UserRole(models.Model):
    """
    Role assignment for a user.

    Exactly one row per user: re-assigning updates the row in place so the
    most recently assigned role wins.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="app_role"
    )
    role = models.CharField(max_length=20, choices=AppRole.choices)
    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_roles",
    )
    assigned_at = models.DateTimeField(auto_now=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["role"], name="idx_userrole_role"),
        ]

    def __str__(self):
        """String representation of UserRole."""
        return f"{self.user} | {self.get_role_display()}"
