"""
Django AppConfig for the users application.

This module configures the users application within the Django project,
defining application-specific settings and metadata.
"""

from django.apps import AppConfig


class UsersConfig(AppConfig):
    """
    Configuration class for the users application.

    Holds the custom user model and the role assignment that feeds the
    validation workflow.
    """

    # Use BigAutoField as default for primary keys
    default_auto_field = "django.db.models.BigAutoField"

    # Application name (Python path)
    name = "users"

    def ready(self):
        # Role cache invalidation receivers
        import users.signals  # noqa: F401
