# users/signals.py
import logging

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import UserRole
from .services.identity_service import IdentityService

logger = logging.getLogger(__name__)


@receiver(post_save, sender=UserRole)
@receiver(post_delete, sender=UserRole)
def invalidate_cached_role(sender, instance, **kwargs):
    """
    Drop the cached role whenever an assignment is written or removed,
    including edits made through the admin site.
    """
    IdentityService().invalidate_role_cache(instance.user_id)
    logger.debug(
        "Role assignment changed, cache invalidated",
        extra={
            "user_id": instance.user_id,
            "role": instance.role,
            "created": kwargs.get("created"),
            "action": "role_assignment_changed",
            "component": "users.signals",
        },
    )
