from django.apps import AppConfig


class BookkeepingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    # Application name (Python path)
    name = "bookkeeping"

    def ready(self):
        """Import signals to ensure they are connected when the app is ready."""
        import logging
        logger = logging.getLogger(__name__)
        logger.debug("Bookkeeping app ready method called, importing signals...")
        import bookkeeping.signals  # noqa: F401
