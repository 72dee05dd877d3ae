# flake8: noqa
"""
Development environment settings for the bookkeeping backend.

This configuration extends base settings with development-specific values
including local database, relaxed security, and verbose logging.
"""

from .base import *
import logging
from .utils import load_environment_config

# Load environment configuration
config = load_environment_config("development")

# Environment identification
ENVIRONMENT = "development"

# Database query logging level
DB_QUERY_LOGGING_LEVEL = "INFO"  # "DEBUG" for SQL queries

# =============================================================================
# SECURITY SETTINGS FOR DEVELOPMENT
# =============================================================================

DEBUG = True
SECRET_KEY = config(
    "SECRET_KEY", default="django-insecure-dev-key-change-in-production"
)
ALLOWED_HOSTS = ["localhost", "127.0.0.1", "0.0.0.0"]

# =============================================================================
# CORS SETTINGS FOR DEVELOPMENT
# =============================================================================

CORS_ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
CORS_ALLOW_ALL_ORIGINS = True  # Only for development!

# =============================================================================
# DATABASE CONFIGURATION FOR DEVELOPMENT
# =============================================================================

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": config("POSTGRES_DB"),
        "USER": config("POSTGRES_USER"),
        "PASSWORD": config("POSTGRES_PASSWORD"),
        "HOST": config("DB_HOST"),
        "PORT": "5432",
    }
}

# =============================================================================
# VALIDATION WORKFLOW
# =============================================================================

BOOKKEEPING_ROLE_CACHE_TIMEOUT = config(
    "BOOKKEEPING_ROLE_CACHE_TIMEOUT", default=60, cast=int
)

# =============================================================================
# ENHANCED LOGGING FOR DEVELOPMENT
# =============================================================================

# Ensure logs directory exists
os.makedirs(BASE_DIR / "logs", exist_ok=True)

LOGGING["handlers"]["development_file"] = {
    "level": "DEBUG",
    "class": "logging.handlers.RotatingFileHandler",
    "filename": BASE_DIR / "logs" / "django_dev.log",
    "maxBytes": 1024 * 1024 * 10,  # 10MB
    "backupCount": 5,
    "formatter": "structured",
    "encoding": "utf-8",
}

# Separate trail of workflow decisions, handy when replaying a validation
LOGGING["handlers"]["workflow_file"] = {
    "level": "DEBUG",
    "class": "logging.handlers.RotatingFileHandler",
    "filename": BASE_DIR / "logs" / "validation_workflow.log",
    "maxBytes": 1024 * 1024 * 5,  # 5MB
    "backupCount": 3,
    "formatter": "json",
    "encoding": "utf-8",
}

LOGGING["loggers"]["bookkeeping.services"] = {
    "handlers": ["console", "workflow_file"],
    "level": "DEBUG",
    "propagate": False,
}

# Update existing loggers for development environment
for logger_name in ["django", "users", "bookkeeping"]:
    if logger_name in LOGGING["loggers"]:
        LOGGING["loggers"][logger_name]["handlers"] = ["console", "development_file"]
        LOGGING["loggers"][logger_name]["level"] = "DEBUG"

LOGGING["loggers"]["django.db.backends"] = {
    "handlers": ["console"],
    "level": DB_QUERY_LOGGING_LEVEL,
    "propagate": False,
}

# =============================================================================
# ENVIRONMENT STARTUP
# =============================================================================

logger = logging.getLogger(__name__)
logger.info(
    "Development environment initialized",
    extra={
        "environment": ENVIRONMENT,
        "debug_mode": DEBUG,
        "allowed_hosts": ALLOWED_HOSTS,
        "db_query_logging_level": DB_QUERY_LOGGING_LEVEL,
        "action": "environment_startup",
        "component": "settings",
    },
)

print(f"=== Running in {ENVIRONMENT} mode ===")
