# flake8: noqa
"""
Test settings for the bookkeeping backend.

In-memory SQLite, local-memory cache and a fast password hasher so the
pytest suite runs without external services.
"""

from .base import *

ENVIRONMENT = "test"

DEBUG = False
SECRET_KEY = "django-insecure-test-key"
ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "bookkeeping-tests",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

BOOKKEEPING_ROLE_CACHE_TIMEOUT = 300
BOOKKEEPING_TRANSITION_RETRY_ON_CONFLICT = True

# Keep test output quiet; tests assert on loggers through mocks
for logger_name in ["django", "users", "bookkeeping"]:
    LOGGING["loggers"][logger_name]["level"] = "WARNING"
