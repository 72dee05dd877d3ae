# users/tests/conftest.py
import pytest
from django.core.cache import cache


@pytest.fixture(autouse=True)
def clear_cache():
    """Role cache keys are per user id and ids are reused between tests."""
    cache.clear()
    yield
    cache.clear()
