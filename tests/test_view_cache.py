"""
Unit tests for the per-user view cache
"""
from unittest.mock import Mock

import pytest

from app.services.view_cache import DASHBOARD_VIEW, LIBRARY_VIEW, CacheInvalidator, ViewCache


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestViewCache:
    """Test cached views and invalidation"""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def cache(self, clock):
        return ViewCache(ttl_seconds=60, clock=clock)

    def test_get_and_set(self, cache):
        cache.set(LIBRARY_VIEW, "a@example.com", {"total": 1})

        assert cache.get(LIBRARY_VIEW, "a@example.com") == {"total": 1}
        assert cache.get(DASHBOARD_VIEW, "a@example.com") is None
        assert cache.get(LIBRARY_VIEW, "b@example.com") is None

    def test_entries_expire(self, cache, clock):
        cache.set(LIBRARY_VIEW, "a@example.com", {"total": 1})
        clock.now = 60

        assert cache.get(LIBRARY_VIEW, "a@example.com") is None

    def test_invalidate_only_that_user(self, cache):
        cache.set(LIBRARY_VIEW, "a@example.com", 1)
        cache.set(DASHBOARD_VIEW, "a@example.com", 2)
        cache.set(LIBRARY_VIEW, "b@example.com", 3)

        assert cache.invalidate("a@example.com") == 2
        assert cache.get(LIBRARY_VIEW, "b@example.com") == 3


class TestCacheInvalidator:
    def test_invalidate_user_views(self):
        cache = ViewCache(ttl_seconds=60)
        cache.set(LIBRARY_VIEW, "a@example.com", 1)

        assert CacheInvalidator(cache).invalidate_user_views("a@example.com") is True
        assert cache.get(LIBRARY_VIEW, "a@example.com") is None

    def test_failure_is_not_raised(self):
        cache = Mock()
        cache.invalidate.side_effect = RuntimeError("cache offline")

        assert CacheInvalidator(cache).invalidate_user_views("a@example.com") is False
