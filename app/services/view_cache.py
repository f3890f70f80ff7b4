"""
Per-user cache of rendered library and dashboard views
"""
import threading
import time
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from app.config import settings
from app.logging_config import logger


LIBRARY_VIEW = "library"
DASHBOARD_VIEW = "dashboard"
USER_VIEWS = (LIBRARY_VIEW, DASHBOARD_VIEW)


class ViewCache:
    """
    In-memory view payloads keyed by (view, user email) with a fixed TTL.
    """

    def __init__(self, ttl_seconds: float, clock: Optional[Callable[[], float]] = None):
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.monotonic
        self._lock = threading.Lock()
        # (view, email) -> {"payload": Any, "expires_at": float}
        self._items: Dict[Tuple[str, str], Dict[str, Any]] = {}

    def get(self, view: str, email: str) -> Optional[Any]:
        key = (view, email)
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            if item["expires_at"] <= self._clock():
                del self._items[key]
                return None
            return item["payload"]

    def set(self, view: str, email: str, payload: Any) -> None:
        with self._lock:
            self._items[(view, email)] = {
                "payload": payload,
                "expires_at": self._clock() + self.ttl_seconds,
            }

    def invalidate(self, email: str, views: Iterable[str] = USER_VIEWS) -> int:
        """Drop cached views for a user; returns how many entries were removed"""
        removed = 0
        with self._lock:
            for view in views:
                if self._items.pop((view, email), None) is not None:
                    removed += 1
        return removed

    def clear(self) -> None:
        with self._lock:
            self._items.clear()


class CacheInvalidator:
    """Marks a user's cached views stale after their data changes"""

    def __init__(self, cache: ViewCache):
        self.cache = cache

    def invalidate_user_views(self, email: str) -> bool:
        """
        Invalidate the library and dashboard views of a user

        Returns:
            False if the signal could not be delivered; the failure is only logged
        """
        try:
            removed = self.cache.invalidate(email, USER_VIEWS)
            logger.debug(f"Invalidated {removed} cached views for {email}")
            return True
        except Exception as e:
            logger.error(f"Cache invalidation failed for {email}: {str(e)}")
            return False


# Global cache shared by the library and dashboard routes
view_cache = ViewCache(ttl_seconds=settings.view_cache_ttl)


def get_view_cache() -> ViewCache:
    """Dependency returning the process-wide view cache"""
    return view_cache


def get_cache_invalidator() -> CacheInvalidator:
    """Dependency returning an invalidator bound to the view cache"""
    return CacheInvalidator(view_cache)
