"""
In-memory pricing cache with per-entry expiry.

Any object exposing async get(key) and set_with_expiry(key, value, ttl)
can stand in for this class, and the accessor also runs with no cache.
"""
import copy
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple


logger = logging.getLogger(__name__)


class InMemoryPricingCache:
    """
    Key/value cache of pricing data with TTL.

    Values are deep-copied on the way in and out so cached rate tables
    cannot be mutated by callers.
    """

    def __init__(self, cleanup_interval: float = 300, clock: Callable[[], float] = time.time):
        """
        Initialize pricing cache.

        Args:
            cleanup_interval: Seconds between sweeps of expired entries
            clock: Time source, injectable for tests
        """
        # key -> (value, expires_at)
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._cleanup_interval = cleanup_interval
        self._clock = clock
        self._last_cleanup = clock()
        self._hits = 0
        self._misses = 0

    async def get(self, key: str) -> Optional[Any]:
        """
        Look up a cached value.

        Args:
            key: Cache key

        Returns:
            Copy of the cached value, or None if missing or expired
        """
        self._maybe_cleanup()

        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            self._misses += 1
            return None

        self._hits += 1
        return copy.deepcopy(value)

    async def set_with_expiry(self, key: str, value: Any, ttl_seconds: int) -> None:
        """
        Store a value that expires after ttl_seconds.

        Args:
            key: Cache key
            value: JSON-like value to cache
            ttl_seconds: Time-to-live in seconds
        """
        self._entries[key] = (copy.deepcopy(value), self._clock() + ttl_seconds)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
        self._hits = 0
        self._misses = 0

    def _maybe_cleanup(self) -> None:
        """Drop expired entries at most once per cleanup interval."""
        now = self._clock()
        if now - self._last_cleanup < self._cleanup_interval:
            return

        self._last_cleanup = now
        expired_keys = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired_keys:
            del self._entries[key]
        if expired_keys:
            logger.debug("Evicted %d expired pricing cache entries", len(expired_keys))

    def stats(self) -> Dict[str, Any]:
        """
        Get cache statistics (for debugging/monitoring).

        Returns:
            Dictionary with stats
        """
        return {
            "entries": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
        }
