"""TTL-based caching for price quotes."""

import time
from typing import Any


class CacheEntry:
    """
    Cache entry with TTL support.

    Parameters
    ----------
    value : Any
        Cached value
    ttl : int
        Time-to-live in seconds
    created_at : float | None
        Creation timestamp. Uses current time if None.

    """

    def __init__(self, value: Any, ttl: int, created_at: float | None = None) -> None:
        self.value = value
        self.ttl = ttl
        self.created_at = created_at or time.time()

    def is_expired(self) -> bool:
        return (time.time() - self.created_at) > self.ttl


class PriceCache:
    """
    In-memory cache of token prices keyed by coin id.

    Parameters
    ----------
    default_ttl : int
        Default time-to-live in seconds for cache entries

    """

    def __init__(self, default_ttl: int = 60) -> None:
        self.default_ttl = default_ttl
        self._cache: dict[str, CacheEntry] = {}

    def get(self, coin_id: str) -> Any | None:
        """
        Get cached value if it exists and hasn't expired.

        Parameters
        ----------
        coin_id : str
            Coin identifier (e.g., "optimism:0x...")

        Returns
        -------
        Any | None
            Cached value if found and valid, None otherwise

        """
        entry = self._cache.get(coin_id)
        if entry is None:
            return None

        if entry.is_expired():
            del self._cache[coin_id]
            return None

        return entry.value

    def set(self, coin_id: str, value: Any, ttl: int | None = None) -> None:
        self._cache[coin_id] = CacheEntry(value, ttl or self.default_ttl)

    def clear(self) -> None:
        """Clear all cached entries."""
        self._cache.clear()

    def cleanup_expired(self) -> int:
        """
        Remove all expired entries from cache.

        Returns
        -------
        int
            Number of entries removed

        """
        expired_keys = [key for key, entry in self._cache.items() if entry.is_expired()]
        for key in expired_keys:
            del self._cache[key]
        return len(expired_keys)
