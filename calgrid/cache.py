"""Bounded in-memory cache for packed layouts."""

from collections import OrderedDict
from typing import Any, Optional
from .constants import DEFAULT_LAYOUT_CACHE_SIZE


class LayoutCache:
    """
    Least-recently-used cache keyed by (window key, event-set version).

    An entry is only valid for the version it was stored with. Once the
    event set changes, older entries are never returned again and are
    dropped on the next write.

    Attributes:
        max_entries: Maximum number of cached layouts
    """

    def __init__(self, max_entries: int = DEFAULT_LAYOUT_CACHE_SIZE) -> None:
        """
        Initialize the cache.

        Args:
            max_entries: Maximum number of cached layouts

        Raises:
            ValueError: If max_entries is smaller than 1
        """
        if max_entries < 1:
            raise ValueError(f"Cache size must be at least 1, got {max_entries}")
        self.max_entries: int = max_entries
        self._data: OrderedDict[str, dict[str, Any]] = OrderedDict()
        self._hits: int = 0
        self._misses: int = 0

    def get(self, key: str, version: int) -> Optional[Any]:
        """
        Return a cached layout if it was built for this version.

        Args:
            key: Window key
            version: Current event-set version

        Returns:
            Cached value, or None on a miss or a stale entry
        """
        entry = self._data.get(key)
        if not entry or entry["version"] != version:
            if entry:
                self._data.pop(key, None)
            self._misses += 1
            return None
        self._data.move_to_end(key)
        self._hits += 1
        return entry["content"]

    def set(self, key: str, version: int, content: Any) -> None:
        """
        Store a layout, evicting the least recently used entries if full.

        Args:
            key: Window key
            version: Event-set version the layout was built from
            content: Layout to cache
        """
        self.purge_stale(version)
        self._data[key] = {"version": version, "content": content}
        self._data.move_to_end(key)
        while len(self._data) > self.max_entries:
            self._data.popitem(last=False)

    def purge_stale(self, version: int) -> int:
        """
        Remove entries built for any other version.

        Returns:
            Number of entries removed
        """
        stale_keys = [k for k, e in self._data.items() if e["version"] != version]
        for key in stale_keys:
            self._data.pop(key, None)
        return len(stale_keys)

    def invalidate(self) -> None:
        """Drop every cached layout."""
        self._data.clear()

    def size(self) -> int:
        """
        Get the number of items in the cache.

        Returns:
            Number of cached entries (including stale ones not yet purged)
        """
        return len(self._data)

    def get_stats(self) -> dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache stats including:
            - total_entries: Number of cached layouts
            - max_entries: Capacity of the cache
            - hits: Number of successful lookups
            - misses: Number of failed or stale lookups
        """
        return {
            "total_entries": len(self._data),
            "max_entries": self.max_entries,
            "hits": self._hits,
            "misses": self._misses,
        }
