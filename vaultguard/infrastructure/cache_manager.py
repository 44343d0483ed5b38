#!/usr/bin/env python3
"""Result cache with TTL and batch eviction for VaultGuard.

This module provides the cache behind the performance layer:
- Keys built from operation, path and content fingerprint
- TTL-based expiration (expired entries are never returned)
- Capacity limit with eviction of the oldest 10% of entries
- Approximate memory accounting
- Thread-safe operations
- Cache statistics

Example:
    >>> cache = ResultCache(CacheConfig(max_entries=1000))
    >>> key = cache.make_key("filter_content", "notes/a.md", content_fingerprint(text))
    >>> cache.set(key, redacted, fingerprint)
    >>> cache.get(key)
"""

import math
import threading
import time
import zlib
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from vaultguard.core.constants import Fingerprint, Limits

CachedResult = Union[bool, str]


def content_fingerprint(content: Optional[str]) -> Fingerprint:
    """Compute a cheap, non-cryptographic fingerprint of content.

    The fingerprint only disambiguates cache keys; it offers no security.

    Args:
        content: Text to fingerprint

    Returns:
        Hex checksum followed by the content length
    """
    data = (content or "").encode("utf-8", "surrogatepass")
    return Fingerprint(f"{zlib.adler32(data):08x}-{len(data):x}")


@dataclass
class CacheEntry:
    """Single cache entry with metadata."""

    key: str
    value: CachedResult
    fingerprint: str
    size: int
    timestamp: float = field(default_factory=time.time)

    def is_expired(self, ttl: float) -> bool:
        """Check if entry has expired.

        Args:
            ttl: Time-to-live in seconds

        Returns:
            True if expired
        """
        return time.time() - self.timestamp > ttl


@dataclass
class CacheConfig:
    """Configuration for the result cache."""

    max_entries: int = Limits.DEFAULT_CACHE_CAPACITY
    ttl_seconds: float = Limits.CACHE_TTL_SECONDS
    eviction_fraction: float = Limits.CACHE_EVICTION_FRACTION
    enabled: bool = True

    def validate(self) -> None:
        """Validate cache configuration."""
        if self.max_entries <= 0:
            raise ValueError(f"max_entries must be positive: {self.max_entries}")
        if self.ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive: {self.ttl_seconds}")
        if not 0 < self.eviction_fraction <= 1:
            raise ValueError(f"eviction_fraction must be in (0, 1]: {self.eviction_fraction}")


class ResultCache:
    """Thread-safe result cache with TTL and oldest-first batch eviction."""

    def __init__(self, config: Optional[CacheConfig] = None):
        """Initialize result cache.

        Args:
            config: Cache configuration (defaults if None)
        """
        self.config = config or CacheConfig()
        self.config.validate()
        self._cache: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.RLock()
        self._memory_usage = 0

        # Statistics
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    @staticmethod
    def make_key(operation: str, path: str, fingerprint: str) -> str:
        """Build a cache key from operation, path and fingerprint."""
        return f"{operation}:{path}:{fingerprint}"

    def get(self, key: str) -> Optional[CacheEntry]:
        """Get entry from cache.

        Args:
            key: Cache key

        Returns:
            Cache entry or None if not found/expired
        """
        if not self.config.enabled:
            self._misses += 1
            return None

        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                return None

            if entry.is_expired(self.config.ttl_seconds):
                self._remove_entry(key)
                self._expirations += 1
                self._misses += 1
                return None

            self._hits += 1
            return entry

    def set(self, key: str, value: CachedResult, fingerprint: str) -> None:
        """Store a result.

        Args:
            key: Cache key
            value: Boolean verdict or redacted text
            fingerprint: Fingerprint of the content the result was computed from
        """
        if not self.config.enabled:
            return

        size = len(value) if isinstance(value, str) else 1

        with self._lock:
            if key in self._cache:
                self._remove_entry(key)

            if len(self._cache) >= self.config.max_entries:
                self._evict_oldest()

            entry = CacheEntry(key=key, value=value, fingerprint=fingerprint, size=size, timestamp=time.time())
            self._cache[key] = entry
            self._memory_usage += size + Limits.CACHE_ENTRY_OVERHEAD

    def resize(self, max_entries: int) -> None:
        """Change capacity, evicting if the cache is now over capacity."""
        with self._lock:
            self.config.max_entries = max_entries
            self.config.validate()
            while len(self._cache) > max_entries:
                self._evict_oldest()

    def invalidate(self, key: str) -> bool:
        """Remove entry from cache.

        Returns:
            True if entry was removed
        """
        with self._lock:
            if key in self._cache:
                self._remove_entry(key)
                return True
            return False

    def clear(self) -> None:
        """Clear all cache entries."""
        with self._lock:
            self._cache.clear()
            self._memory_usage = 0

    def _remove_entry(self, key: str) -> None:
        entry = self._cache.pop(key, None)
        if entry is not None:
            self._memory_usage -= entry.size + Limits.CACHE_ENTRY_OVERHEAD

    def _evict_oldest(self) -> None:
        """Evict the oldest fraction of entries (at least one)."""
        if not self._cache:
            return

        count = max(1, math.floor(len(self._cache) * self.config.eviction_fraction))
        oldest = sorted(self._cache.values(), key=lambda e: e.timestamp)[:count]
        for entry in oldest:
            self._remove_entry(entry.key)
            self._evictions += 1

    @property
    def memory_usage(self) -> int:
        """Approximate memory held by cached results, in bytes."""
        return self._memory_usage

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._cache

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = self._hits / total_requests if total_requests > 0 else 0

            return {
                "entries": len(self._cache),
                "capacity": self.config.max_entries,
                "memory_usage": self._memory_usage,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": hit_rate,
                "evictions": self._evictions,
                "expirations": self._expirations,
            }

    def get_entries(self) -> List[Tuple[str, int, float]]:
        """Get all cache entries with metadata.

        Returns:
            List of (key, size, age) tuples
        """
        with self._lock:
            current_time = time.time()
            return [
                (key, entry.size, current_time - entry.timestamp)
                for key, entry in self._cache.items()
            ]
