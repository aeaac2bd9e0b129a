"""Short-TTL read-through cache for single-key range lookups.

The cache sits in front of point lookups made outside the bulk build; it is
never the source of truth and can be flushed at any time.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 600


class RangeCache(Protocol):
    """Cache collaborator injected into the build context."""

    def get(self, key: Dict[str, Any]) -> Optional[Any]: ...

    def put(self, key: Dict[str, Any], value: Any) -> None: ...

    def expire(self, key: Dict[str, Any]) -> None: ...

    def flush(self) -> None: ...


def cache_key(key_data: Dict[str, Any]) -> str:
    """Generate a stable cache key from lookup parameters."""
    key_str = json.dumps(key_data, sort_keys=True, default=str)
    return hashlib.md5(key_str.encode()).hexdigest()


class TTLRangeCache:
    """In-memory fixed-window cache.

    Entries expire ``ttl_seconds`` after they were written, measured on the
    wall clock supplied by ``clock``.
    """

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: Dict[str, Any]) -> Optional[Any]:
        digest = cache_key(key)
        entry = self._entries.get(digest)
        if entry is not None:
            value, written_at = entry
            if self.clock() - written_at < self.ttl_seconds:
                self.hits += 1
                return value
            del self._entries[digest]
        self.misses += 1
        return None

    def put(self, key: Dict[str, Any], value: Any) -> None:
        if self.ttl_seconds <= 0:
            return
        self._entries[cache_key(key)] = (value, self.clock())

    def expire(self, key: Dict[str, Any]) -> None:
        self._entries.pop(cache_key(key), None)

    def flush(self) -> None:
        logger.debug("Flushing %d cached range lookups", len(self._entries))
        self._entries.clear()

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        return {
            "size": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
            "ttl_seconds": self.ttl_seconds,
        }

    def __len__(self) -> int:
        return len(self._entries)
