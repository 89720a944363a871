"""
In-memory query cache for portal GET requests

Keys are tuples mirroring the request path, e.g.
("/api/clients", 7, "check-ins"). Invalidating a key drops it and every key it
prefixes so dependent views re-fetch on next use.
"""

import logging
import time
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

QueryKey = tuple


class QueryCache:
    def __init__(self, stale_time: float = 60.0):
        self.stale_time = stale_time
        self._entries: dict[QueryKey, tuple[float, Any]] = {}

    def get(self, key: QueryKey) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if time.monotonic() - stored_at > self.stale_time:
            del self._entries[key]
            return None
        return value

    def set(self, key: QueryKey, value: Any) -> None:
        self._entries[key] = (time.monotonic(), value)

    def __contains__(self, key: QueryKey) -> bool:
        return self.get(key) is not None

    async def fetch(self, key: QueryKey, loader: Callable[[], Awaitable[Any]]) -> Any:
        """Return the cached value for key, loading and storing it on a miss"""
        cached = self.get(key)
        if cached is not None:
            logger.debug(f"✅ Query cache HIT: {key}")
            return cached

        value = await loader()
        self.set(key, value)
        return value

    def invalidate(self, key: QueryKey) -> int:
        """Drop key and every key it prefixes; returns the number removed"""
        stale = [k for k in self._entries if k[: len(key)] == key]
        for k in stale:
            del self._entries[k]
        if stale:
            logger.debug(f"🧹 Invalidated {len(stale)} cached queries under {key}")
        return len(stale)
