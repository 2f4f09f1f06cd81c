"""
In-process read-through cache.

One ``TTLCache`` is built at startup and handed to request handlers through
FastAPI dependencies. Entries live until their TTL runs out or a write
invalidates them; ``ttl=None`` means "until invalidated" (roster entries).
The cache is per process and empty after a restart.
"""
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Tuple

from .logs import get_logger

logger = get_logger(__name__)

DJS_KEY = ("djs",)
BLACKOUTS_KEY = ("blackouts",)


def availability_key(month: str) -> Tuple[str, str]:
    return ("availability", month)


def roster_key(venue: str, month: Optional[str]) -> Tuple[str, str, Optional[str]]:
    return ("roster", venue, month)


@dataclass
class CacheEntry:
    payload: Any
    fetched_at: float
    ttl_seconds: Optional[float]

    def is_fresh(self, now: float) -> bool:
        if self.ttl_seconds is None:
            return True
        return (now - self.fetched_at) < self.ttl_seconds


class TTLCache:
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[Hashable, CacheEntry] = {}
        # Bumped on every drop so a fetch started before it is not stored
        self._generations: Dict[Hashable, int] = {}

    def get(self, key: Hashable) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_fresh(self._clock()):
            del self._entries[key]
            return None
        return entry.payload

    def set(self, key: Hashable, payload: Any, ttl: Optional[float]) -> None:
        self._entries[key] = CacheEntry(payload, self._clock(), ttl)

    def drop(self, key: Hashable) -> None:
        self._entries.pop(key, None)
        self._generations[key] = self._generations.get(key, 0) + 1

    async def get_or_fetch(
        self,
        key: Hashable,
        fetch: Callable[[], Awaitable[Any]],
        ttl: Optional[float],
    ) -> Any:
        """
        Return the cached payload for ``key`` or fetch, store and return it.

        Failed fetches are not cached, and neither is a payload whose key was
        dropped while the fetch was running.
        """
        entry = self._entries.get(key)
        if entry is not None and entry.is_fresh(self._clock()):
            logger.debug("Cache hit", key=str(key))
            return entry.payload

        logger.debug("Cache miss", key=str(key))
        generation = self._generations.setdefault(key, 0)
        payload = await fetch()
        if self._generations.get(key, 0) == generation:
            self.set(key, payload, ttl)
        else:
            logger.debug("Discarding fetch overtaken by invalidation", key=str(key))
        return payload

    def invalidate(self, venue: str, month: Optional[str]) -> None:
        """Drop a venue's roster entry for ``month`` plus its unfiltered entry."""
        self.drop(roster_key(venue, month))
        self.drop(roster_key(venue, None))

    def invalidate_all(self, month: Optional[str]) -> None:
        """Drop every venue's roster entries that could hold ``month``."""
        stale = [
            k for k in set(self._entries) | set(self._generations)
            if isinstance(k, tuple) and len(k) == 3 and k[0] == "roster" and k[2] in (month, None)
        ]
        for k in stale:
            self.drop(k)
        logger.debug("Roster cache invalidated", month=month, dropped=len(stale))
