"""In-memory cache provider using cachetools.TTLCache.

Every entry lives for the same fixed TTL, counted from insertion.  Expired
entries are dropped lazily on access by ``TTLCache`` itself and eagerly by
:meth:`MemoryCacheProvider.expire`, which the application lifespan calls
on a fixed period.  There is no capacity bound: entries are only ever
evicted by age.  A TTL of 0 means entries never expire and nothing needs
sweeping.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from typing import Any

import structlog
from cachetools import Cache, TTLCache

from postalia.interfaces.cache_provider import ICacheProvider

logger = structlog.get_logger(logger_name=__name__)


class MemoryCacheProvider(ICacheProvider):
    """In-memory TTL cache backed by ``cachetools.TTLCache``.

    Parameters
    ----------
    ttl:
        Time-to-live in seconds applied to every entry at insertion.
        ``0`` keeps entries until they are deleted.
    timer:
        Clock used for expiry; defaults to ``time.monotonic``.  Tests pass
        a fake clock to step past the TTL.
    """

    def __init__(
        self,
        ttl: int = 600,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl < 0:
            raise ValueError(f"Cache TTL must be >= 0, got {ttl}")
        self._ttl = ttl
        self._cache: Cache[str, Any]
        if ttl > 0:
            self._cache = TTLCache(maxsize=math.inf, ttl=ttl, timer=timer)
        else:
            self._cache = Cache(maxsize=math.inf)

    @property
    def ttl(self) -> int:
        return self._ttl

    @property
    def expires(self) -> bool:
        """``False`` when entries never expire (TTL of 0)."""
        return self._ttl > 0

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        """Retrieve the cached value for *key*, or ``None`` if missing/expired."""
        value = self._cache.get(key)
        if value is not None:
            logger.debug("cache_hit", key=key)
        else:
            logger.debug("cache_miss", key=key)
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store *value* under *key*.

        The per-item *ttl* argument is accepted for interface compatibility
        but ignored: every entry gets the TTL fixed at construction time.
        """
        self._cache[key] = value
        logger.debug("cache_set", key=key, ttl=self._ttl)

    async def delete(self, key: str) -> None:
        """Remove *key* from the cache (no-op if absent)."""
        self._cache.pop(key, None)
        logger.debug("cache_delete", key=key)

    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is present and not expired."""
        return key in self._cache

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def expire(self) -> int:
        """Drop every expired entry now and return how many were removed."""
        if not isinstance(self._cache, TTLCache):
            return 0
        # len() on a TTLCache already purges, so count what expire() hands back.
        removed = len(self._cache.expire())
        if removed:
            logger.debug("cache_sweep", removed=removed, remaining=len(self._cache))
        return removed

    def __len__(self) -> int:
        return len(self._cache)
