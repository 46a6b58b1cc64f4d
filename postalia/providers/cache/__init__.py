"""Cache providers.

In-memory TTL cache placed in front of the provider fallback chain, so a
postal code looked up repeatedly within the TTL is answered without any
upstream call.

MemoryCacheProvider is a dict-based cache: fast but not shared across
processes. For multi-worker deployments, swap in a Redis adapter implementing
ICacheProvider without changing any business logic.
"""

from postalia.providers.cache.memory_cache import MemoryCacheProvider

__all__ = ["MemoryCacheProvider"]
