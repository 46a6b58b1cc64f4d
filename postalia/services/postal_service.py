"""Postal lookup service: cache policy in front of the fallback chain.

    lookup:  cache get ──hit──▶ return (from_cache=True)
                 │
                miss
                 ▼
             orchestrator.resolve ──None──▶ return None (never cached)
                 │
              result
                 ▼
             cache set ─▶ return (from_cache=False)

Searches skip the cache entirely.  The provider order is read from
settings on every call, so it always reflects the current configuration
object passed in at startup.
"""

from __future__ import annotations

from postalia.config.settings import Settings
from postalia.interfaces.cache_provider import ICacheProvider
from postalia.models.postal import LookupKind, NormalizedResult, PostalLookup
from postalia.services.fallback_orchestrator import FallbackOrchestrator
from postalia.services.provider_registry import ProviderRegistry
from postalia.utils.logging import get_logger

_KEY_SEPARATOR = ":"


def cache_key(kind: LookupKind, country: str, code: str) -> str:
    """Build the cache key for one lookup.

    The operation kind namespaces the key, so a postal lookup and a search
    with the same literal country and text never share an entry.  The
    country is uppercased; the code is kept verbatim.
    """
    return _KEY_SEPARATOR.join((kind.value, country.upper(), code))


class PostalService:
    """Composes the cache, the registry and the fallback orchestrator."""

    def __init__(
        self,
        settings: Settings,
        registry: ProviderRegistry,
        orchestrator: FallbackOrchestrator,
        cache: ICacheProvider,
    ) -> None:
        self._settings = settings
        self._registry = registry
        self._orchestrator = orchestrator
        self._cache = cache
        self._logger = get_logger(__name__)

    def list_providers(self) -> list[str]:
        """Return every registered provider identifier."""
        return list(self._registry.list())

    def provider_order(self) -> list[str]:
        return self._settings.get_provider_order()

    async def lookup(self, country: str, code: str) -> PostalLookup | None:
        """Resolve a postal code, answering from cache when possible.

        Returns ``None`` when no provider had data.  Cache failures are not
        swallowed; they propagate to the gateway as internal errors.
        """
        key = cache_key(LookupKind.POSTAL, country, code)
        cached = await self._cache.get(key)
        if cached is not None:
            return PostalLookup(data=cached, from_cache=True)

        result = await self._orchestrator.resolve(country, code, self.provider_order())
        if result is None:
            return None

        await self._cache.set(key, result)
        self._logger.debug("postal_cached", key=key, provider=result.provider)
        return PostalLookup(data=result, from_cache=False)

    async def search(self, country: str, query: str) -> NormalizedResult | None:
        """Free-text search through the provider chain (never cached)."""
        return await self._orchestrator.search(country, query, self.provider_order())
