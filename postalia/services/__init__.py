"""Postalia services: provider registry, fallback chain, and lookup service."""

from postalia.services.fallback_orchestrator import FallbackOrchestrator
from postalia.services.postal_service import PostalService, cache_key
from postalia.services.provider_registry import (
    ProviderDescriptor,
    ProviderRegistry,
    build_registry,
)

__all__ = [
    "FallbackOrchestrator",
    "PostalService",
    "ProviderDescriptor",
    "ProviderRegistry",
    "build_registry",
    "cache_key",
]
