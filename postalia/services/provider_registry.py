"""Static catalog of postal providers.

The registry maps provider identifiers to adapter instances and the
settings each one depends on.  It is built once at startup and never
mutated afterwards; which providers actually get *tried*, and in what
order, is decided per request from ``PROVIDERS_ORDER``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import httpx

from postalia.config.settings import Settings
from postalia.interfaces.postal_provider import IPostalProvider
from postalia.providers.postal.geonames_provider import GeoNamesProvider
from postalia.providers.postal.template_provider import (
    TemplateProvider,
    TemplateProviderConfig,
)

# Catalog order is the order reported by /v1/providers.
TEMPLATE_PROVIDERS: tuple[TemplateProviderConfig, ...] = (
    TemplateProviderConfig("postalcodesapp", "POSTALCODESAPP_TEMPLATE", "POSTALCODESAPP_KEY"),
    TemplateProviderConfig("zipcodestack", "ZIPCODESTACK_TEMPLATE", "ZIPCODESTACK_KEY"),
    TemplateProviderConfig("zipbase", "ZIPBASE_TEMPLATE", "ZIPBASE_KEY"),
    TemplateProviderConfig("zipapi", "ZIPAPI_TEMPLATE", "ZIPAPI_KEY"),
    TemplateProviderConfig("openplz", "OPENPLZ_TEMPLATE"),
)


@dataclass(frozen=True)
class ProviderDescriptor:
    """One catalog entry.

    Attributes
    ----------
    identifier:
        Name used in ``PROVIDERS_ORDER`` and in results.
    adapter:
        The adapter that performs the upstream call.
    required_settings:
        Environment variables the adapter needs to do anything useful.
    """

    identifier: str
    adapter: IPostalProvider
    required_settings: tuple[str, ...] = ()


class ProviderRegistry:
    """Read-only, ordered mapping of identifier → :class:`ProviderDescriptor`."""

    def __init__(self, descriptors: Iterable[ProviderDescriptor]) -> None:
        self._descriptors: dict[str, ProviderDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.identifier in self._descriptors:
                raise ValueError(f"Duplicate provider identifier: {descriptor.identifier}")
            self._descriptors[descriptor.identifier] = descriptor

    def list(self) -> tuple[str, ...]:
        """Return every registered identifier in catalog order."""
        return tuple(self._descriptors)

    def resolve(self, identifier: str) -> ProviderDescriptor | None:
        """Return the descriptor for *identifier*, or ``None`` if unknown."""
        return self._descriptors.get(identifier)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)


def build_registry(
    settings: Settings,
    http_client: httpx.AsyncClient,
    timeouts: dict[str, float] | None = None,
) -> ProviderRegistry:
    """Construct the built-in provider catalog.

    Parameters
    ----------
    settings:
        Application settings holding credentials and URL templates.
    http_client:
        Shared async HTTP client used by every adapter.
    timeouts:
        Optional per-adapter timeouts in seconds, keyed ``"geonames"`` and
        ``"template"`` (see ``config/config.yaml``).
    """
    timeouts = timeouts or {}
    descriptors: list[ProviderDescriptor] = [
        ProviderDescriptor(
            identifier="geonames",
            adapter=GeoNamesProvider(
                settings=settings,
                http_client=http_client,
                timeout=timeouts.get("geonames", 5.0),
            ),
            required_settings=("GEONAMES_USERNAME",),
        )
    ]
    for config in TEMPLATE_PROVIDERS:
        descriptors.append(
            ProviderDescriptor(
                identifier=config.name,
                adapter=TemplateProvider(
                    config=config,
                    settings=settings,
                    http_client=http_client,
                    timeout=timeouts.get("template", 6.0),
                ),
                required_settings=(config.template_env,),
            )
        )
    return ProviderRegistry(descriptors)
