"""Abstract base class for postal-code provider adapters.

Defines the contract for querying a third-party postal / geocoding API
(GeoNames, zipcodestack, OpenPLZ, ...).  Each adapter translates a
(country, code) request into exactly one upstream call and the response
back into a :class:`NormalizedResult`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from postalia.models.postal import NormalizedResult


class IPostalProvider(ABC):
    """Contract for postal-code lookup providers.

    Adapters never raise for an upstream that has nothing to say:
    transport errors, timeouts, non-2xx responses and empty payloads all
    come back as ``None`` so the fallback chain can move on.  Only missing
    configuration is raised, as :class:`ConfigurationError`.
    """

    @abstractmethod
    async def lookup(self, country: str, code: str) -> NormalizedResult | None:
        """Look up a postal code.

        Parameters
        ----------
        country:
            ISO 3166-1 alpha-2 country code, uppercase (e.g. ``"BR"``).
        code:
            The postal code, passed to the upstream verbatim.

        Returns
        -------
        NormalizedResult or None
            The normalized result, or ``None`` when the provider has no data.

        Raises
        ------
        postalia.utils.errors.ConfigurationError
            If a credential the provider requires is not configured.
        """

    @abstractmethod
    async def search(self, country: str, query: str) -> NormalizedResult | None:
        """Free-text search within *country*.

        Same return and error contract as :meth:`lookup`.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the identifier this provider is registered under."""

    @abstractmethod
    def is_configured(self) -> bool:
        """Return ``True`` if the provider's configuration is present."""
