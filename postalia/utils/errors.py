"""Custom exception hierarchy for Postalia.

All application exceptions inherit from :class:`PostaliaError`, which
carries an optional ``provider_name`` so error handlers can identify which
upstream service (e.g. "geonames", "zipcodestack") caused the failure.

    PostaliaError  (base -- catch-all for any Postalia error)
    +-- ConfigurationError (missing credential / URL template)

An upstream that simply has no data is *not* an error: adapters return
``None`` and the fallback chain moves on to the next provider.
"""


class PostaliaError(Exception):
    """Base exception for all Postalia errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which provider triggered the error.  The
    ``__str__`` method prefixes the provider name in brackets for log
    output, e.g. ``[geonames] GEONAMES_USERNAME is not configured``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


class ConfigurationError(PostaliaError):
    """Raised when a provider is missing a required credential or setting.

    Fatal for the adapter that raises it; the fallback orchestrator logs it
    and continues with the next provider in the configured order.
    """

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
