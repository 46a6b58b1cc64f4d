"""GeoNames postal-code provider.

Implements IPostalProvider against the GeoNames web services
(``postalCodeLookupJSON`` for exact codes, ``postalCodeSearchJSON`` for
free-text place search).  GeoNames requires a registered username on every
call; without one the adapter raises :class:`ConfigurationError` instead
of silently returning nothing, so the misconfiguration shows up in logs.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from postalia.config.settings import Settings
from postalia.interfaces.postal_provider import IPostalProvider
from postalia.models.postal import NormalizedResult, PostalPlace
from postalia.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)

_PROVIDER_NAME = "geonames"
_LOOKUP_URL = "http://api.geonames.org/postalCodeLookupJSON"
_SEARCH_URL = "http://api.geonames.org/postalCodeSearchJSON"
_DEFAULT_TIMEOUT = 5.0


def _to_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class GeoNamesProvider(IPostalProvider):
    """Postal lookups backed by the GeoNames JSON web services.

    The username is read from settings on every call rather than at
    construction, so the provider can be registered even when it is not
    configured; it only fails when actually tried.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self._settings = settings
        self._client = http_client
        self._timeout = timeout

    # -- Private helpers -------------------------------------------------------

    def _require_username(self) -> str:
        username = self._settings.geonames_username
        if not username:
            raise ConfigurationError(
                message="GEONAMES_USERNAME is not configured",
                provider_name=_PROVIDER_NAME,
            )
        return username

    async def _get_json(self, url: str, params: dict[str, Any]) -> Any | None:
        """GET *url* and decode JSON; any transport or HTTP failure yields ``None``."""
        try:
            response = await self._client.get(url, params=params, timeout=self._timeout)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as exc:
            logger.warning("geonames_timeout", url=url, error=str(exc))
        except httpx.HTTPStatusError as exc:
            logger.warning("geonames_http_error", url=url, status=exc.response.status_code)
        except httpx.HTTPError as exc:
            logger.warning("geonames_request_failed", url=url, error=str(exc))
        except ValueError as exc:
            logger.warning("geonames_invalid_json", url=url, error=str(exc))
        return None

    @staticmethod
    def _first_entry(payload: Any, key: str) -> dict[str, Any] | None:
        if not isinstance(payload, dict):
            return None
        entries = payload.get(key)
        if not entries:
            status = payload.get("status")
            if isinstance(status, dict):
                # GeoNames reports auth/quota problems in a 200 body.
                logger.warning(
                    "geonames_service_status",
                    message=status.get("message"),
                    value=status.get("value"),
                )
            return None
        first = entries[0]
        return first if isinstance(first, dict) else None

    @staticmethod
    def _normalize(entry: dict[str, Any], country: str, fallback_code: str) -> NormalizedResult:
        place = PostalPlace(
            country=country,
            postal_code=entry.get("postalCode") or fallback_code or None,
            place_name=entry.get("placeName") or None,
            admin_name1=entry.get("adminName1") or None,
            lat=_to_float(entry.get("lat")),
            lng=_to_float(entry.get("lng")),
        )
        return NormalizedResult(
            provider=_PROVIDER_NAME,
            raw=entry,
            normalized=place.model_dump(by_alias=True),
        )

    # -- IPostalProvider implementation ----------------------------------------

    async def lookup(self, country: str, code: str) -> NormalizedResult | None:
        """Resolve *code* in *country* via ``postalCodeLookupJSON``."""
        username = self._require_username()
        payload = await self._get_json(
            _LOOKUP_URL,
            {"postalcode": code, "country": country, "username": username},
        )
        entry = self._first_entry(payload, "postalcodes")
        if entry is None:
            logger.info("geonames_no_data", country=country, code=code)
            return None
        return self._normalize(entry, country, code)

    async def search(self, country: str, query: str) -> NormalizedResult | None:
        """Search place names in *country* via ``postalCodeSearchJSON``."""
        username = self._require_username()
        payload = await self._get_json(
            _SEARCH_URL,
            {"placename": query, "country": country, "maxRows": 1, "username": username},
        )
        entry = self._first_entry(payload, "postalCodes")
        if entry is None:
            logger.info("geonames_search_no_data", country=country, query=query)
            return None
        return self._normalize(entry, country, "")

    def get_provider_name(self) -> str:
        return _PROVIDER_NAME

    def is_configured(self) -> bool:
        return bool(self._settings.geonames_username)
