"""URL-template postal provider.

A generic adapter for upstream APIs that only need a GET on a configurable
URL.  The template comes from settings (e.g. ``ZIPCODESTACK_TEMPLATE``) and
may contain three placeholders, each URL-encoded on substitution:

    {country}  →  the uppercase country code
    {code}     →  the postal code (or free-text query for searches)
    {API_KEY}  →  the provider's credential, "" when not configured

No template means the provider is disabled: calls return ``None`` without
touching the network.  There is no bespoke field mapping; the upstream JSON
is passed through as ``normalized = {"raw": payload}``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from postalia.config.settings import Settings
from postalia.interfaces.postal_provider import IPostalProvider
from postalia.models.postal import NormalizedResult

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 6.0


@dataclass(frozen=True)
class TemplateProviderConfig:
    """Which settings back one templated provider.

    Attributes
    ----------
    name:
        Provider identifier, e.g. ``"zipcodestack"``.
    template_env:
        Environment variable holding the URL template.
    api_key_env:
        Environment variable holding the credential; ``""`` when the
        upstream needs none.
    """

    name: str
    template_env: str
    api_key_env: str = ""


def render_template(template: str, country: str, code: str, api_key: str) -> str:
    """Substitute the URL-encoded placeholders into *template*."""
    return (
        template.replace("{country}", quote(country, safe=""))
        .replace("{code}", quote(code, safe=""))
        .replace("{API_KEY}", quote(api_key, safe=""))
    )


class TemplateProvider(IPostalProvider):
    """Pass-through adapter driven by a URL template from settings."""

    def __init__(
        self,
        config: TemplateProviderConfig,
        settings: Settings,
        http_client: httpx.AsyncClient,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self._config = config
        self._settings = settings
        self._client = http_client
        self._timeout = timeout

    @property
    def config(self) -> TemplateProviderConfig:
        return self._config

    async def _fetch(self, country: str, code: str) -> NormalizedResult | None:
        template = self._settings.get_setting(self._config.template_env)
        if not template:
            logger.debug("template_provider_disabled", provider=self._config.name)
            return None

        api_key = self._settings.get_setting(self._config.api_key_env)
        url = render_template(template, country, code, api_key)

        try:
            response = await self._client.get(url, timeout=self._timeout)
            response.raise_for_status()
            payload: Any = response.json()
        except httpx.TimeoutException as exc:
            logger.warning("template_provider_timeout", provider=self._config.name, error=str(exc))
            return None
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "template_provider_http_error",
                provider=self._config.name,
                status=exc.response.status_code,
            )
            return None
        except httpx.HTTPError as exc:
            logger.warning("template_provider_request_failed", provider=self._config.name, error=str(exc))
            return None
        except ValueError as exc:
            logger.warning("template_provider_invalid_json", provider=self._config.name, error=str(exc))
            return None

        if not payload:
            logger.info("template_provider_no_data", provider=self._config.name, country=country)
            return None

        return NormalizedResult(
            provider=self._config.name,
            raw=payload,
            normalized={"raw": payload},
        )

    # -- IPostalProvider implementation ----------------------------------------

    async def lookup(self, country: str, code: str) -> NormalizedResult | None:
        return await self._fetch(country, code)

    async def search(self, country: str, query: str) -> NormalizedResult | None:
        # Same call pattern; the query takes the place of the code.
        return await self._fetch(country, query)

    def get_provider_name(self) -> str:
        return self._config.name

    def is_configured(self) -> bool:
        return bool(self._settings.get_setting(self._config.template_env))
