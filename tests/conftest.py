"""Shared pytest fixtures for the Postalia test suite."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from postalia.config.settings import Settings
from postalia.interfaces.postal_provider import IPostalProvider
from postalia.models.postal import NormalizedResult, PostalPlace
from postalia.services.provider_registry import ProviderDescriptor, ProviderRegistry


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_settings(**overrides: Any) -> Settings:
    """Build Settings that ignore any local .env file."""
    return Settings(_env_file=None, **overrides)


def make_result(provider: str = "geonames", **fields: Any) -> NormalizedResult:
    place = PostalPlace(country="BR", postal_code="01310100", place_name="São Paulo", **fields)
    return NormalizedResult(
        provider=provider,
        raw={"postalCode": "01310100", "placeName": "São Paulo"},
        normalized=place.model_dump(by_alias=True),
    )


def make_response(payload: Any = None, status_code: int = 200, json_error: bool = False) -> MagicMock:
    """A stand-in for ``httpx.Response`` as returned by ``AsyncClient.get``."""
    response = MagicMock()
    response.status_code = status_code
    if json_error:
        response.json = MagicMock(side_effect=ValueError("Expecting value"))
    else:
        response.json = MagicMock(return_value=payload)
    if status_code >= 400:
        response.raise_for_status = MagicMock(
            side_effect=httpx.HTTPStatusError(
                f"HTTP {status_code}",
                request=MagicMock(),
                response=MagicMock(status_code=status_code),
            )
        )
    else:
        response.raise_for_status = MagicMock()
    return response


class StubProvider(IPostalProvider):
    """Scriptable provider that records every call."""

    def __init__(
        self,
        name: str,
        result: NormalizedResult | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self._name = name
        self._result = result
        self._error = error
        self._delay = delay
        self.calls: list[tuple[str, str, str]] = []

    async def _answer(self, op: str, country: str, code: str) -> NormalizedResult | None:
        self.calls.append((op, country, code))
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return self._result

    async def lookup(self, country: str, code: str) -> NormalizedResult | None:
        return await self._answer("lookup", country, code)

    async def search(self, country: str, query: str) -> NormalizedResult | None:
        return await self._answer("search", country, query)

    def get_provider_name(self) -> str:
        return self._name

    def is_configured(self) -> bool:
        return self._error is None


def make_registry(*providers: StubProvider) -> ProviderRegistry:
    return ProviderRegistry(
        ProviderDescriptor(identifier=p.get_provider_name(), adapter=p) for p in providers
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def mock_http_client() -> AsyncMock:
    """Mock ``httpx.AsyncClient``; set ``.get.return_value`` per test."""
    client = AsyncMock(spec=httpx.AsyncClient)
    client.get = AsyncMock(return_value=make_response({}))
    return client


@pytest.fixture
def sample_result() -> NormalizedResult:
    return make_result()


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
