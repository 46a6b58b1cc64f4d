"""Integration tests for FastAPI API endpoints using TestClient."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from postalia.api.middleware import ErrorHandlingMiddleware, RateLimitMiddleware
from postalia.api.routes import router as api_router
from postalia.config.settings import Settings
from postalia.main import create_app
from postalia.providers.cache.memory_cache import MemoryCacheProvider
from postalia.services.fallback_orchestrator import FallbackOrchestrator
from postalia.services.postal_service import PostalService
from postalia.services.provider_registry import build_registry
from postalia.utils.errors import ConfigurationError
from tests.conftest import make_response, make_result, make_settings

_GEONAMES_BODY = {
    "postalcodes": [
        {
            "postalCode": "01310100",
            "countryCode": "BR",
            "placeName": "São Paulo",
            "adminName1": "São Paulo",
            "lat": -23.5617,
            "lng": -46.6544,
        }
    ]
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _build_service(settings: Settings, http_client: AsyncMock) -> PostalService:
    registry = build_registry(settings, http_client)
    return PostalService(
        settings=settings,
        registry=registry,
        orchestrator=FallbackOrchestrator(registry),
        cache=MemoryCacheProvider(ttl=settings.cache_ttl_seconds),
    )


def _create_test_app(service: PostalService | MagicMock) -> FastAPI:
    app = FastAPI()
    app.include_router(api_router)
    app.state.postal_service = service
    return app


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def geonames_settings() -> Settings:
    return make_settings(geonames_username="demo", providers_order="geonames")


@pytest.fixture
def client(geonames_settings: Settings, mock_http_client: AsyncMock) -> TestClient:
    return TestClient(_create_test_app(_build_service(geonames_settings, mock_http_client)))


# ======================================================================
# System endpoints
# ======================================================================


class TestSystemEndpoints:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert isinstance(body["ts"], int)
        assert body["ts"] > 1_600_000_000_000

    def test_providers(self, client: TestClient) -> None:
        response = client.get("/v1/providers")

        assert response.status_code == 200
        assert response.json() == {
            "providers": [
                "geonames",
                "postalcodesapp",
                "zipcodestack",
                "zipbase",
                "zipapi",
                "openplz",
            ]
        }


# ======================================================================
# Postal lookup
# ======================================================================


class TestPostalEndpoint:
    def test_lookup_then_cached(self, client: TestClient, mock_http_client: AsyncMock) -> None:
        mock_http_client.get.return_value = make_response(_GEONAMES_BODY)

        first = client.get("/v1/postal/br/01310100")
        second = client.get("/v1/postal/BR/01310100")

        assert first.status_code == 200
        assert second.status_code == 200
        assert first.json()["fromCache"] is False
        assert second.json()["fromCache"] is True
        assert first.json()["data"] == second.json()["data"]
        assert first.json()["data"]["provider"] == "geonames"
        assert first.json()["data"]["normalized"]["placeName"] == "São Paulo"
        assert first.json()["data"]["normalized"]["country"] == "BR"
        assert mock_http_client.get.await_count == 1

    def test_not_found(self, client: TestClient, mock_http_client: AsyncMock) -> None:
        mock_http_client.get.return_value = make_response({"postalcodes": []})

        response = client.get("/v1/postal/BR/00000000")

        assert response.status_code == 404
        assert response.json() == {"error": "not found"}

    def test_misconfigured_chain_is_not_found(self, mock_http_client: AsyncMock) -> None:
        settings = make_settings(geonames_username="", providers_order="geonames,openplz")
        client = TestClient(_create_test_app(_build_service(settings, mock_http_client)))

        response = client.get("/v1/postal/BR/01310100")

        assert response.status_code == 404
        assert response.json() == {"error": "not found"}
        mock_http_client.get.assert_not_awaited()

    def test_unknown_provider_in_order_is_ignored(self, mock_http_client: AsyncMock) -> None:
        mock_http_client.get.return_value = make_response(_GEONAMES_BODY)
        settings = make_settings(geonames_username="demo", providers_order="typo,geonames")
        client = TestClient(_create_test_app(_build_service(settings, mock_http_client)))

        response = client.get("/v1/postal/BR/01310100")

        assert response.status_code == 200
        assert response.json()["data"]["provider"] == "geonames"

    def test_template_provider_fallback(self, mock_http_client: AsyncMock) -> None:
        payload = [{"name": "Berlin", "postalCode": "10115"}]
        mock_http_client.get.return_value = make_response(payload)
        settings = make_settings(
            geonames_username="",
            providers_order="geonames,openplz",
            openplz_template="https://openplz.test/{country}/Localities?postalCode={code}",
        )
        client = TestClient(_create_test_app(_build_service(settings, mock_http_client)))

        response = client.get("/v1/postal/de/10115")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["provider"] == "openplz"
        assert data["raw"] == payload
        assert data["normalized"] == {"raw": payload}
        assert mock_http_client.get.call_args.args[0] == (
            "https://openplz.test/DE/Localities?postalCode=10115"
        )

    def test_service_failure_is_internal_error(self) -> None:
        service = MagicMock(spec=PostalService)
        service.lookup = AsyncMock(side_effect=RuntimeError("cache backend down"))
        client = TestClient(_create_test_app(service))

        response = client.get("/v1/postal/BR/01310100")

        assert response.status_code == 500
        assert response.json() == {"error": "internal error", "details": "cache backend down"}


# ======================================================================
# Search
# ======================================================================


class TestSearchEndpoint:
    @pytest.mark.parametrize(
        "query_string",
        ["/v1/search?q=Paulista", "/v1/search?country=BR", "/v1/search?country=&q=x", "/v1/search"],
    )
    def test_missing_parameters(self, client: TestClient, query_string: str) -> None:
        response = client.get(query_string)

        assert response.status_code == 400
        assert response.json() == {"error": "missing required parameters"}

    def test_search_success(self) -> None:
        service = MagicMock(spec=PostalService)
        service.search = AsyncMock(return_value=make_result())
        client = TestClient(_create_test_app(service))

        response = client.get("/v1/search", params={"country": "br", "q": "Avenida Paulista"})

        assert response.status_code == 200
        assert response.json()["data"]["provider"] == "geonames"
        service.search.assert_awaited_once_with("BR", "Avenida Paulista")

    def test_search_no_match_returns_null(self, client: TestClient, mock_http_client: AsyncMock) -> None:
        mock_http_client.get.return_value = make_response({"postalCodes": []})

        response = client.get("/v1/search", params={"country": "BR", "q": "Nowhere"})

        assert response.status_code == 200
        assert response.json() == {"data": None}

    def test_search_is_never_cached(self, client: TestClient, mock_http_client: AsyncMock) -> None:
        mock_http_client.get.return_value = make_response({"postalCodes": _GEONAMES_BODY["postalcodes"]})

        client.get("/v1/search", params={"country": "BR", "q": "Paulista"})
        client.get("/v1/search", params={"country": "BR", "q": "Paulista"})

        assert mock_http_client.get.await_count == 2

    def test_search_failure_is_internal_error(self) -> None:
        service = MagicMock(spec=PostalService)
        service.search = AsyncMock(side_effect=RuntimeError("boom"))
        client = TestClient(_create_test_app(service))

        response = client.get("/v1/search", params={"country": "BR", "q": "x"})

        assert response.status_code == 500
        assert response.json()["error"] == "internal error"


# ======================================================================
# Middleware
# ======================================================================


class TestMiddleware:
    def test_rate_limit(self, geonames_settings: Settings, mock_http_client: AsyncMock) -> None:
        app = _create_test_app(_build_service(geonames_settings, mock_http_client))
        app.add_middleware(RateLimitMiddleware, window_ms=60000, max_requests=2)
        client = TestClient(app)

        assert client.get("/v1/health").status_code == 200
        assert client.get("/v1/health").status_code == 200
        limited = client.get("/v1/health")

        assert limited.status_code == 429
        assert limited.json() == {"error": "too many requests"}
        assert int(limited.headers["Retry-After"]) >= 1

    def test_rate_limit_disabled(self, geonames_settings: Settings, mock_http_client: AsyncMock) -> None:
        app = _create_test_app(_build_service(geonames_settings, mock_http_client))
        app.add_middleware(RateLimitMiddleware, max_requests=0)
        client = TestClient(app)

        for _ in range(5):
            assert client.get("/v1/health").status_code == 200

    def test_error_handling_middleware(self) -> None:
        app = FastAPI()
        app.add_middleware(ErrorHandlingMiddleware)

        @app.get("/boom")
        async def boom() -> None:
            raise ConfigurationError("GEONAMES_USERNAME is not configured", provider_name="geonames")

        response = TestClient(app).get("/boom")

        assert response.status_code == 500
        assert response.json() == {
            "error": "internal error",
            "details": "GEONAMES_USERNAME is not configured",
        }


# ======================================================================
# Application factory
# ======================================================================


class TestCreateApp:
    def test_lifespan_wires_components(self) -> None:
        settings = make_settings(geonames_username="", providers_order="geonames")

        with TestClient(create_app(settings)) as client:
            assert client.get("/v1/health").status_code == 200
            assert len(client.get("/v1/providers").json()["providers"]) == 6
            assert client.get("/v1/postal/BR/01310100").status_code == 404
            assert isinstance(client.app.state.cache, MemoryCacheProvider)
