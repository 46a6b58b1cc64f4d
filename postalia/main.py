"""Postalia FastAPI application entry point.

Wires together the provider registry, fallback orchestrator, cache and
routes via dependency injection.  Loads configuration from ``.env`` and
``config/config.yaml`` and configures structured logging.
"""

from __future__ import annotations

import asyncio
import contextlib
from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from postalia.api.middleware import (
    ErrorHandlingMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from postalia.api.routes import router as api_router
from postalia.config.loader import load_config
from postalia.config.settings import Settings
from postalia.providers.cache.memory_cache import MemoryCacheProvider
from postalia.services.fallback_orchestrator import FallbackOrchestrator
from postalia.services.postal_service import PostalService
from postalia.services.provider_registry import build_registry
from postalia.utils.logging import configure_logging, get_logger

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# DI assembly
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings, config: dict[str, Any]) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    http_client = httpx.AsyncClient(follow_redirects=True)

    providers_config = config["providers"]
    registry = build_registry(
        app_settings, http_client, timeouts=providers_config.get("timeouts", {})
    )
    orchestrator = FallbackOrchestrator(
        registry=registry,
        deadline_seconds=providers_config["deadline_seconds"],
    )
    cache = MemoryCacheProvider(ttl=config["cache"]["ttl_seconds"])
    postal_service = PostalService(
        settings=app_settings,
        registry=registry,
        orchestrator=orchestrator,
        cache=cache,
    )

    return {
        "http_client": http_client,
        "registry": registry,
        "orchestrator": orchestrator,
        "cache": cache,
        "postal_service": postal_service,
    }


async def _sweep_cache(cache: MemoryCacheProvider, interval: float) -> None:
    """Drop expired cache entries every *interval* seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        cache.expire()


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build and configure the FastAPI application.

    Parameters
    ----------
    app_settings:
        Settings to run with.  Uses module-level ``settings`` if not provided.
    """
    app_settings = app_settings or settings
    config = load_config(settings=app_settings)

    @asynccontextmanager
    async def _lifespan(application: FastAPI):  # noqa: ANN202
        """Initialise providers and services on startup, clean up on shutdown."""
        components = _build_all(app_settings, config)
        for key, value in components.items():
            setattr(application.state, key, value)

        sweep_interval = config["cache"]["check_period_seconds"]
        sweeper: asyncio.Task | None = None
        if components["cache"].expires and sweep_interval > 0:
            sweeper = asyncio.create_task(_sweep_cache(components["cache"], sweep_interval))
        application.state.cache_sweeper = sweeper

        registry = components["registry"]
        _logger.info(
            "app_startup",
            version=_VERSION,
            environment=app_settings.app_env,
            providers=list(registry.list()),
            configured=[
                pid for pid in registry.list() if registry.resolve(pid).adapter.is_configured()
            ],
            order=app_settings.get_provider_order(),
            cache_ttl=config["cache"]["ttl_seconds"],
            cache_sweep_seconds=sweep_interval,
        )

        yield

        if sweeper is not None:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper

        http_client: httpx.AsyncClient = components["http_client"]
        await http_client.aclose()
        _logger.info("app_shutdown", message="HTTP client closed")

    application = FastAPI(
        title="Postalia API",
        version=_VERSION,
        description=(
            "Postal-code lookup aggregator: queries configurable third-party "
            "providers in fallback order and caches successful lookups."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(
        RateLimitMiddleware,
        window_ms=config["rate_limit"]["window_ms"],
        max_requests=config["rate_limit"]["max"],
    )
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=config.get("api", {}).get("cors_origins"))

    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def run() -> None:
    """Serve the gateway with uvicorn on ``APP_HOST``:``PORT``."""
    uvicorn.run(
        "postalia.main:app",
        host=settings.app_host,
        port=settings.port,
        reload=(settings.app_env == "development"),
    )


if __name__ == "__main__":
    run()
