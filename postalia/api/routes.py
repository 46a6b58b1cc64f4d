"""FastAPI routes for the Postalia gateway.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                          Method  Description
# ─────────────────────────────────────────────────────────────────────
# /v1/health                        GET     Liveness probe + server time
# /v1/providers                     GET     Every registered provider id
# /v1/postal/{country}/{code}       GET     Cached postal lookup via fallback chain
# /v1/search?country=XX&q=...       GET     Free-text search (never cached)
#
# Clients only ever see "found", "not found" or "internal error"; which
# provider failed along the way goes to the server logs, not the response.
#
# The PostalService is resolved from app.state (populated in main.py's
# lifespan) through Depends, so tests can swap in their own instance.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import time
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from postalia.api.schemas import (
    ErrorResponse,
    HealthResponse,
    PostalResponse,
    ProvidersResponse,
    SearchResponse,
)
from postalia.services.postal_service import PostalService
from postalia.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/v1")

_NOT_FOUND = "not found"
_INTERNAL_ERROR = "internal error"
_MISSING_PARAMS = "missing required parameters"


def _get_postal_service(request: Request) -> PostalService:
    """Return the postal service from application state."""
    return request.app.state.postal_service


PostalServiceDep = Annotated[PostalService, Depends(_get_postal_service)]


def _error(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check() -> HealthResponse:
    """Always 200 while the process is serving requests."""
    return HealthResponse(ok=True, ts=int(time.time() * 1000))


@router.get(
    "/providers",
    response_model=ProvidersResponse,
    summary="List registered providers",
)
async def list_providers(service: PostalServiceDep) -> ProvidersResponse:
    return ProvidersResponse(providers=service.list_providers())


# ---------------------------------------------------------------------------
# Lookup endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/postal/{country}/{code}",
    response_model=PostalResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Look up a postal code",
)
async def postal_lookup(
    country: str,
    code: str,
    service: PostalServiceDep,
) -> PostalResponse | JSONResponse:
    """Answer from cache, else walk the provider chain and cache a success."""
    country = country.upper()
    try:
        lookup = await service.lookup(country, code)
    except Exception as exc:
        _logger.error(
            "postal_lookup_failed",
            country=country,
            code=code,
            error=str(exc),
            exc_info=True,
        )
        return _error(500, _INTERNAL_ERROR, str(exc))

    if lookup is None:
        return _error(404, _NOT_FOUND)

    return PostalResponse(from_cache=lookup.from_cache, data=lookup.data)


@router.get(
    "/search",
    response_model=SearchResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Free-text search within a country",
)
async def search(
    service: PostalServiceDep,
    country: Annotated[str | None, Query()] = None,
    q: Annotated[str | None, Query()] = None,
) -> SearchResponse | JSONResponse:
    """Search the provider chain; an empty chain yields ``{"data": null}``."""
    if not country or not q:
        return _error(400, _MISSING_PARAMS)

    country = country.upper()
    try:
        result = await service.search(country, q)
    except Exception as exc:
        _logger.error(
            "search_failed",
            country=country,
            query=q,
            error=str(exc),
            exc_info=True,
        )
        return _error(500, _INTERNAL_ERROR, str(exc))

    return SearchResponse(data=result)
