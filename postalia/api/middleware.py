"""API middleware: CORS, request logging, rate limiting, and error handling.

# ─── MIDDLEWARE EXECUTION ORDER ───────────────────────────────────────
#
# Starlette middleware is a stack (LIFO: last added, first executed):
#
#   In main.py:
#     app.add_middleware(ErrorHandlingMiddleware)    # innermost
#     app.add_middleware(RateLimitMiddleware, ...)
#     app.add_middleware(RequestLoggingMiddleware)   # outermost
#
#   Request flow:
#     Client → RequestLogging → RateLimit → ErrorHandling → route handler
#
# RequestLoggingMiddleware therefore also logs the 429s produced by the
# rate limiter and the sanitized 500s produced by ErrorHandling.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable

import structlog
from cachetools import TTLCache
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from postalia.api.schemas import ErrorResponse
from postalia.utils.errors import PostaliaError
from postalia.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# Upper bound on distinct clients tracked in one window.
_MAX_TRACKED_CLIENTS = 100_000


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    Parameters
    ----------
    app:
        The FastAPI application instance.
    allowed_origins:
        Explicit list of allowed origins.  Defaults to ``["*"]``.
    """
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Rate Limiting
# ---------------------------------------------------------------------------


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window request limit per client address.

    Each client gets *max_requests* per window of *window_ms*.  The window
    opens on the client's first request and its counter disappears with the
    window, via a ``TTLCache`` whose TTL equals the window length.  A
    *max_requests* of 0 or less disables limiting.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        window_ms: int = 60000,
        max_requests: int = 200,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(app)
        self._window = max(window_ms, 1) / 1000.0
        self._max_requests = max_requests
        self._timer = timer
        # value: [request_count, window_start]; mutated in place so the
        # entry keeps the expiry set when the window opened.
        self._windows: TTLCache[str, list[float]] = TTLCache(
            maxsize=_MAX_TRACKED_CLIENTS, ttl=self._window, timer=timer
        )

    @staticmethod
    def _client_key(request: Request) -> str:
        return request.client.host if request.client else "anonymous"

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if self._max_requests <= 0:
            return await call_next(request)

        key = self._client_key(request)
        window = self._windows.get(key)
        if window is None:
            window = [0, self._timer()]
            self._windows[key] = window
        window[0] += 1

        if window[0] > self._max_requests:
            retry_after = max(1, math.ceil(self._window - (self._timer() - window[1])))
            _logger.warning(
                "rate_limit_exceeded",
                client=key,
                path=str(request.url.path),
                limit=self._max_requests,
            )
            return JSONResponse(
                status_code=429,
                content=ErrorResponse(error="too many requests").model_dump(exclude_none=True),
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Catch ``PostaliaError`` subclasses escaping a route and return JSON.

    Routes handle their own expected failures; this is the net for anything
    that slips past them.  Which provider failed is logged server-side only
    and never sent to the client.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except PostaliaError as exc:
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
            )
            body = ErrorResponse(error="internal error", details=exc.message)
            return JSONResponse(
                status_code=500,
                content=body.model_dump(),
            )
