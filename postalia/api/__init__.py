"""Postalia API layer: routes, schemas, and middleware."""

from postalia.api.middleware import (
    ErrorHandlingMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from postalia.api.routes import router
from postalia.api.schemas import (
    ErrorResponse,
    HealthResponse,
    PostalResponse,
    ProvidersResponse,
    SearchResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RateLimitMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "ErrorResponse",
    "HealthResponse",
    "PostalResponse",
    "ProvidersResponse",
    "SearchResponse",
]
