"""Pydantic response schemas for the Postalia API.

Field names follow the public JSON contract (``fromCache``, ``ts``), which
is camelCase; Python attributes stay snake_case via aliases.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from postalia.models.postal import NormalizedResult


class HealthResponse(BaseModel):
    """Liveness probe response."""

    ok: bool = True
    ts: int = Field(description="Server time in epoch milliseconds")


class ProvidersResponse(BaseModel):
    """Every provider identifier known to the registry."""

    providers: list[str]


class PostalResponse(BaseModel):
    """A found postal code, flagged with whether it came from the cache."""

    model_config = ConfigDict(populate_by_name=True)

    from_cache: bool = Field(alias="fromCache")
    data: NormalizedResult


class SearchResponse(BaseModel):
    """Free-text search result; ``data`` is ``null`` when nothing matched."""

    data: NormalizedResult | None = None


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    details: str | None = None
