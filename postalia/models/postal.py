"""Postal lookup models for the Postalia aggregator.

Defines the normalized shape every provider adapter produces, plus the
small records the fallback orchestrator uses to describe what happened
while walking the provider chain.

    1. An adapter answers a lookup          → NormalizedResult
       (structured adapters fill a PostalPlace into ``normalized``)
    2. The orchestrator tries each provider → ProviderAttempt per step
    3. The whole chain finishes             → FallbackOutcome
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class LookupKind(str, Enum):
    """Operation kind; also namespaces cache keys."""

    POSTAL = "postal"
    SEARCH = "search"


class AttemptStatus(str, Enum):
    """Outcome of a single provider step in the fallback chain."""

    SUCCESS = "success"
    ABSENT = "absent"
    CONFIG_ERROR = "config_error"
    ERROR = "error"
    SKIPPED = "skipped"
    TIMEOUT = "timeout"


# ---------------------------------------------------------------------------
# PostalPlace: structured semantic fields for adapters with a bespoke mapping.
# ---------------------------------------------------------------------------
class PostalPlace(BaseModel):
    """Semantic address attributes extracted from an upstream payload.

    Serialized with camelCase aliases (``postalCode``, ``placeName``,
    ``adminName1``) to keep the public JSON stable.  Any attribute the
    provider did not return is ``None``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    country: str | None = None
    postal_code: str | None = Field(default=None, alias="postalCode")
    place_name: str | None = Field(default=None, alias="placeName")
    # First-level administrative region (state / province / Bundesland).
    admin_name1: str | None = Field(default=None, alias="adminName1")
    lat: float | None = None
    lng: float | None = None


class NormalizedResult(BaseModel):
    """The uniform result returned regardless of which provider answered.

    ``raw`` is the opaque upstream payload.  ``normalized`` is either a
    dumped :class:`PostalPlace` or, for template providers without a
    bespoke mapping, the pass-through form ``{"raw": <payload>}``.
    """

    model_config = ConfigDict(frozen=True)

    provider: str
    raw: Any = None
    normalized: dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class ProviderAttempt:
    """Record of one step in the fallback chain.

    Attributes
    ----------
    provider:
        The identifier taken from the configured order.
    status:
        What happened at this step.
    error:
        Error message for ``config_error`` / ``error`` / ``timeout`` steps.
    duration_ms:
        Wall time spent on the adapter call (0 for skipped steps).
    """

    provider: str
    status: AttemptStatus
    error: str | None = None
    duration_ms: float = 0.0


@dataclass(frozen=True)
class FallbackOutcome:
    """Final result of a fallback chain plus the per-provider trail."""

    result: NormalizedResult | None
    attempts: tuple[ProviderAttempt, ...] = ()

    @property
    def found(self) -> bool:
        return self.result is not None

    def summary(self) -> list[str]:
        """Return ``provider=status`` strings for structured logging."""
        return [f"{a.provider}={a.status.value}" for a in self.attempts]


@dataclass(frozen=True)
class PostalLookup:
    """A successful postal lookup as seen by the HTTP gateway."""

    data: NormalizedResult
    from_cache: bool
