"""Postalia domain models: re-exports all public model classes."""

from __future__ import annotations

from postalia.models.postal import (
    AttemptStatus,
    FallbackOutcome,
    LookupKind,
    NormalizedResult,
    PostalLookup,
    PostalPlace,
    ProviderAttempt,
)

__all__ = [
    "AttemptStatus",
    "FallbackOutcome",
    "LookupKind",
    "NormalizedResult",
    "PostalLookup",
    "PostalPlace",
    "ProviderAttempt",
]
