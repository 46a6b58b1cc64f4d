"""Provider fallback orchestration.

Walks an ordered list of provider identifiers and returns the first
non-empty result.  This is a plain Chain of Responsibility:

    1. Order is authoritative priority; there is no scoring and no merging.
    2. The first provider that returns data wins and the chain stops.
    3. Unknown identifiers are skipped (a typo in PROVIDERS_ORDER must not
       break every request).
    4. A provider that raises (missing credential, unexpected bug) is
       logged and skipped; it never aborts the chain.

Both postal lookups and free-text searches go through the same loop, so a
misconfigured provider is equally visible in the logs for either path.
Each step is recorded as a :class:`ProviderAttempt`; the caller receives a
:class:`FallbackOutcome` and can log or inspect the full trail.

An optional overall deadline bounds the whole chain.  Each adapter call is
awaited with whatever budget is left; when it runs out the in-flight call
is cancelled and the chain reports "absent".
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence

from postalia.models.postal import (
    AttemptStatus,
    FallbackOutcome,
    LookupKind,
    NormalizedResult,
    ProviderAttempt,
)
from postalia.services.provider_registry import ProviderRegistry
from postalia.utils.errors import ConfigurationError
from postalia.utils.logging import get_logger


class FallbackOrchestrator:
    """Sequential, short-circuiting provider chain.

    Parameters
    ----------
    registry:
        The provider catalog used to resolve identifiers.
    deadline_seconds:
        Overall time budget for one chain.  ``None`` or ``0`` disables it;
        each adapter is then bounded only by its own HTTP timeout.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        deadline_seconds: float | None = None,
    ) -> None:
        self._registry = registry
        self._deadline = deadline_seconds or None
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def resolve(
        self, country: str, code: str, order: Sequence[str]
    ) -> NormalizedResult | None:
        """Postal lookup through the chain; ``None`` when every provider came up empty."""
        outcome = await self.run(LookupKind.POSTAL, country, code, order)
        return outcome.result

    async def search(
        self, country: str, query: str, order: Sequence[str]
    ) -> NormalizedResult | None:
        """Free-text search through the chain; ``None`` when nothing matched."""
        outcome = await self.run(LookupKind.SEARCH, country, query, order)
        return outcome.result

    async def run(
        self,
        kind: LookupKind,
        country: str,
        code: str,
        order: Sequence[str],
    ) -> FallbackOutcome:
        """Walk *order* left to right and return the first success.

        Parameters
        ----------
        kind:
            Whether to call each adapter's ``lookup`` or ``search``.
        country:
            Uppercase country code.
        code:
            Postal code or free-text query, passed through verbatim.
        order:
            Provider identifiers in priority order.  Duplicates are tried
            again; unknown identifiers are skipped.

        Returns
        -------
        FallbackOutcome
            ``result`` is ``None`` if the chain was exhausted.
        """
        loop = asyncio.get_running_loop()
        started = loop.time()
        attempts: list[ProviderAttempt] = []
        result: NormalizedResult | None = None

        for identifier in order:
            descriptor = self._registry.resolve(identifier)
            if descriptor is None:
                self._logger.debug("provider_unknown", provider=identifier)
                attempts.append(ProviderAttempt(identifier, AttemptStatus.SKIPPED))
                continue

            remaining: float | None = None
            if self._deadline is not None:
                remaining = self._deadline - (loop.time() - started)
                if remaining <= 0:
                    attempts.append(
                        ProviderAttempt(identifier, AttemptStatus.TIMEOUT, "chain deadline exceeded")
                    )
                    break

            adapter = descriptor.adapter
            if kind is LookupKind.SEARCH:
                call = adapter.search(country, code)
            else:
                call = adapter.lookup(country, code)

            step_start = time.perf_counter()
            try:
                result = await asyncio.wait_for(call, timeout=remaining)
            except asyncio.TimeoutError:
                attempts.append(
                    ProviderAttempt(
                        identifier,
                        AttemptStatus.TIMEOUT,
                        "chain deadline exceeded",
                        _elapsed_ms(step_start),
                    )
                )
                self._logger.warning(
                    "fallback_deadline_exceeded",
                    provider=identifier,
                    deadline_seconds=self._deadline,
                )
                result = None
                break
            except ConfigurationError as exc:
                attempts.append(
                    ProviderAttempt(
                        identifier, AttemptStatus.CONFIG_ERROR, exc.message, _elapsed_ms(step_start)
                    )
                )
                self._logger.warning(
                    "provider_misconfigured",
                    provider=identifier,
                    kind=kind.value,
                    error=exc.message,
                )
                continue
            except Exception as exc:
                attempts.append(
                    ProviderAttempt(identifier, AttemptStatus.ERROR, str(exc), _elapsed_ms(step_start))
                )
                self._logger.error(
                    "provider_failed",
                    provider=identifier,
                    kind=kind.value,
                    error=str(exc),
                    exc_info=True,
                )
                continue

            if result is not None:
                attempts.append(
                    ProviderAttempt(identifier, AttemptStatus.SUCCESS, duration_ms=_elapsed_ms(step_start))
                )
                break

            attempts.append(
                ProviderAttempt(identifier, AttemptStatus.ABSENT, duration_ms=_elapsed_ms(step_start))
            )

        outcome = FallbackOutcome(result=result, attempts=tuple(attempts))
        self._logger.info(
            "fallback_chain_complete" if outcome.found else "fallback_chain_exhausted",
            kind=kind.value,
            country=country,
            provider=result.provider if result is not None else None,
            attempts=outcome.summary(),
        )
        return outcome


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)
