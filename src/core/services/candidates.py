"""Candidate Resolver: query ids alternativos por operación lógica."""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

from core.domain.operations import FALLBACK_QUERY_IDS, TimelineOperation
from core.interfaces.timeline import QueryIdDiscovery, QueryIdDiscoveryError

logger = logging.getLogger(__name__)


class CandidateResolver:
    """Lista ordenada y sin duplicados de query ids a probar.

    El primero es el primario (resuelto vía discovery y cacheado en la
    instancia); le siguen los fallbacks estáticos. `force_refresh()` invalida
    el caché para que la próxima llamada vuelva a resolver; nunca toca los
    fallbacks.
    """

    def __init__(
        self,
        discovery: QueryIdDiscovery,
        fallbacks: Mapping[TimelineOperation, Sequence[str]] | None = None,
    ) -> None:
        self._discovery = discovery
        self._fallbacks = dict(FALLBACK_QUERY_IDS if fallbacks is None else fallbacks)
        self._primary: dict[TimelineOperation, str] = {}
        self.refresh_count = 0

    async def identifiers_for(self, operation: TimelineOperation) -> list[str]:
        candidates: list[str] = []
        primary = await self._primary_for(operation)
        if primary:
            candidates.append(primary)
        for query_id in self._fallbacks.get(operation, ()):
            if query_id not in candidates:
                candidates.append(query_id)
        return candidates

    def force_refresh(self) -> None:
        self._primary.clear()
        self.refresh_count += 1
        logger.debug("query id cache invalidated (refresh #%d)", self.refresh_count)

    async def _primary_for(self, operation: TimelineOperation) -> str | None:
        cached = self._primary.get(operation)
        if cached:
            return cached
        try:
            resolved = await self._discovery.resolve(operation.value)
        except QueryIdDiscoveryError as exc:
            logger.warning("query id discovery failed for %s: %s", operation.value, exc)
            return None
        if not resolved:
            return None
        self._primary[operation] = resolved
        return resolved
