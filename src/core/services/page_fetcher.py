"""Page Fetcher: una página lógica probando cada query id candidato.

Clasificación por candidato:
- 404: se anota y se prueba el siguiente (posible id rotado).
- otro no-2xx: fallo inmediato, no se prueban más candidatos.
- 2xx con `errors` y sin estructura de página: se anota y se sigue.
- 2xx con estructura de página (aunque traiga `errors`): éxito inmediato.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from core.domain.models import FetchOutcome, PageFailure, PageSuccess
from core.domain.operations import TimelineOperation
from core.interfaces.timeline import RawResponse, ResponseExtractor, SendPage
from core.services.candidates import CandidateResolver

logger = logging.getLogger(__name__)

ERROR_BODY_LIMIT = 200
COUNT_REJECTED_MARKER = 'Variable "$count"'
CURSOR_REJECTED_MARKER = 'Variable "$cursor"'

# (page_size, cursor, include_count) -> variables GraphQL
BuildVariables = Callable[[int, Optional[str], bool], dict[str, Any]]


def join_graphql_errors(errors: list[Any]) -> str:
    messages = []
    for err in errors:
        if isinstance(err, dict):
            messages.append(str(err.get("message", "")))
        else:
            messages.append(str(err))
    return ", ".join(messages)


class PageFetcher:
    """Fetch de una página para una colección (bookmarks, carpeta, likes).

    Solo las excepciones de `transport_errors` (p. ej. `httpx.HTTPError`) se
    anotan como error del candidato; cualquier otra se propaga.

    Con `count_optional=True` (variante de carpetas) se reintenta el set de
    candidatos sin el parámetro de tamaño si el servidor lo rechaza, y un
    rechazo del cursor se reporta como fallo permanente.
    """

    def __init__(
        self,
        *,
        operation: TimelineOperation,
        resolver: CandidateResolver,
        send: SendPage,
        build_variables: BuildVariables,
        extractor: ResponseExtractor,
        label: str,
        count_optional: bool = False,
        transport_errors: tuple[type[Exception], ...] = (),
    ) -> None:
        self.operation = operation
        self._resolver = resolver
        self._send = send
        self._build_variables = build_variables
        self._extractor = extractor
        self.label = label
        self.count_optional = count_optional
        self.transport_errors = transport_errors

    async def fetch_page(self, page_size: int, cursor: str | None = None) -> FetchOutcome:
        outcome = await self._try_candidates(self._build_variables(page_size, cursor, True), page_size, cursor)
        if not self.count_optional:
            return outcome

        if isinstance(outcome, PageFailure) and COUNT_REJECTED_MARKER in outcome.error:
            logger.debug("%s rejected the count variable; retrying without it", self.label)
            outcome = await self._try_candidates(self._build_variables(page_size, cursor, False), page_size, cursor)

        if isinstance(outcome, PageFailure) and cursor and CURSOR_REJECTED_MARKER in outcome.error:
            return PageFailure(error=f"{self.label.capitalize()} pagination rejected the cursor parameter")

        return outcome

    async def _try_candidates(
        self,
        variables: dict[str, Any],
        page_size: int,
        cursor: str | None,
    ) -> FetchOutcome:
        last_error: str | None = None
        had_404 = False

        for query_id in await self._resolver.identifiers_for(self.operation):
            logger.debug(
                "request %s page query_id=%s count=%s has_cursor=%s include_count=%s",
                self.label,
                query_id,
                page_size,
                cursor is not None,
                "count" in variables,
            )
            try:
                response = await self._send(query_id, variables)
            except self.transport_errors as exc:
                last_error = str(exc) or type(exc).__name__
                logger.debug("%s request error query_id=%s: %s", self.label, query_id, last_error)
                continue

            if response.status_code == 404:
                had_404 = True
                last_error = "HTTP 404"
                logger.debug("%s 404 query_id=%s", self.label, query_id)
                continue

            if not 200 <= response.status_code < 300:
                body = response.text[:ERROR_BODY_LIMIT]
                logger.debug("%s non-2xx query_id=%s status=%s", self.label, query_id, response.status_code)
                return PageFailure(error=f"HTTP {response.status_code}: {body}")

            outcome, error = self._parse(query_id, response)
            if outcome is not None:
                return outcome
            last_error = error

        if had_404:
            return PageFailure(error=last_error or "HTTP 404", was_not_found=True)
        return PageFailure(error=last_error or f"Unknown error fetching {self.label}")

    def _parse(self, query_id: str, response: RawResponse) -> tuple[PageSuccess | None, str | None]:
        try:
            payload = response.json()
        except ValueError as exc:
            return None, f"Invalid JSON from {self.label}: {exc}"
        if not isinstance(payload, dict):
            return None, f"Unexpected {self.label} payload"

        page = self._extractor.extract(payload)
        errors = payload.get("errors")
        if isinstance(errors, list) and errors:
            if not page.has_instructions:
                return None, join_graphql_errors(errors)
            logger.warning(
                "%s returned non-fatal GraphQL errors query_id=%s: %s",
                self.label,
                query_id,
                join_graphql_errors(errors),
            )

        logger.debug(
            "%s page parsed query_id=%s items=%d has_next_cursor=%s",
            self.label,
            query_id,
            len(page.items),
            page.next_cursor is not None,
        )
        return PageSuccess(items=page.items, next_cursor=page.next_cursor), None
