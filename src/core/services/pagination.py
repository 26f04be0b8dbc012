"""Pagination Driver y refresco de query ids.

`collect` pide páginas de forma estrictamente secuencial (el cursor es una
dependencia entre páginas), deduplica por identidad y decide cuándo parar.
`fetch_with_refresh` envuelve un fetch de un solo intento con, como mucho,
un ciclo de refresco de query ids por página.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from core.domain.models import (
    CollectionResult,
    FetchOutcome,
    PageBudget,
    PageFailure,
    PageSuccess,
    TimelineItem,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20

# (page_size, cursor) -> outcome
FetchPage = Callable[[int, Optional[str]], Awaitable[FetchOutcome]]


async def fetch_with_refresh(
    fetch_once: FetchPage,
    refresh: Callable[[], None],
    page_size: int,
    cursor: str | None = None,
) -> FetchOutcome:
    """Ejecuta `fetch_once`; si todos los candidatos dieron 404, refresca y reintenta una vez."""

    first = await fetch_once(page_size, cursor)
    if isinstance(first, PageSuccess):
        return first
    if not first.was_not_found:
        return first

    logger.debug("all query ids returned 404; refreshing and retrying once")
    refresh()
    second = await fetch_once(page_size, cursor)
    if isinstance(second, PageSuccess):
        return second
    return PageFailure(error=second.error)


def with_refresh(fetch_once: FetchPage, refresh: Callable[[], None]) -> FetchPage:
    async def fetch(page_size: int, cursor: str | None = None) -> FetchOutcome:
        return await fetch_with_refresh(fetch_once, refresh, page_size, cursor)

    return fetch


async def collect(
    fetch: FetchPage,
    budget: PageBudget,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> CollectionResult:
    """Recolecta ítems según `budget`.

    Termina con éxito (posiblemente parcial) cuando no hay cursor, el cursor
    no avanza, la página vino vacía o se alcanzó `max_pages`. Un fallo de
    página descarta todo lo acumulado y se devuelve como error.
    """

    seen: set[str] = set()
    items: list[TimelineItem] = []
    cursor: str | None = None
    pages_fetched = 0
    limit = budget.limit

    while limit is None or len(items) < limit:
        requested = page_size if limit is None else min(page_size, limit - len(items))
        page = await fetch(requested, cursor)
        if isinstance(page, PageFailure):
            return CollectionResult.failed(page.error)
        pages_fetched += 1

        for item in page.items:
            if item.id in seen:
                continue
            seen.add(item.id)
            items.append(item)
            if limit is not None and len(items) >= limit:
                break

        if not page.next_cursor or page.next_cursor == cursor or not page.items:
            break
        if budget.max_pages is not None and pages_fetched >= budget.max_pages:
            logger.debug("stopping after %d pages (max_pages)", pages_fetched)
            break
        cursor = page.next_cursor

    return CollectionResult.ok(items)
