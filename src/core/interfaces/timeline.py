"""Contratos de los colaboradores externos del motor de paginación.

El Core solo depende de estas abstracciones; los adaptadores (httpx, scraping
de x.com, parsing de payloads GraphQL) las implementan.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Mapping, Protocol, runtime_checkable

from core.domain.models import TimelinePage


class QueryIdDiscoveryError(RuntimeError):
    """No se pudo (re)obtener el query id primario de una operación."""


@runtime_checkable
class QueryIdDiscovery(Protocol):
    async def resolve(self, operation: str) -> str:
        """Devuelve el query id vigente para `operation` o lanza `QueryIdDiscoveryError`."""

        ...


@runtime_checkable
class ResponseExtractor(Protocol):
    """Convierte un payload GraphQL en ítems + token de continuación.

    Debe tolerar árboles de instrucciones ausentes o parciales devolviendo
    una lista vacía (con `has_instructions=False`), nunca fallando.
    """

    def extract(self, payload: Mapping[str, Any]) -> TimelinePage:
        ...


@runtime_checkable
class HeaderProvider(Protocol):
    def headers(self) -> dict[str, str]:
        """Headers suficientes para autenticar un request (opacos para el motor)."""

        ...


class RawResponse(Protocol):
    """Subconjunto de `httpx.Response` que consume el Page Fetcher."""

    @property
    def status_code(self) -> int: ...

    @property
    def text(self) -> str: ...

    def json(self) -> Any: ...


# (query_id, variables) -> respuesta ya pasada por el retry wrapper.
SendPage = Callable[[str, dict[str, Any]], Awaitable[RawResponse]]
