"""Wrapper de httpx.

Responsabilidad:
- Estandariza timeouts y headers (`build_async_client`).
- Reintenta en el sitio un request ante estados transitorios
  (`TransientRetrier`). No sabe nada de query ids ni de paginación.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Iterable

import httpx

from core.config import AppSettings

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def build_async_client(
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    `transport` permite inyectar un `httpx.MockTransport` en tests.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "*/*",
    }
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


def parse_retry_after_ms(value: str | None) -> int | None:
    """`Retry-After` en segundos enteros -> milisegundos.

    Las fechas HTTP no se soportan y devuelven None (se usa backoff).
    """

    if value is None:
        return None
    value = value.strip()
    if not (value.isascii() and value.isdigit()):
        return None
    return int(value) * 1000


def compute_backoff_ms(
    attempt: int,
    base_ms: int,
    retry_after_ms: int | None = None,
    rng: random.Random | None = None,
) -> float:
    if retry_after_ms is not None:
        return float(retry_after_ms)
    jitter = (rng or random).random() * base_ms
    return base_ms * (2**attempt) + jitter


class TransientRetrier:
    """Ejecuta un request con reintentos acotados ante 429/5xx.

    `max_retries=2` significa 3 intentos en total. El último intento (y
    cualquier estado no recuperable) se devuelve tal cual.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        max_retries: int = 2,
        base_delay_ms: int = 500,
        retryable: Iterable[int] = RETRYABLE_STATUS_CODES,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self._client = client
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.retryable = frozenset(retryable)
        self._sleep = sleep
        self._rng = rng

    @classmethod
    def from_settings(cls, client: httpx.AsyncClient, settings: AppSettings, **kwargs: Any) -> "TransientRetrier":
        return cls(
            client,
            max_retries=settings.max_retries,
            base_delay_ms=settings.retry_base_delay_ms,
            **kwargs,
        )

    async def execute(self, request: httpx.Request) -> httpx.Response:
        attempt = 0
        while True:
            try:
                response = await self._client.send(request)
            except httpx.TimeoutException as exc:
                if attempt >= self.max_retries:
                    raise
                delay_ms = compute_backoff_ms(attempt, self.base_delay_ms, rng=self._rng)
                logger.debug("timeout on %s (attempt %d): %s", request.url.path, attempt, exc)
            else:
                if response.status_code not in self.retryable or attempt >= self.max_retries:
                    return response
                await response.aclose()
                retry_after_ms = parse_retry_after_ms(response.headers.get("retry-after"))
                delay_ms = compute_backoff_ms(attempt, self.base_delay_ms, retry_after_ms, self._rng)
                logger.debug(
                    "retrying %s status=%s attempt=%d delay_ms=%.0f",
                    request.url.path,
                    response.status_code,
                    attempt,
                    delay_ms,
                )

            await self._sleep(delay_ms / 1000)
            attempt += 1
