"""Discovery de query ids GraphQL de X.

X publica los query ids dentro de los bundles JS del cliente web
(`queryId:"…",operationName:"…"`). `RuntimeQueryIdDiscovery` descarga la
home de x.com, localiza esos bundles (BeautifulSoup) y los lee.
`StaticQueryIdDiscovery` devuelve valores embebidos, sin red.
"""

from __future__ import annotations

import logging
import re
from typing import Mapping
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from core.domain.operations import DEFAULT_QUERY_IDS
from core.interfaces.timeline import QueryIdDiscoveryError

logger = logging.getLogger(__name__)

X_HOME_URL = "https://x.com"
QUERY_ID_RE = re.compile(r'queryId:"([^"]+)",operationName:"([^"]+)"')
_CLIENT_BUNDLE_MARKER = "/responsive-web/client-web"


def find_bundle_urls(html: str, base_url: str = X_HOME_URL) -> list[str]:
    """Extrae las URLs de bundles JS del cliente web, `main.*` primero."""

    soup = BeautifulSoup(html, "html.parser")
    urls: list[str] = []
    for tag in soup.find_all(["script", "link"]):
        src = tag.get("src") or tag.get("href")
        if not src or not str(src).endswith(".js"):
            continue
        url = urljoin(base_url, str(src))
        if _CLIENT_BUNDLE_MARKER not in url or url in urls:
            continue
        urls.append(url)
    urls.sort(key=lambda u: 0 if u.rsplit("/", 1)[-1].startswith("main.") else 1)
    return urls


def parse_query_ids(script: str) -> dict[str, str]:
    found: dict[str, str] = {}
    for query_id, operation in QUERY_ID_RE.findall(script):
        found.setdefault(operation, query_id)
    return found


class RuntimeQueryIdDiscovery:
    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        home_url: str = X_HOME_URL,
        max_bundles: int = 8,
    ) -> None:
        self._client = client
        self.home_url = home_url
        self.max_bundles = max_bundles

    async def resolve(self, operation: str) -> str:
        query_ids = await self.discover(stop_at=operation)
        try:
            return query_ids[operation]
        except KeyError:
            raise QueryIdDiscoveryError(f"{operation} not found in x.com client bundles") from None

    async def discover(self, stop_at: str | None = None) -> dict[str, str]:
        try:
            home = await self._client.get(self.home_url)
            if home.status_code != 200:
                raise QueryIdDiscoveryError(f"x.com home returned HTTP {home.status_code}")

            bundles = find_bundle_urls(home.text, str(home.url))[: self.max_bundles]
            if not bundles:
                raise QueryIdDiscoveryError("no client bundles referenced from x.com home")

            query_ids: dict[str, str] = {}
            for url in bundles:
                resp = await self._client.get(url)
                if resp.status_code != 200:
                    logger.debug("skipping bundle %s (HTTP %s)", url, resp.status_code)
                    continue
                for operation, query_id in parse_query_ids(resp.text).items():
                    query_ids.setdefault(operation, query_id)
                if stop_at is not None and stop_at in query_ids:
                    break
        except httpx.HTTPError as exc:
            raise QueryIdDiscoveryError(f"query id discovery failed: {exc}") from exc

        logger.debug("discovered %d query ids from %d bundles", len(query_ids), len(bundles))
        return query_ids


class StaticQueryIdDiscovery:
    def __init__(self, query_ids: Mapping[str, str] | None = None) -> None:
        if query_ids is None:
            query_ids = {op.value: query_id for op, query_id in DEFAULT_QUERY_IDS.items()}
        self._query_ids = dict(query_ids)

    async def resolve(self, operation: str) -> str:
        try:
            return self._query_ids[operation]
        except KeyError:
            raise QueryIdDiscoveryError(f"no embedded query id for {operation}") from None
