"""Tests del discovery de query ids (home + bundles vía MockTransport)."""

from __future__ import annotations

import httpx
import pytest

from adapters.query_ids import (
    RuntimeQueryIdDiscovery,
    StaticQueryIdDiscovery,
    find_bundle_urls,
    parse_query_ids,
)
from core.domain.operations import DEFAULT_QUERY_IDS, TimelineOperation
from core.interfaces.timeline import QueryIdDiscoveryError

HOME_HTML = """
<html><head>
<link rel="preload" as="script" href="https://abs.twimg.com/responsive-web/client-web/vendor.aaa.js">
<script src="https://abs.twimg.com/responsive-web/client-web/main.bbb.js"></script>
<script src="https://abs.twimg.com/other/analytics.js"></script>
<script>window.__INITIAL_STATE__ = {};</script>
</head></html>
"""

MAIN_JS = (
    'e.exports={queryId:"fresh-bookmarks",operationName:"Bookmarks",operationType:"query"};'
    'e.exports={queryId:"fresh-likes",operationName:"Likes",operationType:"query"};'
)
VENDOR_JS = 'e.exports={queryId:"fresh-folder",operationName:"BookmarkFolderTimeline",operationType:"query"};'


def discovery_client(routes: dict[str, httpx.Response]) -> tuple[httpx.AsyncClient, list[str]]:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url).rstrip("/")
        seen.append(url)
        return routes.get(url, httpx.Response(404))

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), seen


def default_routes() -> dict[str, httpx.Response]:
    return {
        "https://x.com": httpx.Response(200, text=HOME_HTML),
        "https://abs.twimg.com/responsive-web/client-web/main.bbb.js": httpx.Response(200, text=MAIN_JS),
        "https://abs.twimg.com/responsive-web/client-web/vendor.aaa.js": httpx.Response(200, text=VENDOR_JS),
    }


def test_find_bundle_urls_filters_and_puts_main_first():
    urls = find_bundle_urls(HOME_HTML)

    assert urls == [
        "https://abs.twimg.com/responsive-web/client-web/main.bbb.js",
        "https://abs.twimg.com/responsive-web/client-web/vendor.aaa.js",
    ]


def test_find_bundle_urls_resolves_relative_sources():
    html = '<script src="/responsive-web/client-web/main.123.js"></script>'

    assert find_bundle_urls(html, "https://x.com/home") == ["https://x.com/responsive-web/client-web/main.123.js"]


def test_parse_query_ids_keeps_first_occurrence():
    script = MAIN_JS + 'x={queryId:"older",operationName:"Bookmarks"}'

    assert parse_query_ids(script) == {"Bookmarks": "fresh-bookmarks", "Likes": "fresh-likes"}


@pytest.mark.asyncio
async def test_resolve_stops_at_the_bundle_that_has_the_operation():
    client, seen = discovery_client(default_routes())

    query_id = await RuntimeQueryIdDiscovery(client).resolve("Bookmarks")

    assert query_id == "fresh-bookmarks"
    assert not any("vendor" in url for url in seen)


@pytest.mark.asyncio
async def test_discover_reads_every_bundle():
    client, _ = discovery_client(default_routes())

    found = await RuntimeQueryIdDiscovery(client).discover()

    assert found == {
        "Bookmarks": "fresh-bookmarks",
        "Likes": "fresh-likes",
        "BookmarkFolderTimeline": "fresh-folder",
    }


@pytest.mark.asyncio
async def test_unknown_operation_raises_discovery_error():
    client, _ = discovery_client(default_routes())

    with pytest.raises(QueryIdDiscoveryError):
        await RuntimeQueryIdDiscovery(client).resolve("DeleteBookmark")


@pytest.mark.asyncio
async def test_home_failure_raises_discovery_error():
    client, _ = discovery_client({"https://x.com": httpx.Response(503)})

    with pytest.raises(QueryIdDiscoveryError, match="HTTP 503"):
        await RuntimeQueryIdDiscovery(client).resolve("Bookmarks")


@pytest.mark.asyncio
async def test_transport_error_is_wrapped():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline")

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    with pytest.raises(QueryIdDiscoveryError, match="offline"):
        await RuntimeQueryIdDiscovery(client).discover()


@pytest.mark.asyncio
async def test_static_discovery_uses_embedded_ids():
    discovery = StaticQueryIdDiscovery()

    assert await discovery.resolve("Likes") == DEFAULT_QUERY_IDS[TimelineOperation.LIKES]
    with pytest.raises(QueryIdDiscoveryError):
        await StaticQueryIdDiscovery({}).resolve("Likes")
