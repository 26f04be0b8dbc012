"""Cliente de timelines de X (bookmarks, carpetas de bookmarks, likes).

Cada colección se describe con tres piezas: operación GraphQL, función que
construye las variables y ruta de instrucciones para el extractor. El motor
(resolver de candidatos, page fetcher, driver de paginación) es compartido.

Nota:
- Nunca lanza ante fallos del proveedor: todo se reporta como
  `CollectionResult` / `MutationResult`.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Sequence

import httpx

from adapters.http_client import TransientRetrier, build_async_client
from adapters.query_ids import RuntimeQueryIdDiscovery, StaticQueryIdDiscovery
from adapters.x_extractors import (
    BOOKMARK_FOLDER_PATH,
    BOOKMARKS_PATH,
    LIKES_PATH,
    TimelineExtractor,
)
from core.config import AppSettings
from core.domain.models import CollectionResult, MutationResult, PageBudget
from core.domain.operations import TimelineOperation
from core.interfaces.timeline import HeaderProvider, QueryIdDiscovery
from core.services.candidates import CandidateResolver
from core.services.page_fetcher import BuildVariables, PageFetcher, join_graphql_errors
from core.services.pagination import collect, with_refresh

logger = logging.getLogger(__name__)

TWITTER_API_BASE = "https://x.com/i/api/graphql"

_TIMELINE_FEATURES: dict[str, bool] = {
    "rweb_tipjar_consumption_enabled": True,
    "responsive_web_graphql_exclude_directive_enabled": True,
    "verified_phone_label_enabled": False,
    "creator_subscriptions_tweet_preview_api_enabled": True,
    "responsive_web_graphql_timeline_navigation_enabled": True,
    "responsive_web_graphql_skip_user_profile_image_extensions_enabled": False,
    "communities_web_enable_tweet_community_results_fetch": True,
    "c9s_tweet_anatomy_moderator_badge_enabled": True,
    "articles_preview_enabled": True,
    "responsive_web_edit_tweet_api_enabled": True,
    "graphql_is_translatable_rweb_tweet_is_translatable_enabled": True,
    "view_counts_everywhere_api_enabled": True,
    "longform_notetweets_consumption_enabled": True,
    "responsive_web_twitter_article_tweet_consumption_enabled": True,
    "tweet_awards_web_tipping_enabled": False,
    "creator_subscriptions_quote_tweet_preview_enabled": False,
    "freedom_of_speech_not_reach_fetch_enabled": True,
    "standardized_nudges_misinfo": True,
    "tweet_with_visibility_results_prefer_gql_limited_actions_policy_enabled": True,
    "rweb_video_timestamps_enabled": True,
    "longform_notetweets_rich_text_read_enabled": True,
    "longform_notetweets_inline_media_enabled": True,
    "responsive_web_enhance_cards_enabled": False,
}

BOOKMARKS_FEATURES: dict[str, bool] = {
    **_TIMELINE_FEATURES,
    "graphql_timeline_v2_bookmark_timeline": True,
}
LIKES_FEATURES: dict[str, bool] = dict(_TIMELINE_FEATURES)


def _compact_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


def bookmarks_variables(page_size: int, cursor: str | None, include_count: bool = True) -> dict[str, Any]:
    variables: dict[str, Any] = {
        "count": page_size,
        "includePromotedContent": False,
        "withDownvotePerspective": False,
        "withReactionsMetadata": False,
        "withReactionsPerspective": False,
    }
    if cursor:
        variables["cursor"] = cursor
    return variables


def folder_variables(folder_id: str) -> BuildVariables:
    def build(page_size: int, cursor: str | None, include_count: bool = True) -> dict[str, Any]:
        variables: dict[str, Any] = {
            "bookmark_collection_id": folder_id,
            "includePromotedContent": True,
        }
        if include_count:
            variables["count"] = page_size
        if cursor:
            variables["cursor"] = cursor
        return variables

    return build


def likes_variables(user_id: str) -> BuildVariables:
    def build(page_size: int, cursor: str | None, include_count: bool = True) -> dict[str, Any]:
        variables: dict[str, Any] = {
            "userId": user_id,
            "count": page_size,
            "includePromotedContent": False,
            "withClientEventToken": False,
            "withBirdwatchNotes": False,
            "withVoice": True,
        }
        if cursor:
            variables["cursor"] = cursor
        return variables

    return build


class XTimelineClient:
    """Motor de fetch paginado y resiliente sobre la API GraphQL web de X.

    Un mismo cliente puede atender varias colecciones en paralelo
    (`asyncio.gather`); solo comparten el caché de query ids del resolver.
    """

    def __init__(
        self,
        credentials: HeaderProvider,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        discovery: QueryIdDiscovery | None = None,
        include_raw: bool = False,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settings = settings or AppSettings()
        self._credentials = credentials
        self._owns_client = client is None
        self._client = client or build_async_client(self._settings)
        self._retrier = TransientRetrier.from_settings(self._client, self._settings, sleep=sleep)
        if discovery is None:
            if self._settings.query_id_discovery == "static":
                discovery = StaticQueryIdDiscovery()
            else:
                discovery = RuntimeQueryIdDiscovery(self._client)
        self.resolver = CandidateResolver(discovery)
        self.include_raw = include_raw

    async def __aenter__(self) -> "XTimelineClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # -- bookmarks -----------------------------------------------------------------

    async def get_bookmarks(self, count: int = 20) -> CollectionResult:
        return await self._collect(self._bookmarks_fetcher(), PageBudget(limit=count))

    async def get_all_bookmarks(self, max_pages: int | None = None) -> CollectionResult:
        return await self._collect(self._bookmarks_fetcher(), PageBudget(max_pages=max_pages))

    async def get_bookmark_folder_timeline(self, folder_id: str, count: int = 20) -> CollectionResult:
        return await self._collect(self._folder_fetcher(folder_id), PageBudget(limit=count))

    async def get_all_bookmark_folder_timeline(
        self,
        folder_id: str,
        max_pages: int | None = None,
    ) -> CollectionResult:
        return await self._collect(self._folder_fetcher(folder_id), PageBudget(max_pages=max_pages))

    # -- likes ---------------------------------------------------------------------

    async def get_likes(self, user_id: str, count: int = 20) -> CollectionResult:
        return await self._collect(self._likes_fetcher(user_id), PageBudget(limit=count))

    async def get_all_likes(self, user_id: str, max_pages: int | None = None) -> CollectionResult:
        return await self._collect(self._likes_fetcher(user_id), PageBudget(max_pages=max_pages))

    # -- mutations -----------------------------------------------------------------

    async def unbookmark(self, tweet_id: str) -> MutationResult:
        operation = TimelineOperation.DELETE_BOOKMARK
        headers = {**self._credentials.headers(), "referer": f"https://x.com/i/status/{tweet_id}"}

        async def post(url: str, query_id: str) -> httpx.Response:
            body = {"variables": {"tweet_id": tweet_id}, "queryId": query_id}
            return await self._client.post(url, content=_compact_json(body), headers=headers)

        try:
            query_id = (await self.resolver.identifiers_for(operation))[0]
            response = await post(f"{TWITTER_API_BASE}/{query_id}/{operation.value}", query_id)

            if response.status_code == 404:
                self.resolver.force_refresh()
                query_id = (await self.resolver.identifiers_for(operation))[0]
                response = await post(f"{TWITTER_API_BASE}/{query_id}/{operation.value}", query_id)

                # Último recurso: el endpoint GraphQL genérico resuelve la operación por `queryId` del body.
                if response.status_code == 404:
                    response = await post(TWITTER_API_BASE, query_id)

            return _parse_mutation(response)
        except (httpx.HTTPError, IndexError) as exc:
            return MutationResult(success=False, error=str(exc) or type(exc).__name__)

    # -- internals -----------------------------------------------------------------

    def _bookmarks_fetcher(self) -> PageFetcher:
        return self._fetcher(
            TimelineOperation.BOOKMARKS,
            "bookmarks",
            bookmarks_variables,
            BOOKMARKS_PATH,
            BOOKMARKS_FEATURES,
        )

    def _folder_fetcher(self, folder_id: str) -> PageFetcher:
        return self._fetcher(
            TimelineOperation.BOOKMARK_FOLDER_TIMELINE,
            "bookmark folder",
            folder_variables(folder_id),
            BOOKMARK_FOLDER_PATH,
            BOOKMARKS_FEATURES,
            count_optional=True,
        )

    def _likes_fetcher(self, user_id: str) -> PageFetcher:
        return self._fetcher(
            TimelineOperation.LIKES,
            "likes",
            likes_variables(user_id),
            LIKES_PATH,
            LIKES_FEATURES,
        )

    def _fetcher(
        self,
        operation: TimelineOperation,
        label: str,
        build_variables: BuildVariables,
        instructions_path: Sequence[str],
        features: dict[str, bool],
        *,
        count_optional: bool = False,
    ) -> PageFetcher:
        async def send(query_id: str, variables: dict[str, Any]) -> httpx.Response:
            request = self._client.build_request(
                "GET",
                f"{TWITTER_API_BASE}/{query_id}/{operation.value}",
                params={"variables": _compact_json(variables), "features": _compact_json(features)},
                headers=self._credentials.headers(),
            )
            return await self._retrier.execute(request)

        return PageFetcher(
            operation=operation,
            resolver=self.resolver,
            send=send,
            build_variables=build_variables,
            extractor=TimelineExtractor(instructions_path, include_raw=self.include_raw),
            label=label,
            count_optional=count_optional,
            transport_errors=(httpx.HTTPError,),
        )

    async def _collect(self, fetcher: PageFetcher, budget: PageBudget) -> CollectionResult:
        fetch = with_refresh(fetcher.fetch_page, self.resolver.force_refresh)
        result = await collect(fetch, budget, page_size=self._settings.page_size)
        if result.success:
            logger.info("fetched %d %s items", len(result.items), fetcher.label)
        else:
            logger.info("failed to fetch %s: %s", fetcher.label, result.error)
        return result


def _parse_mutation(response: httpx.Response) -> MutationResult:
    if not response.is_success:
        return MutationResult(success=False, error=f"HTTP {response.status_code}: {response.text[:200]}")
    try:
        data = response.json()
    except ValueError as exc:
        return MutationResult(success=False, error=f"Invalid JSON response: {exc}")
    errors = data.get("errors") if isinstance(data, dict) else None
    if isinstance(errors, list) and errors:
        return MutationResult(success=False, error=join_graphql_errors(errors))
    return MutationResult(success=True)
