"""Extractores de payloads GraphQL de timelines de X.

Cada tipo de colección entrega las instrucciones del timeline en una ruta
distinta del payload; el parsing de instrucciones es común. Un árbol ausente
o parcial produce una página vacía, nunca una excepción.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, Mapping, Sequence

from pydantic import ValidationError

from core.domain.models import TimelineItem, TimelinePage

logger = logging.getLogger(__name__)

BOOKMARKS_PATH = ("data", "bookmark_timeline_v2", "timeline", "instructions")
BOOKMARK_FOLDER_PATH = ("data", "bookmark_collection_timeline", "timeline", "instructions")
LIKES_PATH = ("data", "user", "result", "timeline", "timeline", "instructions")


def _dig(data: Any, path: Sequence[str]) -> Any:
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _iter_entries(instructions: list[Any]) -> Iterator[dict[str, Any]]:
    for instruction in instructions:
        if not isinstance(instruction, dict):
            continue
        entries = instruction.get("entries")
        if isinstance(entries, list):
            for entry in entries:
                if isinstance(entry, dict):
                    yield entry
        # TimelineReplaceEntry trae una sola entrada (suele ser el cursor).
        entry = instruction.get("entry")
        if isinstance(entry, dict):
            yield entry


def _unwrap_tweet(result: Any) -> dict[str, Any] | None:
    if not isinstance(result, dict):
        return None
    if result.get("__typename") == "TweetWithVisibilityResults":
        result = result.get("tweet")
    if not isinstance(result, dict) or not result.get("rest_id"):
        return None
    return result


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)


def _as_count(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return int(value)
    return None


def parse_tweet(result: dict[str, Any], *, include_raw: bool = False) -> TimelineItem:
    legacy = _as_dict(result.get("legacy"))
    user = _as_dict(_dig(result, ("core", "user_results", "result")))
    user_legacy = _as_dict(user.get("legacy"))
    user_core = _as_dict(user.get("core"))

    note_text = _dig(result, ("note_tweet", "note_tweet_results", "result", "text"))
    text = _as_str(note_text) or _as_str(legacy.get("full_text")) or ""
    username = _as_str(user_core.get("screen_name")) or _as_str(user_legacy.get("screen_name"))
    name = _as_str(user_core.get("name")) or _as_str(user_legacy.get("name")) or username

    return TimelineItem(
        id=str(result["rest_id"]),
        text=text,
        author_username=username,
        author_name=name,
        created_at=_as_str(legacy.get("created_at")),
        reply_count=_as_count(legacy.get("reply_count")),
        retweet_count=_as_count(legacy.get("retweet_count")),
        like_count=_as_count(legacy.get("favorite_count")),
        raw=result if include_raw else None,
    )


def parse_tweets_from_instructions(instructions: Any, *, include_raw: bool = False) -> list[TimelineItem]:
    if not isinstance(instructions, list):
        return []
    items: list[TimelineItem] = []
    for entry in _iter_entries(instructions):
        result = _unwrap_tweet(_dig(entry, ("content", "itemContent", "tweet_results", "result")))
        if result is None:
            continue
        try:
            items.append(parse_tweet(result, include_raw=include_raw))
        except ValidationError as exc:
            logger.debug("skipping unparseable tweet entry %s: %s", entry.get("entryId"), exc)
    return items


def extract_cursor_from_instructions(instructions: Any, cursor_type: str = "Bottom") -> str | None:
    if not isinstance(instructions, list):
        return None
    for entry in _iter_entries(instructions):
        content = entry.get("content")
        if not isinstance(content, dict):
            continue
        if content.get("cursorType") == cursor_type and content.get("value"):
            return str(content["value"])
    return None


class TimelineExtractor:
    """Implementa `ResponseExtractor` para una ruta de instrucciones dada."""

    def __init__(self, instructions_path: Sequence[str], *, include_raw: bool = False) -> None:
        self.instructions_path = tuple(instructions_path)
        self.include_raw = include_raw

    def extract(self, payload: Mapping[str, Any]) -> TimelinePage:
        instructions = _dig(payload, self.instructions_path)
        if not isinstance(instructions, list):
            return TimelinePage()
        return TimelinePage(
            items=parse_tweets_from_instructions(instructions, include_raw=self.include_raw),
            next_cursor=extract_cursor_from_instructions(instructions),
            has_instructions=True,
        )
