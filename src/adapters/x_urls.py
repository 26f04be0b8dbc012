"""Parsing de ids a partir de URLs de x.com / twitter.com."""

from __future__ import annotations

import re

TWEET_URL_RE = re.compile(r"(?:twitter\.com|x\.com)/(?:\w+/status|i/web/status)/(\d+)", re.IGNORECASE)
BOOKMARK_FOLDER_URL_RE = re.compile(r"(?:twitter\.com|x\.com)/i/bookmarks/(\d+)", re.IGNORECASE)


def extract_tweet_id(value: str) -> str:
    """Id de tweet desde una URL de status; cualquier otra cosa se asume id."""

    match = TWEET_URL_RE.search(value)
    if match:
        return match.group(1)
    return value.strip()


def extract_bookmark_folder_id(value: str) -> str | None:
    """Id numérico de carpeta o `https://x.com/i/bookmarks/<id>`; None si no es válido."""

    value = value.strip()
    if value.isdigit():
        return value
    match = BOOKMARK_FOLDER_URL_RE.search(value)
    if match:
        return match.group(1)
    return None
