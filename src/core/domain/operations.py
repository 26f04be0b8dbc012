"""Operaciones GraphQL de X y sus query ids conocidos.

X rota los query ids sin aviso. Cada operación lógica tiene una lista fija de
ids históricos que seguían funcionando en la última verificación; el id
primario se resuelve en runtime (ver `core.services.candidates`).
"""

from __future__ import annotations

from enum import Enum


class TimelineOperation(str, Enum):
    BOOKMARKS = "Bookmarks"
    BOOKMARK_FOLDER_TIMELINE = "BookmarkFolderTimeline"
    LIKES = "Likes"
    DELETE_BOOKMARK = "DeleteBookmark"


FALLBACK_QUERY_IDS: dict[TimelineOperation, tuple[str, ...]] = {
    TimelineOperation.BOOKMARKS: ("RV1g3b8n_SGOHwkqKYSCFw", "tmd4ifV8RHltzn8ymGg1aw"),
    TimelineOperation.BOOKMARK_FOLDER_TIMELINE: ("KJIQpsvxrTfRIlbaRIySHQ",),
    TimelineOperation.LIKES: ("JR2gceKucIKcVNB_9JkhsA",),
    TimelineOperation.DELETE_BOOKMARK: ("Wlmlj2-xzyS1GN3a6cj-mQ",),
}

# Valores embebidos para discovery estático (mismo orden de preferencia).
DEFAULT_QUERY_IDS: dict[TimelineOperation, str] = {
    op: ids[0] for op, ids in FALLBACK_QUERY_IDS.items()
}
