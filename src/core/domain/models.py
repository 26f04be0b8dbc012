"""Modelos del dominio (Pydantic v2).

Nota:
- Estos modelos describen *qué* es la información (ítems de timeline,
  páginas, resultados), no *cómo* se obtiene.
- Todas las entidades son efímeras: se crean por invocación y se descartan.
"""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class TimelineItem(BaseModel):
    """Un ítem de una colección tipo timeline (bookmark, like...).

    `id` es la identidad: estable entre páginas y entre reintentos de la
    misma página lógica.
    """

    id: str = Field(
        ...,
        min_length=1,
        description="Identidad opaca del ítem (rest_id del tweet).",
    )
    text: str = Field(
        default="",
        description="Texto completo del tweet.",
    )
    author_username: str | None = Field(
        default=None,
        description="Handle del autor (sin @).",
    )
    author_name: str | None = Field(
        default=None,
        description="Nombre visible del autor.",
    )
    created_at: str | None = Field(
        default=None,
        description="Fecha de creación tal como la reporta el proveedor.",
    )
    reply_count: int | None = None
    retweet_count: int | None = None
    like_count: int | None = None
    raw: dict[str, Any] | None = Field(
        default=None,
        description="Resultado GraphQL crudo (solo si se pidió include_raw).",
    )


class TimelinePage(BaseModel):
    """Salida del extractor para un payload de página."""

    items: list[TimelineItem] = Field(default_factory=list)
    next_cursor: str | None = Field(
        default=None,
        description="Token de continuación; None indica fin de colección.",
    )
    has_instructions: bool = Field(
        default=False,
        description="Si el payload traía una estructura de página reconocible.",
    )


class PageSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    items: list[TimelineItem] = Field(default_factory=list)
    next_cursor: str | None = None


class PageFailure(BaseModel):
    """Fallo de una página.

    `was_not_found` distingue "todos los candidatos devolvieron 404" (elegible
    para refrescar query ids) del resto de fallos.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["failure"] = "failure"
    error: str = Field(..., min_length=1)
    was_not_found: bool = False


FetchOutcome = Union[PageSuccess, PageFailure]


class PageBudget(BaseModel):
    """Objetivo del llamador: conteo finito (o ilimitado) más tope de páginas."""

    model_config = ConfigDict(frozen=True)

    limit: int | None = Field(
        default=None,
        gt=0,
        description="Número objetivo de ítems; None = hasta agotar la colección.",
    )
    max_pages: int | None = Field(
        default=None,
        gt=0,
        description="Tope de páginas, aplica con o sin límite de ítems.",
    )

    @property
    def unbounded(self) -> bool:
        return self.limit is None


class CollectionResult(BaseModel):
    """Resultado expuesto a CLI/formatos: lista deduplicada o error legible."""

    success: bool
    items: list[TimelineItem] = Field(default_factory=list)
    error: str | None = None

    @classmethod
    def ok(cls, items: list[TimelineItem]) -> "CollectionResult":
        return cls(success=True, items=items)

    @classmethod
    def failed(cls, error: str) -> "CollectionResult":
        return cls(success=False, error=error)


class MutationResult(BaseModel):
    success: bool
    error: str | None = None
