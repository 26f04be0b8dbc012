"""Componentes de UI para CLI (Rich).

Separa la presentación de los comandos para reutilizar tablas en
bookmarks/likes.
"""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from core.domain.models import TimelineItem


def build_items_table(items: list[TimelineItem], *, title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Author", style="magenta")
    table.add_column("Text", style="white")
    table.add_column("Likes", style="green", justify="right")

    for item in items:
        author = f"@{item.author_username}" if item.author_username else "-"
        likes = str(item.like_count) if item.like_count is not None else ""
        table.add_row(item.id, author, item.text.replace("\n", " "), likes)
    return table


def print_items(
    console: Console,
    items: list[TimelineItem],
    *,
    title: str,
    as_json: bool = False,
    empty_message: str = "No items found.",
) -> None:
    if as_json:
        console.print_json(data=[item.model_dump(mode="json", exclude_none=True) for item in items])
        return
    if not items:
        console.print(f"[yellow]{empty_message}[/yellow]")
        return
    console.print(build_items_table(items, title=title))
