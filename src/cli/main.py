"""CLI principal (Typer).

Comandos finos sobre `XTimelineClient`: validan opciones, resuelven
credenciales y delegan la presentación en `cli.ui_components`.
"""

from __future__ import annotations

import asyncio
from typing import NoReturn, Optional

import typer
from rich.console import Console

from adapters.x_auth import MissingCredentialsError, XCredentials
from adapters.x_client import XTimelineClient
from adapters.x_urls import extract_bookmark_folder_id, extract_tweet_id
from cli import doctor
from cli.ui_components import print_items
from core.config import AppSettings
from core.domain.models import CollectionResult
from core.log import setup_logging

app = typer.Typer(no_args_is_help=True, help="Fetch X bookmarks, bookmark folders and likes.")
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)


@app.callback()
def main(
    ctx: typer.Context,
    auth_token: Optional[str] = typer.Option(None, "--auth-token", help="auth_token cookie (overrides config)."),
    ct0: Optional[str] = typer.Option(None, "--ct0", help="ct0 cookie (overrides config)."),
    timeout: Optional[float] = typer.Option(None, "--timeout", min=0.1, help="Per-request timeout in seconds."),
    debug: bool = typer.Option(False, "--debug", help="Trace every timeline request."),
) -> None:
    overrides: dict[str, object] = {}
    if auth_token:
        overrides["auth_token"] = auth_token
    if ct0:
        overrides["ct0"] = ct0
    if timeout is not None:
        overrides["http_timeout_seconds"] = timeout
    if debug:
        overrides["debug_timelines"] = True

    settings = AppSettings(**overrides)
    setup_logging(settings.log_level, debug_timelines=settings.debug_timelines)
    ctx.obj = settings


def _fail(message: str) -> NoReturn:
    _err_console.print(f"[red]✖[/red] {message}")
    raise typer.Exit(code=1)


def _credentials(settings: AppSettings) -> XCredentials:
    try:
        return XCredentials.from_settings(settings)
    except MissingCredentialsError:
        _fail("Missing required credentials (set XTIMELINES_AUTH_TOKEN and XTIMELINES_CT0 or pass --auth-token/--ct0).")


def _validate_paging(count: int, fetch_all: bool, max_pages: Optional[int]) -> None:
    if max_pages is not None and not fetch_all:
        _fail("--max-pages requires --all.")
    if not fetch_all and count <= 0:
        _fail("Invalid --count. Expected a positive integer.")
    if max_pages is not None and max_pages <= 0:
        _fail("Invalid --max-pages. Expected a positive integer.")


@app.command()
def bookmarks(
    ctx: typer.Context,
    count: int = typer.Option(20, "--count", "-n", help="Number of bookmarks to fetch."),
    folder_id: Optional[str] = typer.Option(None, "--folder-id", help="Bookmark folder id or URL."),
    fetch_all: bool = typer.Option(False, "--all", help="Fetch all bookmarks (paged)."),
    max_pages: Optional[int] = typer.Option(None, "--max-pages", help="Stop after N pages when using --all."),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON."),
    json_full: bool = typer.Option(False, "--json-full", help="JSON including the raw GraphQL tweet result."),
) -> None:
    """Get your bookmarked tweets."""

    settings: AppSettings = ctx.obj
    _validate_paging(count, fetch_all, max_pages)

    folder: str | None = None
    if folder_id is not None:
        folder = extract_bookmark_folder_id(folder_id)
        if folder is None:
            _fail("Invalid --folder-id. Expected numeric ID or https://x.com/i/bookmarks/<id>.")

    credentials = _credentials(settings)

    async def fetch() -> CollectionResult:
        async with XTimelineClient(credentials, settings, include_raw=json_full) as client:
            if folder is not None:
                if fetch_all:
                    return await client.get_all_bookmark_folder_timeline(folder, max_pages=max_pages)
                return await client.get_bookmark_folder_timeline(folder, count)
            if fetch_all:
                return await client.get_all_bookmarks(max_pages=max_pages)
            return await client.get_bookmarks(count)

    result = asyncio.run(fetch())
    if not result.success:
        _fail(f"Failed to fetch bookmarks: {result.error}")

    print_items(
        _console,
        result.items,
        title="Bookmarks",
        as_json=as_json or json_full,
        empty_message="No bookmarks found in folder." if folder else "No bookmarks found.",
    )


@app.command()
def likes(
    ctx: typer.Context,
    user_id: str = typer.Option(..., "--user-id", help="Numeric id of the account whose likes to fetch."),
    count: int = typer.Option(20, "--count", "-n", help="Number of likes to fetch."),
    fetch_all: bool = typer.Option(False, "--all", help="Fetch all likes (paged)."),
    max_pages: Optional[int] = typer.Option(None, "--max-pages", help="Stop after N pages when using --all."),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Get liked tweets."""

    settings: AppSettings = ctx.obj
    _validate_paging(count, fetch_all, max_pages)
    credentials = _credentials(settings)

    async def fetch() -> CollectionResult:
        async with XTimelineClient(credentials, settings) as client:
            if fetch_all:
                return await client.get_all_likes(user_id, max_pages=max_pages)
            return await client.get_likes(user_id, count)

    result = asyncio.run(fetch())
    if not result.success:
        _fail(f"Failed to fetch likes: {result.error}")

    print_items(_console, result.items, title="Likes", as_json=as_json, empty_message="No likes found.")


@app.command()
def unbookmark(
    ctx: typer.Context,
    tweet: str = typer.Argument(..., help="Tweet id or status URL."),
) -> None:
    """Remove a tweet from your bookmarks."""

    settings: AppSettings = ctx.obj
    credentials = _credentials(settings)
    tweet_id = extract_tweet_id(tweet)

    async def run_mutation():
        async with XTimelineClient(credentials, settings) as client:
            return await client.unbookmark(tweet_id)

    result = asyncio.run(run_mutation())
    if not result.success:
        _fail(f"Failed to remove bookmark: {result.error}")
    _console.print(f"[green]✔[/green] Removed bookmark {tweet_id}")


def run() -> None:
    app()
