"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client
from adapters.query_ids import RuntimeQueryIdDiscovery
from core.config import AppSettings, get_user_env_file
from core.domain.operations import TimelineOperation
from core.interfaces.timeline import QueryIdDiscoveryError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(url: str, settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get(url)
        return True, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc)


async def _check_discovery(settings: AppSettings) -> tuple[bool, str]:
    """Try to read current query ids from the x.com client bundles."""

    try:
        async with build_async_client(settings) as client:
            found = await RuntimeQueryIdDiscovery(client).discover()
    except QueryIdDiscoveryError as exc:
        return False, str(exc)

    wanted = [op.value for op in TimelineOperation]
    missing = [name for name in wanted if name not in found]
    if missing:
        return False, f"{len(found)} ids found; missing: {', '.join(missing)}"
    return True, ", ".join(f"{name}={found[name]}" for name in wanted)


@app.command()
def run(ctx: typer.Context) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    # Opciones globales (--auth-token, --ct0, --timeout) ya aplicadas por el callback.
    settings = ctx.obj if isinstance(ctx.obj, AppSettings) else AppSettings()

    table = Table(title="xtimelines doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    if settings.has_credentials():
        table.add_row("Credentials", "OK", "auth_token and ct0 configured")
    else:
        table.add_row("Credentials", "MISSING", f"Set XTIMELINES_AUTH_TOKEN / XTIMELINES_CT0 (or {get_user_env_file()})")
    table.add_row("Query id discovery", "OK", settings.query_id_discovery)

    # Connectivity (best-effort)
    ok_http, detail_http = asyncio.run(_check_http("https://x.com", settings))
    table.add_row("HTTP connectivity", "OK" if ok_http else "FAIL", detail_http)

    if settings.query_id_discovery == "runtime":
        ok_ids, detail_ids = asyncio.run(_check_discovery(settings))
        table.add_row("Query ids", "OK" if ok_ids else "WARN", detail_ids)

    _console.print(table)

    if not settings.has_credentials():
        _console.print("\n[yellow]Note:[/yellow] Timeline commands need both cookies from a logged-in x.com session.")
