"""Configuración de logging.

Uso:
    import logging
    logger = logging.getLogger(__name__)

`setup_logging` se llama una vez desde la CLI. Con `debug_timelines` los
loggers del motor (`core.services`, `adapters`) bajan a DEBUG y trazan cada
request de timeline (query id, tamaño de página, presencia de cursor).
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

ENGINE_LOGGERS = ("core.services", "adapters")


def setup_logging(level: str = "WARNING", *, debug_timelines: bool = False) -> None:
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper())

    # httpx loguea cada request a INFO; solo interesa en modo debug.
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug_timelines else logging.WARNING)

    if debug_timelines:
        for name in ENGINE_LOGGERS:
            logging.getLogger(name).setLevel(logging.DEBUG)
