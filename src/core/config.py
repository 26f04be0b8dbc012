"""Configuración del Core.

Responsabilidad:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP/GraphQL) y servicios lean config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "xtimelines"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "xtimelines"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "xtimelines"
    return Path.home() / ".config" / "xtimelines"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Las credenciales (`auth_token`, `ct0`) se tratan como tokens opacos ya
    validados: aquí solo se leen, nunca se obtienen.
    """

    model_config = SettingsConfigDict(
        env_prefix="XTIMELINES_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        min_length=1,
        description="User-Agent enviado a x.com.",
    )

    auth_token: str | None = Field(
        default=None,
        description="Cookie auth_token de la sesión web.",
    )
    ct0: str | None = Field(
        default=None,
        description="Cookie ct0 (token CSRF) de la sesión web.",
    )

    page_size: int = Field(
        default=20,
        ge=1,
        le=100,
        description="Tamaño de página fijo para timelines paginados.",
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Reintentos máximos ante fallos transitorios (429/5xx).",
    )
    retry_base_delay_ms: int = Field(
        default=500,
        ge=0,
        description="Base del backoff exponencial (milisegundos).",
    )

    query_id_discovery: Literal["runtime", "static"] = Field(
        default="runtime",
        description="Cómo resolver query ids: scraping de x.com o valores embebidos.",
    )

    debug_timelines: bool = Field(
        default=False,
        description="Traza cada request de timeline a nivel DEBUG.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Nivel de logging global (DEBUG, INFO, WARNING, ERROR).",
    )

    def has_credentials(self) -> bool:
        return bool(self.auth_token) and bool(self.ct0)
