from __future__ import annotations

import pytest

from core.config import AppSettings


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        _env_file=None,
        auth_token="auth",
        ct0="csrf",
        query_id_discovery="static",
        retry_base_delay_ms=1,
    )


@pytest.fixture
def no_sleep():
    delays: list[float] = []

    async def sleep(seconds: float) -> None:
        delays.append(seconds)

    sleep.delays = delays  # type: ignore[attr-defined]
    return sleep
