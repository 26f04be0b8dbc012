"""Tests del Transient Retry Wrapper y del cálculo de backoff."""

from __future__ import annotations

import random

import httpx
import pytest

from adapters.http_client import (
    TransientRetrier,
    build_async_client,
    compute_backoff_ms,
    parse_retry_after_ms,
)

URL = "https://x.com/i/api/graphql/abc/Bookmarks"


def scripted_client(responses: list[httpx.Response | Exception]) -> tuple[httpx.AsyncClient, list[httpx.Request]]:
    seen: list[httpx.Request] = []
    queue = list(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        nxt = queue.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), seen


class TestBackoff:
    def test_retry_after_seconds_is_honored_exactly(self):
        assert compute_backoff_ms(0, 500, retry_after_ms=3000) == 3000.0

    @pytest.mark.parametrize("attempt", [0, 1, 2, 3])
    def test_exponential_backoff_stays_within_jitter_window(self, attempt):
        rng = random.Random(attempt)
        for _ in range(50):
            delay = compute_backoff_ms(attempt, 500, rng=rng)
            assert 500 * 2**attempt <= delay < 500 * 2**attempt + 500

    def test_backoff_window_grows_with_attempt(self):
        rng = random.Random(7)
        lows = [compute_backoff_ms(a, 500, rng=rng) for a in range(3)]
        assert lows[0] < 1000 <= lows[1] < 1500
        assert 2000 <= lows[2] < 2500

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("2", 2000),
            (" 10 ", 10000),
            ("0", 0),
            ("Wed, 21 Oct 2015 07:28:00 GMT", None),
            ("1.5", None),
            ("²", None),
            ("٣", None),
            (None, None),
        ],
    )
    def test_parse_retry_after(self, value, expected):
        assert parse_retry_after_ms(value) == expected


class TestTransientRetrier:
    @pytest.mark.asyncio
    async def test_returns_success_without_retry(self, no_sleep):
        client, seen = scripted_client([httpx.Response(200, json={})])
        retrier = TransientRetrier(client, sleep=no_sleep)

        response = await retrier.execute(client.build_request("GET", URL))

        assert response.status_code == 200
        assert len(seen) == 1
        assert no_sleep.delays == []

    @pytest.mark.asyncio
    async def test_retries_recoverable_status_then_succeeds(self, no_sleep):
        client, seen = scripted_client([httpx.Response(503), httpx.Response(429), httpx.Response(200)])
        retrier = TransientRetrier(client, sleep=no_sleep)

        response = await retrier.execute(client.build_request("GET", URL))

        assert response.status_code == 200
        assert len(seen) == 3
        assert len(no_sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_final_attempt_is_returned_after_two_retries(self, no_sleep):
        client, seen = scripted_client([httpx.Response(500), httpx.Response(502), httpx.Response(504)])
        retrier = TransientRetrier(client, sleep=no_sleep)

        response = await retrier.execute(client.build_request("GET", URL))

        assert response.status_code == 504
        assert len(seen) == 3

    @pytest.mark.asyncio
    async def test_non_recoverable_status_is_returned_immediately(self, no_sleep):
        client, seen = scripted_client([httpx.Response(404)])
        retrier = TransientRetrier(client, sleep=no_sleep)

        response = await retrier.execute(client.build_request("GET", URL))

        assert response.status_code == 404
        assert len(seen) == 1
        assert no_sleep.delays == []

    @pytest.mark.asyncio
    async def test_retry_after_header_drives_the_delay(self, no_sleep):
        client, _ = scripted_client([httpx.Response(429, headers={"Retry-After": "2"}), httpx.Response(200)])
        retrier = TransientRetrier(client, sleep=no_sleep)

        await retrier.execute(client.build_request("GET", URL))

        assert no_sleep.delays == [2.0]

    @pytest.mark.asyncio
    async def test_http_date_retry_after_falls_back_to_backoff(self, no_sleep):
        client, _ = scripted_client(
            [httpx.Response(429, headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"}), httpx.Response(200)]
        )
        retrier = TransientRetrier(client, base_delay_ms=500, sleep=no_sleep)

        await retrier.execute(client.build_request("GET", URL))

        assert len(no_sleep.delays) == 1
        assert 0.5 <= no_sleep.delays[0] < 1.0

    @pytest.mark.asyncio
    async def test_same_request_is_resent(self, no_sleep):
        client, seen = scripted_client([httpx.Response(500), httpx.Response(200)])
        retrier = TransientRetrier(client, sleep=no_sleep)

        await retrier.execute(client.build_request("GET", URL, params={"variables": '{"count":20}'}))

        assert seen[0].url == seen[1].url

    @pytest.mark.asyncio
    async def test_timeouts_are_retried_then_raised(self, no_sleep):
        timeout = httpx.ReadTimeout("read timed out")
        client, seen = scripted_client([timeout, timeout, timeout])
        retrier = TransientRetrier(client, sleep=no_sleep)

        with pytest.raises(httpx.ReadTimeout):
            await retrier.execute(client.build_request("GET", URL))

        assert len(seen) == 3
        assert len(no_sleep.delays) == 2


@pytest.mark.asyncio
async def test_build_async_client_applies_settings(settings):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    async with build_async_client(settings, transport=httpx.MockTransport(handler)) as client:
        await client.get("https://x.com")

    assert seen[0].headers["user-agent"] == settings.user_agent
    assert client.timeout.read == settings.http_timeout_seconds
