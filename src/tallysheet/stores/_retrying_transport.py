"""httpx async transport that retries transient store failures."""

from __future__ import annotations

import asyncio
import logging
import random
import time

import httpx

_LOG = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 502, 503, 504})


class RetryingTransport(httpx.AsyncBaseTransport):
    """Retries throttled, unavailable and dropped requests with exponential backoff.

    A 429 pauses every request sharing this transport until its
    ``Retry-After`` window has passed.
    """

    def __init__(
        self,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        max_retries: int = 3,
        max_backoff: float = 4.0,
    ) -> None:
        self._transport = transport or httpx.AsyncHTTPTransport()
        self._max_retries = max_retries
        self._max_backoff = max_backoff
        self._throttle_lock = asyncio.Lock()
        self._throttle_clear = asyncio.Event()
        self._throttle_clear.set()
        self._throttled_until = 0.0

    @property
    def max_retries(self) -> int:
        return self._max_retries

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        attempt = 0
        while True:
            await self._throttle_clear.wait()
            last_attempt = attempt >= self._max_retries
            try:
                response = await self._transport.handle_async_request(request)
            except httpx.TransportError as exc:
                if last_attempt:
                    raise
                _LOG.warning("%s %s failed (%s); retrying", request.method, request.url, exc)
                await self._backoff(attempt)
                attempt += 1
                continue

            if response.status_code not in RETRYABLE_STATUS_CODES or last_attempt:
                return response

            retry_after = retry_after_seconds(response)
            await response.aclose()
            _LOG.warning("%s %s returned %d; retrying", request.method, request.url, response.status_code)
            if response.status_code == 429:
                await self._throttle(retry_after)
            elif "Retry-After" in response.headers:
                await asyncio.sleep(retry_after)
            await self._backoff(attempt)
            attempt += 1

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def _throttle(self, seconds: float) -> None:
        async with self._throttle_lock:
            until = time.monotonic() + seconds
            if until > self._throttled_until:
                self._throttled_until = until
                self._throttle_clear.clear()
            deadline = self._throttled_until

        await asyncio.sleep(max(0.0, deadline - time.monotonic()))

        async with self._throttle_lock:
            # Only the holder of the latest deadline lifts the pause.
            if deadline >= self._throttled_until:
                self._throttle_clear.set()

    async def _backoff(self, attempt: int) -> None:
        await asyncio.sleep(backoff_seconds(attempt, cap=self._max_backoff))


def retry_after_seconds(response: httpx.Response, default: float = 1.0) -> float:
    raw = response.headers.get("Retry-After")
    if raw is None:
        return default
    try:
        return max(0.0, float(raw))
    except ValueError:
        return default


def backoff_seconds(attempt: int, *, cap: float = 4.0) -> float:
    return min(cap, float(2**attempt)) + random.uniform(0.0, 0.25)
