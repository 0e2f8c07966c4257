"""Bounded retry with linear backoff for outbound provider calls."""
import asyncio
import logging
from typing import Awaitable, Callable

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"User-Agent": "Dashboard-App/2.0"}
DEFAULT_TIMEOUT = 8.0
DEFAULT_MAX_RETRIES = 2

# Attempt n waits BACKOFF_STEP * n seconds before attempt n + 1
BACKOFF_STEP = 1.0


async def fetch_with_retry(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: dict | None = None,
    headers: dict | None = None,
    max_retries: int = DEFAULT_MAX_RETRIES,
    timeout: float = DEFAULT_TIMEOUT,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> httpx.Response:
    """GET `url`, retrying on any error up to `max_retries` total attempts.

    Each attempt is capped at `timeout` seconds end to end. Non-2xx
    responses count as errors. The last error is re-raised once attempts
    run out; status semantics are left to the caller.
    """
    if max_retries < 1:
        raise ValueError(f"max_retries must be at least 1, got {max_retries}")

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_retries),
        wait=wait_incrementing(start=BACKOFF_STEP, increment=BACKOFF_STEP),
        retry=retry_if_exception_type(Exception),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=True,
    )

    async for attempt in retrying:
        with attempt:
            try:
                # Bounds the whole attempt, not just each connect/read phase
                async with asyncio.timeout(timeout):
                    response = await client.get(
                        url,
                        params=params,
                        headers={**DEFAULT_HEADERS, **(headers or {})},
                        timeout=timeout,
                    )
            except TimeoutError as e:
                raise httpx.ReadTimeout(f"GET {url} exceeded {timeout}s") from e
            response.raise_for_status()
    return response
