"""Shared request pipeline for data-backed widgets.

Every provider runs the same sequence: sanitize the query, charge the
caller's rate window, serve from cache, otherwise fetch live (when
configured) and fall back to a demo payload if the upstream is down.
"""
import asyncio
import logging
import random
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

import httpx

from app.config import ProviderMode
from app.core.cache import ResponseCache, make_cache_key
from app.core.errors import InvalidInputError, RateLimitedError, UpstreamError
from app.core.rate_limiting import (
    API_LIMITS,
    CACHE_TTL,
    CacheTTL,
    RateLimitRule,
    SlidingWindowRateLimiter,
)
from app.core.retry import DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT, fetch_with_retry
from app.models.widgets import WidgetPayload

logger = logging.getLogger(__name__)

DETAIL_LEVELS = ("compact", "expanded")


def pick(value: str | None, allowed: tuple[str, ...], name: str, default: str) -> str:
    """Validate an enumerated, case-insensitive query parameter."""
    if value is None or value == "":
        return default
    value = value.strip().lower()
    if value not in allowed:
        raise InvalidInputError(
            f"Invalid {name} parameter",
            details={name: value, "allowed": list(allowed)},
        )
    return value


class WidgetProvider(ABC):
    """Base class for weather, crypto, stocks and sports providers."""

    widget_type: str = ""
    provider_name: str = ""  # Shown in upstream error messages

    def __init__(
        self,
        *,
        cache: ResponseCache,
        limiter: SlidingWindowRateLimiter,
        http_client: httpx.AsyncClient,
        mode: ProviderMode = ProviderMode.LIVE,
        max_retries: int = DEFAULT_MAX_RETRIES,
        timeout: float = DEFAULT_TIMEOUT,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rate_limit: RateLimitRule | None = None,
        ttl: CacheTTL | None = None,
        rng: random.Random | None = None,
    ):
        self.cache = cache
        self.limiter = limiter
        self.http_client = http_client
        self.mode = mode
        self.max_retries = max_retries
        self.timeout = timeout
        self.rate_limit = rate_limit or API_LIMITS[self.widget_type]
        self.ttl = ttl or CACHE_TTL[self.widget_type]
        self._sleep = sleep
        self._rng = rng or random.Random()

    # ---- subclass hooks ------------------------------------------------

    @abstractmethod
    def sanitize(self, params: dict[str, Any]) -> dict[str, str]:
        """Normalize raw query params or raise InvalidInputError."""

    @abstractmethod
    async def fetch_live(self, query: dict[str, str]) -> WidgetPayload:
        """Call the upstream and normalize. Raise UpstreamError on failure."""

    @abstractmethod
    def generate_demo(self, query: dict[str, str]) -> WidgetPayload:
        """Synthesize a plausible payload tagged demo=True."""

    def cache_params(self, query: dict[str, str]) -> dict[str, str]:
        """Subset of the query that changes the payload."""
        return query

    # ---- pipeline ------------------------------------------------------

    async def get_data(
        self,
        params: dict[str, Any],
        client_id: str,
        *,
        cache_first: bool = False,
    ) -> dict[str, Any]:
        """Run the pipeline for one request.

        With `cache_first`, a cache hit is served without charging the
        caller's window; callers that poll on their own schedule use it.
        """
        query = self.sanitize(params)
        cache_key = make_cache_key(self.widget_type, self.cache_params(query))

        if cache_first:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        if self.limiter.check(f"{self.widget_type}:{client_id}", self.rate_limit):
            raise RateLimitedError(
                "Rate limit exceeded. Please try again later.",
                details={
                    "widget": self.widget_type,
                    "limit": self.rate_limit.limit,
                    "windowSeconds": self.rate_limit.window_seconds,
                },
            )

        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        if self.mode is ProviderMode.LIVE:
            try:
                payload = await self.fetch_live(query)
            except UpstreamError as e:
                logger.warning(
                    "%s upstream failed for %s, serving demo data: %s",
                    self.widget_type, cache_key, e,
                )
            else:
                data = payload.to_response()
                self.cache.set(cache_key, data, self.ttl.live)
                return data

        data = self.generate_demo(query).to_response()
        self.cache.set(cache_key, data, self.ttl.demo)
        return data

    # ---- helpers for subclasses ----------------------------------------

    async def _get_json(
        self,
        url: str,
        params: dict | None = None,
        headers: dict | None = None,
        not_found: str | None = None,
        source: str | None = None,
    ) -> Any:
        """Fetch JSON through the retry wrapper and classify the failure."""
        source = source or self.provider_name
        try:
            response = await fetch_with_retry(
                self.http_client,
                url,
                params=params,
                headers=headers,
                max_retries=self.max_retries,
                timeout=self.timeout,
                sleep=self._sleep,
            )
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 404 and not_found:
                raise InvalidInputError(not_found) from e
            if status == 429:
                raise RateLimitedError(
                    f"{source} rate limit reached. Please try again later."
                ) from e
            if status in (401, 403):
                logger.error("%s rejected our API key (HTTP %d)", source, status)
            raise UpstreamError(f"{source} returned HTTP {status}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"{source} unreachable: {e!r}") from e

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"{source} sent invalid JSON") from e
