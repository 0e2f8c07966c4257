"""Per-app container for the cache, limiter, HTTP client and providers.

One instance is built at startup and hung on `app.state`, so tests can
build isolated instances with their own clock and transport.
"""
import asyncio
import logging
import time
from typing import Awaitable, Callable

import httpx

from app.config import ProviderMode, Settings
from app.core.cache import ResponseCache
from app.core.clock import Clock, MonotonicClock
from app.core.rate_limiting import SlidingWindowRateLimiter
from app.services.widgets.base import WidgetProvider
from app.services.widgets.crypto import CryptoProvider
from app.services.widgets.search import SearchService
from app.services.widgets.sports import SportsProvider
from app.services.widgets.stocks import StocksProvider
from app.services.widgets.weather import WeatherProvider

logger = logging.getLogger(__name__)


class WidgetServices:
    """Everything the HTTP layer needs to answer widget requests."""

    def __init__(
        self,
        settings: Settings,
        *,
        clock: Clock | None = None,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings
        self.clock = clock or MonotonicClock()
        self.cache = ResponseCache(self.clock)
        self.limiter = SlidingWindowRateLimiter(self.clock)
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient()
        self.modes = settings.provider_modes()
        self.started_at = time.time()

        common = dict(
            cache=self.cache,
            limiter=self.limiter,
            http_client=self.http_client,
            max_retries=settings.fetch_max_retries,
            timeout=settings.fetch_timeout_seconds,
            sleep=sleep,
        )
        self.providers: dict[str, WidgetProvider] = {
            "weather": WeatherProvider(
                api_key=settings.openweather_api_key,
                mode=self.modes["weather"],
                **common,
            ),
            "crypto": CryptoProvider(mode=self.modes["crypto"], **common),
            "stocks": StocksProvider(
                alpha_vantage_key=settings.alpha_vantage_api_key,
                finnhub_key=settings.finnhub_api_key,
                mode=self.modes["stocks"],
                **common,
            ),
            "sports": SportsProvider(mode=self.modes["sports"], **common),
        }
        self.search = SearchService(
            openweather_key=settings.openweather_api_key,
            alpha_vantage_key=settings.alpha_vantage_api_key,
            offline=settings.offline_mode,
            **common,
        )

        for name, mode in self.modes.items():
            if mode is ProviderMode.DEMO:
                logger.warning("%s provider running on demo data", name)
            else:
                logger.info("%s provider live", name)

    def provider(self, widget_type: str) -> WidgetProvider:
        return self.providers[widget_type]

    def sweep(self) -> tuple[int, int]:
        """Drop expired cache entries and idle rate windows."""
        return self.cache.sweep(), self.limiter.sweep()

    async def run_sweeper(self, interval: float | None = None) -> None:
        """Sweep forever on a fixed interval; cancel the task to stop."""
        interval = interval or self.settings.cache_sweep_interval_seconds
        while True:
            await asyncio.sleep(interval)
            cache_removed, windows_removed = self.sweep()
            logger.info(
                "Sweep removed %d cache entries and %d rate windows (%d / %d remain)",
                cache_removed, windows_removed, len(self.cache), len(self.limiter),
            )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()
