"""Lookup endpoints behind the widget configuration forms.

City, coin and ticker search share the cache, limiter and retry wrapper
with the data providers. Search results are reference data, so every
upstream failure degrades to a static demo list instead of an error.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable

import httpx

from app.core.cache import ResponseCache, make_cache_key
from app.core.errors import RateLimitedError
from app.core.rate_limiting import API_LIMITS, CACHE_TTL, SlidingWindowRateLimiter
from app.core.retry import DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT, fetch_with_retry

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 50

DEMO_CITIES = [
    {"id": "1", "name": "New York", "country": "US", "state": "NY"},
    {"id": "2", "name": "Los Angeles", "country": "US", "state": "CA"},
    {"id": "3", "name": "London", "country": "GB"},
    {"id": "4", "name": "Tokyo", "country": "JP"},
    {"id": "5", "name": "Paris", "country": "FR"},
    {"id": "6", "name": "Sydney", "country": "AU"},
    {"id": "7", "name": "Toronto", "country": "CA"},
    {"id": "8", "name": "Berlin", "country": "DE"},
    {"id": "9", "name": "Mumbai", "country": "IN"},
    {"id": "10", "name": "Singapore", "country": "SG"},
]

DEMO_COINS = [
    {"id": "bitcoin", "name": "Bitcoin", "symbol": "BTC"},
    {"id": "ethereum", "name": "Ethereum", "symbol": "ETH"},
    {"id": "cardano", "name": "Cardano", "symbol": "ADA"},
    {"id": "polkadot", "name": "Polkadot", "symbol": "DOT"},
    {"id": "chainlink", "name": "Chainlink", "symbol": "LINK"},
    {"id": "litecoin", "name": "Litecoin", "symbol": "LTC"},
    {"id": "stellar", "name": "Stellar", "symbol": "XLM"},
    {"id": "matic-network", "name": "Polygon", "symbol": "MATIC"},
    {"id": "solana", "name": "Solana", "symbol": "SOL"},
    {"id": "avalanche-2", "name": "Avalanche", "symbol": "AVAX"},
]

DEMO_STOCKS = [
    {"symbol": "AAPL", "name": "Apple Inc."},
    {"symbol": "GOOGL", "name": "Alphabet Inc. Class A"},
    {"symbol": "MSFT", "name": "Microsoft Corporation"},
    {"symbol": "AMZN", "name": "Amazon.com Inc."},
    {"symbol": "TSLA", "name": "Tesla Inc."},
    {"symbol": "NVDA", "name": "NVIDIA Corporation"},
    {"symbol": "META", "name": "Meta Platforms Inc."},
    {"symbol": "NFLX", "name": "Netflix Inc."},
    {"symbol": "AMD", "name": "Advanced Micro Devices Inc."},
    {"symbol": "INTC", "name": "Intel Corporation"},
    {"symbol": "CRM", "name": "Salesforce Inc."},
    {"symbol": "ORCL", "name": "Oracle Corporation"},
    {"symbol": "IBM", "name": "International Business Machines Corp."},
    {"symbol": "UBER", "name": "Uber Technologies Inc."},
]


def _city_display(city: dict) -> str:
    parts = [city["name"], city.get("state"), city["country"]]
    return ", ".join(p for p in parts if p)


def _matches(query: str, *fields: str | None) -> bool:
    return any(query in (f or "").lower() for f in fields)


class SearchService:
    """Search for cities, coins and tickers."""

    GEOCODING_URL = "https://api.openweathermap.org/geo/1.0/direct"
    COIN_LIST_URL = "https://api.coingecko.com/api/v3/coins/list"
    ALPHA_VANTAGE_URL = "https://www.alphavantage.co/query"

    def __init__(
        self,
        *,
        cache: ResponseCache,
        limiter: SlidingWindowRateLimiter,
        http_client: httpx.AsyncClient,
        openweather_key: str = "",
        alpha_vantage_key: str = "",
        offline: bool = False,
        max_retries: int = DEFAULT_MAX_RETRIES,
        timeout: float = DEFAULT_TIMEOUT,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.cache = cache
        self.limiter = limiter
        self.http_client = http_client
        self.openweather_key = "" if offline else openweather_key
        self.alpha_vantage_key = "" if offline else alpha_vantage_key
        self.offline = offline
        self.max_retries = max_retries
        self.timeout = timeout
        self._sleep = sleep

    async def _get_json(self, url: str, params: dict | None = None) -> Any:
        response = await fetch_with_retry(
            self.http_client,
            url,
            params=params,
            max_retries=self.max_retries,
            timeout=self.timeout,
            sleep=self._sleep,
        )
        return response.json()

    def _charge(self, name: str, client_id: str) -> bool:
        return self.limiter.check(f"{name}:{client_id}", API_LIMITS[name])

    async def search_cities(self, query: str, client_id: str) -> list[dict]:
        query = query.strip()[:MAX_QUERY_LENGTH]
        if len(query) < 2:
            return []

        if self.openweather_key and len(query) >= 3:
            cache_key = make_cache_key("city-search", {"q": query.lower()})
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached
            if self._charge("city-search", client_id):
                raise RateLimitedError("Rate limit exceeded")
            try:
                data = await self._get_json(
                    self.GEOCODING_URL,
                    {"q": query, "limit": 8, "appid": self.openweather_key},
                )
                cities = [
                    {
                        "id": f"{city['lat']}-{city['lon']}",
                        "name": city["name"],
                        "country": city.get("country"),
                        "state": city.get("state"),
                        "displayName": _city_display(city),
                    }
                    for city in data
                ]
            except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
                logger.warning("City search failed for %r, using demo list: %s", query, e)
            else:
                self.cache.set(cache_key, cities, CACHE_TTL["city-search"].live)
                return cities

        needle = query.lower()
        return [
            {**city, "displayName": _city_display(city)}
            for city in DEMO_CITIES
            if _matches(needle, city["name"], city["country"])
        ]

    async def _coin_list(self, client_id: str) -> list[dict] | None:
        cache_key = make_cache_key("crypto-list")
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached
        if self.offline or self._charge("crypto-list", client_id):
            return None

        try:
            data = await self._get_json(self.COIN_LIST_URL)
            coins = [
                {"id": c["id"], "name": c["name"], "symbol": c["symbol"]}
                for c in data
            ]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning("CoinGecko coin list unavailable, using demo list: %s", e)
            return None

        self.cache.set(cache_key, coins, CACHE_TTL["crypto-list"].live)
        return coins

    async def search_crypto(self, query: str, client_id: str) -> list[dict]:
        needle = query.strip()[:MAX_QUERY_LENGTH].lower()
        if not needle:
            return []

        coins = await self._coin_list(client_id)
        if coins is None:
            coins = DEMO_COINS
        return [
            {"id": c["id"], "name": c["name"], "symbol": c["symbol"].upper()}
            for c in coins
            if _matches(needle, c["name"], c["symbol"])
        ][:15]

    async def search_stocks(self, query: str, client_id: str) -> list[dict]:
        query = query.strip()[:MAX_QUERY_LENGTH]
        if not query:
            return []

        if self.alpha_vantage_key and len(query) >= 2:
            cache_key = make_cache_key("stock-search", {"q": query.lower()})
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached
            if self._charge("stock-search", client_id):
                raise RateLimitedError("Rate limit exceeded")
            try:
                data = await self._get_json(
                    self.ALPHA_VANTAGE_URL,
                    {"function": "SYMBOL_SEARCH", "keywords": query, "apikey": self.alpha_vantage_key},
                )
                if data.get("Note") or data.get("Information"):
                    raise ValueError("Alpha Vantage call frequency limit reached")
                stocks = [
                    {
                        "symbol": match["1. symbol"],
                        "name": match["2. name"],
                        "type": match.get("3. type"),
                        "region": match.get("4. region"),
                    }
                    for match in data.get("bestMatches", [])[:12]
                ]
            except (httpx.HTTPError, AttributeError, ValueError, KeyError, TypeError) as e:
                logger.warning("Stock search failed for %r, using demo list: %s", query, e)
            else:
                self.cache.set(cache_key, stocks, CACHE_TTL["stock-search"].live)
                return stocks

        needle = query.lower()
        return [
            {**stock, "type": "Equity", "region": "United States"}
            for stock in DEMO_STOCKS
            if _matches(needle, stock["symbol"], stock["name"])
        ]
