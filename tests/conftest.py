"""Shared fixtures: controllable clock, recorded backoff, fake upstreams."""
import httpx
import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.core.cache import ResponseCache
from app.core.rate_limiting import SlidingWindowRateLimiter
from app.main import create_app
from app.services.widgets.registry import WidgetServices


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.current = start

    def now(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


class RecordingSleep:
    """Stands in for asyncio.sleep and remembers every requested delay."""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(float(seconds))


class FakeUpstream:
    """Answers outbound requests from canned routes; anything else is unreachable."""

    def __init__(self):
        self.routes = []
        self.requests = []

    def add(self, fragment, status=200, json=None, handler=None):
        self.routes.append((fragment, status, json, handler))

    def calls_to(self, fragment):
        return [r for r in self.requests if fragment in str(r.url)]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for fragment, status, payload, handler in self.routes:
            if fragment in str(request.url):
                if handler is not None:
                    return handler(request)
                return httpx.Response(status, json=payload)
        raise httpx.ConnectError("upstream unreachable", request=request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def state(clock):
    """Fresh cache and limiter sharing the fake clock."""
    return ResponseCache(clock), SlidingWindowRateLimiter(clock)


def make_settings(**overrides) -> Settings:
    values = dict(
        openweather_api_key="",
        alpha_vantage_api_key="",
        finnhub_api_key="",
        offline_mode=False,
        rate_limit_per_minute=1000,
        log_level="WARNING",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def make_client(clock, sleep, upstream):
    """Build an isolated app; returns (TestClient, WidgetServices)."""

    def _make(raise_server_exceptions=True, **overrides):
        settings = make_settings(**overrides)
        services = WidgetServices(
            settings,
            clock=clock,
            http_client=upstream.client(),
            sleep=sleep,
        )
        app = create_app(settings=settings, services=services)
        return TestClient(app, raise_server_exceptions=raise_server_exceptions), services

    return _make


COINGECKO_BITCOIN = {
    "id": "bitcoin",
    "symbol": "btc",
    "name": "Bitcoin",
    "market_cap_rank": 1,
    "market_data": {
        "current_price": {"usd": 67123.45, "eur": 61800.0},
        "price_change_percentage_24h": 2.3456,
        "price_change_percentage_7d": -1.234,
        "price_change_percentage_30d": 10.5,
        "price_change_percentage_1y": 120.0,
        "market_cap": {"usd": 1.32e12, "eur": 1.2e12},
        "total_volume": {"usd": 3.1e10, "eur": 2.9e10},
        "circulating_supply": 19700000.0,
        "total_supply": 21000000.0,
        "max_supply": 21000000.0,
        "ath": {"usd": 73738.0},
        "ath_change_percentage": {"usd": -8.97},
        "last_updated": "2026-10-18T10:00:00.000Z",
    },
}

OPENWEATHER_LONDON = {
    "name": "London",
    "sys": {"country": "GB"},
    "main": {"temp": 14.6, "feels_like": 13.9, "humidity": 81, "pressure": 1012},
    "weather": [{"main": "Clouds", "description": "broken clouds", "icon": "04d"}],
    "wind": {"speed": 4.6, "deg": 240},
    "visibility": 10000,
    "clouds": {"all": 75},
}

ALPHA_VANTAGE_AAPL = {
    "Global Quote": {
        "01. symbol": "AAPL",
        "02. open": "226.4000",
        "03. high": "229.7400",
        "04. low": "225.1700",
        "05. price": "228.5200",
        "06. volume": "43813452",
        "07. latest trading day": "2026-10-16",
        "08. previous close": "226.2100",
        "09. change": "2.3100",
        "10. change percent": "1.0212%",
    }
}
