"""End-to-end behaviour through the FastAPI app."""
import logging

import pytest

from app.core.log_config import configure_logging
from conftest import COINGECKO_BITCOIN, OPENWEATHER_LONDON


def test_root_banner(make_client):
    client, _ = make_client()
    response = client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Dashboard Widget API"
    assert body["endpoints"]["health"] == "/health"


def test_crypto_cold_then_warm_hits_upstream_once(make_client, upstream):
    upstream.add("coins/bitcoin", json=COINGECKO_BITCOIN)
    client, _ = make_client()

    first = client.get("/api/widget/crypto", params={"coin": "bitcoin", "currency": "usd"})
    second = client.get("/api/widget/crypto", params={"coin": "bitcoin", "currency": "usd"})

    assert first.status_code == second.status_code == 200
    assert first.json() == second.json()
    assert first.json()["data"]["price"] == 67123.45
    assert first.json()["data"]["demo"] is False
    assert len(upstream.requests) == 1


def test_equivalent_params_share_a_cache_entry(make_client, upstream):
    upstream.add("coins/bitcoin", json=COINGECKO_BITCOIN)
    client, _ = make_client()

    client.get("/api/widget/crypto", params={"coin": "Bitcoin"})
    client.get("/api/widget/crypto", params={"coin": "bitcoin", "currency": "USD"})

    assert len(upstream.requests) == 1


def test_fifth_rapid_stock_request_is_rate_limited(make_client):
    client, _ = make_client()

    statuses = [client.get("/api/widget/stocks", params={"symbol": "AAPL"}).status_code for _ in range(5)]

    assert statuses == [200, 200, 200, 200, 429]
    body = client.get("/api/widget/stocks", params={"symbol": "AAPL"}).json()
    assert "error" in body
    assert body["details"]["windowSeconds"] == 70


def test_stock_window_reopens(make_client, clock):
    client, _ = make_client()
    for _ in range(4):
        client.get("/api/widget/stocks", params={"symbol": "AAPL"})
    assert client.get("/api/widget/stocks", params={"symbol": "AAPL"}).status_code == 429

    clock.advance(70)
    assert client.get("/api/widget/stocks", params={"symbol": "AAPL"}).status_code == 200


def test_unreachable_upstream_serves_tagged_demo(make_client, sleep):
    client, _ = make_client(openweather_api_key="ow-key")

    response = client.get("/api/widget/weather", params={"location": "London", "units": "metric"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["demo"] is True
    assert data["location"] == "London"
    assert sleep.calls == [1.0]


def test_live_weather(make_client, upstream):
    upstream.add("data/2.5/weather", json=OPENWEATHER_LONDON)
    client, _ = make_client(openweather_api_key="ow-key")

    data = client.get("/api/widget/weather", params={"location": "London"}).json()["data"]

    assert data["demo"] is False
    assert data["condition"] == "Clouds"


def test_unknown_location_returns_400(make_client, upstream):
    upstream.add("data/2.5/weather", status=404, json={"cod": "404"})
    client, _ = make_client(openweather_api_key="ow-key")

    response = client.get("/api/widget/weather", params={"location": "Atlantis"})

    assert response.status_code == 400
    assert response.json() == {"error": "Location not found"}


@pytest.mark.parametrize("path,params", [
    ("/api/widget/weather", {"units": "kelvin"}),
    ("/api/widget/crypto", {"currency": "doge"}),
    ("/api/widget/crypto", {"coin": "$$$"}),
    ("/api/widget/stocks", {"symbol": "TOOLONGSYMBOL"}),
    ("/api/widget/sports", {"league": "cricket"}),
    ("/api/widget/countdown", {"targetDate": "not-a-date"}),
])
def test_invalid_parameters_return_400(make_client, path, params):
    client, _ = make_client()

    response = client.get(path, params=params)

    assert response.status_code == 400
    assert "error" in response.json()


def test_offline_mode_serves_demo_for_every_widget(make_client, upstream):
    client, _ = make_client(offline_mode=True, openweather_api_key="ow-key")

    for widget in ("weather", "crypto", "stocks", "sports"):
        response = client.get(f"/api/widget/{widget}")
        assert response.status_code == 200
        assert response.json()["data"]["demo"] is True

    assert upstream.requests == []


def test_unknown_widget_is_404(make_client):
    client, _ = make_client()
    response = client.get("/api/widget/horoscope")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


def test_unexpected_errors_return_json_500(make_client, monkeypatch):
    client, services = make_client(raise_server_exceptions=False)

    async def explode(params, client_id):
        raise RuntimeError("boom")

    monkeypatch.setattr(services.provider("crypto"), "get_data", explode)
    response = client.get("/api/widget/crypto")

    assert response.status_code == 500
    assert response.json()["error"] == "Internal server error"


def test_global_ceiling_applies_across_routes(make_client):
    client, _ = make_client(rate_limit_per_minute=2)

    assert client.get("/").status_code == 200
    assert client.get("/").status_code == 200
    assert client.get("/").status_code == 429


def test_health_reports_modes_and_state(make_client):
    client, _ = make_client(openweather_api_key="ow-key")
    client.get("/api/widget/stocks")

    body = client.get("/health").json()

    assert body["status"] == "ok"
    assert body["version"] == "2.0.0"
    assert body["providers"] == {
        "weather": "live",
        "crypto": "live",
        "stocks": "demo",
        "sports": "live",
    }
    assert body["cache"] == {"entries": 1, "rateLimitEntries": 1}
    assert body["uptime"] >= 0


def test_sweep_clears_expired_state(make_client, clock):
    client, services = make_client(offline_mode=True)
    client.get("/api/widget/crypto")
    client.get("/api/widget/sports")

    clock.advance(60)
    assert services.sweep() == (2, 2)

    body = client.get("/health").json()
    assert body["cache"] == {"entries": 0, "rateLimitEntries": 0}


def test_logging_setup_is_idempotent():
    configure_logging("debug")
    configure_logging("warning")

    root = logging.getLogger()
    assert sum(getattr(h, "_dashboard_handler", False) for h in root.handlers) == 1
    assert root.level == logging.WARNING
    assert logging.getLogger("httpx").level == logging.WARNING


def test_lifespan_runs_sweeper_and_leaves_injected_client_open(make_client):
    client, services = make_client()

    with client:
        assert client.get("/health").status_code == 200

    assert not services.http_client.is_closed


def test_null_forecast_temperature_keeps_weather_available(make_client, upstream):
    upstream.add("data/2.5/weather", json=OPENWEATHER_LONDON)
    upstream.add("data/2.5/forecast", json={"list": [
        {"dt": 1_760_000_000, "main": {"temp": None, "temp_min": 8, "temp_max": 12},
         "weather": [{"main": "Rain"}]},
    ]})
    client, _ = make_client(openweather_api_key="ow-key")

    response = client.get("/api/widget/weather", params={"location": "London", "detailLevel": "expanded"})

    assert response.status_code == 200
    assert response.json()["data"]["location"] == "London"
    assert "forecast" not in response.json()["data"]
