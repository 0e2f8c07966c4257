def test_city_search_without_key_uses_demo_list(make_client, upstream):
    client, _ = make_client()

    data = client.get("/api/search/cities", params={"q": "lon"}).json()["data"]

    assert [city["name"] for city in data] == ["London"]
    assert data[0]["displayName"] == "London, GB"
    assert upstream.requests == []


def test_city_search_needs_two_characters(make_client):
    client, _ = make_client()
    assert client.get("/api/search/cities", params={"q": "l"}).json() == {"data": []}


def test_city_search_live_results_are_cached(make_client, upstream):
    upstream.add("geo/1.0/direct", json=[
        {"name": "Springfield", "lat": 39.8, "lon": -89.6, "country": "US", "state": "Illinois"},
    ])
    client, _ = make_client(openweather_api_key="ow-key")

    first = client.get("/api/search/cities", params={"q": "Springfield"}).json()["data"]
    second = client.get("/api/search/cities", params={"q": "springfield"}).json()["data"]

    assert first == second
    assert first[0]["displayName"] == "Springfield, Illinois, US"
    assert first[0]["id"] == "39.8--89.6"
    assert len(upstream.requests) == 1


def test_city_search_falls_back_when_geocoding_fails(make_client):
    client, _ = make_client(openweather_api_key="ow-key")

    data = client.get("/api/search/cities", params={"q": "tok"}).json()["data"]

    assert [city["name"] for city in data] == ["Tokyo"]


def test_city_search_rate_limit(make_client, upstream):
    upstream.add("geo/1.0/direct", json=[])
    client, _ = make_client(openweather_api_key="ow-key")

    statuses = [
        client.get("/api/search/cities", params={"q": f"city{i}"}).status_code
        for i in range(11)
    ]

    assert statuses == [200] * 10 + [429]


def test_crypto_search_uses_coin_list(make_client, upstream):
    upstream.add("coins/list", json=[
        {"id": "bitcoin", "name": "Bitcoin", "symbol": "btc"},
        {"id": "bitcoin-cash", "name": "Bitcoin Cash", "symbol": "bch"},
        {"id": "ethereum", "name": "Ethereum", "symbol": "eth"},
    ])
    client, _ = make_client()

    data = client.get("/api/search/crypto", params={"q": "bitc"}).json()["data"]
    client.get("/api/search/crypto", params={"q": "eth"})

    assert [coin["id"] for coin in data] == ["bitcoin", "bitcoin-cash"]
    assert data[0]["symbol"] == "BTC"
    assert len(upstream.calls_to("coins/list")) == 1


def test_crypto_search_offline(make_client, upstream):
    client, _ = make_client(offline_mode=True)

    data = client.get("/api/search/crypto", params={"q": "sol"}).json()["data"]

    assert data == [{"id": "solana", "name": "Solana", "symbol": "SOL"}]
    assert upstream.requests == []


def test_stock_search_demo_matches_symbol_and_name(make_client):
    client, _ = make_client()

    by_symbol = client.get("/api/search/stocks", params={"q": "nflx"}).json()["data"]
    by_name = client.get("/api/search/stocks", params={"q": "micro"}).json()["data"]

    assert [s["symbol"] for s in by_symbol] == ["NFLX"]
    assert {s["symbol"] for s in by_name} == {"MSFT", "AMD"}


def test_stock_search_live(make_client, upstream):
    upstream.add("SYMBOL_SEARCH", json={"bestMatches": [
        {"1. symbol": "TSLA", "2. name": "Tesla Inc", "3. type": "Equity", "4. region": "United States"},
    ]})
    client, _ = make_client(alpha_vantage_api_key="av")

    data = client.get("/api/search/stocks", params={"q": "tesla"}).json()["data"]

    assert data == [{"symbol": "TSLA", "name": "Tesla Inc", "type": "Equity", "region": "United States"}]


def test_stock_search_quota_notice_falls_back(make_client, upstream):
    upstream.add("SYMBOL_SEARCH", json={"Note": "call frequency"})
    client, _ = make_client(alpha_vantage_api_key="av")

    data = client.get("/api/search/stocks", params={"q": "AAPL"}).json()["data"]

    assert data[0]["symbol"] == "AAPL"
    assert data[0]["region"] == "United States"
