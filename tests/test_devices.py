def test_device_feed_collects_default_widgets(make_client):
    client, _ = make_client(offline_mode=True)

    body = client.get("/api/esp32/kitchen-display").json()

    assert body["deviceId"] == "kitchen-display"
    assert body["status"] == "success"
    assert [w["type"] for w in body["widgets"]] == ["weather", "crypto", "stocks", "countdown"]
    assert body["widgets"][0]["data"]["location"] == "New York"
    assert body["widgets"][2]["data"]["symbol"] == "AAPL"
    assert body["widgets"][3]["data"]["title"] == "New Year"


def test_anonymous_device(make_client):
    client, _ = make_client(offline_mode=True)

    body = client.get("/api/esp32").json()

    assert body["deviceId"] == "unknown"
    assert len(body["widgets"]) == 4


def test_device_feed_drops_failing_widgets(make_client, monkeypatch):
    client, services = make_client(offline_mode=True)

    async def down(params, client_id, **kwargs):
        raise RuntimeError("provider down")

    monkeypatch.setattr(services.provider("crypto"), "get_data", down)
    body = client.get("/api/esp32/desk").json()

    assert [w["type"] for w in body["widgets"]] == ["weather", "stocks", "countdown"]


def test_device_feed_has_its_own_rate_window(make_client):
    client, _ = make_client(offline_mode=True)

    statuses = [client.get("/api/esp32/desk").status_code for _ in range(11)]

    assert statuses == [200] * 10 + [429]
    # Other devices are unaffected
    assert client.get("/api/esp32/hall").status_code == 200


def test_device_feed_does_not_consume_browser_windows(make_client):
    client, _ = make_client(offline_mode=True)
    for _ in range(2):
        client.get("/api/esp32/desk")

    statuses = [client.get("/api/widget/stocks").status_code for _ in range(4)]

    assert statuses == [200] * 4


def test_invalid_device_id_is_rejected(make_client):
    client, _ = make_client()

    response = client.get("/api/esp32/bad id!")

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request parameters"


def test_polling_device_keeps_cached_widgets(make_client, clock):
    client, _ = make_client(offline_mode=True)

    feeds = []
    for _ in range(6):
        feeds.append([w["type"] for w in client.get("/api/esp32/dev1").json()["widgets"]])
        clock.advance(10)

    assert feeds == [["weather", "crypto", "stocks", "countdown"]] * 6
