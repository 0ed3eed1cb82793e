import httpx
import pytest

from portal import weather

PAYLOAD = {
    "name": "Barefoot Bay",
    "main": {"temp": 78.4, "feels_like": 80.1, "humidity": 71},
    "wind": {"speed": 9.2},
    "weather": [{"main": "Clouds", "description": "scattered clouds", "icon": "03d"}],
}

BAREFOOT_BAY = {"lat": 27.8881, "lon": -80.5186}


@pytest.fixture(autouse=True)
def fresh_cache():
    weather.clear_cache()
    yield
    weather.clear_cache()


@pytest.fixture
def api_calls(monkeypatch):
    monkeypatch.setenv("OPENWEATHER_API_KEY", "test-key")
    calls = []

    async def fake_fetch(lat, lon, units, api_key):
        calls.append((lat, lon, units, api_key))
        return PAYLOAD

    monkeypatch.setattr(weather, "fetch_current_weather", fake_fetch)
    return calls


def test_weather_is_fetched_then_cached(client, api_calls):
    r = client.get("/api/weather", params=BAREFOOT_BAY)
    assert r.status_code == 200
    body = r.json()
    assert body["temperature"] == 78.4
    assert body["condition"] == "Clouds"
    assert body["location"] == "Barefoot Bay"
    assert body["units"] == "imperial"
    assert body["cached"] is False
    assert api_calls == [(27.89, -80.52, "imperial", "test-key")]

    # Nearby coordinates share the cache entry
    r = client.get("/api/weather", params={"lat": 27.8879, "lon": -80.5190})
    assert r.json()["cached"] is True
    assert len(api_calls) == 1

    client.get("/api/weather", params={**BAREFOOT_BAY, "units": "metric"})
    assert len(api_calls) == 2


def test_weather_not_configured(client, monkeypatch):
    monkeypatch.delenv("OPENWEATHER_API_KEY", raising=False)
    assert client.get("/api/weather", params=BAREFOOT_BAY).status_code == 503


def test_upstream_failure(client, monkeypatch):
    monkeypatch.setenv("OPENWEATHER_API_KEY", "test-key")

    async def failing_fetch(lat, lon, units, api_key):
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(weather, "fetch_current_weather", failing_fetch)
    assert client.get("/api/weather", params=BAREFOOT_BAY).status_code == 502


def test_malformed_payload(client, monkeypatch):
    monkeypatch.setenv("OPENWEATHER_API_KEY", "test-key")

    async def odd_fetch(lat, lon, units, api_key):
        return {"cod": 200}

    monkeypatch.setattr(weather, "fetch_current_weather", odd_fetch)
    assert client.get("/api/weather", params=BAREFOOT_BAY).status_code == 502


def test_coordinates_are_validated(client, api_calls):
    assert client.get("/api/weather", params={"lat": 95, "lon": 0}).status_code == 422
    assert client.get("/api/weather", params={**BAREFOOT_BAY, "units": "kelvin"}).status_code == 422
    assert api_calls == []


def test_cache_drops_expired_entries():
    reading = weather.parse_weather(PAYLOAD, "imperial")
    weather.store_in_cache((27.89, -80.52, "imperial"), reading, now=1000.0)
    weather.store_in_cache((28.5, -81.4, "imperial"), reading, now=1000.0 + weather.CACHE_TTL)
    assert list(weather._weather_cache) == [(28.5, -81.4, "imperial")]


def test_cache_is_capped(client, api_calls, monkeypatch):
    monkeypatch.setattr(weather, "MAX_CACHE_ENTRIES", 2)
    for lat in (27.0, 27.5, 28.0):
        client.get("/api/weather", params={"lat": lat, "lon": -80.5})

    assert list(weather._weather_cache) == [(27.5, -80.5, "imperial"), (28.0, -80.5, "imperial")]
    assert len(api_calls) == 3
