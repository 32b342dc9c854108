import asyncio

import httpx
from fastapi.testclient import TestClient

from src.main import create_app
from src.infrastructure.service_provider import get_http_client, get_weather_service
from tests.providers import ProviderStub, make_settings, weather_payload


def make_client(stub: ProviderStub, **overrides) -> TestClient:
    """App wired to a stubbed provider instead of OpenWeatherMap."""
    app = create_app(make_settings(**overrides))
    app.dependency_overrides[get_http_client] = stub.client
    return TestClient(app)


def test_health_ok(provider):
    client = make_client(provider)

    r = client.get("/api/health")

    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "OK"
    assert body["apiKeyConfigured"] is True
    assert body["timestamp"].endswith("Z")


def test_index_lists_endpoints(provider):
    r = make_client(provider).get("/")

    assert r.status_code == 200
    assert r.json()["endpoints"]["cities"] == "/api/weather/cities"


def test_cities_returns_only_successful_lookups(provider):
    client = make_client(provider)

    r = client.get("/api/weather/cities")

    assert r.status_code == 200
    cities = r.json()["cities"]
    assert [c["city"] for c in cities] == ["London", "Tokyo"]
    assert cities[0]["feelsLike"] == 15
    assert cities[0]["windSpeed"] == 4.63
    assert cities[0]["coordinates"] == {"lat": 51.5085, "lon": -0.1257}


def test_search_returns_flat_record(provider):
    r = make_client(provider).get("/api/weather/search/London")

    assert r.status_code == 200
    body = r.json()
    assert body["city"] == "London"
    assert body["temperature"] == 15
    assert body["visibility"] == 10


def test_search_omits_unknown_visibility():
    stub = ProviderStub(lambda request: httpx.Response(200, json=weather_payload(visibility=None)))

    body = make_client(stub).get("/api/weather/search/London").json()

    assert "visibility" not in body


def test_search_blank_city_is_rejected_locally(provider):
    r = make_client(provider).get("/api/weather/search/%20%20%20")

    assert r.status_code == 400
    assert r.json()["kind"] == "invalid_input"
    assert provider.requests == []


def test_search_unknown_city_is_404_with_hint(provider):
    r = make_client(provider).get("/api/weather/search/Paris")

    assert r.status_code == 404
    body = r.json()
    assert body["error"] == "City not found"
    assert "Paris" in body["message"]
    assert body["suggestions"]


def test_search_provider_auth_failure_is_server_error():
    stub = ProviderStub(lambda request: httpx.Response(401, json={"message": "Invalid API key"}))

    r = make_client(stub).get("/api/weather/search/London")

    assert r.status_code == 500
    assert r.json()["kind"] == "misconfigured"
    assert r.json()["error"] == "API authentication failed"


def test_search_rate_limited():
    stub = ProviderStub(lambda request: httpx.Response(429, json={"message": "limit"}))

    r = make_client(stub).get("/api/weather/search/London")

    assert r.status_code == 429


def test_search_timeout_is_408():
    async def never(request):
        await asyncio.sleep(10)

    r = make_client(ProviderStub(never), upstream_timeout_seconds=0.05).get("/api/weather/search/London")

    assert r.status_code == 408
    assert r.json()["error"] == "Request timeout"


def test_forecast_returns_eight_steps(provider):
    r = make_client(provider).get("/api/weather/forecast/London")

    assert r.status_code == 200
    body = r.json()
    assert body["city"] == "London"
    assert len(body["forecast"]) == 8
    assert set(body["forecast"][0]) == {"date", "temperature", "description", "icon", "humidity", "windSpeed"}


def test_missing_key_degrades_every_weather_endpoint(provider):
    client = make_client(provider, openweather_api_key=None)

    for path in ("/api/weather/cities", "/api/weather/search/London", "/api/weather/forecast/London"):
        r = client.get(path)
        assert r.status_code == 500
        assert r.json()["kind"] == "misconfigured"

    assert provider.requests == []

    health = client.get("/api/health")
    assert health.status_code == 200
    assert health.json()["apiKeyConfigured"] is False


def test_unknown_api_route_lists_endpoints(provider):
    r = make_client(provider).get("/api/nope")

    assert r.status_code == 404
    body = r.json()
    assert body["error"] == "API endpoint not found"
    assert "/api/health" in body["availableEndpoints"]


def test_unhandled_fault_is_500_json(provider):
    app = create_app(make_settings())

    class Exploding:
        async def list_default_cities(self):
            raise RuntimeError("boom")

    app.dependency_overrides[get_weather_service] = Exploding
    client = TestClient(app, raise_server_exceptions=False)

    r = client.get("/api/weather/cities")

    assert r.status_code == 500
    body = r.json()
    assert body["error"] == "Internal server error"
    assert body["details"] == "boom"


def test_metrics_track_provider_calls(provider):
    client = make_client(provider)

    client.get("/api/weather/search/Atlantis")
    client.get("/api/weather/search/London")
    text = client.get("/metrics").text

    assert 'upstream_failures_total{kind="not_found"}' in text
    assert 'upstream_request_seconds_count{endpoint="weather"}' in text


def test_metrics_can_be_disabled(provider):
    r = make_client(provider, enable_metrics=False).get("/metrics")

    assert r.status_code == 404
