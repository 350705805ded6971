import pytest

from discovery.core.config import ConfigError, Settings
from discovery.core.discovery import DiscoveryError
from discovery.core.models import (
    DeepScanResult,
    DiscoveryResult,
    DiscoveryStats,
    GeoResult,
    OrderSurfaceProbeResult,
)
from discovery.jobs import run_discovery_server

VALID_PAYLOAD = {
    "address": "123 Congress Ave, Austin",
    "radiusMiles": 2,
    "minRating": 4,
    "minReviews": 25,
    "maxResults": 10,
    "fetchWebsites": True,
    "maxWebsiteLookups": 5,
    "discoverOrderingLinks": True,
    "maxOrderingLinkLookups": 5,
    "maxOrderingCandidatesPerRestaurant": 3,
}


@pytest.fixture
def client(monkeypatch):
    settings = Settings(google_places_api_key="key", deep_scan_timeout_ms=45_000)
    monkeypatch.setattr(run_discovery_server, "get_settings", lambda: settings)
    return run_discovery_server.app.test_client()


def test_root_and_health(client):
    assert client.get("/").status_code == 200

    response = client.get("/healthz")
    body = response.get_json()
    assert response.status_code == 200
    assert body["status"] == "ok"
    assert body["places_key_configured"] is True
    assert body["deep_scan_fallback"] is False


def test_discover_validates_payload(client, monkeypatch):
    def unexpected(request):
        raise AssertionError("discovery should not run")

    monkeypatch.setattr(run_discovery_server, "run_restaurant_discovery", unexpected)

    assert client.post("/discover", json={}).status_code == 400
    response = client.post("/discover", json=dict(VALID_PAYLOAD, radiusMiles=40))
    assert response.status_code == 400
    assert "radiusMiles" in response.get_json()["error"]


def test_discover_returns_result(client, monkeypatch):
    seen = {}

    def fake_run(request):
        seen["request"] = request
        return DiscoveryResult(
            input=request,
            geo=GeoResult(lat=30.27, lng=-97.74, formatted_address="Austin, TX"),
            restaurants=[],
            stats=DiscoveryStats(),
            warnings=["note"],
        )

    monkeypatch.setattr(run_discovery_server, "run_restaurant_discovery", fake_run)

    response = client.post("/discover", json=VALID_PAYLOAD)

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["geo"]["lat"] == 30.27
    assert data["warnings"] == ["note"]
    assert seen["request"].max_ordering_candidates_per_restaurant == 3


@pytest.mark.parametrize(
    "error, status",
    [
        (ConfigError("GOOGLE_PLACES_API_KEY is not configured"), 503),
        (DiscoveryError("Geocoding failed with status ZERO_RESULTS"), 502),
        (RuntimeError("boom"), 500),
    ],
)
def test_discover_maps_errors_to_status_codes(client, monkeypatch, error, status):
    def failing_run(request):
        raise error

    monkeypatch.setattr(run_discovery_server, "run_restaurant_discovery", failing_run)

    response = client.post("/discover", json=VALID_PAYLOAD)

    assert response.status_code == status
    assert response.get_json()["error"]


def test_deep_scan_uses_configured_timeout(client, monkeypatch):
    calls = []

    def fake_deep_scan(url, max_candidates, timeout_ms):
        calls.append((url, max_candidates, timeout_ms))
        return DeepScanResult(input_url=url, final_url=url, started_at="2026-01-01T00:00:00Z", notes=["ok"])

    monkeypatch.setattr(run_discovery_server, "deep_scan_ordering_links", fake_deep_scan)

    assert client.post("/deep-scan", json={"websiteUrl": "ftp://joes.example"}).status_code == 400

    response = client.post("/deep-scan", json={"websiteUrl": "https://joes.example", "maxCandidates": 2})
    assert response.status_code == 200
    assert response.get_json()["data"]["notes"] == ["ok"]

    client.post("/deep-scan", json={"websiteUrl": "https://joes.example", "timeoutMs": 20000})
    assert calls == [("https://joes.example", 2, 45_000), ("https://joes.example", 5, 20_000)]


def test_probe_requires_absolute_url(client, monkeypatch):
    monkeypatch.setattr(
        run_discovery_server,
        "probe_order_surface",
        lambda url, timeout_ms: OrderSurfaceProbeResult(url=url, started_at="now", passed=True),
    )

    assert client.post("/probe", json={"url": "joes.example"}).status_code == 400

    response = client.post("/probe", json={"url": "https://order.toasttab.com/joes"})
    assert response.status_code == 200
    assert response.get_json()["data"]["passed"] is True
