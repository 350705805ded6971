import pytest

from discovery.core.models import PlacesStatus
from discovery.vendors import google_places


class DummyResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload or {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise RuntimeError("http error")

    def json(self):
        return self._payload


class DummySession:
    def __init__(self):
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        return self.response


@pytest.fixture(autouse=True)
def patch_session(monkeypatch):
    session = DummySession()
    monkeypatch.setattr(google_places, "_SESSION", session)
    return session


def test_geocode_success(patch_session):
    patch_session.response = DummyResponse(
        payload={
            "status": "OK",
            "results": [{"formatted_address": "Austin, TX", "geometry": {"location": {"lat": 30.27, "lng": -97.74}}}],
        }
    )
    response = google_places.geocode("Austin", "key")
    assert response.status is PlacesStatus.OK
    assert response.results[0]["formatted_address"] == "Austin, TX"
    url, params, timeout = patch_session.calls[0]
    assert "geocode" in url
    assert params == {"address": "Austin", "key": "key"}
    assert timeout == 10


def test_geocode_zero_results_is_an_error(patch_session):
    patch_session.response = DummyResponse(payload={"status": "ZERO_RESULTS", "results": []})
    with pytest.raises(google_places.GooglePlacesError) as excinfo:
        google_places.geocode("nowhere", "key")
    assert excinfo.value.status is PlacesStatus.ZERO_RESULTS


def test_nearby_search_params_and_token(patch_session):
    patch_session.response = DummyResponse(
        payload={"status": "OK", "results": [{"place_id": "p1"}, "junk"], "next_page_token": "tok"}
    )
    response = google_places.nearby_search(30.27, -97.74, 4828, "key", pagetoken="prev")

    assert response.next_page_token == "tok"
    assert response.results == [{"place_id": "p1"}]
    url, params, _ = patch_session.calls[0]
    assert "nearbysearch" in url
    assert params["location"] == "30.27,-97.74"
    assert params["radius"] == "4828"
    assert params["type"] == "restaurant"
    assert params["pagetoken"] == "prev"


def test_nearby_search_zero_results(patch_session):
    patch_session.response = DummyResponse(payload={"status": "ZERO_RESULTS"})
    response = google_places.nearby_search(1.0, 2.0, 100, "key")
    assert response.status is PlacesStatus.ZERO_RESULTS
    assert response.results == []
    assert response.next_page_token is None


def test_nearby_search_error_status(patch_session):
    patch_session.response = DummyResponse(payload={"status": "REQUEST_DENIED", "error_message": "bad key"})
    with pytest.raises(google_places.GooglePlacesError) as excinfo:
        google_places.nearby_search(1.0, 2.0, 100, "key")
    assert excinfo.value.status is PlacesStatus.REQUEST_DENIED
    assert "bad key" in str(excinfo.value)


def test_unrecognized_status_keeps_raw_value(patch_session):
    patch_session.response = DummyResponse(payload={"status": "SOMETHING_NEW"})
    with pytest.raises(google_places.GooglePlacesError) as excinfo:
        google_places.nearby_search(1.0, 2.0, 100, "key")
    assert excinfo.value.status is PlacesStatus.UNRECOGNIZED
    assert "SOMETHING_NEW" in str(excinfo.value)


def test_place_details_success(patch_session):
    patch_session.response = DummyResponse(
        payload={"status": "OK", "result": {"website": "https://acme.example", "formatted_address": "1 Main"}}
    )
    details = google_places.place_details("pid", "key")
    assert details.website == "https://acme.example"
    assert details.formatted_address == "1 Main"
    _, params, _ = patch_session.calls[0]
    assert params["fields"] == "website,url,formatted_address"


def test_place_details_error(patch_session):
    patch_session.response = DummyResponse(payload={"status": "OVER_QUERY_LIMIT", "error_message": "limit"})
    with pytest.raises(google_places.GooglePlacesError):
        google_places.place_details("pid", "key")


def test_place_details_ignores_malformed_result(patch_session):
    patch_session.response = DummyResponse(payload={"status": "OK", "result": ["not", "a", "dict"]})
    details = google_places.place_details("pid", "key")
    assert details.status is PlacesStatus.OK
    assert details.website is None
    assert details.formatted_address is None
