from discovery.core.models import GeoLocation
from discovery.etl import transform


def test_to_place_candidate_parses_numeric_fields():
    result = {
        "place_id": "pid",
        "name": " Acme Tacos ",
        "rating": 4.6,
        "user_ratings_total": 120,
        "price_level": 2,
        "vicinity": "1 Main St",
        "geometry": {"location": {"lat": 30.1, "lng": -97.2}},
        "business_status": "OPERATIONAL",
    }

    candidate = transform.to_place_candidate(result)

    assert candidate.name == "Acme Tacos"
    assert candidate.rating == 4.6
    assert candidate.user_ratings_total == 120
    assert candidate.location == GeoLocation(lat=30.1, lng=-97.2)
    assert candidate.business_status == "OPERATIONAL"


def test_to_place_candidate_drops_non_numeric_values():
    candidate = transform.to_place_candidate({"place_id": "pid", "name": "Acme", "rating": "4.5", "geometry": {}})
    assert candidate.rating is None
    assert candidate.user_ratings_total is None
    assert candidate.location is None


def test_to_place_candidate_requires_id_and_name():
    assert transform.to_place_candidate({"name": "Acme"}) is None
    assert transform.to_place_candidate({"place_id": "pid"}) is None


def test_to_geo_result_requires_lat_lng():
    assert transform.to_geo_result({"geometry": {"location": {"lat": 1.0}}}) is None
    geo = transform.to_geo_result({"formatted_address": "Austin", "geometry": {"location": {"lat": 1.0, "lng": 2.0}}})
    assert (geo.lat, geo.lng, geo.formatted_address) == (1.0, 2.0, "Austin")


def test_miles_to_meters_and_maps_url():
    assert transform.miles_to_meters(3) == 4828
    assert transform.miles_to_meters(1) == 1609
    assert transform.maps_place_url("abc/123") == "https://www.google.com/maps/place/?q=place_id:abc%2F123"
