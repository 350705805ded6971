"""Utilities for transforming Google Places responses into pipeline records."""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

from discovery.core.models import GeoLocation, GeoResult, PlaceCandidate

logger = logging.getLogger(__name__)

METERS_PER_MILE = 1609.344
_MAPS_PLACE_URL = "https://www.google.com/maps/place/?q=place_id:{place_id}"


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _int_or_none(value: Any) -> Optional[int]:
    number = _number(value)
    return int(number) if number is not None else None


def _strip_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value_str = str(value).strip()
    return value_str or None


def parse_location(geometry: Optional[Dict[str, Any]]) -> Optional[GeoLocation]:
    location = (geometry or {}).get("location") or {}
    lat = _number(location.get("lat"))
    lng = _number(location.get("lng"))
    if lat is None or lng is None:
        return None
    return GeoLocation(lat=lat, lng=lng)


def to_geo_result(result: Dict[str, Any]) -> Optional[GeoResult]:
    """Return the geocoded point for a geocoding result or None when lat/lng are unusable."""
    location = parse_location(result.get("geometry"))
    if location is None:
        return None
    return GeoResult(lat=location.lat, lng=location.lng, formatted_address=_strip_or_none(result.get("formatted_address")))


def to_place_candidate(result: Dict[str, Any]) -> Optional[PlaceCandidate]:
    place_id = _strip_or_none(result.get("place_id"))
    name = _strip_or_none(result.get("name"))
    if not place_id or not name:
        logger.debug("Skipping nearby result without place_id/name: %s", result)
        return None

    return PlaceCandidate(
        place_id=place_id,
        name=name,
        rating=_number(result.get("rating")),
        user_ratings_total=_int_or_none(result.get("user_ratings_total")),
        price_level=_int_or_none(result.get("price_level")),
        vicinity=_strip_or_none(result.get("vicinity")),
        location=parse_location(result.get("geometry")),
        business_status=_strip_or_none(result.get("business_status")),
    )


def miles_to_meters(miles: float) -> int:
    return int(round(miles * METERS_PER_MILE))


def maps_place_url(place_id: str) -> str:
    return _MAPS_PLACE_URL.format(place_id=quote(place_id, safe=""))
