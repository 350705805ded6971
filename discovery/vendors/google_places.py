"""Client utilities for the Google Geocoding and Places APIs."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from discovery.core.models import PlacesStatus

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
_BASE_URL = "https://maps.googleapis.com/maps/api/place"
_TIMEOUT = 10

DETAILS_FIELDS = "website,url,formatted_address"


class GooglePlacesError(RuntimeError):
    """Raised when a Google endpoint returns a non-successful status."""

    def __init__(self, status: PlacesStatus, error_message: Optional[str] = None, raw_status: Any = None) -> None:
        self.status = status
        self.error_message = error_message
        self.raw_status = raw_status if raw_status is not None else status.value
        detail = f" ({error_message})" if error_message else ""
        super().__init__(f"status {self.raw_status}{detail}")


@dataclass(frozen=True)
class GeocodeResponse:
    status: PlacesStatus
    results: List[Dict[str, Any]] = field(default_factory=list)
    error_message: Optional[str] = None


@dataclass(frozen=True)
class NearbySearchResponse:
    status: PlacesStatus
    results: List[Dict[str, Any]] = field(default_factory=list)
    next_page_token: Optional[str] = None
    error_message: Optional[str] = None


@dataclass(frozen=True)
class PlaceDetailsResponse:
    status: PlacesStatus
    website: Optional[str] = None
    url: Optional[str] = None
    formatted_address: Optional[str] = None
    error_message: Optional[str] = None


def _get(url: str, params: Dict[str, Any]) -> Dict[str, Any]:
    response = _SESSION.get(url, params=params, timeout=_TIMEOUT)
    response.raise_for_status()
    payload = response.json()
    return payload if isinstance(payload, dict) else {}


def _ensure_status(endpoint: str, payload: Dict[str, Any], accepted: set) -> PlacesStatus:
    status = PlacesStatus.parse(payload.get("status"))
    if status not in accepted:
        logger.error(
            "%s failed: status=%s, error_message=%s", endpoint, payload.get("status"), payload.get("error_message")
        )
        raise GooglePlacesError(status, payload.get("error_message"), payload.get("status"))
    return status


def _results(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [item for item in payload.get("results") or [] if isinstance(item, dict)]


def geocode(address: str, api_key: str) -> GeocodeResponse:
    params = {"address": address, "key": api_key}
    payload = _get(_GEOCODE_URL, params)
    status = _ensure_status("geocode", payload, {PlacesStatus.OK})
    return GeocodeResponse(status=status, results=_results(payload), error_message=payload.get("error_message"))


def nearby_search(
    lat: float,
    lng: float,
    radius_meters: int,
    api_key: str,
    pagetoken: Optional[str] = None,
    place_type: str = "restaurant",
) -> NearbySearchResponse:
    params = {"location": f"{lat},{lng}", "radius": str(radius_meters), "type": place_type, "key": api_key}
    if pagetoken:
        params["pagetoken"] = pagetoken
    payload = _get(f"{_BASE_URL}/nearbysearch/json", params)
    status = _ensure_status("nearby_search", payload, {PlacesStatus.OK, PlacesStatus.ZERO_RESULTS})
    return NearbySearchResponse(
        status=status,
        results=_results(payload),
        next_page_token=payload.get("next_page_token") or None,
        error_message=payload.get("error_message"),
    )


def place_details(place_id: str, api_key: str, fields: str = DETAILS_FIELDS) -> PlaceDetailsResponse:
    params = {"place_id": place_id, "key": api_key, "fields": fields}
    payload = _get(f"{_BASE_URL}/details/json", params)
    status = _ensure_status("place_details", payload, {PlacesStatus.OK, PlacesStatus.ZERO_RESULTS})
    result = payload.get("result")
    if not isinstance(result, dict):
        result = {}
    return PlaceDetailsResponse(
        status=status,
        website=result.get("website") or None,
        url=result.get("url") or None,
        formatted_address=result.get("formatted_address") or None,
        error_message=payload.get("error_message"),
    )
