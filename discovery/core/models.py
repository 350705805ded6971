"""Core data models shared by the restaurant discovery pipeline."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Mapping, Optional

Confidence = Literal["high", "medium", "low"]


class OrderingPlatformId(str, Enum):
    """Closed set of ordering platforms the classifiers can report."""

    TOAST = "toast"
    CHOWNOW = "chownow"
    SLICE = "slice"
    OLO = "olo"
    SQUARE = "square"
    CLOVER = "clover"
    BENTOBOX = "bentobox"
    POPMENU = "popmenu"
    OTHER = "other"
    UNKNOWN = "unknown"

    @property
    def is_known(self) -> bool:
        return self not in (OrderingPlatformId.OTHER, OrderingPlatformId.UNKNOWN)


class PlacesStatus(str, Enum):
    """Status strings returned by the Google geocoding and Places endpoints."""

    OK = "OK"
    ZERO_RESULTS = "ZERO_RESULTS"
    NOT_FOUND = "NOT_FOUND"
    INVALID_REQUEST = "INVALID_REQUEST"
    OVER_QUERY_LIMIT = "OVER_QUERY_LIMIT"
    OVER_DAILY_LIMIT = "OVER_DAILY_LIMIT"
    REQUEST_DENIED = "REQUEST_DENIED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    UNRECOGNIZED = "UNRECOGNIZED"

    @classmethod
    def parse(cls, raw: Any) -> "PlacesStatus":
        try:
            return cls(str(raw))
        except ValueError:
            return cls.UNRECOGNIZED


def _json_factory(items) -> Dict[str, Any]:
    return {key: value.value if isinstance(value, Enum) else value for key, value in items}


@dataclass(frozen=True)
class OrderingPlatformSignal:
    id: OrderingPlatformId
    label: str
    confidence: Confidence
    reason: str


@dataclass(frozen=True)
class OrderingPlatformFingerprint:
    """Ranked platform evidence aggregated from a single HTML document."""

    primary: OrderingPlatformSignal
    signals: List[OrderingPlatformSignal] = field(default_factory=list)


@dataclass(frozen=True)
class OrderingLinkCandidate:
    url: str
    host: Optional[str]
    label: str
    score: int
    platform: OrderingPlatformSignal
    source: str = "website"


@dataclass(frozen=True)
class GeoLocation:
    lat: float
    lng: float


@dataclass(slots=True)
class PlaceCandidate:
    """Normalized snapshot of a restaurant returned by Nearby Search."""

    place_id: str
    name: str
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    price_level: Optional[int] = None
    vicinity: Optional[str] = None
    location: Optional[GeoLocation] = None
    business_status: Optional[str] = None


_URL_REGEX = re.compile(r"^https?://[^\s/]+", re.IGNORECASE)

# name -> (payload key, kind, minimum, maximum)
_REQUEST_FIELDS = {
    "address": ("address", str, 5, 220),
    "radius_miles": ("radiusMiles", float, 1, 15),
    "min_rating": ("minRating", float, 0, 5),
    "min_reviews": ("minReviews", int, 0, 20000),
    "max_results": ("maxResults", int, 1, 60),
    "fetch_websites": ("fetchWebsites", bool, None, None),
    "max_website_lookups": ("maxWebsiteLookups", int, 0, 25),
    "discover_ordering_links": ("discoverOrderingLinks", bool, None, None),
    "max_ordering_link_lookups": ("maxOrderingLinkLookups", int, 0, 25),
    "max_ordering_candidates_per_restaurant": ("maxOrderingCandidatesPerRestaurant", int, 1, 10),
}


def _read_field(payload: Mapping[str, Any], name: str) -> Any:
    camel, kind, minimum, maximum = _REQUEST_FIELDS[name]
    raw = payload.get(camel, payload.get(name))
    if raw is None:
        raise ValueError(f"{camel} is required")

    if kind is bool:
        if not isinstance(raw, bool):
            raise ValueError(f"{camel} must be a boolean")
        return raw

    if kind is str:
        value = str(raw).strip()
        if not minimum <= len(value) <= maximum:
            raise ValueError(f"{camel} must be between {minimum} and {maximum} characters")
        return value

    if isinstance(raw, bool):
        raise ValueError(f"{camel} must be numeric")
    try:
        number = float(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{camel} must be numeric") from exc
    if kind is int:
        if not number.is_integer():
            raise ValueError(f"{camel} must be an integer")
        number = int(number)
    if not minimum <= number <= maximum:
        raise ValueError(f"{camel} must be between {minimum} and {maximum}")
    return number


@dataclass(frozen=True)
class DiscoveryRequest:
    """Caller-supplied search parameters and lookup budgets."""

    address: str
    radius_miles: float
    min_rating: float
    min_reviews: int
    max_results: int
    fetch_websites: bool
    max_website_lookups: int
    discover_ordering_links: bool
    max_ordering_link_lookups: int
    max_ordering_candidates_per_restaurant: int

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "DiscoveryRequest":
        """Validate a JSON-style payload (camelCase or snake_case keys)."""
        values = {name: _read_field(payload, name) for name in _REQUEST_FIELDS}
        return cls(**values)


@dataclass(frozen=True)
class DeepScanRequest:
    website_url: str
    max_candidates: int = 5
    timeout_ms: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "DeepScanRequest":
        website_url = str(payload.get("websiteUrl") or payload.get("website_url") or "").strip()
        if not _URL_REGEX.match(website_url):
            raise ValueError("websiteUrl must be an absolute http(s) URL")

        max_candidates = payload.get("maxCandidates", payload.get("max_candidates", 5))
        if isinstance(max_candidates, bool) or not isinstance(max_candidates, int) or not 1 <= max_candidates <= 10:
            raise ValueError("maxCandidates must be an integer between 1 and 10")

        timeout_ms = payload.get("timeoutMs", payload.get("timeout_ms"))
        if timeout_ms is not None:
            if isinstance(timeout_ms, bool) or not isinstance(timeout_ms, int) or not 10_000 <= timeout_ms <= 120_000:
                raise ValueError("timeoutMs must be an integer between 10000 and 120000")

        return cls(website_url=website_url, max_candidates=max_candidates, timeout_ms=timeout_ms)


@dataclass(frozen=True)
class DiscoveredRestaurant:
    name: str
    place_id: str
    maps_url: str
    rating: Optional[float]
    user_ratings_total: Optional[int]
    price_level: Optional[int]
    address: Optional[str]
    location: Optional[GeoLocation]
    website_url: Optional[str]
    website_host: Optional[str]
    ordering_platform: OrderingPlatformSignal
    ordering_platform_fingerprint: Optional[OrderingPlatformFingerprint]
    ordering_links: List[OrderingLinkCandidate] = field(default_factory=list)


@dataclass(frozen=True)
class GeoResult:
    lat: float
    lng: float
    formatted_address: Optional[str] = None


@dataclass(frozen=True)
class DiscoveryStats:
    candidates_from_places: int = 0
    after_filters: int = 0
    website_lookups_attempted: int = 0
    website_lookups_succeeded: int = 0
    ordering_link_lookups_attempted: int = 0
    ordering_link_lookups_succeeded: int = 0


@dataclass(frozen=True)
class DiscoveryResult:
    input: DiscoveryRequest
    geo: GeoResult
    restaurants: List[DiscoveredRestaurant]
    stats: DiscoveryStats
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_json_factory)


@dataclass
class DeepScanResult:
    """Outcome of a browser-driven ordering link scan; partial on failure."""

    input_url: str
    final_url: str
    started_at: str
    duration_ms: int = 0
    clicked_order_cta: bool = False
    click_strategy: Optional[str] = None
    fingerprint: Optional[OrderingPlatformFingerprint] = None
    ordering_links: List[OrderingLinkCandidate] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_json_factory)


@dataclass
class OrderSurfaceChecks:
    reached_site: bool = False
    bot_blocked: bool = False
    added_item_to_cart: bool = False
    reached_checkout: bool = False
    guest_card_entry_visible: bool = False
    login_required_for_card: bool = False
    wallet_only: bool = False


@dataclass
class OrderSurfaceProbeResult:
    url: str
    started_at: str
    provider_hint: str = "unknown"
    duration_ms: int = 0
    passed: bool = False
    checks: OrderSurfaceChecks = field(default_factory=OrderSurfaceChecks)
    notes: List[str] = field(default_factory=list)
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_json_factory)
