"""Find nearby restaurants and the online-ordering platforms their websites use."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import requests

from discovery.core.config import Settings, get_settings, require_api_key
from discovery.core.deep_scan import deep_scan_ordering_links
from discovery.core.fingerprinter import fingerprint_ordering_platform
from discovery.core.link_extractor import extract_ordering_links
from discovery.core.models import (
    DiscoveredRestaurant,
    DiscoveryRequest,
    DiscoveryResult,
    DiscoveryStats,
    GeoResult,
    OrderingLinkCandidate,
    OrderingPlatformFingerprint,
    OrderingPlatformSignal,
    PlaceCandidate,
    PlacesStatus,
)
from discovery.core.platforms import classify_ordering_platform, safe_host
from discovery.etl.transform import maps_place_url, miles_to_meters, to_geo_result, to_place_candidate
from discovery.vendors import google_places
from discovery.vendors.website import fetch_website_html

logger = logging.getLogger(__name__)

PAGE_TOKEN_DELAY_SECONDS = 2.0


class DiscoveryError(RuntimeError):
    """Fatal discovery failure; no partial result is produced."""


@dataclass(frozen=True)
class WebsiteLookup:
    """Outcome of one place-details call for a candidate."""

    attempted: bool = False
    succeeded: bool = False
    website_url: Optional[str] = None
    address: Optional[str] = None
    warning: Optional[str] = None


@dataclass(frozen=True)
class OrderingLookup:
    """Outcome of one website scan for ordering links."""

    attempted: bool = False
    succeeded: bool = False
    fingerprint: Optional[OrderingPlatformFingerprint] = None
    links: List[OrderingLinkCandidate] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def geocode_address(address: str, api_key: str) -> GeoResult:
    try:
        response = google_places.geocode(address, api_key)
    except google_places.GooglePlacesError as exc:
        raise DiscoveryError(f"Geocoding failed with {exc}") from exc
    except requests.RequestException as exc:
        logger.error("Geocoding request failed for %r: %s", address, exc)
        raise DiscoveryError("Failed to geocode address") from exc

    if not response.results:
        raise DiscoveryError(f"Geocoding failed with status {PlacesStatus.ZERO_RESULTS.value}")

    geo = to_geo_result(response.results[0])
    if geo is None:
        raise DiscoveryError("Geocoding did not return a usable lat/lng")
    return geo


def search_nearby(
    geo: GeoResult,
    radius_meters: int,
    max_results: int,
    api_key: str,
    max_pages: int = 3,
) -> List[PlaceCandidate]:
    """Page through Nearby Search until enough candidates are found or pages run out."""

    candidates: List[PlaceCandidate] = []
    page_token: Optional[str] = None

    for page in range(max_pages):
        if page_token:
            # The continuation token only becomes valid after a short delay.
            time.sleep(PAGE_TOKEN_DELAY_SECONDS)
        try:
            response = google_places.nearby_search(geo.lat, geo.lng, radius_meters, api_key, pagetoken=page_token)
        except google_places.GooglePlacesError as exc:
            raise DiscoveryError(f"Places Nearby Search failed with {exc}") from exc
        except requests.RequestException as exc:
            logger.error("Nearby search request failed on page %d: %s", page + 1, exc)
            raise DiscoveryError("Failed to load nearby restaurants") from exc

        logger.info("Fetched %d nearby results on page %d", len(response.results), page + 1)
        for raw in response.results:
            candidate = to_place_candidate(raw)
            if candidate is not None:
                candidates.append(candidate)

        if len(candidates) >= max_results:
            break
        page_token = response.next_page_token
        if not page_token or not response.results:
            break

    return candidates


def filter_candidates(candidates: Sequence[PlaceCandidate], min_rating: float, min_reviews: int) -> List[PlaceCandidate]:
    """Keep candidates whose rating and review count are both present and meet the minimums."""
    return [
        candidate
        for candidate in candidates
        if candidate.rating is not None
        and candidate.rating >= min_rating
        and candidate.user_ratings_total is not None
        and candidate.user_ratings_total >= min_reviews
    ]


def lookup_website(place: PlaceCandidate, api_key: str) -> WebsiteLookup:
    try:
        details = google_places.place_details(place.place_id, api_key)
    except google_places.GooglePlacesError as exc:
        logger.warning("Place details for %s returned %s", place.place_id, exc)
        return WebsiteLookup(attempted=True, warning=f'Place details for "{place.name}" returned {exc}')
    except requests.RequestException as exc:
        logger.warning("Place details lookup failed for %s: %s", place.place_id, exc)
        return WebsiteLookup(attempted=True, warning=f'Place details lookup failed for "{place.name}"')

    if details.status is PlacesStatus.ZERO_RESULTS:
        return WebsiteLookup(attempted=True)
    return WebsiteLookup(
        attempted=True,
        succeeded=True,
        website_url=details.website,
        address=details.formatted_address,
    )


def lookup_ordering_links(
    place: PlaceCandidate,
    website_url: str,
    max_candidates: int,
    settings: Settings,
) -> OrderingLookup:
    """Scan a restaurant website statically, then in a browser when enabled and nothing was found."""

    fingerprint: Optional[OrderingPlatformFingerprint] = None
    links: List[OrderingLinkCandidate] = []
    warnings: List[str] = []
    succeeded = False

    try:
        html = fetch_website_html(
            website_url,
            timeout=settings.website_fetch_timeout,
            max_chars=settings.website_max_chars,
        )
        fingerprint = fingerprint_ordering_platform(website_url, html)
        links = extract_ordering_links(website_url, html, max_candidates)
        succeeded = True
    except Exception as exc:  # noqa: BLE001
        logger.warning("Ordering link fetch failed for %s: %s", website_url, exc)
        warnings.append(f'Ordering link scan failed for "{place.name}"')

    if not links and settings.deep_scan_fallback:
        scan = deep_scan_ordering_links(website_url, max_candidates, timeout_ms=settings.deep_scan_timeout_ms)
        if scan.error_message:
            warnings.append(f'Deep scan failed for "{place.name}": {scan.error_message}')
        else:
            links = scan.ordering_links
            fingerprint = scan.fingerprint or fingerprint
            succeeded = True

    return OrderingLookup(attempted=True, succeeded=succeeded, fingerprint=fingerprint, links=links, warnings=warnings)


def resolve_platform(
    website_url: Optional[str],
    fingerprint: Optional[OrderingPlatformFingerprint],
) -> OrderingPlatformSignal:
    """Prefer the website's own domain; fall back to embedded evidence when the domain is generic."""
    platform = classify_ordering_platform(website_url)
    if not platform.id.is_known and fingerprint is not None and fingerprint.primary.id.is_known:
        return fingerprint.primary
    return platform


def budget_warnings(request: DiscoveryRequest, stats: DiscoveryStats, restaurant_count: int) -> List[str]:
    warnings: List[str] = []

    if not request.fetch_websites:
        warnings.append(
            'Website/platform detection is disabled. Enable "Fetch websites" to classify ordering providers.'
        )
    elif request.max_website_lookups == 0:
        warnings.append(
            "Website/platform detection is enabled but maxWebsiteLookups is 0, so no lookups were performed."
        )
    elif stats.website_lookups_attempted < restaurant_count:
        warnings.append(
            f"Website lookups were limited ({stats.website_lookups_attempted}/{restaurant_count}). "
            "Increase maxWebsiteLookups to classify more restaurants."
        )

    if not request.discover_ordering_links:
        warnings.append(
            'Ordering link discovery is disabled. Enable "Discover ordering links" to find provider/whitelabel order pages.'
        )
    elif request.max_ordering_link_lookups == 0:
        warnings.append(
            "Ordering link discovery is enabled but maxOrderingLinkLookups is 0, so no scans were performed."
        )
    elif stats.ordering_link_lookups_attempted < restaurant_count:
        warnings.append(
            f"Ordering link scans were limited ({stats.ordering_link_lookups_attempted}/{restaurant_count}). "
            "Increase maxOrderingLinkLookups to scan more restaurants."
        )

    return warnings


def run_restaurant_discovery(request: DiscoveryRequest, settings: Optional[Settings] = None) -> DiscoveryResult:
    """Run one discovery pass for ``request``.

    Raises ``ConfigError`` when the API key is missing and ``DiscoveryError``
    when geocoding or nearby search fail. Per-restaurant failures only add
    warnings.
    """

    settings = settings or get_settings()
    api_key = require_api_key(settings)

    geo = geocode_address(request.address, api_key)
    logger.info("Geocoded %r to (%s, %s)", request.address, geo.lat, geo.lng)

    candidates = search_nearby(
        geo,
        miles_to_meters(request.radius_miles),
        request.max_results,
        api_key,
        max_pages=settings.max_pages,
    )
    filtered = filter_candidates(candidates, request.min_rating, request.min_reviews)
    capped = filtered[: request.max_results]
    logger.info(
        "Nearby search returned %d candidates; %d after filters, %d after cap",
        len(candidates),
        len(filtered),
        len(capped),
    )

    website_budget = request.max_website_lookups if request.fetch_websites else 0
    ordering_budget = request.max_ordering_link_lookups if request.discover_ordering_links else 0

    website_attempted = website_succeeded = 0
    ordering_attempted = ordering_succeeded = 0
    warnings: List[str] = []
    restaurants: List[DiscoveredRestaurant] = []

    for place in capped:
        website = WebsiteLookup()
        if website_attempted < website_budget:
            website = lookup_website(place, api_key)

        ordering = OrderingLookup()
        if website.website_url and ordering_attempted < ordering_budget:
            ordering = lookup_ordering_links(
                place,
                website.website_url,
                request.max_ordering_candidates_per_restaurant,
                settings,
            )

        website_attempted += website.attempted
        website_succeeded += website.succeeded
        ordering_attempted += ordering.attempted
        ordering_succeeded += ordering.succeeded
        if website.warning:
            warnings.append(website.warning)
        warnings.extend(ordering.warnings)

        restaurants.append(
            DiscoveredRestaurant(
                name=place.name,
                place_id=place.place_id,
                maps_url=maps_place_url(place.place_id),
                rating=place.rating,
                user_ratings_total=place.user_ratings_total,
                price_level=place.price_level,
                address=website.address or place.vicinity,
                location=place.location,
                website_url=website.website_url,
                website_host=safe_host(website.website_url),
                ordering_platform=resolve_platform(website.website_url, ordering.fingerprint),
                ordering_platform_fingerprint=ordering.fingerprint,
                ordering_links=list(ordering.links),
            )
        )

    stats = DiscoveryStats(
        candidates_from_places=len(candidates),
        after_filters=len(restaurants),
        website_lookups_attempted=website_attempted,
        website_lookups_succeeded=website_succeeded,
        ordering_link_lookups_attempted=ordering_attempted,
        ordering_link_lookups_succeeded=ordering_succeeded,
    )
    warnings.extend(budget_warnings(request, stats, len(restaurants)))

    logger.info(
        "Discovery finished: restaurants=%d websites=%d/%d ordering_scans=%d/%d warnings=%d",
        len(restaurants),
        website_succeeded,
        website_attempted,
        ordering_succeeded,
        ordering_attempted,
        len(warnings),
    )
    return DiscoveryResult(input=request, geo=geo, restaurants=restaurants, stats=stats, warnings=warnings)
