"""CLI job to discover nearby restaurants and their ordering platforms."""

import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from discovery.core.config import ConfigError
from discovery.core.discovery import DiscoveryError, run_restaurant_discovery
from discovery.core.models import DiscoveryRequest

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Discover restaurants near an address and detect their ordering platforms")
    parser.add_argument("address", help="Free-text address to search around")
    parser.add_argument("--radius-miles", dest="radius_miles", type=float, default=3.0, help="Search radius in miles")
    parser.add_argument("--min-rating", dest="min_rating", type=float, default=4.0, help="Minimum Google rating")
    parser.add_argument("--min-reviews", dest="min_reviews", type=int, default=50, help="Minimum review count")
    parser.add_argument("--max-results", dest="max_results", type=int, default=20, help="Maximum restaurants to return")
    parser.add_argument("--fetch-websites", dest="fetch_websites", action="store_true", help="Look up restaurant websites")
    parser.add_argument("--max-website-lookups", dest="max_website_lookups", type=int, default=10)
    parser.add_argument(
        "--discover-ordering-links",
        dest="discover_ordering_links",
        action="store_true",
        help="Scan websites for online ordering links",
    )
    parser.add_argument("--max-ordering-link-lookups", dest="max_ordering_link_lookups", type=int, default=10)
    parser.add_argument(
        "--max-ordering-candidates",
        dest="max_ordering_candidates_per_restaurant",
        type=int,
        default=5,
        help="Maximum ordering links kept per restaurant",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        request = DiscoveryRequest.from_payload(vars(args))
    except ValueError as exc:
        parser.error(str(exc))

    try:
        result = run_restaurant_discovery(request)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc
    except DiscoveryError as exc:
        logger.error("Discovery failed: %s", exc)
        raise SystemExit(1) from exc

    json.dump(result.to_dict(), sys.stdout, indent=2)
    sys.stdout.write("\n")


if __name__ == "__main__":
    main()
