"""Download restaurant website HTML for static ordering-link discovery."""

import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; RestaurantDiscoveryBot/1.0; +https://restaurant-discovery.app/bot)"
ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
REQUEST_TIMEOUT = 12
MAX_CHARS = 1_000_000


def build_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT, "Accept": ACCEPT})
    return session


def fetch_website_html(
    url: str,
    *,
    timeout: float = REQUEST_TIMEOUT,
    max_chars: int = MAX_CHARS,
    session: Optional[requests.Session] = None,
) -> str:
    """GET ``url`` following redirects and return at most ``max_chars`` of its body.

    Non-2xx responses raise ``requests.HTTPError``.
    """

    owns_session = session is None
    session = session or build_session()
    try:
        response = session.get(url, timeout=timeout, allow_redirects=True)
        response.raise_for_status()
        text = response.text
    finally:
        if owns_session:
            session.close()

    if len(text) > max_chars:
        logger.debug("Truncating %s from %d to %d characters", url, len(text), max_chars)
        return text[:max_chars]
    return text
