"""Extract likely online-ordering links from restaurant website HTML."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from bs4 import BeautifulSoup

from discovery.core.fingerprinter import normalize_whitespace, resolve_url
from discovery.core.models import OrderingLinkCandidate, OrderingPlatformSignal
from discovery.core.platforms import classify_ordering_platform, safe_host

logger = logging.getLogger(__name__)

ORDERING_TEXT_HINTS = ("order", "online ordering", "delivery", "pickup", "takeout", "carryout")
ORDERING_PATH_HINTS = ("/order", "ordering")
FALSE_POSITIVE_TEXT = ("gift card", "catering")
SOCIAL_HOSTS = ("facebook.com", "instagram.com", "fb.com", "twitter.com", "x.com", "tiktok.com", "youtube.com")
SKIPPED_HREF_PREFIXES = ("#", "mailto:", "tel:", "javascript:")

SCORE_TEXT_HINT = 25
SCORE_PATH_HINT = 15
SCORE_KNOWN_PLATFORM_HIGH = 40
SCORE_KNOWN_PLATFORM = 30
PENALTY_FALSE_POSITIVE = -20
PENALTY_SOCIAL = -50
MAX_LABEL_LENGTH = 80


def _is_social_host(host: Optional[str]) -> bool:
    if not host:
        return False
    return any(host == social or host.endswith(f".{social}") for social in SOCIAL_HOSTS)


def score_candidate(url: str, text: str, platform: OrderingPlatformSignal) -> int:
    """Rank an anchor as an ordering link; only positive scores are kept."""

    normalized_text = text.lower()
    normalized_url = url.lower()
    score = 0

    if any(hint in normalized_text for hint in ORDERING_TEXT_HINTS):
        score += SCORE_TEXT_HINT
    if any(hint in normalized_url for hint in ORDERING_PATH_HINTS):
        score += SCORE_PATH_HINT
    if platform.id.is_known:
        score += SCORE_KNOWN_PLATFORM_HIGH if platform.confidence == "high" else SCORE_KNOWN_PLATFORM
    if any(marker in normalized_text for marker in FALSE_POSITIVE_TEXT):
        score += PENALTY_FALSE_POSITIVE
    if _is_social_host(safe_host(url)):
        score += PENALTY_SOCIAL

    return score


def _label_for(text: str, url: str, platform: OrderingPlatformSignal) -> str:
    if text:
        return text[:MAX_LABEL_LENGTH]
    if platform.id.is_known:
        return f"{platform.label} ordering"
    return url


def extract_ordering_links(base_url: str, html: str, max_candidates: int) -> List[OrderingLinkCandidate]:
    """Return up to ``max_candidates`` deduplicated ordering link candidates, best first."""

    soup = BeautifulSoup(html or "", "html.parser")
    candidates: List[OrderingLinkCandidate] = []

    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href or href.lower().startswith(SKIPPED_HREF_PREFIXES):
            continue

        url = resolve_url(base_url, href)
        if not url:
            continue

        text = normalize_whitespace(anchor.get_text(" "))
        platform = classify_ordering_platform(url)
        score = score_candidate(url, text, platform)
        if score <= 0:
            continue

        candidates.append(
            OrderingLinkCandidate(
                url=url,
                host=safe_host(url),
                label=_label_for(text, url, platform),
                score=score,
                platform=platform,
            )
        )

    candidates.sort(key=lambda candidate: (-candidate.score, candidate.url))

    deduped: Dict[str, OrderingLinkCandidate] = {}
    for candidate in candidates:
        if len(deduped) >= max_candidates:
            break
        deduped.setdefault(candidate.url, candidate)

    logger.debug("Extracted %d ordering link candidates from %s", len(deduped), base_url)
    return list(deduped.values())
