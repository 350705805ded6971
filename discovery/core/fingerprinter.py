"""Fingerprint the ordering platform a restaurant website embeds.

The fingerprinter inspects a downloaded (or rendered) HTML document for
references to ordering platforms: external scripts, iframes, ``<link>``
hrefs, URL-valued meta tags, JSON-LD blocks and "powered by" style text
markers. Each reference is an evidence hit; hits are weighted by source and
summed per platform so that corroborating evidence outranks a single stray
reference.
"""

from __future__ import annotations

import logging
import re
from collections import Counter, OrderedDict
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Pattern, Tuple
from urllib.parse import urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup

from discovery.core.models import (
    Confidence,
    OrderingPlatformFingerprint,
    OrderingPlatformId,
    OrderingPlatformSignal,
)
from discovery.core.platforms import PLATFORM_LABELS, classify_ordering_platform

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIGNALS = 4

SOURCE_WEIGHTS: Dict[str, int] = {
    "script": 3,
    "iframe": 3,
    "link": 2,
    "meta": 2,
    "jsonld": 2,
    "text": 1,
}

# (minimum score, confidence), highest first; anything below is "low".
CONFIDENCE_THRESHOLDS: Tuple[Tuple[int, Confidence], ...] = ((8, "high"), (4, "medium"))

TEXT_MARKERS: Tuple[Tuple[Pattern[str], OrderingPlatformId], ...] = (
    (re.compile(r"powered by slice", re.IGNORECASE), OrderingPlatformId.SLICE),
    (re.compile(r"slice may deliver", re.IGNORECASE), OrderingPlatformId.SLICE),
    (re.compile(r"powered by toast", re.IGNORECASE), OrderingPlatformId.TOAST),
    (re.compile(r"powered by chownow", re.IGNORECASE), OrderingPlatformId.CHOWNOW),
    (re.compile(r"powered by popmenu", re.IGNORECASE), OrderingPlatformId.POPMENU),
    (re.compile(r"powered by bentobox", re.IGNORECASE), OrderingPlatformId.BENTOBOX),
)

ABSOLUTE_URL_REGEX = re.compile(r"https?://[^\s\"'<>]+")
WHITESPACE_REGEX = re.compile(r"\s+")


@dataclass(frozen=True)
class EvidenceHit:
    platform: OrderingPlatformSignal
    source: str
    url: Optional[str]
    note: str


def normalize_whitespace(value: str) -> str:
    return WHITESPACE_REGEX.sub(" ", value or "").strip()


def resolve_url(base_url: str, href: str) -> Optional[str]:
    """Resolve ``href`` against ``base_url``; http(s) results get a lowercased host and a non-empty path."""
    try:
        parts = urlsplit(urljoin(base_url, href.strip()))
    except ValueError:
        return None
    if parts.scheme.lower() not in ("http", "https"):
        return urlunsplit(parts)
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), parts.path or "/", parts.query, parts.fragment))


def confidence_from_score(score: int) -> Confidence:
    for minimum, confidence in CONFIDENCE_THRESHOLDS:
        if score >= minimum:
            return confidence
    return "low"


def _url_hit(url: Optional[str], source: str, note: str) -> Optional[EvidenceHit]:
    if not url:
        return None
    platform = classify_ordering_platform(url)
    if platform.id is OrderingPlatformId.UNKNOWN:
        return None
    return EvidenceHit(platform=platform, source=source, url=url, note=note)


def collect_evidence(base_url: str, soup: BeautifulSoup) -> List[EvidenceHit]:
    """Gather every platform evidence hit from a parsed document."""

    candidates: List[Optional[EvidenceHit]] = []

    for tag_name, attr, source in (("script", "src", "script"), ("iframe", "src", "iframe"), ("link", "href", "link")):
        for element in soup.find_all(tag_name, attrs={attr: True}):
            value = element.get(attr)
            if not value or not value.strip():
                continue
            candidates.append(_url_hit(resolve_url(base_url, value), source, f"{tag_name} {attr}"))

    for element in soup.find_all("meta", attrs={"content": True}):
        content = (element.get("content") or "").strip()
        if content.startswith("http"):
            candidates.append(_url_hit(content, "meta", "meta content"))

    for element in soup.find_all("script", attrs={"type": "application/ld+json"}):
        text = normalize_whitespace(element.string or element.get_text())
        for url in ABSOLUTE_URL_REGEX.findall(text):
            candidates.append(_url_hit(url, "jsonld", "json-ld url"))

    hits = [hit for hit in candidates if hit is not None]

    body = soup.body or soup
    body_text = normalize_whitespace(body.get_text(" "))
    matched_text_platforms = []
    for pattern, platform_id in TEXT_MARKERS:
        if platform_id in matched_text_platforms or not pattern.search(body_text):
            continue
        matched_text_platforms.append(platform_id)
        label = PLATFORM_LABELS[platform_id]
        hits.append(
            EvidenceHit(
                platform=OrderingPlatformSignal(
                    id=platform_id,
                    label=label,
                    confidence="medium",
                    reason=f"Text marker indicates {label}",
                ),
                source="text",
                url=None,
                note=pattern.pattern,
            )
        )

    return hits


def build_reason(platform_id: OrderingPlatformId, hits: List[EvidenceHit]) -> str:
    relevant = [hit for hit in hits if hit.platform.id is platform_id]
    by_source = Counter(hit.source for hit in relevant)
    parts = ", ".join(f"{count} {source}" for source, count in by_source.items())
    sample_url = next((hit.url for hit in relevant if hit.url), None)
    if sample_url:
        return f"Detected via {parts} (e.g., {sample_url})"
    return f"Detected via {parts}"


def score_hits(hits: List[EvidenceHit]) -> "OrderedDict[OrderingPlatformId, int]":
    scores: "OrderedDict[OrderingPlatformId, int]" = OrderedDict()
    for hit in hits:
        scores[hit.platform.id] = scores.get(hit.platform.id, 0) + SOURCE_WEIGHTS[hit.source]
    return scores


def fingerprint_ordering_platform(
    base_url: str,
    html: str,
    max_signals: int = DEFAULT_MAX_SIGNALS,
) -> Optional[OrderingPlatformFingerprint]:
    """Return ranked platform signals for ``html`` or None when it holds no evidence at all."""

    soup = BeautifulSoup(html or "", "html.parser")
    hits = collect_evidence(base_url, soup)
    if not hits:
        return None

    representative: Dict[OrderingPlatformId, OrderingPlatformSignal] = {}
    for hit in hits:
        representative.setdefault(hit.platform.id, hit.platform)

    ranked = sorted(score_hits(hits).items(), key=lambda item: item[1], reverse=True)
    logger.debug("Fingerprint scores for %s: %s", base_url, [(pid.value, score) for pid, score in ranked])

    signals = [
        replace(
            representative[platform_id],
            confidence=confidence_from_score(score),
            reason=build_reason(platform_id, hits),
        )
        for platform_id, score in ranked[:max_signals]
    ]
    primary_id, primary_score = ranked[0]
    primary = replace(
        representative[primary_id],
        confidence=confidence_from_score(primary_score),
        reason=build_reason(primary_id, hits),
    )
    return OrderingPlatformFingerprint(primary=primary, signals=signals)
