"""Classify a URL's host as a known online-ordering platform."""

from dataclasses import dataclass
from typing import Callable, Optional, Tuple
from urllib.parse import urlparse

from discovery.core.models import Confidence, OrderingPlatformId, OrderingPlatformSignal


def _includes(*needles: str) -> Callable[[str], bool]:
    return lambda host: any(needle in host for needle in needles)


def _includes_or_endswith(needles: Tuple[str, ...], suffixes: Tuple[str, ...]) -> Callable[[str], bool]:
    return lambda host: any(needle in host for needle in needles) or host.endswith(suffixes)


@dataclass(frozen=True)
class PlatformRule:
    id: OrderingPlatformId
    label: str
    confidence: Confidence
    reason: str
    match: Callable[[str], bool]


# Checked in order; the first matching rule wins.
PLATFORM_RULES: Tuple[PlatformRule, ...] = (
    PlatformRule(OrderingPlatformId.TOAST, "Toast", "high", "Domain matches toast ordering", _includes("toasttab.com")),
    PlatformRule(OrderingPlatformId.CHOWNOW, "ChowNow", "high", "Domain matches ChowNow ordering", _includes("chownow.com")),
    PlatformRule(
        OrderingPlatformId.SLICE,
        "Slice",
        "medium",
        "Domain matches Slice ordering/whitelabel",
        _includes_or_endswith(("slice",), ("slice.com", "orderonline.ai")),
    ),
    PlatformRule(OrderingPlatformId.OLO, "Olo", "medium", "Domain matches Olo ordering", _includes("olo.com", "oloorder")),
    PlatformRule(
        OrderingPlatformId.SQUARE,
        "Square",
        "medium",
        "Domain matches Square ordering",
        _includes_or_endswith(("squareup.com", "square.online"), ("square.site",)),
    ),
    PlatformRule(OrderingPlatformId.CLOVER, "Clover", "medium", "Domain matches Clover ordering", _includes("clover")),
    PlatformRule(OrderingPlatformId.BENTOBOX, "BentoBox", "medium", "Domain matches BentoBox ordering", _includes("getbento.com", "bento")),
    PlatformRule(OrderingPlatformId.POPMENU, "Popmenu", "medium", "Domain matches Popmenu ordering", _includes("popmenu")),
)

PLATFORM_LABELS = {rule.id: rule.label for rule in PLATFORM_RULES}
PLATFORM_LABELS[OrderingPlatformId.OTHER] = "Other"
PLATFORM_LABELS[OrderingPlatformId.UNKNOWN] = "Unknown"


def _unknown(reason: str) -> OrderingPlatformSignal:
    return OrderingPlatformSignal(id=OrderingPlatformId.UNKNOWN, label="Unknown", confidence="low", reason=reason)


def safe_host(url: Optional[str]) -> Optional[str]:
    """Return the lowercase hostname of ``url`` or None when it has none."""
    if not url:
        return None
    try:
        return urlparse(url.strip()).hostname
    except ValueError:
        return None


def classify_ordering_platform(url: Optional[str]) -> OrderingPlatformSignal:
    """Map a URL to an ordering platform signal. Pure and total."""

    if not url:
        return _unknown("No website URL available")

    host = safe_host(url)
    if not host:
        return _unknown("Website URL is not a valid URL")

    for rule in PLATFORM_RULES:
        if rule.match(host):
            return OrderingPlatformSignal(id=rule.id, label=rule.label, confidence=rule.confidence, reason=rule.reason)

    return OrderingPlatformSignal(
        id=OrderingPlatformId.OTHER,
        label="Other",
        confidence="low",
        reason=f"Unrecognized domain: {host}",
    )
