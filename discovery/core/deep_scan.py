"""Browser-driven fallback for finding ordering links on JavaScript-heavy sites."""

from __future__ import annotations

import logging
import re
import time
from datetime import datetime, timezone
from typing import Callable, Optional, Pattern, Sequence, Tuple

from discovery.core.browser import open_page_session
from discovery.core.fingerprinter import fingerprint_ordering_platform
from discovery.core.link_extractor import extract_ordering_links
from discovery.core.models import DeepScanResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 60_000
SETTLE_TIMEOUT_MS = 10_000
BODY_TEXT_TIMEOUT_MS = 4_000
CLICK_TIMEOUT_MS = 4_000
DISMISS_CLICK_TIMEOUT_MS = 2_000
DISMISS_PAUSE_MS = 250
POST_CLICK_PAUSE_MS = 800

ORDER_CTA_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"order online", re.IGNORECASE),
    re.compile(r"order now", re.IGNORECASE),
    re.compile(r"^order$", re.IGNORECASE),
    re.compile(r"online ordering", re.IGNORECASE),
    re.compile(r"delivery", re.IGNORECASE),
    re.compile(r"pickup", re.IGNORECASE),
)
ORDER_HREF_SELECTORS = ('a[href*="order"]', 'a[href*="ordering"]', 'a[href*="delivery"]')
DISMISS_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"accept", re.IGNORECASE),
    re.compile(r"agree", re.IGNORECASE),
    re.compile(r"got it", re.IGNORECASE),
    re.compile(r"continue", re.IGNORECASE),
    re.compile(r"^ok$", re.IGNORECASE),
)
BLOCK_TEXT_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"checking your browser", re.IGNORECASE),
    re.compile(r"attention required", re.IGNORECASE),
    re.compile(r"verify you are human", re.IGNORECASE),
    re.compile(r"access denied", re.IGNORECASE),
    re.compile(r"unusual traffic", re.IGNORECASE),
    re.compile(r"cloudflare", re.IGNORECASE),
    re.compile(r"captcha", re.IGNORECASE),
)


class DeepScanBudgetExceeded(RuntimeError):
    """Raised when a browser scan runs past its wall-clock budget."""


class Deadline:
    """Wall-clock budget shared by every step of one browser session."""

    def __init__(self, budget_ms: int, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._budget_ms = budget_ms
        self._expires_at = clock() + budget_ms / 1000

    def remaining_ms(self) -> int:
        return max(0, int((self._expires_at - self._clock()) * 1000))

    def cap(self, timeout_ms: int) -> int:
        """Clamp a step timeout to the remaining budget."""
        self.check()
        return min(timeout_ms, self.remaining_ms())

    def check(self) -> None:
        if self.remaining_ms() <= 0:
            raise DeepScanBudgetExceeded(f"exceeded {self._budget_ms}ms budget")


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def contains_block_signals(session, deadline: Deadline, patterns: Sequence[Pattern[str]] = BLOCK_TEXT_PATTERNS) -> bool:
    """Return True when the title or body text looks like a bot challenge."""
    title = session.title()
    if any(pattern.search(title) for pattern in patterns):
        return True
    body_text = session.body_text(deadline.cap(BODY_TEXT_TIMEOUT_MS))
    return any(pattern.search(body_text) for pattern in patterns)


def dismiss_overlays(session, deadline: Deadline, patterns: Sequence[Pattern[str]] = DISMISS_PATTERNS) -> None:
    """Best-effort click through consent and cookie banners."""
    for pattern in patterns:
        if session.click_role("button", pattern, deadline.cap(DISMISS_CLICK_TIMEOUT_MS)):
            session.wait(DISMISS_PAUSE_MS)


def try_click_order_cta(session, deadline: Deadline, notes) -> Optional[str]:
    """Click one order-style call to action; return the strategy that fired."""
    for pattern in ORDER_CTA_PATTERNS:
        for role in ("button", "link"):
            if session.click_role(role, pattern, deadline.cap(CLICK_TIMEOUT_MS)):
                notes.append(f"Clicked {role} CTA ({pattern.pattern})")
                return role

    for selector in ORDER_HREF_SELECTORS:
        if session.click_selector(selector, deadline.cap(CLICK_TIMEOUT_MS)):
            notes.append(f"Clicked link selector {selector}")
            return "selector"

    return None


def _static_pass(result: DeepScanResult, base_url: str, html: str, max_candidates: int) -> None:
    result.fingerprint = fingerprint_ordering_platform(base_url, html)
    result.ordering_links = extract_ordering_links(base_url, html, max_candidates)


def _found_enough(result: DeepScanResult) -> bool:
    if result.ordering_links:
        return True
    return result.fingerprint is not None and result.fingerprint.primary.id.is_known


def _scan(session, result: DeepScanResult, max_candidates: int, deadline: Deadline) -> None:
    session.goto(result.input_url)
    session.wait_for_settle(deadline.cap(SETTLE_TIMEOUT_MS))
    dismiss_overlays(session, deadline)

    if contains_block_signals(session, deadline):
        result.notes.append("Detected block/challenge signals on initial load")
        result.final_url = session.url
        return

    result.final_url = session.url
    _static_pass(result, result.final_url, session.content(), max_candidates)
    if _found_enough(result):
        result.notes.append("Static scan found signals; skipping deep click")
        return

    strategy = try_click_order_cta(session, deadline, result.notes)
    if strategy is None:
        result.notes.append("No obvious order CTA found to click")
        return

    result.clicked_order_cta = True
    result.click_strategy = strategy

    session.wait_for_settle(deadline.cap(SETTLE_TIMEOUT_MS))
    session.wait(min(POST_CLICK_PAUSE_MS, deadline.remaining_ms()))
    dismiss_overlays(session, deadline)

    result.final_url = session.url
    if contains_block_signals(session, deadline):
        result.notes.append("Detected block/challenge signals after clicking order CTA")
        return

    _static_pass(result, result.final_url, session.content(), max_candidates)


def deep_scan_ordering_links(
    website_url: str,
    max_candidates: int,
    *,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    session_factory: Callable[[int], object] = open_page_session,
) -> DeepScanResult:
    """Load ``website_url`` in a headless browser and look for ordering links.

    Never raises: failures are reported through ``error_message`` with
    whatever was gathered before the failure. The browser session is always
    closed before returning.
    """

    start = time.monotonic()
    result = DeepScanResult(input_url=website_url, final_url=website_url, started_at=now_iso())
    deadline = Deadline(timeout_ms)

    try:
        with session_factory(timeout_ms) as session:
            _scan(session, result, max_candidates, deadline)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Deep scan failed for %s: %s", website_url, exc)
        result.error_message = f"Deep scan failed: {exc}"
    finally:
        result.duration_ms = int((time.monotonic() - start) * 1000)

    logger.info(
        "Deep scan of %s finished in %sms: links=%d clicked=%s",
        website_url,
        result.duration_ms,
        len(result.ordering_links),
        result.clicked_order_cta,
    )
    return result
