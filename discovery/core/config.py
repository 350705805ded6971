"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes"}


class ConfigError(RuntimeError):
    """Raised when mandatory configuration is missing."""


@dataclass(frozen=True)
class Settings:
    google_places_api_key: str
    worker_port: int = 9000
    max_pages: int = 3
    website_fetch_timeout: int = 12
    website_max_chars: int = 1_000_000
    deep_scan_fallback: bool = False
    deep_scan_timeout_ms: int = 60_000


def require_api_key(settings: Settings) -> str:
    """Return the Places API key or fail fast when it is not configured."""
    if not settings.google_places_api_key:
        raise ConfigError("GOOGLE_PLACES_API_KEY must be set to run restaurant discovery.")
    return settings.google_places_api_key


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    google_places_api_key = os.getenv("GOOGLE_PLACES_API_KEY", "")
    worker_port = int(os.getenv("WORKER_PORT", "9000"))
    max_pages = int(os.getenv("DISCOVERY_MAX_PAGES", "3"))
    website_fetch_timeout = int(os.getenv("WEBSITE_FETCH_TIMEOUT", "12"))
    website_max_chars = int(os.getenv("WEBSITE_MAX_CHARS", "1000000"))
    deep_scan_fallback = os.getenv("DISCOVERY_DEEP_SCAN_FALLBACK", "false").lower() in _TRUTHY
    deep_scan_timeout_ms = int(os.getenv("DEEP_SCAN_TIMEOUT_MS", "60000"))

    if not google_places_api_key:
        logger.warning("GOOGLE_PLACES_API_KEY is not configured; discovery runs will fail.")

    return Settings(
        google_places_api_key=google_places_api_key,
        worker_port=worker_port,
        max_pages=max_pages,
        website_fetch_timeout=website_fetch_timeout,
        website_max_chars=website_max_chars,
        deep_scan_fallback=deep_scan_fallback,
        deep_scan_timeout_ms=deep_scan_timeout_ms,
    )
