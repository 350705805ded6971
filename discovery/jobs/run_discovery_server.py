"""HTTP entrypoint for restaurant discovery and browser-driven scans."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict

from flask import Flask, jsonify, request

from discovery.core.config import ConfigError, get_settings
from discovery.core.deep_scan import deep_scan_ordering_links
from discovery.core.discovery import DiscoveryError, run_restaurant_discovery
from discovery.core.models import DeepScanRequest, DiscoveryRequest
from discovery.core.order_surface_probe import probe_order_surface

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)

# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    """Simple root to avoid 404 on GET /"""
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; reads settings without calling any provider."""
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "places_key_configured": bool(settings.google_places_api_key),
                "deep_scan_fallback": settings.deep_scan_fallback,
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.post("/discover")
def discover() -> Any:
    """Run a synchronous discovery pass. Body mirrors DiscoveryRequest (camelCase)."""
    payload: Dict[str, Any] = request.get_json(silent=True) or {}

    try:
        discovery_request = DiscoveryRequest.from_payload(payload)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    try:
        result = run_restaurant_discovery(discovery_request)
    except ConfigError as exc:
        return jsonify({"error": str(exc)}), 503
    except DiscoveryError as exc:
        return jsonify({"error": str(exc)}), 502
    except Exception as exc:  # noqa: BLE001
        logger.exception("Discovery failed for %r: %s", discovery_request.address, exc)
        return jsonify({"error": "discovery failed"}), 500

    return jsonify({"data": result.to_dict()}), 200


@app.post("/deep-scan")
def deep_scan() -> Any:
    """Browser-driven ordering link scan for a single website."""
    payload: Dict[str, Any] = request.get_json(silent=True) or {}

    try:
        scan_request = DeepScanRequest.from_payload(payload)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    timeout_ms = scan_request.timeout_ms or get_settings().deep_scan_timeout_ms
    result = deep_scan_ordering_links(
        scan_request.website_url,
        scan_request.max_candidates,
        timeout_ms=timeout_ms,
    )
    return jsonify({"data": result.to_dict()}), 200


@app.post("/probe")
def probe() -> Any:
    """Check whether an ordering page offers guest card checkout."""
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    url = str(payload.get("url") or "").strip()
    if not url.lower().startswith(("http://", "https://")):
        return jsonify({"error": "url must be an absolute http(s) URL"}), 400

    result = probe_order_surface(url, timeout_ms=get_settings().deep_scan_timeout_ms)
    return jsonify({"data": result.to_dict()}), 200


def main() -> None:
    port = int(os.getenv("PORT") or get_settings().worker_port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
