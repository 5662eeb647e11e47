"""
Detection — gallery reachability.

A HEAD request against the repository feed. Read-only, never raises.
"""

from __future__ import annotations

import logging
import time
import urllib.request

logger = logging.getLogger(__name__)


def check_gallery_reachable(url: str, timeout: int = 5) -> dict:
    """Probe a package gallery for reachability.

    Returns::

        {"reachable": True, "url": "https://...", "status": 200, "latency_ms": 42}
        or
        {"reachable": False, "url": "https://...", "error": "timed out", "latency_ms": 5000}
    """
    start = time.monotonic()

    try:
        req = urllib.request.Request(
            url,
            method="HEAD",
            headers={"User-Agent": "powercli-install/1.0"},
        )
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            elapsed = int((time.monotonic() - start) * 1000)
            return {
                "reachable": True,
                "url": url,
                "status": resp.getcode(),
                "latency_ms": elapsed,
            }
    except Exception as exc:
        elapsed = int((time.monotonic() - start) * 1000)
        logger.debug("Gallery %s unreachable: %s", url, exc)
        return {
            "reachable": False,
            "url": url,
            "error": str(exc)[:200],
            "latency_ms": elapsed,
        }
