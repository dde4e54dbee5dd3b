# agrobridge/services/health_checker.py

"""Backend connectivity health checker."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

from curl_cffi import requests as curl_requests

from agrobridge.config.settings import Settings

logger = logging.getLogger("agrobridge.health")

_HEALTH_TIMEOUT = 10  # seconds per probe


@dataclass
class HealthResult:
    """Result of a single endpoint health check."""

    endpoint: str
    status: str  # "ok", "slow", "down"
    latency_ms: float
    message: str


def probe_endpoint(url: str, session: Any = None) -> HealthResult:
    """Probe a single URL for connectivity."""
    client = session or curl_requests.Session(
        impersonate=Settings.IMPERSONATE_BROWSER
    )
    start = time.monotonic()
    try:
        resp = client.get(
            url,
            headers=Settings.DEFAULT_HEADERS,
            timeout=_HEALTH_TIMEOUT,
        )
        elapsed_ms = (time.monotonic() - start) * 1000

        if resp.status_code != 200:
            return HealthResult(
                endpoint=url,
                status="down",
                latency_ms=elapsed_ms,
                message=f"HTTP {resp.status_code}",
            )

        if elapsed_ms > Settings.HEALTH_SLOW_MS:
            return HealthResult(
                endpoint=url,
                status="slow",
                latency_ms=elapsed_ms,
                message="High latency",
            )

        return HealthResult(
            endpoint=url,
            status="ok",
            latency_ms=elapsed_ms,
            message=resp.text.strip()[:80],
        )

    except Exception as exc:
        elapsed_ms = (time.monotonic() - start) * 1000
        return HealthResult(
            endpoint=url,
            status="down",
            latency_ms=elapsed_ms,
            message=str(exc)[:80],
        )


class HealthChecker:
    """Runs concurrent health probes against the backend endpoints."""

    def __init__(self, base_url: str | None = None) -> None:
        root = (base_url or Settings.API_BASE_URL).rstrip("/")
        self.endpoints: list[str] = [f"{root}/"]

    async def check_all(self) -> list[HealthResult]:
        """Probe every endpoint concurrently."""
        tasks = [
            asyncio.to_thread(probe_endpoint, url)
            for url in self.endpoints
        ]
        results: list[HealthResult] = list(
            await asyncio.gather(*tasks)
        )
        for r in results:
            logger.info(
                "Health check %s: %s (%.0fms) %s",
                r.endpoint,
                r.status,
                r.latency_ms,
                r.message,
            )
        return results
