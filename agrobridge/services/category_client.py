# agrobridge/services/category_client.py

"""HTTP client for the location-filtered category product query."""

import asyncio
import logging
from typing import Any
from urllib.parse import quote

from curl_cffi import requests as curl_requests

from agrobridge.config.settings import Settings
from agrobridge.filters.identity import ProductNormalizer
from agrobridge.models.category_page import CategoryPage
from agrobridge.models.location import Location


class CategoryQueryClient:
    """Fetch one page of a category and normalise it to a CategoryPage.

    Every failure (transport error, non-200 status, undecodable or empty
    body) is logged and answered with :meth:`CategoryPage.empty`, so
    callers never have to handle ``None``.  No retry is attempted.
    """

    def __init__(
        self,
        base_url: str | None = None,
        session: Any = None,
    ) -> None:
        self.settings = Settings()
        self.logger = logging.getLogger("agrobridge.client")
        self.base_url = (base_url or self.settings.API_BASE_URL).rstrip("/")
        self.session = session or curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )
        self.is_loading: bool = False
        self._request_timeout: int = self.settings.REQUEST_TIMEOUT

    def category_url(self, category: str) -> str:
        """Return the endpoint URL for *category*."""
        return f"{self.base_url}/products/category/{quote(category, safe='')}"

    def _fetch_json(
        self,
        url: str,
        params: dict[str, str | int | float],
    ) -> Any:
        """GET *url* once and decode the JSON body.

        Returns ``None`` on any failure.
        """
        try:
            resp = self.session.get(
                url,
                params=params,
                headers=self.settings.DEFAULT_HEADERS,
                timeout=self._request_timeout,
            )
        except Exception as exc:
            self.logger.error(
                "Request to %s failed: %s", url, exc, exc_info=True,
            )
            return None

        if resp.status_code != 200:
            self.logger.warning(
                "HTTP %d from %s (params=%s)",
                resp.status_code,
                url,
                params,
            )
            return None

        try:
            return resp.json()
        except ValueError:
            self.logger.warning(
                "Undecodable JSON body from %s: %.120r", url, resp.text,
            )
            return None

    @staticmethod
    def _unwrap(body: Any) -> dict[str, Any] | None:
        """Accept the payload itself or a ``{"data": {...}}`` envelope."""
        if isinstance(body, dict) and isinstance(body.get("data"), dict):
            body = body["data"]
        if not isinstance(body, dict) or not body:
            return None
        return body

    def parse_body(self, body: Any) -> CategoryPage:
        """Normalise a decoded response body into a CategoryPage."""
        payload = self._unwrap(body)
        if payload is None:
            self.logger.warning(
                "Empty or malformed category body; using safe default"
            )
            return CategoryPage.empty()

        raw_deliverable = payload.get("deliverableProducts")
        raw_non_deliverable = payload.get("nonDeliverableProducts")
        deliverable, unidentified_d = ProductNormalizer.normalize(
            raw_deliverable if isinstance(raw_deliverable, list) else []
        )
        non_deliverable, unidentified_n = ProductNormalizer.normalize(
            raw_non_deliverable
            if isinstance(raw_non_deliverable, list)
            else []
        )
        return CategoryPage(
            deliverable=deliverable,
            non_deliverable=non_deliverable,
            has_more=bool(payload.get("hasMore")),
            unidentified=unidentified_d + unidentified_n,
        )

    def get_products_by_category(
        self,
        category: str,
        page: int,
        page_size: int,
        location: Location,
    ) -> CategoryPage:
        """Run a single blocking category query."""
        url = self.category_url(category)
        params: dict[str, str | int | float] = {
            "page": page,
            "products_per_page": page_size,
            "lng": location.longitude,
            "lat": location.latitude,
        }
        self.is_loading = True
        try:
            body = self._fetch_json(url, params)
            result = self.parse_body(body)
        finally:
            self.is_loading = False

        self.logger.info(
            "Category '%s' page %d: %d deliverable, %d non-deliverable, "
            "has_more=%s",
            category,
            page,
            len(result.deliverable),
            len(result.non_deliverable),
            result.has_more,
        )
        return result

    async def fetch_category(
        self,
        category: str,
        page: int,
        page_size: int,
        location: Location,
    ) -> CategoryPage:
        """Async wrapper running the blocking query in a worker thread."""
        return await asyncio.to_thread(
            self.get_products_by_category,
            category,
            page,
            page_size,
            location,
        )
