# tests/helpers.py

"""Builders and fakes shared by the test modules."""

import asyncio
from typing import Any

from agrobridge.models.category_page import CategoryPage
from agrobridge.models.location import Location
from agrobridge.models.product import Product


def make_product(
    product_id: str,
    name: str = "",
    radius: float = 10.0,
    location: Location | None = None,
    price: float = 25.0,
) -> Product:
    """Create a minimal Product."""
    return Product(
        product_id=product_id,
        name=name or f"Product {product_id}",
        category="vegetables",
        price_per_unit=price,
        measuring_unit="kg",
        quantity=100.0,
        delivery_radius_km=radius,
        location=location,
    )


def make_page(
    deliverable: list[str],
    non_deliverable: list[str],
    has_more: bool = True,
    unidentified: int = 0,
) -> CategoryPage:
    """Build a CategoryPage from product ids."""
    return CategoryPage(
        deliverable=[make_product(i) for i in deliverable],
        non_deliverable=[make_product(i) for i in non_deliverable],
        has_more=has_more,
        unidentified=unidentified,
    )


def ids(products: list[Product]) -> list[str]:
    """Product ids in list order."""
    return [p.product_id for p in products]


class FakeCategoryClient:
    """Serves canned pages; optionally blocks until released."""

    def __init__(
        self,
        pages: dict[int, CategoryPage] | None = None,
        gated: bool = False,
    ) -> None:
        self.pages = pages or {}
        self.calls: list[dict[str, Any]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.is_loading = False
        self._gated = gated
        self._gates: list[asyncio.Event] = []

    def release_all(self) -> None:
        """Let every blocked request complete."""
        for gate in self._gates:
            gate.set()

    async def fetch_category(
        self,
        category: str,
        page: int,
        page_size: int,
        location: Location,
    ) -> CategoryPage:
        self.calls.append({
            "category": category,
            "page": page,
            "page_size": page_size,
            "location": location,
        })
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self._gated:
                gate = asyncio.Event()
                self._gates.append(gate)
                await gate.wait()
            else:
                await asyncio.sleep(0)
            return self.pages.get(page, CategoryPage.empty())
        finally:
            self.in_flight -= 1
