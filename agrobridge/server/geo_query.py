# agrobridge/server/geo_query.py

"""Distance-based deliverability and paginated category queries."""

from math import atan2, cos, radians, sin, sqrt
from typing import Any

from agrobridge.config.settings import Settings
from agrobridge.models.location import Location
from agrobridge.models.product import Product


def haversine_km(a: Location, b: Location) -> float:
    """Great-circle distance between two points in kilometres."""
    dlat = radians(b.latitude - a.latitude)
    dlon = radians(b.longitude - a.longitude)
    h = (
        sin(dlat / 2) ** 2
        + cos(radians(a.latitude)) * cos(radians(b.latitude)) * sin(dlon / 2) ** 2
    )
    # Rounding can leave h just outside [0, 1] for antipodal points
    h = min(1.0, max(0.0, h))
    return Settings.EARTH_RADIUS_KM * 2 * atan2(sqrt(h), sqrt(1 - h))


def is_deliverable(product: Product, user_location: Location) -> bool:
    """True when *user_location* lies inside the product's delivery radius."""
    if product.location is None:
        return False
    return haversine_km(product.location, user_location) <= product.delivery_radius_km


def product_to_dict(product: Product) -> dict[str, Any]:
    """Serialise a product in the JSON shape the category endpoint emits."""
    return {
        "_id": product.product_id,
        "name": product.name,
        "category": product.category,
        "pricePerUnit": product.price_per_unit,
        "measuringUnit": product.measuring_unit,
        "quantity": product.quantity,
        "minimumOrderQuantity": product.minimum_order_quantity,
        "deliveryRadius": product.delivery_radius_km,
        "location": (
            {"type": "Point", "coordinates": product.location.as_pair()}
            if product.location is not None
            else None
        ),
        "brand": product.brand,
        "description": product.description,
        "shelfLife": product.shelf_life,
        "image": product.image_url,
    }


def query_category(
    products: list[Product],
    page: int,
    page_size: int,
    user_location: Location,
) -> dict[str, Any]:
    """Answer one page of a category query.

    Products are ordered nearest first (products without a location go
    last, ties broken by id), the requested page is sliced out, and the
    slice is split by :func:`is_deliverable`.

    Raises:
        ValueError: If *page* or *page_size* is smaller than one.
    """
    if page < 1 or page_size < 1:
        raise ValueError("page and page_size must be positive")

    def _sort_key(product: Product) -> tuple[int, float, str]:
        if product.location is None:
            return (1, 0.0, product.product_id)
        return (0, haversine_km(product.location, user_location), product.product_id)

    ordered = sorted(products, key=_sort_key)
    offset = (page - 1) * page_size
    window = ordered[offset:offset + page_size]

    deliverable: list[dict[str, Any]] = []
    non_deliverable: list[dict[str, Any]] = []
    for product in window:
        if is_deliverable(product, user_location):
            deliverable.append(product_to_dict(product))
        else:
            non_deliverable.append(product_to_dict(product))

    return {
        "deliverableProducts": deliverable,
        "nonDeliverableProducts": non_deliverable,
        "hasMore": offset + page_size < len(ordered),
    }
