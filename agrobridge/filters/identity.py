# agrobridge/filters/identity.py

"""Identity derivation and record normalisation at the API boundary.

The category endpoint serialises document ids in several shapes
depending on the driver and the route: a plain string, an extended-JSON
wrapper (``{"$oid": "..."}``), a driver object with a meaningful
``str()``, or a generic ``id`` field.  Everything downstream works on
:class:`Product` instances whose ``product_id`` is already canonical, so
the shape guessing happens exactly once, here.
"""

import logging
import uuid
from typing import Any

from agrobridge.config.settings import Settings
from agrobridge.errors import ProductIdentityError
from agrobridge.models.location import Location
from agrobridge.models.product import Product

logger = logging.getLogger("agrobridge.filters")


def derive_identity(record: Any) -> str:
    """Extract the stable identity of a raw product record.

    Accepted shapes, in order of preference:

    1. ``_id`` as a non-empty string.
    2. ``_id`` as ``{"$oid": ...}``.
    3. ``_id`` as any other non-container object (e.g. a driver ObjectId),
       converted with ``str()``.
    4. A truthy generic ``id`` field.
    5. An object exposing ``get_id()``.

    Raises:
        ProductIdentityError: When none of the shapes applies.
    """
    if isinstance(record, dict):
        raw_id = record.get("_id")
        if isinstance(raw_id, str) and raw_id:
            return raw_id
        if isinstance(raw_id, dict):
            oid = raw_id.get("$oid")
            if oid:
                return str(oid)
        elif raw_id is not None and not isinstance(
            raw_id, (str, list, tuple, bool)
        ):
            text = str(raw_id)
            if text:
                return text
        fallback = record.get("id")
        if fallback:
            return str(fallback)
    elif record is not None:
        getter = getattr(record, "get_id", None)
        if callable(getter):
            value = getter()
            if value:
                return str(value)
    raise ProductIdentityError(record)


def _to_float(value: Any, default: float = 0.0) -> float:
    """Coerce numbers and numeric strings; anything else → *default*."""
    if isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def parse_location(raw: Any) -> Location | None:
    """Parse a product location in any of the shapes the API emits.

    Supports GeoJSON (``{"coordinates": [lng, lat]}``), a bare
    ``[lng, lat]`` pair and ``{"longitude", "latitude"}`` /
    ``{"lng", "lat"}`` objects.
    """
    if isinstance(raw, dict):
        if "coordinates" in raw:
            return parse_location(raw["coordinates"])
        lng = raw.get("longitude", raw.get("lng"))
        lat = raw.get("latitude", raw.get("lat"))
        if lng is None or lat is None:
            return None
        return Location(_to_float(lng), _to_float(lat))
    if isinstance(raw, (list, tuple)) and len(raw) >= 2:
        return Location(_to_float(raw[0]), _to_float(raw[1]))
    return None


def synthetic_identity() -> str:
    """Return a unique placeholder id for a record without identity."""
    return f"{Settings.SYNTHETIC_ID_PREFIX}{uuid.uuid4().hex}"


class ProductNormalizer:
    """Turn raw JSON product records into canonical :class:`Product` objects."""

    @staticmethod
    def to_product(
        record: dict[str, Any],
        strict: bool | None = None,
    ) -> Product:
        """Parse a single record.

        When the record has no identity, a synthetic id is assigned once
        (so the product keeps it for its whole lifetime) unless *strict*
        mode is on, in which case :class:`ProductIdentityError` propagates.
        """
        strict_mode = Settings.STRICT_IDENTITY if strict is None else strict
        synthetic = False
        try:
            product_id = derive_identity(record)
        except ProductIdentityError:
            if strict_mode:
                raise
            product_id = synthetic_identity()
            synthetic = True

        return Product(
            product_id=product_id,
            name=str(record.get("name") or ""),
            category=str(record.get("category") or ""),
            price_per_unit=_to_float(
                record.get("pricePerUnit", record.get("price"))
            ),
            measuring_unit=str(record.get("measuringUnit") or ""),
            quantity=_to_float(record.get("quantity")),
            minimum_order_quantity=_to_float(
                record.get("minimumOrderQuantity")
            ),
            delivery_radius_km=_to_float(record.get("deliveryRadius")),
            location=parse_location(record.get("location")),
            brand=str(record.get("brand") or ""),
            description=str(record.get("description") or ""),
            shelf_life=str(record.get("shelfLife") or ""),
            image_url=str(record.get("image") or ""),
            is_synthetic_id=synthetic,
        )

    @staticmethod
    def normalize(
        records: Any,
        strict: bool | None = None,
    ) -> tuple[list[Product], int]:
        """Parse a list of raw records.

        Non-list input is treated as empty and non-object entries are
        skipped.  Returns the parsed products and the number of records
        that needed a synthetic identity.
        """
        if not isinstance(records, list):
            if records is not None:
                logger.warning(
                    "Expected a product list, got %s; treating as empty",
                    type(records).__name__,
                )
            return [], 0

        products: list[Product] = []
        unidentified = 0

        for record in records:
            if not isinstance(record, dict):
                logger.warning(
                    "Skipped non-object product record: %r", record,
                )
                continue
            product = ProductNormalizer.to_product(record, strict)
            if product.is_synthetic_id:
                unidentified += 1
                logger.warning(
                    "Product '%s' has no identity; assigned %s",
                    product.name or "<unnamed>",
                    product.product_id,
                )
            products.append(product)

        return products, unidentified
