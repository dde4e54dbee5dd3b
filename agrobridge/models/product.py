# agrobridge/models/product.py

"""Product data model for inter-module data flow."""

from dataclasses import dataclass

from agrobridge.models.location import Location


@dataclass
class Product:
    """A single marketplace listing, normalised from the API payload."""

    product_id: str
    name: str
    category: str = ""
    price_per_unit: float = 0.0
    measuring_unit: str = ""
    quantity: float = 0.0
    minimum_order_quantity: float = 0.0
    delivery_radius_km: float = 0.0
    location: Location | None = None
    brand: str = ""
    description: str = ""
    shelf_life: str = ""
    image_url: str = ""
    is_synthetic_id: bool = False

    def get_id(self) -> str:
        """Return the canonical identity used for merging."""
        return self.product_id
