# agrobridge/models/category_page.py

"""Normalised result of one category query."""

from dataclasses import dataclass, field

from agrobridge.models.product import Product


@dataclass
class CategoryPage:
    """One page of products split by deliverability."""

    deliverable: list[Product] = field(
        default_factory=lambda: list[Product]()
    )
    non_deliverable: list[Product] = field(
        default_factory=lambda: list[Product]()
    )
    has_more: bool = False
    unidentified: int = 0

    @classmethod
    def empty(cls) -> "CategoryPage":
        """Safe default returned on any failure."""
        return cls()
