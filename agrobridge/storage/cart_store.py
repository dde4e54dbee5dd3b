# agrobridge/storage/cart_store.py

"""Locally persisted shopping cart."""

import json
import logging
from pathlib import Path
from typing import Any

from agrobridge.config.settings import Settings
from agrobridge.models.product import Product

logger = logging.getLogger("agrobridge.storage")


class CartStore:
    """Cart lines kept in a JSON file, keyed by product id."""

    def __init__(self, path: Path | None = None) -> None:
        self.path: Path = path or Settings.CART_PATH
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._items: dict[str, dict[str, Any]] = self._load()

    def _load(self) -> dict[str, dict[str, Any]]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable cart %s: %s", self.path, exc)
            return {}
        if not isinstance(data, list):
            return {}
        return {
            str(line["product_id"]): line
            for line in data
            if isinstance(line, dict) and line.get("product_id")
        }

    def _save(self) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(list(self._items.values()), f, ensure_ascii=False, indent=2)

    @property
    def items(self) -> list[dict[str, Any]]:
        """Cart lines in insertion order."""
        return list(self._items.values())

    def add(self, product: Product, quantity: float = 1.0) -> None:
        """Add *quantity* of *product*, accumulating on repeat adds."""
        line = self._items.get(product.product_id)
        if line is None:
            self._items[product.product_id] = {
                "product_id": product.product_id,
                "name": product.name,
                "price_per_unit": product.price_per_unit,
                "measuring_unit": product.measuring_unit,
                "quantity": quantity,
            }
        else:
            line["quantity"] = float(line.get("quantity", 0)) + quantity
        self._save()

    def remove(self, product_id: str) -> bool:
        """Remove a line; returns whether it existed."""
        existed = self._items.pop(product_id, None) is not None
        if existed:
            self._save()
        return existed

    def clear(self) -> int:
        """Empty the cart.

        Returns the number of lines that were removed.
        """
        count = len(self._items)
        self._items.clear()
        self._save()
        logger.info("Cart cleared (%d lines removed)", count)
        return count
