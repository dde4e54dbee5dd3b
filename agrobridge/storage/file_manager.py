# agrobridge/storage/file_manager.py

"""Handles saving browsed listings to disk."""

import csv
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from agrobridge.config.settings import Settings
from agrobridge.models.location import Location
from agrobridge.models.product import Product

logger = logging.getLogger("agrobridge.storage")


def product_row(product: Product, deliverable: bool) -> dict[str, Any]:
    """Flatten a product for JSON/CSV output."""
    return {
        "id": product.product_id,
        "name": product.name,
        "category": product.category,
        "price_per_unit": product.price_per_unit,
        "measuring_unit": product.measuring_unit,
        "quantity": product.quantity,
        "delivery_radius_km": product.delivery_radius_km,
        "brand": product.brand,
        "deliverable": deliverable,
    }


class FileManager:
    """Handles saving browsed listings to disk."""

    def __init__(self) -> None:
        self.results_dir: Path = Settings.RESULTS_DIR
        self.results_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("FileManager initialised, results_dir=%s", self.results_dir)

    def save_listing(
        self,
        category: str,
        location: Location | None,
        deliverable: list[Product],
        non_deliverable: list[Product],
    ) -> Path:
        """Save both lists of a category to a timestamped JSON file."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"{category.replace(' ', '_')}_{timestamp}.json"
        filepath = self.results_dir / filename

        data = {
            "category": category,
            "location": location.as_pair() if location else None,
            "deliverable": [product_row(p, True) for p in deliverable],
            "non_deliverable": [
                product_row(p, False) for p in non_deliverable
            ],
        }

        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

        logger.info(
            "Saved %d deliverable and %d non-deliverable products "
            "for '%s' to %s",
            len(deliverable),
            len(non_deliverable),
            category,
            filepath,
        )
        return filepath

    def export_csv(
        self,
        category: str,
        deliverable: list[Product],
        non_deliverable: list[Product],
    ) -> Path:
        """Export a listing to CSV, deliverable rows first."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"export_{category.replace(' ', '_')}_{timestamp}.csv"
        filepath = self.results_dir / filename

        rows = [product_row(p, True) for p in deliverable] + [
            product_row(p, False) for p in non_deliverable
        ]
        fieldnames = list(product_row(Product("", ""), True))

        with open(filepath, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(rows)

        logger.info(
            "Exported %d products for '%s' to %s",
            len(rows),
            category,
            filepath,
        )
        return filepath
