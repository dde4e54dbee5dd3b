# agrobridge/server/catalog_db.py

"""SQLite-backed product catalog served by the category endpoint."""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

from agrobridge.config.settings import Settings
from agrobridge.filters.identity import ProductNormalizer
from agrobridge.models.product import Product
from agrobridge.server.geo_query import product_to_dict

logger = logging.getLogger("agrobridge.catalog")

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS products (
    id         TEXT    PRIMARY KEY,
    category   TEXT    NOT NULL,
    name       TEXT    NOT NULL,
    payload    TEXT    NOT NULL,
    created_at TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_products_category
    ON products(category);
"""


class CatalogDB:
    """SQLite store of product listings, keyed by product id."""

    def __init__(
        self, db_path: Path | None = None,
    ) -> None:
        path = db_path or Settings.CATALOG_DB_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(
            str(path), check_same_thread=False,
        )
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        logger.debug("CatalogDB opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # ── Writing ──────────────────────────────────────────

    def upsert_products(self, products: list[Product]) -> int:
        """Insert or replace listings by id.

        Listings without a category are skipped.  Returns the number of
        rows written.
        """
        now = datetime.now().isoformat()
        count = 0
        cur = self._conn.cursor()

        for p in products:
            if not p.category:
                logger.debug(
                    "Skipped product %s without category", p.product_id,
                )
                continue
            cur.execute(
                "INSERT INTO products (id, category, name, payload, created_at) "
                "VALUES (?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET "
                "category=excluded.category, name=excluded.name, "
                "payload=excluded.payload",
                (
                    p.product_id,
                    p.category.lower(),
                    p.name,
                    json.dumps(product_to_dict(p), ensure_ascii=False),
                    now,
                ),
            )
            count += 1

        self._conn.commit()
        if count:
            logger.info("Upserted %d catalog products", count)
        return count

    def import_json_file(self, filepath: Path) -> int:
        """Seed the catalog from a JSON array of product records."""
        try:
            with open(filepath, encoding="utf-8") as f:
                data: Any = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Skipping %s: %s", filepath.name, exc)
            return 0

        if isinstance(data, dict):
            data = data.get("products", [])
        products, unidentified = ProductNormalizer.normalize(data, strict=False)
        if unidentified:
            logger.warning(
                "%d records in %s had no id and were given synthetic ids",
                unidentified,
                filepath.name,
            )
        return self.upsert_products(products)

    # ── Querying ─────────────────────────────────────────

    def get_by_category(self, category: str) -> list[Product]:
        """Return every listing in *category* (case-insensitive)."""
        rows = self._conn.execute(
            "SELECT payload FROM products WHERE category = ? "
            "ORDER BY created_at ASC, id ASC",
            (category.lower(),),
        ).fetchall()
        return [
            ProductNormalizer.to_product(json.loads(r[0]), strict=False)
            for r in rows
        ]

    def count(self) -> int:
        """Number of listings in the catalog."""
        row = self._conn.execute(
            "SELECT COUNT(*) FROM products"
        ).fetchone()
        return int(row[0])
