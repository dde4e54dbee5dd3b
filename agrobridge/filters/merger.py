# agrobridge/filters/merger.py

"""Identity-keyed merging of paginated product lists."""

import logging
from collections.abc import Iterable

from agrobridge.filters.identity import derive_identity
from agrobridge.models.category_page import CategoryPage
from agrobridge.models.product import Product

logger = logging.getLogger("agrobridge.filters")


class ProductListMerger:
    """Merge incoming pages into the deliverable / non-deliverable lists.

    All operations key products on :func:`derive_identity`, which reads
    ``Product.get_id()``, and rely on dict insertion order: an identity
    keeps the position where it was first seen while its value is
    replaced by the latest occurrence.  Merging
    the same page twice therefore yields the same lists as merging it
    once.
    """

    @staticmethod
    def ids_of(products: Iterable[Product]) -> set[str]:
        """Return the identity set of *products*."""
        return {derive_identity(p) for p in products}

    @staticmethod
    def uniq_by_id(products: Iterable[Product]) -> list[Product]:
        """Deduplicate by identity; the last occurrence wins."""
        by_id: dict[str, Product] = {}
        for product in products:
            by_id[derive_identity(product)] = product
        return list(by_id.values())

    @staticmethod
    def merge_and_dedupe(
        previous: list[Product],
        incoming: list[Product],
    ) -> list[Product]:
        """Merge *incoming* into *previous*, incoming values override."""
        by_id: dict[str, Product] = {}
        for product in previous:
            by_id[derive_identity(product)] = product
        for product in incoming:
            by_id[derive_identity(product)] = product
        return list(by_id.values())

    @staticmethod
    def exclude_ids(
        products: list[Product],
        ids: set[str],
    ) -> list[Product]:
        """Drop every product whose identity is in *ids*."""
        return [p for p in products if derive_identity(p) not in ids]

    @staticmethod
    def apply_page(
        deliverable: list[Product],
        non_deliverable: list[Product],
        page: CategoryPage,
    ) -> tuple[list[Product], list[Product]]:
        """Fold one category page into the current lists.

        1. Incoming deliverables are merged into the deliverable list.
        2. Incoming non-deliverables already known as deliverable (from
           this page or an earlier one) are dropped.
        3. Existing non-deliverables whose identity is now deliverable
           are removed, which repairs misclassifications caused by
           out-of-order pages.
        4. The remaining incoming non-deliverables are merged.

        Returns the new ``(deliverable, non_deliverable)`` lists; a product
        never ends up in both.
        """
        merged_deliverable = ProductListMerger.uniq_by_id(
            ProductListMerger.merge_and_dedupe(
                deliverable, page.deliverable
            )
        )
        deliverable_ids = ProductListMerger.ids_of(merged_deliverable)

        filtered_incoming = ProductListMerger.exclude_ids(
            page.non_deliverable, deliverable_ids
        )
        cleaned_previous = ProductListMerger.exclude_ids(
            non_deliverable, deliverable_ids
        )
        merged_non_deliverable = ProductListMerger.uniq_by_id(
            ProductListMerger.merge_and_dedupe(
                cleaned_previous, filtered_incoming
            )
        )

        reclassified = len(non_deliverable) - len(cleaned_previous)
        dropped = len(page.non_deliverable) - len(filtered_incoming)
        if reclassified or dropped:
            logger.info(
                "Merge moved %d existing and dropped %d incoming "
                "non-deliverable products known as deliverable",
                reclassified,
                dropped,
            )

        return merged_deliverable, merged_non_deliverable
