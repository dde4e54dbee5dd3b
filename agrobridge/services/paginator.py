# agrobridge/services/paginator.py

"""Location-aware pagination over a product category.

The paginator drives sequential category queries for the user's current
location and folds every page into two lists, deliverable and
non-deliverable, keyed by product identity.

State machine::

    page >= 1, is_reaching_end, is_fetching, generation

A fetch only starts when no other fetch is in flight, the last page has
not been reached, and a usable location is known.  Every location
published to the :class:`LocationStore` clears both lists, rewinds to
page one, bumps ``generation`` and starts a fresh run.  Responses that
come back for an older generation are discarded instead of being merged
into the new location's lists.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

from agrobridge.config.settings import Settings
from agrobridge.filters.merger import ProductListMerger
from agrobridge.models.category_page import CategoryPage
from agrobridge.models.location import Location
from agrobridge.models.product import Product
from agrobridge.services.location_store import LocationStore

logger = logging.getLogger("agrobridge.paginator")


class CategoryFetcher(Protocol):
    """The part of the category client the paginator depends on."""

    async def fetch_category(
        self,
        category: str,
        page: int,
        page_size: int,
        location: Location,
    ) -> CategoryPage:
        ...


class ProductPaginator:
    """Paginate one category for the location held by *store*."""

    def __init__(
        self,
        client: CategoryFetcher,
        store: LocationStore,
        category: str,
        page_size: int | None = None,
        max_pages: int | None = None,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self.client = client
        self.store = store
        self.category = category
        self.page_size = page_size or Settings.PRODUCTS_PER_PAGE
        self.max_pages = max_pages
        self.on_change = on_change

        self.page: int = 1
        self.is_reaching_end: bool = False
        self.is_fetching: bool = False
        self.generation: int = 0
        self.location: Location | None = store.current
        self.deliverable: list[Product] = []
        self.non_deliverable: list[Product] = []
        self.unidentified_total: int = 0

        self._task: asyncio.Task[int] | None = None
        self._unsubscribe = store.subscribe(self._on_location_change)

    # ── State ────────────────────────────────────────────

    @property
    def can_fetch(self) -> bool:
        """Whether the fetch guard lets a new request through."""
        return (
            not self.is_fetching
            and not self.is_reaching_end
            and self.location is not None
            and self.location.is_usable
        )

    @property
    def product_count(self) -> int:
        return len(self.deliverable) + len(self.non_deliverable)

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()

    def reset(self) -> None:
        """Drop all merged data and rewind to page one."""
        self.generation += 1
        self.deliverable = []
        self.non_deliverable = []
        self.page = 1
        self.is_reaching_end = False
        self.is_fetching = False
        logger.debug(
            "Paginator for '%s' reset (generation %d)",
            self.category,
            self.generation,
        )
        self._notify()

    # ── Fetching ─────────────────────────────────────────

    async def fetch_next(self) -> bool:
        """Fetch the current page and merge it.

        Returns ``True`` when a page was applied, ``False`` when the guard
        refused, the request failed, or the response was stale.
        """
        if not self.can_fetch or self.location is None:
            return False

        generation = self.generation
        page = self.page
        self.is_fetching = True
        self._notify()

        try:
            result = await self.client.fetch_category(
                self.category, page, self.page_size, self.location
            )
            if generation != self.generation:
                logger.debug(
                    "Discarded stale page %d of '%s' "
                    "(generation %d, current %d)",
                    page,
                    self.category,
                    generation,
                    self.generation,
                )
                return False

            self.deliverable, self.non_deliverable = (
                ProductListMerger.apply_page(
                    self.deliverable, self.non_deliverable, result
                )
            )
            self.unidentified_total += result.unidentified
            self.is_reaching_end = not result.has_more
            self.page = page + 1
            return True
        except Exception as exc:
            logger.error(
                "Fetching page %d of '%s' failed: %s",
                page,
                self.category,
                exc,
                exc_info=True,
            )
            return False
        finally:
            if generation == self.generation:
                self.is_fetching = False
                self._notify()

    async def run(self, max_pages: int | None = None) -> int:
        """Fetch pages one after another until the guard stops it.

        Returns the number of pages applied by this run.
        """
        limit = max_pages if max_pages is not None else self.max_pages
        applied = 0
        while limit is None or applied < limit:
            if not await self.fetch_next():
                break
            applied += 1
        if self.is_reaching_end:
            logger.info(
                "Reached the end of '%s': %d deliverable, "
                "%d non-deliverable",
                self.category,
                len(self.deliverable),
                len(self.non_deliverable),
            )
        return applied

    def start(self) -> asyncio.Task[int]:
        """Schedule :meth:`run` on the running loop, replacing any run."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    async def wait(self) -> None:
        """Wait for the current run, following restarts."""
        while self._task is not None:
            task = self._task
            await asyncio.wait({task})
            if task is self._task:
                return

    def close(self) -> None:
        """Stop listening to location changes and cancel the run."""
        self._unsubscribe()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    # ── Location changes ─────────────────────────────────

    def _on_location_change(self, location: Location) -> None:
        self.location = location
        self.reset()
        try:
            self.start()
        except RuntimeError:
            logger.debug(
                "No running event loop; '%s' will fetch on next run()",
                self.category,
            )
