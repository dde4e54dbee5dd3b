# tests/test_paginator.py

"""Tests for the location-aware ProductPaginator."""

import asyncio
import unittest

from helpers import FakeCategoryClient, ids, make_page

from agrobridge.models.category_page import CategoryPage
from agrobridge.models.location import Location
from agrobridge.services.location_store import LocationStore
from agrobridge.services.paginator import ProductPaginator

HOME = Location(77.59, 12.97)
FARM = Location(78.48, 17.38)


def _paginator(
    client: FakeCategoryClient,
    location: Location | None = HOME,
    **kwargs: object,
) -> tuple[ProductPaginator, LocationStore]:
    store = LocationStore(location)
    paginator = ProductPaginator(
        client, store, "vegetables", page_size=5, **kwargs  # type: ignore[arg-type]
    )
    return paginator, store


class TestFetchGuard(unittest.IsolatedAsyncioTestCase):
    """can_fetch and the fetch guard."""

    async def test_no_location_no_fetch(self) -> None:
        """Without a location nothing is requested."""
        client = FakeCategoryClient()
        paginator, _ = _paginator(client, location=None)
        self.assertFalse(await paginator.fetch_next())
        self.assertEqual(client.calls, [])

    async def test_zero_coordinate_no_fetch(self) -> None:
        """A zero coordinate counts as missing."""
        client = FakeCategoryClient()
        paginator, _ = _paginator(client, location=Location(0.0, 12.0))
        self.assertFalse(paginator.can_fetch)
        self.assertFalse(await paginator.fetch_next())
        self.assertEqual(client.calls, [])

    async def test_request_parameters(self) -> None:
        """The query carries category, page, size and location."""
        client = FakeCategoryClient({1: make_page(["a"], [])})
        paginator, _ = _paginator(client)
        await paginator.fetch_next()
        self.assertEqual(
            client.calls[0],
            {
                "category": "vegetables",
                "page": 1,
                "page_size": 5,
                "location": HOME,
            },
        )

    async def test_fetch_exclusivity(self) -> None:
        """A second fetch while one is in flight is refused."""
        client = FakeCategoryClient(
            {1: make_page(["a"], [])}, gated=True
        )
        paginator, _ = _paginator(client)

        first = asyncio.create_task(paginator.fetch_next())
        await asyncio.sleep(0)
        self.assertTrue(paginator.is_fetching)
        self.assertFalse(await paginator.fetch_next())

        client.release_all()
        self.assertTrue(await first)
        self.assertEqual(len(client.calls), 1)
        self.assertEqual(client.max_in_flight, 1)
        self.assertFalse(paginator.is_fetching)


class TestScenarios(unittest.IsolatedAsyncioTestCase):
    """End-to-end paging scenarios."""

    async def test_first_page_state(self) -> None:
        """3 deliverable + 2 non-deliverable, hasMore → page 2, not at end."""
        client = FakeCategoryClient(
            {1: make_page(["d1", "d2", "d3"], ["n1", "n2"], has_more=True)}
        )
        paginator, _ = _paginator(client)

        self.assertTrue(await paginator.fetch_next())
        self.assertEqual(len(paginator.deliverable), 3)
        self.assertEqual(len(paginator.non_deliverable), 2)
        self.assertEqual(paginator.page, 2)
        self.assertFalse(paginator.is_reaching_end)

    async def test_deliverable_stays_deliverable(self) -> None:
        """A known deliverable listed as non-deliverable later stays deliverable."""
        client = FakeCategoryClient({
            1: make_page(["d1", "d2"], ["n1"]),
            2: make_page([], ["d1", "n2"]),
        })
        paginator, _ = _paginator(client)
        await paginator.fetch_next()
        await paginator.fetch_next()

        self.assertEqual(ids(paginator.deliverable), ["d1", "d2"])
        self.assertEqual(ids(paginator.non_deliverable), ["n1", "n2"])

    async def test_end_of_results_stops_fetching(self) -> None:
        """hasMore=false sets the end flag and blocks further fetches."""
        client = FakeCategoryClient(
            {1: make_page(["a"], ["b"], has_more=False)}
        )
        paginator, _ = _paginator(client)

        self.assertTrue(await paginator.fetch_next())
        self.assertTrue(paginator.is_reaching_end)
        self.assertEqual(paginator.page, 2)

        paginator.page += 1
        self.assertFalse(await paginator.fetch_next())
        self.assertEqual(len(client.calls), 1)

    async def test_location_change_resets_and_refetches(self) -> None:
        """A new location clears lists, rewinds and fetches page 1 again."""
        client = FakeCategoryClient({
            1: make_page(["a", "b"], ["c"], has_more=True),
            2: make_page(["d"], [], has_more=False),
        })
        paginator, store = _paginator(client)
        await paginator.run()
        self.assertEqual(paginator.page, 3)
        self.assertTrue(paginator.is_reaching_end)

        reset_states: list[tuple[int, int, int, bool]] = []
        paginator.on_change = lambda: reset_states.append((
            len(paginator.deliverable),
            len(paginator.non_deliverable),
            paginator.page,
            paginator.is_reaching_end,
        ))

        store.set(FARM)
        self.assertEqual(reset_states[0], (0, 0, 1, False))

        await paginator.wait()
        after_reset = client.calls[2:]
        self.assertEqual(after_reset[0]["page"], 1)
        self.assertEqual(after_reset[0]["location"], FARM)
        self.assertEqual(ids(paginator.deliverable), ["a", "b", "d"])
        self.assertTrue(paginator.is_reaching_end)
        paginator.close()


class TestRun(unittest.IsolatedAsyncioTestCase):
    """run() drives sequential pages."""

    async def test_runs_until_end(self) -> None:
        """Pages are fetched in order until hasMore is false."""
        client = FakeCategoryClient({
            1: make_page(["a"], [], has_more=True),
            2: make_page(["b"], [], has_more=True),
            3: make_page(["c"], [], has_more=False),
        })
        paginator, _ = _paginator(client)
        applied = await paginator.run()
        self.assertEqual(applied, 3)
        self.assertEqual([c["page"] for c in client.calls], [1, 2, 3])
        self.assertEqual(ids(paginator.deliverable), ["a", "b", "c"])

    async def test_max_pages(self) -> None:
        """max_pages bounds a run."""
        client = FakeCategoryClient({
            i: make_page([f"p{i}"], [], has_more=True) for i in range(1, 6)
        })
        paginator, _ = _paginator(client, max_pages=2)
        self.assertEqual(await paginator.run(), 2)
        self.assertEqual(paginator.page, 3)
        self.assertFalse(paginator.is_reaching_end)

    async def test_page_monotonic(self) -> None:
        """page only grows between resets."""
        client = FakeCategoryClient({
            i: make_page([f"p{i}"], [], has_more=i < 4) for i in range(1, 5)
        })
        paginator, _ = _paginator(client)
        seen: list[int] = []
        paginator.on_change = lambda: seen.append(paginator.page)
        await paginator.run()
        self.assertEqual(seen, sorted(seen))

    async def test_empty_response_ends(self) -> None:
        """A safe-default page ends pagination without crashing."""
        client = FakeCategoryClient({})
        paginator, _ = _paginator(client)
        self.assertEqual(await paginator.run(), 1)
        self.assertTrue(paginator.is_reaching_end)
        self.assertEqual(paginator.product_count, 0)

    async def test_client_error_is_logged_not_raised(self) -> None:
        """An exception from the client leaves state untouched."""

        class _Broken:
            async def fetch_category(self, *args: object) -> CategoryPage:
                raise ConnectionError("boom")

        store = LocationStore(HOME)
        paginator = ProductPaginator(_Broken(), store, "fruits")
        with self.assertLogs("agrobridge.paginator", level="ERROR"):
            self.assertFalse(await paginator.fetch_next())
        self.assertEqual(paginator.page, 1)
        self.assertFalse(paginator.is_fetching)

    async def test_unidentified_total_accumulates(self) -> None:
        """Identity warnings from each page are summed."""
        client = FakeCategoryClient({
            1: make_page(["a"], [], has_more=True, unidentified=2),
            2: make_page(["b"], [], has_more=False, unidentified=1),
        })
        paginator, _ = _paginator(client)
        await paginator.run()
        self.assertEqual(paginator.unidentified_total, 3)


class TestStaleResponses(unittest.IsolatedAsyncioTestCase):
    """Responses from an older location generation are discarded."""

    async def test_in_flight_page_discarded_after_reset(self) -> None:
        """A page that lands after a location change is not merged."""
        client = FakeCategoryClient(
            {1: make_page(["stale"], [], has_more=True)}, gated=True
        )
        paginator, store = _paginator(client)

        stale_fetch = asyncio.create_task(paginator.fetch_next())
        await asyncio.sleep(0)
        self.assertTrue(paginator.is_fetching)

        paginator.reset()
        self.assertFalse(paginator.is_fetching)

        client.release_all()
        self.assertFalse(await stale_fetch)
        self.assertEqual(paginator.deliverable, [])
        self.assertEqual(paginator.page, 1)
        self.assertFalse(paginator.is_fetching)

    async def test_location_change_cancels_previous_run(self) -> None:
        """Only the run for the latest location applies pages."""
        client = FakeCategoryClient(
            {1: make_page(["x"], [], has_more=False)}, gated=True
        )
        paginator, store = _paginator(client, location=None)

        store.set(HOME)
        await asyncio.sleep(0)
        store.set(FARM)
        await asyncio.sleep(0)
        client.release_all()
        await paginator.wait()

        self.assertEqual(paginator.location, FARM)
        self.assertEqual(ids(paginator.deliverable), ["x"])
        self.assertEqual(paginator.generation, 2)
        paginator.close()

    async def test_close_unsubscribes(self) -> None:
        """After close(), location changes no longer reset the paginator."""
        client = FakeCategoryClient({1: make_page(["a"], [])})
        paginator, store = _paginator(client)
        await paginator.fetch_next()
        paginator.close()
        store.set(FARM)
        self.assertEqual(paginator.location, HOME)
        self.assertEqual(ids(paginator.deliverable), ["a"])


if __name__ == "__main__":
    unittest.main()
