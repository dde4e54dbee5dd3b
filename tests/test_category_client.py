# tests/test_category_client.py

"""Tests for CategoryQueryClient safe-default behaviour."""

import json
import unittest
from typing import Any
from unittest.mock import MagicMock

from agrobridge.models.category_page import CategoryPage
from agrobridge.models.location import Location
from agrobridge.services.category_client import CategoryQueryClient

HOME = Location(77.59, 12.97)


def _response(status: int = 200, body: Any = None, text: str | None = None) -> MagicMock:
    """Build a fake curl_cffi response."""
    resp = MagicMock()
    resp.status_code = status
    resp.text = text if text is not None else json.dumps(body)
    if text is not None:
        resp.json.side_effect = json.JSONDecodeError("bad", text, 0)
    else:
        resp.json.return_value = body
    return resp


def _client(resp: Any = None, error: Exception | None = None) -> tuple[CategoryQueryClient, MagicMock]:
    session = MagicMock()
    if error is not None:
        session.get.side_effect = error
    else:
        session.get.return_value = resp
    client = CategoryQueryClient(
        base_url="http://api.test/", session=session
    )
    return client, session


class TestRequest(unittest.TestCase):
    """Request URL and parameters."""

    def test_url_and_params(self) -> None:
        """The category is path-encoded and params are passed."""
        client, session = _client(_response(body={"hasMore": False}))
        client.get_products_by_category("dry fruits", 2, 50, HOME)

        args, kwargs = session.get.call_args
        self.assertEqual(
            args[0], "http://api.test/products/category/dry%20fruits"
        )
        self.assertEqual(
            kwargs["params"],
            {"page": 2, "products_per_page": 50, "lng": 77.59, "lat": 12.97},
        )

    def test_is_loading_reset_after_call(self) -> None:
        """The loading flag is only set while the request runs."""
        seen: list[bool] = []
        client, session = _client()

        def _get(*args: Any, **kwargs: Any) -> MagicMock:
            seen.append(client.is_loading)
            return _response(body={})

        session.get.side_effect = _get
        client.get_products_by_category("fruits", 1, 10, HOME)
        self.assertEqual(seen, [True])
        self.assertFalse(client.is_loading)


class TestSafeDefaults(unittest.TestCase):
    """Every failure maps to CategoryPage.empty()."""

    def _assert_empty(self, page: CategoryPage) -> None:
        self.assertEqual(page.deliverable, [])
        self.assertEqual(page.non_deliverable, [])
        self.assertFalse(page.has_more)

    def test_network_error(self) -> None:
        """Transport exceptions yield the empty page."""
        client, _ = _client(error=ConnectionError("refused"))
        self._assert_empty(
            client.get_products_by_category("fruits", 1, 10, HOME)
        )

    def test_http_error(self) -> None:
        """Non-200 statuses yield the empty page."""
        client, _ = _client(_response(status=504, body={}))
        self._assert_empty(
            client.get_products_by_category("fruits", 1, 10, HOME)
        )

    def test_invalid_json(self) -> None:
        """Undecodable bodies yield the empty page."""
        client, _ = _client(_response(text="<html>oops</html>"))
        self._assert_empty(
            client.get_products_by_category("fruits", 1, 10, HOME)
        )

    def test_empty_body(self) -> None:
        """Null and {} bodies yield the empty page."""
        for body in (None, {}, [], "text"):
            with self.subTest(body=body):
                client, _ = _client(_response(body=body))
                self._assert_empty(
                    client.get_products_by_category("fruits", 1, 10, HOME)
                )

    def test_non_list_product_fields(self) -> None:
        """Malformed product lists are coerced to empty lists."""
        client, _ = _client(_response(body={
            "deliverableProducts": {"oops": 1},
            "nonDeliverableProducts": None,
            "hasMore": True,
        }))
        page = client.get_products_by_category("fruits", 1, 10, HOME)
        self.assertEqual(page.deliverable, [])
        self.assertEqual(page.non_deliverable, [])
        self.assertTrue(page.has_more)


class TestParsing(unittest.TestCase):
    """Successful response normalisation."""

    def test_parses_products(self) -> None:
        """Both lists are normalised and hasMore is read."""
        client, _ = _client(_response(body={
            "deliverableProducts": [
                {"_id": "a", "name": "Okra", "deliveryRadius": 15},
                {"name": "No id"},
            ],
            "nonDeliverableProducts": [{"_id": {"$oid": "b"}}],
            "hasMore": 1,
        }))
        page = client.get_products_by_category("vegetables", 1, 10, HOME)
        self.assertEqual(
            [p.product_id for p in page.deliverable][0], "a"
        )
        self.assertEqual(len(page.deliverable), 2)
        self.assertEqual(page.non_deliverable[0].product_id, "b")
        self.assertIs(page.has_more, True)
        self.assertEqual(page.unidentified, 1)

    def test_data_envelope(self) -> None:
        """A {"data": {...}} wrapper is unwrapped."""
        client, _ = _client(_response(body={
            "data": {
                "deliverableProducts": [{"_id": "a"}],
                "nonDeliverableProducts": [],
                "hasMore": False,
            }
        }))
        page = client.get_products_by_category("vegetables", 1, 10, HOME)
        self.assertEqual(page.deliverable[0].product_id, "a")


class TestAsync(unittest.IsolatedAsyncioTestCase):
    """fetch_category runs the blocking call in a thread."""

    async def test_fetch_category(self) -> None:
        """The async wrapper returns the parsed page."""
        client, _ = _client(_response(body={
            "deliverableProducts": [{"_id": "a"}],
            "hasMore": False,
        }))
        page = await client.fetch_category("fruits", 1, 10, HOME)
        self.assertEqual(page.deliverable[0].product_id, "a")


if __name__ == "__main__":
    unittest.main()
