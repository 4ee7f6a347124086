# tests/test_catalog_service.py

"""Tests for the CatalogService fetch, rank and view pipeline."""

import unittest
from typing import Any
from unittest.mock import MagicMock

from excom_catalog.api.products_client import ProductsClient
from excom_catalog.models.product import Geopoint
from excom_catalog.services.catalog_reducer import (
    CatalogState,
    SetPage,
    SetQuery,
    SetSortMode,
    reduce,
)
from excom_catalog.services.catalog_service import CatalogService
from excom_catalog.services.geolocation import (
    GeolocationService,
    StaticLocationProvider,
)
from excom_catalog.storage.browsing_state import BrowsingState
from excom_catalog.storage.key_value_store import MemoryStore
from excom_catalog.storage.product_cache import ProductCache

USER = Geopoint(0, 0)


def _payload(pid: str, price: float, **extra: Any) -> dict[str, Any]:
    data: dict[str, Any] = {"_id": pid, "title": f"Item {pid}", "price": price}
    data.update(extra)
    return data


def _mock_client(payloads: list[dict[str, Any]]) -> MagicMock:
    client = MagicMock(spec=ProductsClient)
    client.last_error = None
    client.list_products.return_value = payloads
    client.related_products.return_value = []
    client.trending_products.return_value = []
    return client


class TestCatalogService(unittest.IsolatedAsyncioTestCase):
    """CatalogService end-to-end with a mocked API client."""

    def setUp(self) -> None:
        self.payloads = [
            _payload("far", 5, location={"coordinates": [10, 10]}),
            _payload("near", 50, location={"coordinates": [0.1, 0]}),
            _payload("cheap", 1),
            {"title": "no id", "price": 3},
            _payload("neg", -1),
        ]
        self.client = _mock_client(self.payloads)
        self.browsing = BrowsingState(MemoryStore())
        self.service = CatalogService(
            client=self.client,
            cache=ProductCache(ttl=300),
            browsing=self.browsing,
            geolocation=GeolocationService(
                StaticLocationProvider(USER), enabled=True
            ),
        )

    async def test_locate_sets_user_location(self) -> None:
        state, notice = await self.service.locate(CatalogState())
        self.assertEqual(state.user_location, USER)
        self.assertIsNone(notice)

    async def test_locate_fallback_notice(self) -> None:
        self.service.geolocation = GeolocationService(None, enabled=False)
        state, notice = await self.service.locate(CatalogState())
        self.assertEqual(state.user_location, Geopoint(37.7749, -122.4194))
        self.assertIsNotNone(notice)

    async def test_load_ranks_and_counts(self) -> None:
        state = reduce(
            CatalogState(user_location=USER), SetSortMode("price-low")
        )
        result = await self.service.load(state)
        self.assertEqual([p.id for p in result.ranked], ["near", "cheap", "far"])
        self.assertEqual(result.nearby_ids, frozenset({"near"}))
        self.assertEqual(result.invalid_count, 2)
        self.assertEqual(result.total_before_filter, 3)
        self.assertEqual(result.errors, [])
        self.assertEqual(result.cache_hits, 0)

    async def test_second_load_served_from_cache(self) -> None:
        await self.service.load(CatalogState())
        result = await self.service.load(CatalogState())
        self.assertEqual(self.client.list_products.call_count, 1)
        self.assertEqual(result.cache_hits, 1)

    async def test_force_refresh_refetches(self) -> None:
        await self.service.load(CatalogState())
        await self.service.load(CatalogState(), force_refresh=True)
        self.assertEqual(self.client.list_products.call_count, 2)

    async def test_fetch_error_reported_and_not_cached(self) -> None:
        self.client.list_products.return_value = []
        self.client.last_error = "GET /products failed: service unavailable"
        result = await self.service.load(CatalogState())
        self.assertEqual(result.ranked, [])
        self.assertEqual(result.errors, [self.client.last_error])
        self.assertEqual(len(self.service.cache), 0)

    async def test_rank_reuses_last_fetch(self) -> None:
        await self.service.load(CatalogState())
        result = self.service.rank(reduce(CatalogState(), SetQuery("cheap")))
        self.assertEqual([p.id for p in result.ranked], ["cheap"])
        self.assertEqual(result.excluded_count, 2)

    async def test_pagination(self) -> None:
        self.client.list_products.return_value = [
            _payload(str(i), i) for i in range(30)
        ]
        state = reduce(CatalogState(), SetPage(9))
        result = await self.service.load(state)
        self.assertEqual(result.page, 3)
        self.assertEqual(result.state.page, 3)
        self.assertEqual(result.total_pages, 3)
        self.assertEqual(len(result.products), 6)

    async def test_view_product_records_history(self) -> None:
        self.client.get_product.return_value = _payload("near", 50)
        self.client.related_products.return_value = [_payload("far", 5)]
        detail = await self.service.view_product("near")
        assert detail.product is not None
        self.assertEqual(detail.product.id, "near")
        self.assertEqual([p.id for p in detail.related], ["far"])
        self.assertEqual(self.browsing.view_count("near"), 1)
        self.assertEqual(detail.errors, [])

    async def test_view_missing_product(self) -> None:
        self.client.get_product.return_value = None
        self.client.last_error = "Product not found"
        detail = await self.service.view_product("ghost")
        self.assertIsNone(detail.product)
        self.assertEqual(detail.errors, ["Product not found"])
        self.assertEqual(self.browsing.recently_viewed(), [])

    async def test_trending(self) -> None:
        self.client.trending_products.return_value = [
            _payload("t1", 9), {"bad": True},
        ]
        trending = await self.service.trending(4)
        self.assertEqual([p.id for p in trending], ["t1"])
        self.client.trending_products.assert_called_once_with(4)

    async def test_find(self) -> None:
        await self.service.load(CatalogState())
        found = self.service.find("far")
        assert found is not None
        self.assertEqual(found.price, 5)
        self.assertIsNone(self.service.find("neg"))


if __name__ == "__main__":
    unittest.main()
