# excom_catalog/services/catalog_service.py

"""Fetches, ranks and pages the product catalog."""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Any

from excom_catalog.api.products_client import ProductsClient
from excom_catalog.filters.product_ranker import ProductRanker
from excom_catalog.filters.product_validator import ProductValidator
from excom_catalog.models.product import Product
from excom_catalog.services.catalog_reducer import CatalogState
from excom_catalog.services.geolocation import GeolocationService
from excom_catalog.storage.browsing_state import BrowsingState
from excom_catalog.storage.key_value_store import MemoryStore
from excom_catalog.storage.product_cache import ProductCache

logger = logging.getLogger("excom_catalog.catalog")

PRODUCTS_PATH = "/products"


@dataclass
class CatalogResult:
    """One rendered page of the listing plus everything the UI reports."""

    state: CatalogState
    products: list[Product] = field(
        default_factory=lambda: list[Product]()
    )
    ranked: list[Product] = field(
        default_factory=lambda: list[Product]()
    )
    nearby_ids: frozenset[str] = frozenset()
    page: int = 1
    total_pages: int = 1
    total_before_filter: int = 0
    excluded_count: int = 0
    invalid_count: int = 0
    cache_hits: int = 0
    errors: list[str] = field(
        default_factory=lambda: list[str]()
    )
    notices: list[str] = field(
        default_factory=lambda: list[str]()
    )


@dataclass
class ProductDetail:
    product: Product | None = None
    related: list[Product] = field(
        default_factory=lambda: list[Product]()
    )
    errors: list[str] = field(
        default_factory=lambda: list[str]()
    )


class CatalogService:
    """Effectful shell around the pure ranking functions.

    Network calls run in worker threads; ranking, filtering and paging
    are delegated to :class:`ProductRanker` and never touch I/O.
    """

    def __init__(
        self,
        client: ProductsClient | None = None,
        cache: ProductCache | None = None,
        browsing: BrowsingState | None = None,
        geolocation: GeolocationService | None = None,
    ) -> None:
        self.client = client or ProductsClient()
        self.cache = cache or ProductCache()
        self.browsing = browsing or BrowsingState(MemoryStore())
        self.geolocation = geolocation or GeolocationService()
        self.products: list[Product] = []
        self.invalid_count: int = 0

    # ── Location ─────────────────────────────────────────

    async def locate(
        self, state: CatalogState, force_refresh: bool = False,
    ) -> tuple[CatalogState, str | None]:
        """Store the user's (or the fallback) location in *state*.

        Returns the new state and the notice to show, if any.
        """
        result = await self.geolocation.locate(force_refresh)
        return replace(state, user_location=result.location), result.notice

    # ── Fetching ─────────────────────────────────────────

    async def fetch_products(
        self, force_refresh: bool = False,
    ) -> tuple[list[Product], int, list[str]]:
        """Load the product list, from cache when possible.

        Returns the valid products, the number of cache hits and any
        error messages.  A failed fetch yields an empty list.
        """
        if force_refresh:
            self.cache.clear()

        payloads = self.cache.get(PRODUCTS_PATH)
        cache_hits = 1 if payloads is not None else 0
        errors: list[str] = []

        if payloads is None:
            payloads = await asyncio.to_thread(self.client.list_products)
            if self.client.last_error:
                errors.append(self.client.last_error)
            else:
                self.cache.store(PRODUCTS_PATH, None, payloads)

        parsed, skipped = ProductValidator.parse_payloads(payloads)
        valid, dropped = ProductValidator.validate(parsed)
        self.products = valid
        self.invalid_count = skipped + dropped
        return valid, cache_hits, errors

    # ── Ranking ──────────────────────────────────────────

    def rank(
        self,
        state: CatalogState,
        products: list[Product] | None = None,
    ) -> CatalogResult:
        """Rank the given (or last fetched) products for *state*."""
        source = self.products if products is None else products
        ranked = ProductRanker.rank(
            source,
            state.filters,
            state.sort_mode,
            state.user_location,
            state.nearby_radius_km,
        )
        page = ProductRanker.paginate(ranked.products, state.page)
        return CatalogResult(
            state=replace(state, page=page.page),
            products=page.items,
            ranked=ranked.products,
            nearby_ids=ranked.nearby_ids,
            page=page.page,
            total_pages=page.total_pages,
            total_before_filter=ranked.total_before_filter,
            excluded_count=ranked.excluded_count,
            invalid_count=self.invalid_count,
        )

    async def load(
        self, state: CatalogState, force_refresh: bool = False,
    ) -> CatalogResult:
        """Fetch (or reuse) the catalog and rank it for *state*."""
        products, cache_hits, errors = await self.fetch_products(
            force_refresh
        )
        result = self.rank(state, products)
        result.cache_hits = cache_hits
        result.errors.extend(errors)
        logger.info(
            "Catalog loaded: %d of %d products shown on page %d/%d",
            len(result.products),
            len(result.ranked),
            result.page,
            result.total_pages,
        )
        return result

    # ── Product pages ────────────────────────────────────

    def _parse(self, payloads: list[dict[str, Any]]) -> list[Product]:
        parsed, _ = ProductValidator.parse_payloads(payloads)
        valid, _ = ProductValidator.validate(parsed)
        return valid

    async def view_product(self, product_id: str) -> ProductDetail:
        """Load one product with its related items and record the view."""
        detail = ProductDetail()
        payload = await asyncio.to_thread(self.client.get_product, product_id)
        if payload is None:
            detail.errors.append(
                self.client.last_error or f"Product {product_id} not found"
            )
            return detail

        found = self._parse([payload])
        if not found:
            detail.errors.append(f"Product {product_id} is malformed")
            return detail
        detail.product = found[0]
        self.browsing.record_view(detail.product)

        related = await asyncio.to_thread(
            self.client.related_products, product_id
        )
        if self.client.last_error:
            detail.errors.append(self.client.last_error)
        detail.related = self._parse(related)
        return detail

    async def trending(self, limit: int | None = None) -> list[Product]:
        payloads = await asyncio.to_thread(
            self.client.trending_products, limit
        )
        return self._parse(payloads)

    def find(self, product_id: str) -> Product | None:
        """Look a product up among the last fetched ones."""
        for product in self.products:
            if product.id == product_id:
                return product
        return None
