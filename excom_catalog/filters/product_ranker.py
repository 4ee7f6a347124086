# excom_catalog/filters/product_ranker.py

"""Filtered, nearby-first ordering of a product listing."""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone

from excom_catalog.config.settings import Settings
from excom_catalog.filters.distance import is_within
from excom_catalog.filters.product_filter import ProductFilter
from excom_catalog.filters.product_sorter import sort_products
from excom_catalog.models.filter_state import FilterState, SortMode
from excom_catalog.models.product import Geopoint, Product

logger = logging.getLogger("excom_catalog.ranker")


@dataclass
class RankResult:
    """Ordered view of a listing plus the counts shown in the UI."""

    products: list[Product] = field(
        default_factory=lambda: list[Product]()
    )
    nearby_ids: frozenset[str] = frozenset()
    total_before_filter: int = 0
    excluded_count: int = 0


@dataclass
class Page:
    items: list[Product]
    page: int
    total_pages: int
    total_items: int


class ProductRanker:
    """Filter then sort products for display."""

    @staticmethod
    def rank(
        products: list[Product],
        state: FilterState,
        sort_mode: SortMode | str = SortMode.NEWEST,
        user_location: Geopoint | None = None,
        nearby_radius_km: float | None = None,
        now: datetime | None = None,
    ) -> RankResult:
        radius = (
            Settings.NEARBY_RADIUS_KM
            if nearby_radius_km is None
            else nearby_radius_km
        )
        moment = now or datetime.now(timezone.utc)

        kept, excluded = ProductFilter.apply(
            products, state, user_location
        )
        ordered = sort_products(
            kept, sort_mode, user_location, radius, moment
        )
        nearby = frozenset(
            p.id for p in ordered
            if is_within(user_location, p.coordinates, radius)
        )
        logger.debug(
            "Ranked %d/%d products (sort=%s, nearby=%d)",
            len(ordered),
            len(products),
            SortMode.parse(sort_mode).value,
            len(nearby),
        )
        return RankResult(
            products=ordered,
            nearby_ids=nearby,
            total_before_filter=len(products),
            excluded_count=excluded,
        )

    @staticmethod
    def paginate(
        products: list[Product],
        page: int = 1,
        per_page: int | None = None,
    ) -> Page:
        """Slice one page; *page* is clamped into the valid range."""
        size = per_page or Settings.ITEMS_PER_PAGE
        total_pages = max(1, math.ceil(len(products) / size))
        current = min(max(page, 1), total_pages)
        start = (current - 1) * size
        return Page(
            items=products[start:start + size],
            page=current,
            total_pages=total_pages,
            total_items=len(products),
        )
