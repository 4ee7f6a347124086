# excom_catalog/filters/product_sorter.py

"""Nearby-first product ordering with a user-selected sort mode."""

import functools
import math
from datetime import datetime

from excom_catalog.config.settings import Settings
from excom_catalog.filters.distance import distance_km
from excom_catalog.models.filter_state import SortMode
from excom_catalog.models.product import (
    Geopoint,
    Product,
    created_timestamp,
    resolve_rating,
)


def _sign(x: float, y: float) -> int:
    """Three-way compare that treats two infinities as equal."""
    return (x > y) - (x < y)


def product_distance(
    product: Product, user_location: Geopoint | None,
) -> float:
    """Distance from the user, or ``inf`` when either point is unknown."""
    coords = product.coordinates
    if user_location is None or coords is None:
        return math.inf
    return distance_km(user_location, coords)


def discount_percentage(
    product: Product, at: datetime | None = None,
) -> float:
    if product.discount is None:
        return 0.0
    return product.discount.active_percentage(at)


def compare_by_mode(
    a: Product,
    b: Product,
    sort_mode: SortMode,
    user_location: Geopoint | None = None,
    now: datetime | None = None,
) -> int:
    """Order two products by *sort_mode* alone."""
    if sort_mode is SortMode.PRICE_LOW:
        return _sign(a.price, b.price)
    if sort_mode is SortMode.PRICE_HIGH:
        return _sign(b.price, a.price)
    if sort_mode is SortMode.RATING:
        return _sign(resolve_rating(b), resolve_rating(a))
    if sort_mode is SortMode.POPULARITY:
        return _sign(b.review_count or 0, a.review_count or 0)
    if sort_mode is SortMode.DISCOUNT:
        return _sign(
            discount_percentage(b, now), discount_percentage(a, now)
        )
    if sort_mode is SortMode.DISTANCE:
        return _sign(
            product_distance(a, user_location),
            product_distance(b, user_location),
        )
    return _sign(created_timestamp(b), created_timestamp(a))


def compare(
    a: Product,
    b: Product,
    sort_mode: SortMode | str = SortMode.NEWEST,
    user_location: Geopoint | None = None,
    nearby_radius_km: float | None = None,
    now: datetime | None = None,
) -> int:
    """Three-way comparator: nearby products first, then *sort_mode*.

    With a user location, products within ``nearby_radius_km`` come
    before all others and are ordered by ascending distance among
    themselves.  Without one, only *sort_mode* applies.  Missing
    optional fields fall back to their defaults; this never raises.
    """
    mode = SortMode.parse(sort_mode)
    if user_location is not None:
        radius = (
            Settings.NEARBY_RADIUS_KM
            if nearby_radius_km is None
            else nearby_radius_km
        )
        dist_a = product_distance(a, user_location)
        dist_b = product_distance(b, user_location)
        near_a = dist_a <= radius
        near_b = dist_b <= radius
        if near_a and near_b:
            return _sign(dist_a, dist_b)
        if near_a != near_b:
            return -1 if near_a else 1
    return compare_by_mode(a, b, mode, user_location, now)


def sort_products(
    products: list[Product],
    sort_mode: SortMode | str = SortMode.NEWEST,
    user_location: Geopoint | None = None,
    nearby_radius_km: float | None = None,
    now: datetime | None = None,
) -> list[Product]:
    """Return a new, stably sorted list; the input is left untouched."""
    key = functools.cmp_to_key(
        lambda a, b: compare(
            a, b, sort_mode, user_location, nearby_radius_km, now
        )
    )
    return sorted(products, key=key)
