# excom_catalog/filters/product_filter.py

"""Client-side product filtering against a FilterState."""

import logging

from excom_catalog.filters.distance import distance_km
from excom_catalog.models.filter_state import FACETS, FilterState
from excom_catalog.models.product import Geopoint, Product, resolve_rating

logger = logging.getLogger("excom_catalog.filters")


def _contains_any(haystacks: list[str], needles: frozenset[str]) -> bool:
    """Case-insensitive: any needle is a substring of any haystack."""
    lowered = [h.lower() for h in haystacks if h]
    for needle in needles:
        key = needle.strip().lower()
        if key and any(key in h for h in lowered):
            return True
    return False


class ProductFilter:
    """Evaluate the independent filter predicates for one product.

    Every predicate is a pure function of the product, the filter
    state and the user location.  :meth:`matches` evaluates all of
    them and returns their conjunction.
    """

    @staticmethod
    def price_matches(product: Product, state: FilterState) -> bool:
        return state.price_range.contains(product.price)

    @staticmethod
    def category_matches(product: Product, state: FilterState) -> bool:
        if state.categories_unrestricted:
            return True
        return _contains_any([product.category], state.categories)

    @staticmethod
    def query_matches(product: Product, state: FilterState) -> bool:
        query = state.query.strip().lower()
        if not query:
            return True
        return (
            query in product.title.lower()
            or query in product.description.lower()
        )

    @staticmethod
    def rating_matches(product: Product, state: FilterState) -> bool:
        if state.rating is None:
            return True
        return resolve_rating(product) >= state.rating

    @staticmethod
    def facets_match(product: Product, state: FilterState) -> bool:
        results = [
            _contains_any(product.facet_values(name), state.facet(name))
            for name in FACETS
            if state.facet(name)
        ]
        return all(results)

    @staticmethod
    def location_matches(
        product: Product,
        state: FilterState,
        user_location: Geopoint | None,
    ) -> bool:
        if state.location_radius_km is None or user_location is None:
            return True
        coords = product.coordinates
        if coords is None:
            return False
        return distance_km(user_location, coords) <= state.location_radius_km

    @classmethod
    def matches(
        cls,
        product: Product,
        state: FilterState,
        user_location: Geopoint | None = None,
    ) -> bool:
        """True when the product passes every enabled predicate."""
        checks = [
            cls.price_matches(product, state),
            cls.category_matches(product, state),
            cls.query_matches(product, state),
            cls.rating_matches(product, state),
            cls.facets_match(product, state),
            cls.location_matches(product, state, user_location),
        ]
        return all(checks)

    @classmethod
    def apply(
        cls,
        products: list[Product],
        state: FilterState,
        user_location: Geopoint | None = None,
    ) -> tuple[list[Product], int]:
        """Keep the products that match *state*.

        Returns the kept products and the count of excluded ones.
        """
        kept = [
            p for p in products
            if cls.matches(p, state, user_location)
        ]
        excluded = len(products) - len(kept)
        if excluded:
            logger.debug(
                "Filters excluded %d of %d products",
                excluded,
                len(products),
            )
        return kept, excluded
