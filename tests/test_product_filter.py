# tests/test_product_filter.py

"""Tests for ProductFilter predicate evaluation."""

import unittest
from typing import Any

from excom_catalog.filters.product_filter import ProductFilter
from excom_catalog.models.filter_state import FilterState, PriceRange
from excom_catalog.models.product import (
    Geopoint,
    Product,
    ProductLocation,
    Seller,
    Shipping,
)


def _make_product(
    title: str = "Widget",
    price: float = 10.0,
    **kwargs: Any,
) -> Product:
    """Create a minimal Product with the given fields."""
    return Product(id=title.lower(), title=title, price=price, **kwargs)


def _at(lat: float, lng: float) -> ProductLocation:
    return ProductLocation(coordinates=Geopoint(lat, lng))


class TestPricePredicate(unittest.TestCase):
    """Price range is inclusive at both ends."""

    def test_bounds_inclusive(self) -> None:
        state = FilterState(price_range=PriceRange(5, 10))
        for price, expected in ((4.99, False), (5, True), (10, True), (10.01, False)):
            with self.subTest(price=price):
                self.assertEqual(
                    ProductFilter.price_matches(
                        _make_product(price=price), state
                    ),
                    expected,
                )

    def test_default_range_unbounded(self) -> None:
        self.assertTrue(
            ProductFilter.matches(_make_product(price=1e9), FilterState())
        )

    def test_worked_example_price_range(self) -> None:
        """A [0, 6] range keeps only the 5-priced toy."""
        books = _make_product("Books", price=10, category="books")
        toys = _make_product("Toys", price=5, category="toys")
        state = FilterState(price_range=PriceRange(0, 6))
        kept, excluded = ProductFilter.apply([books, toys], state)
        self.assertEqual(kept, [toys])
        self.assertEqual(excluded, 1)


class TestCategoryPredicate(unittest.TestCase):
    """Category selection behaviour."""

    def test_empty_set_ignores_category(self) -> None:
        state = FilterState()
        for category in ("books", "", "Anything"):
            with self.subTest(category=category):
                self.assertTrue(
                    ProductFilter.category_matches(
                        _make_product(category=category), state
                    )
                )

    def test_all_sentinel_is_unrestricted(self) -> None:
        state = FilterState(categories=frozenset({"All", "books"}))
        self.assertTrue(
            ProductFilter.category_matches(
                _make_product(category="toys"), state
            )
        )

    def test_substring_case_insensitive(self) -> None:
        state = FilterState(categories=frozenset({"ELECTRONIC"}))
        self.assertTrue(
            ProductFilter.category_matches(
                _make_product(category="Consumer Electronics"), state
            )
        )
        self.assertFalse(
            ProductFilter.category_matches(
                _make_product(category="Books"), state
            )
        )

    def test_any_selected_category_matches(self) -> None:
        state = FilterState(categories=frozenset({"books", "toys"}))
        self.assertTrue(
            ProductFilter.category_matches(
                _make_product(category="toys"), state
            )
        )


class TestQueryPredicate(unittest.TestCase):
    """Free-text query behaviour."""

    def test_empty_query_matches(self) -> None:
        self.assertTrue(
            ProductFilter.query_matches(
                _make_product(), FilterState(query="   ")
            )
        )

    def test_title_or_description(self) -> None:
        product = _make_product(
            "Leather Wallet", description="Hand-stitched in Italy"
        )
        self.assertTrue(
            ProductFilter.query_matches(product, FilterState(query="wallet"))
        )
        self.assertTrue(
            ProductFilter.query_matches(product, FilterState(query="ITALY"))
        )
        self.assertFalse(
            ProductFilter.query_matches(product, FilterState(query="belt"))
        )


class TestRatingPredicate(unittest.TestCase):
    """Rating threshold uses the resolved rating."""

    def test_no_threshold(self) -> None:
        self.assertTrue(
            ProductFilter.rating_matches(
                _make_product(rating=0.5), FilterState()
            )
        )

    def test_threshold(self) -> None:
        state = FilterState(rating=4.0)
        self.assertTrue(
            ProductFilter.rating_matches(_make_product(rating=4.0), state)
        )
        self.assertFalse(
            ProductFilter.rating_matches(_make_product(rating=3.9), state)
        )

    def test_missing_rating_uses_default(self) -> None:
        """An unrated product counts as 4.5."""
        product = _make_product(rating=None)
        self.assertTrue(
            ProductFilter.rating_matches(product, FilterState(rating=4.5))
        )
        self.assertFalse(
            ProductFilter.rating_matches(product, FilterState(rating=5.0))
        )


class TestFacetPredicate(unittest.TestCase):
    """Facet selection behaviour."""

    def test_no_selection_matches(self) -> None:
        self.assertTrue(
            ProductFilter.facets_match(_make_product(), FilterState())
        )

    def test_any_value_substring(self) -> None:
        product = _make_product(colors=["Navy Blue", "Red"], brand="Acme")
        state = FilterState(facets={"color": frozenset({"blue", "green"})})
        self.assertTrue(ProductFilter.facets_match(product, state))

    def test_all_facets_must_match(self) -> None:
        product = _make_product(colors=["Red"], brand="Acme")
        state = FilterState(
            facets={
                "color": frozenset({"red"}),
                "brand": frozenset({"globex"}),
            }
        )
        self.assertFalse(ProductFilter.facets_match(product, state))

    def test_product_without_values_fails(self) -> None:
        state = FilterState(facets={"size": frozenset({"M"})})
        self.assertFalse(
            ProductFilter.facets_match(_make_product(), state)
        )

    def test_shipping_facet(self) -> None:
        free = _make_product("Free", shipping=Shipping(free=True))
        paid = _make_product("Paid", shipping=Shipping(free=False))
        state = FilterState(facets={"shipping": frozenset({"free"})})
        self.assertTrue(ProductFilter.facets_match(free, state))
        self.assertFalse(ProductFilter.facets_match(paid, state))


class TestLocationPredicate(unittest.TestCase):
    """Distance filter behaviour."""

    def setUp(self) -> None:
        self.user = Geopoint(0, 0)
        self.state = FilterState(location_radius_km=50)

    def test_disabled_matches(self) -> None:
        self.assertTrue(
            ProductFilter.location_matches(
                _make_product(), FilterState(), self.user
            )
        )

    def test_skipped_without_user_location(self) -> None:
        self.assertTrue(
            ProductFilter.location_matches(
                _make_product(), self.state, None
            )
        )

    def test_missing_coordinates_excluded(self) -> None:
        self.assertFalse(
            ProductFilter.location_matches(
                _make_product(), self.state, self.user
            )
        )

    def test_within_and_outside_radius(self) -> None:
        near = _make_product("Near", location=_at(0.1, 0.1))
        far = _make_product("Far", location=_at(5, 5))
        self.assertTrue(
            ProductFilter.location_matches(near, self.state, self.user)
        )
        self.assertFalse(
            ProductFilter.location_matches(far, self.state, self.user)
        )

    def test_seller_location_used_as_fallback(self) -> None:
        product = _make_product(
            seller=Seller(id="s1", location=_at(0.1, 0))
        )
        self.assertTrue(
            ProductFilter.location_matches(product, self.state, self.user)
        )


class TestMatches(unittest.TestCase):
    """The conjunction of all predicates."""

    def test_idempotent_and_pure(self) -> None:
        product = _make_product(
            "Red Shoes", price=40, category="Footwear", rating=4.2,
        )
        state = FilterState(
            price_range=PriceRange(0, 50),
            categories=frozenset({"foot"}),
            rating=4.0,
            query="shoes",
        )
        first = ProductFilter.matches(product, state)
        second = ProductFilter.matches(product, state)
        self.assertTrue(first)
        self.assertEqual(first, second)
        self.assertEqual(product.title, "Red Shoes")
        self.assertEqual(product.price, 40)

    def test_one_failing_predicate_excludes(self) -> None:
        product = _make_product("Red Shoes", price=40, category="Footwear")
        state = FilterState(
            categories=frozenset({"foot"}), query="boots",
        )
        self.assertFalse(ProductFilter.matches(product, state))

    def test_apply_empty_list(self) -> None:
        kept, excluded = ProductFilter.apply([], FilterState(query="x"))
        self.assertEqual(kept, [])
        self.assertEqual(excluded, 0)


if __name__ == "__main__":
    unittest.main()
