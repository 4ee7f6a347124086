# tests/test_product_validator.py

"""Tests for ProductValidator."""

import unittest
from typing import Any

from excom_catalog.filters.product_validator import ProductValidator
from excom_catalog.models.product import Product


def _p(
    title: str = "Desk Lamp", price: float = 10.0, pid: str | None = None,
) -> Product:
    """Create a minimal Product."""
    return Product(id=pid or title or "blank", title=title, price=price)


def _draft(**overrides: Any) -> dict[str, Any]:
    draft: dict[str, Any] = {
        "title": "Desk Lamp",
        "description": "Adjustable arm, warm light",
        "category": "Home",
        "price": 45,
    }
    draft.update(overrides)
    return draft


def _fields(errors: list[Any]) -> list[str]:
    return [e.field for e in errors]


class TestValidate(unittest.TestCase):
    """ProductValidator.validate unit tests."""

    def test_empty_list_returns_empty(self) -> None:
        """An empty input returns an empty list and zero dropped."""
        valid, dropped = ProductValidator.validate([])
        self.assertEqual(valid, [])
        self.assertEqual(dropped, 0)

    def test_valid_products_pass_through(self) -> None:
        products = [_p("Desk Lamp", 89.0), _p("Stool", 45.0)]
        valid, dropped = ProductValidator.validate(products)
        self.assertEqual(len(valid), 2)
        self.assertEqual(dropped, 0)

    def test_empty_title_dropped(self) -> None:
        products = [_p("", 10.0), _p("   ", 10.0, pid="ws"), _p("Stool")]
        valid, dropped = ProductValidator.validate(products)
        self.assertEqual([p.title for p in valid], ["Stool"])
        self.assertEqual(dropped, 2)

    def test_zero_price_kept(self) -> None:
        """Free listings are valid."""
        valid, dropped = ProductValidator.validate([_p("Freebie", 0.0)])
        self.assertEqual(len(valid), 1)
        self.assertEqual(dropped, 0)

    def test_negative_price_dropped(self) -> None:
        valid, dropped = ProductValidator.validate([_p("Stool", -5.0)])
        self.assertEqual(valid, [])
        self.assertEqual(dropped, 1)

    def test_duplicate_ids_keep_first(self) -> None:
        products = [_p("First", pid="x"), _p("Second", pid="x")]
        valid, dropped = ProductValidator.validate(products)
        self.assertEqual([p.title for p in valid], ["First"])
        self.assertEqual(dropped, 1)

    def test_order_preserved(self) -> None:
        products = [_p("C"), _p("A"), _p("B")]
        valid, _ = ProductValidator.validate(products)
        self.assertEqual([p.title for p in valid], ["C", "A", "B"])


class TestParsePayloads(unittest.TestCase):
    """ProductValidator.parse_payloads unit tests."""

    def test_skips_malformed(self) -> None:
        payloads: list[Any] = [
            {"_id": "1", "title": "Ok", "price": 1},
            {"title": "No id", "price": 1},
            {"_id": "3", "title": "No price"},
            "not a dict",
        ]
        products, skipped = ProductValidator.parse_payloads(payloads)
        self.assertEqual([p.id for p in products], ["1"])
        self.assertEqual(skipped, 3)


class TestValidateDraft(unittest.TestCase):
    """ProductValidator.validate_draft unit tests."""

    def test_valid_draft(self) -> None:
        self.assertEqual(ProductValidator.validate_draft(_draft()), [])

    def test_required_fields(self) -> None:
        errors = ProductValidator.validate_draft(
            _draft(title="", description="  ", category=None)
        )
        self.assertEqual(
            _fields(errors), ["title", "description", "category"]
        )

    def test_title_too_long(self) -> None:
        errors = ProductValidator.validate_draft(_draft(title="x" * 201))
        self.assertEqual(_fields(errors), ["title"])

    def test_price_rules(self) -> None:
        for price in ("abc", None, True):
            with self.subTest(price=price):
                errors = ProductValidator.validate_draft(_draft(price=price))
                self.assertEqual(_fields(errors), ["price"])
        errors = ProductValidator.validate_draft(_draft(price=-1))
        self.assertEqual(errors[0].message, "Price cannot be negative")

    def test_currency_format(self) -> None:
        self.assertEqual(
            ProductValidator.validate_draft(_draft(currency="EUR")), []
        )
        errors = ProductValidator.validate_draft(_draft(currency="euro"))
        self.assertEqual(_fields(errors), ["currency"])

    def test_image_urls(self) -> None:
        ok = _draft(images=["https://cdn.example.com/a.jpg"])
        self.assertEqual(ProductValidator.validate_draft(ok), [])
        bad = _draft(images=["https://cdn.example.com/a.jpg", "ftp://x", ""])
        errors = ProductValidator.validate_draft(bad)
        self.assertEqual(_fields(errors), ["images"])
        self.assertIn("2", errors[0].message)
        self.assertEqual(
            _fields(ProductValidator.validate_draft(_draft(images="x"))),
            ["images"],
        )

    def test_bargain_fields(self) -> None:
        self.assertEqual(
            ProductValidator.validate_draft(
                _draft(maxBargainDiscountPercent=20, minBargainPrice=30)
            ),
            [],
        )
        errors = ProductValidator.validate_draft(
            _draft(maxBargainDiscountPercent=120, minBargainPrice=50)
        )
        self.assertEqual(
            _fields(errors), ["maxBargainDiscountPercent", "minBargainPrice"]
        )

    def test_partial_checks_only_present_fields(self) -> None:
        self.assertEqual(
            ProductValidator.validate_draft({"price": 9}, partial=True), []
        )
        errors = ProductValidator.validate_draft(
            {"title": ""}, partial=True
        )
        self.assertEqual(_fields(errors), ["title"])


if __name__ == "__main__":
    unittest.main()
