# tests/test_file_manager.py

"""Tests for the FileManager storage module."""

import csv
import json
import tempfile
import unittest
from pathlib import Path
from typing import Any

from excom_catalog.models.product import Geopoint, Product, ProductLocation
from excom_catalog.storage.file_manager import FileManager


class TestFileManager(unittest.TestCase):
    """Tests for JSON save and CSV export."""

    def setUp(self) -> None:
        """Set up a temp directory for results."""
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp_dir.cleanup)
        self.fm = FileManager(Path(self.tmp_dir.name) / "results")

    def _sample_products(self) -> list[Product]:
        """Return a small ranked list of test products."""
        return [
            Product(
                id="a",
                title="Product A",
                price=100.0,
                category="Home",
                rating=4.5,
                review_count=12,
                location=ProductLocation(coordinates=Geopoint(0, 0.005)),
            ),
            Product(id="b", title="Product B", price=50.0),
        ]

    def test_creates_results_dir(self) -> None:
        self.assertTrue(self.fm.results_dir.is_dir())

    def test_save_results_creates_json(self) -> None:
        """Verify save_results writes a valid JSON file."""
        path = self.fm.save_results("test query", self._sample_products())

        self.assertTrue(path.exists())
        self.assertTrue(path.name.startswith("listing_test_query_"))
        with open(path, encoding="utf-8") as f:
            data: list[dict[str, Any]] = json.load(f)
        self.assertEqual([d["id"] for d in data], ["a", "b"])
        self.assertEqual(data[0]["reviewCount"], 12)

    def test_save_results_empty_list(self) -> None:
        path = self.fm.save_results("", [])
        self.assertIn("_all_", path.name)
        with open(path, encoding="utf-8") as f:
            self.assertEqual(json.load(f), [])

    def test_export_csv_keeps_ranked_order(self) -> None:
        """CSV rows follow the input order; nothing is re-sorted."""
        path = self.fm.export_csv(
            "lamps", self._sample_products(), Geopoint(0, 0)
        )
        self.assertTrue(path.name.startswith("export_lamps_"))
        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))

        self.assertEqual(
            rows[0],
            [
                "ID", "Title", "Price", "Currency", "Category",
                "Rating", "Reviews", "Distance",
            ],
        )
        self.assertEqual([r[0] for r in rows[1:]], ["a", "b"])
        self.assertEqual(rows[1][7], "556m")
        self.assertEqual(rows[2][5:], ["", "", ""])

    def test_export_csv_without_location(self) -> None:
        path = self.fm.export_csv("x", self._sample_products(), None)
        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        self.assertEqual(rows[1][7], "")

    def test_filename_strips_unsafe_characters(self) -> None:
        path = self.fm.save_results("a/b c?", [])
        self.assertIn("ab_c", path.name)
        self.assertEqual(path.parent, self.fm.results_dir)


if __name__ == "__main__":
    unittest.main()
