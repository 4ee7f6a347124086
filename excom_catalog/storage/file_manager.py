# excom_catalog/storage/file_manager.py

"""Handles saving ranked listings to disk."""

import csv
import json
import logging
from datetime import datetime
from pathlib import Path

from excom_catalog.config.settings import Settings
from excom_catalog.filters.distance import format_distance
from excom_catalog.filters.product_sorter import product_distance
from excom_catalog.models.product import Geopoint, Product

logger = logging.getLogger("excom_catalog.storage")


def _slug(text: str) -> str:
    cleaned = "_".join(text.split()) or "all"
    return "".join(c for c in cleaned if c.isalnum() or c in "_-")[:60]


class FileManager:
    """Handles saving ranked listings to disk.

    Listings are written in the order they were ranked; nothing here
    re-sorts.
    """

    def __init__(self, results_dir: Path | None = None) -> None:
        self.results_dir: Path = results_dir or Settings.RESULTS_DIR
        self.results_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("FileManager initialised, results_dir=%s", self.results_dir)

    def save_results(self, query: str, products: list[Product]) -> Path:
        """Save a listing to a timestamped JSON file."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = self.results_dir / f"listing_{_slug(query)}_{timestamp}.json"

        data = [p.to_dict() for p in products]
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

        logger.info(
            "Saved %d products for query '%s' to %s",
            len(products),
            query,
            filepath,
        )
        return filepath

    def export_csv(
        self,
        query: str,
        products: list[Product],
        user_location: Geopoint | None = None,
    ) -> Path:
        """Export a listing to a human-readable CSV file."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = self.results_dir / f"export_{_slug(query)}_{timestamp}.csv"

        with open(filepath, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(
                [
                    "ID", "Title", "Price", "Currency", "Category",
                    "Rating", "Reviews", "Distance",
                ]
            )
            for p in products:
                dist = product_distance(p, user_location)
                writer.writerow(
                    [
                        p.id,
                        p.title,
                        p.price,
                        p.currency,
                        p.category,
                        "" if p.rating is None else p.rating,
                        "" if p.review_count is None else p.review_count,
                        format_distance(dist) if dist != float("inf") else "",
                    ]
                )

        logger.info(
            "Exported %d products for query '%s' to %s",
            len(products),
            query,
            filepath,
        )
        return filepath
