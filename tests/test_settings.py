# tests/test_settings.py

"""Tests for the Settings configuration class."""

import os
import unittest
from pathlib import Path

from excom_catalog.config.settings import Settings, _opted_in
from excom_catalog.models.filter_state import SortMode


class TestSettings(unittest.TestCase):
    """Verify Settings constants."""

    def test_request_timeout_is_positive_int(self) -> None:
        """REQUEST_TIMEOUT must be a positive integer."""
        self.assertIsInstance(Settings.REQUEST_TIMEOUT, int)
        self.assertGreater(Settings.REQUEST_TIMEOUT, 0)

    def test_max_retries_is_positive(self) -> None:
        self.assertGreaterEqual(Settings.MAX_RETRIES, 1)

    def test_circuit_breaker_threshold_positive(self) -> None:
        self.assertGreaterEqual(Settings.CIRCUIT_BREAKER_THRESHOLD, 1)

    def test_product_cache_ttl_positive(self) -> None:
        self.assertGreater(Settings.PRODUCT_CACHE_TTL, 0)

    def test_api_base_has_no_trailing_slash(self) -> None:
        self.assertFalse(Settings.API_BASE.endswith("/"))

    def test_ranking_defaults(self) -> None:
        self.assertEqual(Settings.DEFAULT_RATING, 4.5)
        self.assertEqual(Settings.NEARBY_RADIUS_KM, 50)
        self.assertEqual(Settings.ITEMS_PER_PAGE, 12)
        self.assertLessEqual(
            Settings.MIN_RADIUS_KM, Settings.NEARBY_RADIUS_KM
        )
        self.assertLessEqual(
            Settings.NEARBY_RADIUS_KM, Settings.MAX_RADIUS_KM
        )

    def test_geolocation_defaults(self) -> None:
        self.assertEqual(Settings.GEOLOCATION_TIMEOUT, 15)
        self.assertEqual(Settings.GEOLOCATION_MAX_AGE, 300)
        self.assertEqual(Settings.FALLBACK_LOCATION, (37.7749, -122.4194))

    def test_ip_geolocation_is_opt_in(self) -> None:
        """Without EXCOM_GEOLOCATION the IP lookup stays off."""
        self.assertFalse(_opted_in(None))
        self.assertFalse(_opted_in(""))
        self.assertFalse(_opted_in("0"))
        self.assertFalse(_opted_in("off"))
        for raw in ("1", "true", "YES", " on "):
            with self.subTest(raw=raw):
                self.assertTrue(_opted_in(raw))
        self.assertEqual(
            Settings.GEOLOCATION_ENABLED,
            _opted_in(os.environ.get("EXCOM_GEOLOCATION")),
        )

    def test_sort_modes_match_enum(self) -> None:
        """Every sort mode offered to users parses to itself."""
        ids = [s["id"] for s in Settings.SORT_MODES]
        self.assertEqual(len(ids), len(set(ids)))
        for sort_id in ids:
            with self.subTest(sort_id=sort_id):
                self.assertEqual(SortMode.parse(sort_id).value, sort_id)
        self.assertEqual(set(ids), {m.value for m in SortMode})

    def test_browsing_limits(self) -> None:
        self.assertEqual(Settings.RECENTLY_VIEWED_LIMIT, 10)
        self.assertEqual(Settings.COMPARE_LIST_LIMIT, 4)

    def test_path_constants_are_paths(self) -> None:
        self.assertIsInstance(Settings.BASE_DIR, Path)
        self.assertIsInstance(Settings.STORE_PATH, Path)
        self.assertIsInstance(Settings.RESULTS_DIR, Path)
        self.assertIsInstance(Settings.LOGS_DIR, Path)

    def test_default_headers_accept_json(self) -> None:
        self.assertEqual(
            Settings.DEFAULT_HEADERS["Accept"], "application/json"
        )


if __name__ == "__main__":
    unittest.main()
