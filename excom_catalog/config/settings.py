# excom_catalog/config/settings.py

"""Central configuration for the excom_catalog client."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _opted_in(raw: str | None) -> bool:
    return (raw or "").strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Central configuration for the excom_catalog client."""

    # --- Marketplace API ---
    API_BASE: str = os.getenv(
        "EXCOM_API_BASE", "http://localhost:4000/api"
    ).rstrip("/")
    API_TOKEN: str = os.getenv("EXCOM_API_TOKEN", "")
    REQUEST_TIMEOUT: int = 15           # Seconds before a request times out
    MAX_RETRIES: int = 3                # Retry count on transient failures
    RETRY_BACKOFF: float = 0.5          # Base delay between retries (secs)
    MAX_BACKOFF_MULTIPLIER: int = 8     # Cap for adaptive backoff

    # --- Resilience ---
    CIRCUIT_BREAKER_THRESHOLD: int = 3  # Consecutive failures to trip
    CIRCUIT_BREAKER_COOLDOWN: float = 60.0
    PRODUCT_CACHE_TTL: float = 300.0    # Fetched product lists (secs)

    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": "application/json",
        "Accept-Language": "en-US,en;q=0.9",
        "User-Agent": "excom-catalog/0.1",
    }

    # --- Ranking ---
    DEFAULT_RATING: float = 4.5         # Used when a product has no rating
    NEARBY_RADIUS_KM: float = 50.0
    MIN_RADIUS_KM: float = 5.0
    MAX_RADIUS_KM: float = 100.0
    ITEMS_PER_PAGE: int = 12
    RATING_THRESHOLDS: list[float] = [4.0, 4.5, 5.0]
    SORT_MODES: list[dict[str, str]] = [
        {"id": "newest", "label": "Newest First"},
        {"id": "price-low", "label": "Price: Low to High"},
        {"id": "price-high", "label": "Price: High to Low"},
        {"id": "rating", "label": "Highest Rated"},
        {"id": "popularity", "label": "Most Popular"},
        {"id": "discount", "label": "Biggest Discount"},
        {"id": "distance", "label": "Nearest First"},
    ]

    # --- Geolocation ---
    # The IP lookup sends the user's IP address to GEOLOCATION_URL: opt-in only
    GEOLOCATION_ENABLED: bool = _opted_in(os.getenv("EXCOM_GEOLOCATION"))
    GEOLOCATION_URL: str = os.getenv(
        "EXCOM_GEOLOCATION_URL", "https://ipapi.co/json/"
    )
    GEOLOCATION_TIMEOUT: float = 15.0   # Seconds to wait for a fix
    GEOLOCATION_MAX_AGE: float = 300.0  # Cached fix tolerance (5 min)
    FALLBACK_LOCATION: tuple[float, float] = (37.7749, -122.4194)

    # --- Browsing state ---
    RECENTLY_VIEWED_LIMIT: int = 10
    COMPARE_LIST_LIMIT: int = 4

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    STORE_PATH: Path = Path(
        os.getenv(
            "EXCOM_STORE_PATH",
            str(BASE_DIR / "data" / "local_store.json"),
        )
    )
    RESULTS_DIR: Path = BASE_DIR / "results"
    LOGS_DIR: Path = BASE_DIR / "logs"
    CONSOLE_LOG_LEVEL: str = os.getenv("EXCOM_LOG_LEVEL", "WARNING")
