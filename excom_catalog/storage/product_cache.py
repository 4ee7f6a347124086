# excom_catalog/storage/product_cache.py

"""In-memory TTL cache of fetched product payloads."""

import logging
import time
from dataclasses import dataclass
from typing import Any

from excom_catalog.config.settings import Settings

logger = logging.getLogger("excom_catalog.cache")

CacheKey = tuple[str, frozenset[tuple[str, str]]]


@dataclass
class CacheEntry:
    """Payloads returned by one endpoint for one set of query params."""

    key: CacheKey
    payloads: list[dict[str, Any]]
    timestamp: float


def make_key(path: str, params: dict[str, Any] | None = None) -> CacheKey:
    return (
        path,
        frozenset((str(k), str(v)) for k, v in (params or {}).items()),
    )


class ProductCache:
    """Cache of API list responses keyed by endpoint and params.

    Filtering and sorting happen client-side, so one fetched list
    serves every filter change until the TTL runs out or the user
    refreshes.
    """

    def __init__(self, ttl: float | None = None) -> None:
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._ttl: float = Settings.PRODUCT_CACHE_TTL if ttl is None else ttl

    def get(
        self, path: str, params: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]] | None:
        """Return a copy of the cached payloads, or ``None`` on a miss."""
        self._evict_expired(time.time())
        entry = self._entries.get(make_key(path, params))
        if entry is None:
            return None
        logger.info("Cache hit for %s (%d items)", path, len(entry.payloads))
        return list(entry.payloads)

    def store(
        self,
        path: str,
        params: dict[str, Any] | None,
        payloads: list[dict[str, Any]],
    ) -> None:
        key = make_key(path, params)
        self._entries[key] = CacheEntry(
            key=key, payloads=list(payloads), timestamp=time.time(),
        )
        logger.info("Cached %d items for %s", len(payloads), path)

    def clear(self) -> int:
        """Purge all cached entries.

        Returns the number of entries that were removed.
        """
        count = len(self._entries)
        self._entries.clear()
        logger.info("Cache manually purged (%d entries removed)", count)
        return count

    def __len__(self) -> int:
        return len(self._entries)

    def _evict_expired(self, now: float) -> None:
        """Remove entries older than the TTL threshold."""
        expired = [
            key for key, e in self._entries.items()
            if now - e.timestamp >= self._ttl
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Evicted %d expired cache entries", len(expired))
