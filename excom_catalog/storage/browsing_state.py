# excom_catalog/storage/browsing_state.py

"""Client-only browsing state kept in a key-value store.

Four keys are maintained, each JSON encoded:

``recentlyViewed``
    product summaries, newest first, de-duplicated by id, capped.
``productViewHistory``
    ``{product_id: {"count": int, "lastViewed": iso-timestamp}}``.
``wishlist``
    saved product summaries with an ``addedAt`` timestamp, newest first.
``compareList``
    product ids selected for side-by-side comparison, capped.

A missing or corrupt value always reads as empty.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from excom_catalog.config.settings import Settings
from excom_catalog.models.product import Product
from excom_catalog.storage.key_value_store import KeyValueStore

logger = logging.getLogger("excom_catalog.storage")

RECENTLY_VIEWED_KEY = "recentlyViewed"
VIEW_HISTORY_KEY = "productViewHistory"
WISHLIST_KEY = "wishlist"
COMPARE_LIST_KEY = "compareList"


def product_summary(product: Product) -> dict[str, Any]:
    """The subset of a product worth keeping client-side."""
    return {
        "id": product.id,
        "title": product.title,
        "price": product.price,
        "currency": product.currency,
        "image": product.images[0] if product.images else None,
        "category": product.category or None,
        "rating": product.rating,
        "reviewCount": product.review_count,
    }


def _count(entry: dict[str, Any]) -> int:
    """Stored view count; anything unusable counts as no views."""
    value = entry.get("count", 0)
    if isinstance(value, bool):
        return 0
    try:
        count = int(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(count, 0)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class BrowsingState:
    """Read and update the browsing keys of a :class:`KeyValueStore`."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    # ── Raw JSON access ──────────────────────────────────

    def _read(self, key: str, default: Any) -> Any:
        raw = self.store.get_item(key)
        if raw is None:
            return default
        try:
            value = json.loads(raw)
        except ValueError:
            logger.warning("Discarding corrupt value under '%s'", key)
            return default
        if not isinstance(value, type(default)):
            return default
        return value

    def _write(self, key: str, value: Any) -> None:
        self.store.set_item(key, json.dumps(value, ensure_ascii=False))

    # ── Recently viewed / view history ───────────────────

    def recently_viewed(self) -> list[dict[str, Any]]:
        items: list[Any] = self._read(RECENTLY_VIEWED_KEY, [])
        return [i for i in items if isinstance(i, dict)]

    def view_history(self) -> dict[str, dict[str, Any]]:
        history: dict[str, Any] = self._read(VIEW_HISTORY_KEY, {})
        return {k: v for k, v in history.items() if isinstance(v, dict)}

    def record_view(self, product: Product) -> None:
        """Move *product* to the front of the recent list and count the view."""
        recent = [
            i for i in self.recently_viewed() if i.get("id") != product.id
        ]
        recent.insert(0, product_summary(product))
        self._write(
            RECENTLY_VIEWED_KEY, recent[: Settings.RECENTLY_VIEWED_LIMIT]
        )

        history = self.view_history()
        entry = history.get(product.id, {})
        history[product.id] = {
            "count": _count(entry) + 1,
            "lastViewed": _now_iso(),
        }
        self._write(VIEW_HISTORY_KEY, history)
        logger.debug("Recorded view of product %s", product.id)

    def view_count(self, product_id: str) -> int:
        entry = self.view_history().get(product_id, {})
        return _count(entry)

    def clear_history(self) -> None:
        self.store.remove_item(RECENTLY_VIEWED_KEY)
        self.store.remove_item(VIEW_HISTORY_KEY)

    # ── Wishlist ─────────────────────────────────────────

    def wishlist(self) -> list[dict[str, Any]]:
        items: list[Any] = self._read(WISHLIST_KEY, [])
        return [i for i in items if isinstance(i, dict)]

    def add_to_wishlist(self, product: Product) -> list[dict[str, Any]]:
        """Prepend *product* unless it is already saved."""
        items = self.wishlist()
        if not any(i.get("id") == product.id for i in items):
            items.insert(0, {**product_summary(product), "addedAt": _now_iso()})
            self._write(WISHLIST_KEY, items)
        return items

    def remove_from_wishlist(self, product_id: str) -> list[dict[str, Any]]:
        items = [i for i in self.wishlist() if i.get("id") != product_id]
        self._write(WISHLIST_KEY, items)
        return items

    def clear_wishlist(self) -> list[dict[str, Any]]:
        self._write(WISHLIST_KEY, [])
        return []

    def in_wishlist(self, product_id: str) -> bool:
        return any(i.get("id") == product_id for i in self.wishlist())

    # ── Compare list ─────────────────────────────────────

    def compare_list(self) -> list[str]:
        items: list[Any] = self._read(COMPARE_LIST_KEY, [])
        return [str(i) for i in items if isinstance(i, str)]

    def toggle_compare(self, product_id: str) -> list[str]:
        """Add or remove an id; adding beyond the cap drops the oldest."""
        ids = self.compare_list()
        if product_id in ids:
            ids.remove(product_id)
        else:
            ids.append(product_id)
            ids = ids[-Settings.COMPARE_LIST_LIMIT:]
        self._write(COMPARE_LIST_KEY, ids)
        return ids
