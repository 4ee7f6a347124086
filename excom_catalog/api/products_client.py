# excom_catalog/api/products_client.py

"""Client for the marketplace ``/products`` endpoints."""

from typing import Any

from excom_catalog.api.base_client import BaseApiClient


def _as_list(data: Any, key: str = "products") -> list[dict[str, Any]]:
    """Accept either a bare JSON array or ``{"products": [...]}``."""
    if isinstance(data, dict):
        data = data.get(key, data.get("data"))
    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, dict)]


class ProductsClient(BaseApiClient):
    """Read and write product records.

    Read methods never raise: failures are logged and yield an empty
    list or ``None``.  Write methods raise
    :class:`~excom_catalog.api.base_client.ApiError`.
    """

    def __init__(
        self, base_url: str | None = None, token: str | None = None,
    ) -> None:
        super().__init__(base_url, token, resource="products")

    def list_products(
        self,
        page: int | None = None,
        limit: int | None = None,
        **filters: Any,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {
            k: v for k, v in filters.items() if v not in (None, "")
        }
        if page is not None:
            params["page"] = page
        if limit is not None:
            params["limit"] = limit
        items = _as_list(self._get_json("/products", params or None))
        self.logger.info("Fetched %d products", len(items))
        return items

    def get_product(self, product_id: str) -> dict[str, Any] | None:
        data = self._get_json(f"/products/{product_id}")
        if not isinstance(data, dict):
            return None
        product = data.get("product", data)
        return product if isinstance(product, dict) else None

    def related_products(
        self, product_id: str, limit: int = 8,
    ) -> list[dict[str, Any]]:
        return _as_list(
            self._get_json(
                f"/products/related/{product_id}", {"limit": limit}
            )
        )

    def trending_products(self, limit: int | None = None) -> list[dict[str, Any]]:
        params = {"limit": limit} if limit else None
        return _as_list(self._get_json("/products/trending", params))

    def create_product(self, draft: dict[str, Any]) -> dict[str, Any]:
        return self._write_json("POST", "/products", draft)

    def update_product(
        self, product_id: str, changes: dict[str, Any],
    ) -> dict[str, Any]:
        return self._write_json("PATCH", f"/products/{product_id}", changes)

    def delete_product(self, product_id: str) -> dict[str, Any]:
        return self._write_json("DELETE", f"/products/{product_id}")
