# excom_catalog/services/product_editor.py

"""Create, update and delete products with validation up front."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from excom_catalog.api.base_client import ApiError
from excom_catalog.api.products_client import ProductsClient
from excom_catalog.filters.product_validator import FieldError, ProductValidator
from excom_catalog.models.product import Product
from excom_catalog.storage.product_cache import ProductCache

logger = logging.getLogger("excom_catalog.editor")


@dataclass
class SubmissionResult:
    """Outcome of a form submission.

    ``field_errors`` block the request before it is sent; ``error`` is a
    banner-level message from the API.
    """

    ok: bool
    product: Product | None = None
    field_errors: list[FieldError] = field(
        default_factory=lambda: list[FieldError]()
    )
    error: str | None = None


class ProductEditor:
    """Submit product forms to the API."""

    def __init__(
        self,
        client: ProductsClient | None = None,
        cache: ProductCache | None = None,
    ) -> None:
        self.client = client or ProductsClient()
        self.cache = cache

    def _invalidate(self) -> None:
        if self.cache is not None:
            self.cache.clear()

    @staticmethod
    def _to_product(body: dict[str, Any]) -> Product | None:
        payload = body.get("product", body)
        if not isinstance(payload, dict):
            return None
        try:
            return Product.from_api(payload)
        except ValueError:
            logger.debug("Write response carried no product record")
            return None

    async def create(self, draft: dict[str, Any]) -> SubmissionResult:
        errors = ProductValidator.validate_draft(draft)
        if errors:
            return SubmissionResult(ok=False, field_errors=errors)
        try:
            body = await asyncio.to_thread(self.client.create_product, draft)
        except ApiError as exc:
            logger.error("Product create rejected: %s", exc.message)
            return SubmissionResult(ok=False, error=exc.message)
        self._invalidate()
        product = self._to_product(body)
        logger.info("Created product %s", product.id if product else "?")
        return SubmissionResult(ok=True, product=product)

    async def update(
        self, product_id: str, changes: dict[str, Any],
    ) -> SubmissionResult:
        errors = ProductValidator.validate_draft(changes, partial=True)
        if errors:
            return SubmissionResult(ok=False, field_errors=errors)
        try:
            body = await asyncio.to_thread(
                self.client.update_product, product_id, changes
            )
        except ApiError as exc:
            logger.error(
                "Product %s update rejected: %s", product_id, exc.message
            )
            return SubmissionResult(ok=False, error=exc.message)
        self._invalidate()
        logger.info("Updated product %s", product_id)
        return SubmissionResult(ok=True, product=self._to_product(body))

    async def delete(self, product_id: str) -> SubmissionResult:
        try:
            await asyncio.to_thread(self.client.delete_product, product_id)
        except ApiError as exc:
            logger.error(
                "Product %s delete rejected: %s", product_id, exc.message
            )
            return SubmissionResult(ok=False, error=exc.message)
        self._invalidate()
        logger.info("Deleted product %s", product_id)
        return SubmissionResult(ok=True)
