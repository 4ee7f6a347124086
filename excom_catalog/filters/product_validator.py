# excom_catalog/filters/product_validator.py

"""Product validation: drop unusable API records and check drafts."""

import logging
import re
from dataclasses import dataclass
from typing import Any

from excom_catalog.models.product import Product

logger = logging.getLogger("excom_catalog.filters")

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")
_URL_RE = re.compile(r"^https?://\S+$", re.IGNORECASE)


@dataclass(frozen=True)
class FieldError:
    """A validation message attached to one form field."""

    field: str
    message: str


class ProductValidator:
    """Validate fetched products and product drafts."""

    @staticmethod
    def parse_payloads(
        payloads: list[Any],
    ) -> tuple[list[Product], int]:
        """Build Products from raw JSON, skipping malformed entries.

        Returns the parsed products and the count of skipped items.
        """
        products: list[Product] = []
        skipped = 0
        for raw in payloads:
            if not isinstance(raw, dict):
                skipped += 1
                continue
            try:
                products.append(Product.from_api(raw))
            except ValueError as exc:
                logger.debug("Skipped malformed product: %s", exc)
                skipped += 1
        if skipped:
            logger.info(
                "Skipped %d malformed product payloads", skipped,
            )
        return products, skipped

    @staticmethod
    def validate(
        products: list[Product],
    ) -> tuple[list[Product], int]:
        """Drop products with empty titles, negative prices or duplicate ids.

        Returns the valid products and the count of dropped items.
        """
        valid: list[Product] = []
        seen_ids: set[str] = set()
        dropped = 0

        for product in products:
            if not product.title.strip():
                logger.debug(
                    "Dropped product with empty title (id=%s)",
                    product.id,
                )
                dropped += 1
                continue
            if product.price < 0:
                logger.debug(
                    "Dropped product with negative price "
                    "(id=%s, price=%s)",
                    product.id,
                    product.price,
                )
                dropped += 1
                continue
            if product.id in seen_ids:
                logger.debug("Dropped duplicate product id %s", product.id)
                dropped += 1
                continue
            seen_ids.add(product.id)
            valid.append(product)

        if dropped:
            logger.info(
                "Validation dropped %d invalid products",
                dropped,
            )

        return valid, dropped

    @staticmethod
    def validate_draft(
        draft: dict[str, Any], partial: bool = False,
    ) -> list[FieldError]:
        """Check a product form before it is submitted.

        With ``partial=True`` (an update), only the fields present in
        *draft* are checked.
        """
        errors: list[FieldError] = []

        def present(name: str) -> bool:
            return not partial or name in draft

        for name in ("title", "description", "category"):
            if present(name) and not str(draft.get(name) or "").strip():
                errors.append(
                    FieldError(name, f"{name.capitalize()} is required")
                )

        if present("title") and len(str(draft.get("title") or "")) > 200:
            errors.append(
                FieldError("title", "Title must be at most 200 characters")
            )

        price: float | None = None
        if present("price"):
            price = _number(draft.get("price"))
            if price is None:
                errors.append(FieldError("price", "Price must be a number"))
            elif price < 0:
                errors.append(
                    FieldError("price", "Price cannot be negative")
                )

        currency = draft.get("currency")
        if currency is not None and not _CURRENCY_RE.match(str(currency)):
            errors.append(
                FieldError(
                    "currency", "Currency must be a 3-letter ISO code"
                )
            )

        images = draft.get("images")
        if images is not None:
            if not isinstance(images, list):
                errors.append(
                    FieldError("images", "Images must be a list of URLs")
                )
            else:
                bad = [u for u in images if not _URL_RE.match(str(u))]
                if bad:
                    errors.append(
                        FieldError(
                            "images",
                            f"{len(bad)} image URL(s) are not valid",
                        )
                    )

        if "maxBargainDiscountPercent" in draft:
            pct = _number(draft.get("maxBargainDiscountPercent"))
            if pct is None or not 0 <= pct <= 100:
                errors.append(
                    FieldError(
                        "maxBargainDiscountPercent",
                        "Discount must be between 0 and 100",
                    )
                )

        if "minBargainPrice" in draft:
            floor = _number(draft.get("minBargainPrice"))
            if floor is None or floor < 0:
                errors.append(
                    FieldError(
                        "minBargainPrice",
                        "Minimum bargain price cannot be negative",
                    )
                )
            elif price is not None and floor > price:
                errors.append(
                    FieldError(
                        "minBargainPrice",
                        "Minimum bargain price cannot exceed the price",
                    )
                )

        return errors


def _number(value: Any) -> float | None:
    if value is None or isinstance(value, bool) or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
