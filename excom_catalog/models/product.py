# excom_catalog/models/product.py

"""Product records as served by the marketplace ``/products`` API."""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from excom_catalog.config.settings import Settings

logger = logging.getLogger("excom_catalog.models")

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Geopoint:
    """A latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float

    @staticmethod
    def parse(latitude: Any, longitude: Any) -> "Geopoint | None":
        """Build a Geopoint from loose values, or ``None`` if out of range."""
        try:
            lat = float(latitude)
            lng = float(longitude)
        except (TypeError, ValueError):
            return None
        if not (math.isfinite(lat) and math.isfinite(lng)):
            return None
        if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
            return None
        return Geopoint(lat, lng)


@dataclass
class ProductLocation:
    """Where a product (or its seller's store) is located."""

    coordinates: Geopoint | None = None
    city: str = ""
    province: str = ""


@dataclass
class Seller:
    id: str = ""
    name: str = ""
    verified: bool = False
    location: ProductLocation | None = None


@dataclass
class Shipping:
    free: bool = False
    estimated_days: int | None = None
    cost: float = 0.0


@dataclass
class Discount:
    percentage: float = 0.0
    valid_until: datetime | None = None

    def active_percentage(self, at: datetime | None = None) -> float:
        """Percentage off, or 0 once ``valid_until`` has passed at *at*."""
        if at is not None and self.valid_until is not None:
            if self.valid_until < at:
                return 0.0
        return self.percentage


@dataclass
class Product:
    """A single catalog listing."""

    id: str
    title: str
    price: float
    description: str = ""
    currency: str = "USD"
    category: str = ""
    images: list[str] = field(default_factory=lambda: list[str]())
    rating: float | None = None
    review_count: int | None = None
    location: ProductLocation | None = None
    seller: Seller | None = None
    shipping: Shipping | None = None
    discount: Discount | None = None
    created_at: datetime | None = None
    brand: str = ""
    colors: list[str] = field(default_factory=lambda: list[str]())
    sizes: list[str] = field(default_factory=lambda: list[str]())
    material: str = ""
    features: list[str] = field(default_factory=lambda: list[str]())
    availability: str = ""

    @property
    def coordinates(self) -> Geopoint | None:
        """The product's own coordinates, else its seller's, else None."""
        if (
            self.location is not None
            and self.location.coordinates is not None
        ):
            return self.location.coordinates
        if (
            self.seller is not None
            and self.seller.location is not None
        ):
            return self.seller.location.coordinates
        return None

    def facet_values(self, facet: str) -> list[str]:
        """Return the product's values for a filterable facet."""
        if facet == "brand":
            return [self.brand] if self.brand else []
        if facet == "color":
            return list(self.colors)
        if facet == "size":
            return list(self.sizes)
        if facet == "material":
            return [self.material] if self.material else []
        if facet == "feature":
            return list(self.features)
        if facet == "availability":
            return [self.availability] if self.availability else []
        if facet == "shipping":
            if self.shipping is None:
                return []
            return ["free"] if self.shipping.free else ["paid"]
        return []

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Product":
        """Build a Product from an API JSON object.

        Optional fields that are missing or malformed are left unset.
        Raises ``ValueError`` only when the id or price is unusable.
        """
        product_id = str(payload.get("_id") or payload.get("id") or "")
        title = str(payload.get("title") or "")
        if not product_id:
            raise ValueError("product payload has no id")
        try:
            price = float(payload.get("price"))  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ValueError(
                f"product {product_id} has no numeric price"
            ) from exc

        rating, review_count = _parse_rating(payload)
        variants: dict[str, Any] = payload.get("variants") or {}
        if not isinstance(variants, dict):
            variants = {}

        return cls(
            id=product_id,
            title=title,
            price=price,
            description=str(payload.get("description") or ""),
            currency=str(payload.get("currency") or "USD"),
            category=str(payload.get("category") or ""),
            images=_str_list(payload.get("images")),
            rating=rating,
            review_count=review_count,
            location=_parse_location(payload.get("location")),
            seller=_parse_seller(payload.get("seller")),
            shipping=_parse_shipping(payload.get("shipping")),
            discount=_parse_discount(payload.get("discount")),
            created_at=parse_timestamp(payload.get("createdAt")),
            brand=str(variants.get("brand") or payload.get("brand") or ""),
            colors=_str_list(variants.get("colors") or payload.get("colors")),
            sizes=_str_list(variants.get("sizes") or payload.get("sizes")),
            material=str(
                variants.get("material") or payload.get("material") or ""
            ),
            features=_str_list(payload.get("features")),
            availability=_parse_availability(payload, variants),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the API's JSON shape (camelCase keys)."""
        coords = self.coordinates
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "currency": self.currency,
            "category": self.category,
            "images": list(self.images),
            "rating": self.rating,
            "reviewCount": self.review_count,
            "latitude": coords.latitude if coords else None,
            "longitude": coords.longitude if coords else None,
            "discount": (
                self.discount.percentage if self.discount else None
            ),
            "createdAt": (
                self.created_at.isoformat() if self.created_at else None
            ),
        }


def resolve_rating(product: Product) -> float:
    """The rating used for every comparison: stored value or the default."""
    if product.rating is None:
        return Settings.DEFAULT_RATING
    return product.rating


def created_timestamp(product: Product) -> float:
    """POSIX timestamp of ``created_at``; epoch 0 when missing."""
    return (product.created_at or EPOCH).timestamp()


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into a UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        # JS timestamps are milliseconds
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug("Unparseable timestamp %r ignored", value)
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ── Payload helpers ──────────────────────────────────────


def _str_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v]
    return []


def _optional_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _parse_rating(
    payload: dict[str, Any],
) -> tuple[float | None, int | None]:
    """Accept ``rating`` as a number or as ``{average, count}``."""
    raw = payload.get("rating")
    count: Any = payload.get("reviewCount")
    if isinstance(raw, dict):
        if count is None:
            count = raw.get("count")
        raw = raw.get("average")
    rating = _optional_float(raw)
    if rating is not None and not 0.0 <= rating <= 5.0:
        logger.debug("Out-of-range rating %s ignored", rating)
        rating = None
    review_count: int | None = None
    count_value = _optional_float(count)
    if count_value is not None and count_value >= 0:
        review_count = int(count_value)
    return rating, review_count


def _parse_location(raw: Any) -> ProductLocation | None:
    """Accept GeoJSON ``coordinates`` ([lng, lat]) or named lat/lng keys."""
    if not isinstance(raw, dict):
        return None
    point: Geopoint | None = None
    coords = raw.get("coordinates")
    if isinstance(coords, (list, tuple)) and len(coords) == 2:
        point = Geopoint.parse(coords[1], coords[0])
    elif isinstance(coords, dict):
        point = Geopoint.parse(
            coords.get("lat", coords.get("latitude")),
            coords.get("lng", coords.get("longitude")),
        )
    if point is None:
        point = Geopoint.parse(
            raw.get("latitude", raw.get("lat")),
            raw.get("longitude", raw.get("lng")),
        )
    return ProductLocation(
        coordinates=point,
        city=str(raw.get("city") or ""),
        province=str(raw.get("province") or raw.get("state") or ""),
    )


def _parse_seller(raw: Any) -> Seller | None:
    if isinstance(raw, str):
        return Seller(id=raw)
    if not isinstance(raw, dict):
        return None
    return Seller(
        id=str(raw.get("_id") or raw.get("id") or ""),
        name=str(raw.get("name") or ""),
        verified=bool(raw.get("verified") or raw.get("isVerified")),
        location=_parse_location(raw.get("location")),
    )


def _parse_shipping(raw: Any) -> Shipping | None:
    if not isinstance(raw, dict):
        return None
    days = _optional_float(raw.get("estimatedDays"))
    return Shipping(
        free=bool(raw.get("free")),
        estimated_days=int(days) if days is not None else None,
        cost=_optional_float(raw.get("cost")) or 0.0,
    )


def _parse_discount(raw: Any) -> Discount | None:
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        raw = {"percentage": raw}
    if not isinstance(raw, dict):
        return None
    percentage = _optional_float(raw.get("percentage"))
    if percentage is None:
        return None
    return Discount(
        percentage=min(max(percentage, 0.0), 100.0),
        valid_until=parse_timestamp(raw.get("validUntil")),
    )


def _parse_availability(
    payload: dict[str, Any], variants: dict[str, Any],
) -> str:
    explicit = payload.get("availability")
    if explicit:
        return str(explicit)
    inventory = _optional_float(variants.get("inventory"))
    if inventory is None:
        return ""
    return "in stock" if inventory > 0 else "out of stock"
