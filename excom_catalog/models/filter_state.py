# excom_catalog/models/filter_state.py

"""Filter and sort selections applied to a product listing."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping

# Selecting this category means "no category restriction"
ALL_CATEGORIES = "all"

FACETS: tuple[str, ...] = (
    "brand",
    "color",
    "size",
    "material",
    "feature",
    "availability",
    "shipping",
)


class SortMode(str, Enum):
    NEWEST = "newest"
    PRICE_LOW = "price-low"
    PRICE_HIGH = "price-high"
    RATING = "rating"
    POPULARITY = "popularity"
    DISCOUNT = "discount"
    DISTANCE = "distance"

    @classmethod
    def parse(cls, value: "str | SortMode | None") -> "SortMode":
        """Map a UI sort value to a mode; unknown values mean NEWEST."""
        if isinstance(value, SortMode):
            return value
        if not value:
            return cls.NEWEST
        key = value.strip().lower()
        key = _SORT_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            return cls.NEWEST


_SORT_ALIASES: dict[str, str] = {
    "popular": "popularity",
    "featured": "newest",
    "nearest": "distance",
}


@dataclass(frozen=True)
class PriceRange:
    """Inclusive price bounds; ``maximum`` may be infinite."""

    minimum: float = 0.0
    maximum: float = math.inf

    def __post_init__(self) -> None:
        if self.minimum < 0:
            raise ValueError("minimum price cannot be negative")
        if self.minimum > self.maximum:
            raise ValueError(
                f"minimum price {self.minimum} exceeds "
                f"maximum {self.maximum}"
            )

    def contains(self, price: float) -> bool:
        return self.minimum <= price <= self.maximum


@dataclass(frozen=True)
class FilterState:
    """Every user-selectable filter on the listing.

    ``facets`` maps a facet name from :data:`FACETS` to the selected
    values.  ``location_radius_km`` of ``None`` disables the distance
    filter.
    """

    price_range: PriceRange = field(default_factory=PriceRange)
    categories: frozenset[str] = frozenset()
    rating: float | None = None
    query: str = ""
    facets: Mapping[str, frozenset[str]] = field(
        default_factory=lambda: dict[str, frozenset[str]]()
    )
    location_radius_km: float | None = None

    @property
    def categories_unrestricted(self) -> bool:
        lowered = {c.strip().lower() for c in self.categories}
        return not lowered or ALL_CATEGORIES in lowered

    def facet(self, name: str) -> frozenset[str]:
        return self.facets.get(name, frozenset())

    @property
    def is_default(self) -> bool:
        return self == FilterState()
