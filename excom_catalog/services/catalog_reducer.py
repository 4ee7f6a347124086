# excom_catalog/services/catalog_reducer.py

"""Pure state transitions for the catalog listing.

Every user interaction (typing a query, ticking a category, switching
sort order, moving the radius slider, paging) is expressed as an
action and folded into an immutable :class:`CatalogState` by
:func:`reduce`.  The reducer never performs I/O.
"""

import math
from dataclasses import dataclass, field, replace

from excom_catalog.config.settings import Settings
from excom_catalog.models.filter_state import (
    FACETS,
    FilterState,
    PriceRange,
    SortMode,
)
from excom_catalog.models.product import Geopoint


@dataclass(frozen=True)
class CatalogState:
    filters: FilterState = field(default_factory=FilterState)
    sort_mode: SortMode = SortMode.NEWEST
    user_location: Geopoint | None = None
    nearby_radius_km: float = Settings.NEARBY_RADIUS_KM
    page: int = 1


# ── Actions ──────────────────────────────────────────────


@dataclass(frozen=True)
class SetQuery:
    query: str


@dataclass(frozen=True)
class SetPriceRange:
    minimum: float
    maximum: float = math.inf


@dataclass(frozen=True)
class ToggleCategory:
    category: str


@dataclass(frozen=True)
class SetRating:
    threshold: float | None


@dataclass(frozen=True)
class ToggleFacet:
    facet: str
    value: str


@dataclass(frozen=True)
class SetSortMode:
    sort_mode: SortMode | str


@dataclass(frozen=True)
class SetUserLocation:
    location: Geopoint | None


@dataclass(frozen=True)
class SetNearbyRadius:
    radius_km: float


@dataclass(frozen=True)
class SetLocationFilter:
    enabled: bool


@dataclass(frozen=True)
class SetPage:
    page: int


@dataclass(frozen=True)
class ClearFilters:
    pass


Action = (
    SetQuery
    | SetPriceRange
    | ToggleCategory
    | SetRating
    | ToggleFacet
    | SetSortMode
    | SetUserLocation
    | SetNearbyRadius
    | SetLocationFilter
    | SetPage
    | ClearFilters
)


def clamp_radius(radius_km: float) -> float:
    return min(max(radius_km, Settings.MIN_RADIUS_KM), Settings.MAX_RADIUS_KM)


def _toggle(values: frozenset[str], value: str) -> frozenset[str]:
    if value in values:
        return values - {value}
    return values | {value}


def _with_filters(state: CatalogState, **changes: object) -> CatalogState:
    """Apply filter changes and go back to the first page."""
    return replace(
        state, filters=replace(state.filters, **changes), page=1
    )


def reduce(state: CatalogState, action: Action) -> CatalogState:
    """Return the state that results from applying *action*."""
    filters = state.filters

    if isinstance(action, SetQuery):
        return _with_filters(state, query=action.query)

    if isinstance(action, SetPriceRange):
        low = max(0.0, action.minimum)
        high = max(0.0, action.maximum)
        if low > high:
            low, high = high, low
        return _with_filters(
            state, price_range=PriceRange(low, high)
        )

    if isinstance(action, ToggleCategory):
        return _with_filters(
            state,
            categories=_toggle(filters.categories, action.category),
        )

    if isinstance(action, SetRating):
        return _with_filters(state, rating=action.threshold)

    if isinstance(action, ToggleFacet):
        if action.facet not in FACETS:
            return state
        facets = dict(filters.facets)
        selected = _toggle(filters.facet(action.facet), action.value)
        if selected:
            facets[action.facet] = selected
        else:
            facets.pop(action.facet, None)
        return _with_filters(state, facets=facets)

    if isinstance(action, SetSortMode):
        return replace(
            state, sort_mode=SortMode.parse(action.sort_mode), page=1
        )

    if isinstance(action, SetUserLocation):
        return replace(state, user_location=action.location)

    if isinstance(action, SetNearbyRadius):
        radius = clamp_radius(action.radius_km)
        if filters.location_radius_km is None:
            return replace(state, nearby_radius_km=radius, page=1)
        return replace(
            state,
            nearby_radius_km=radius,
            filters=replace(filters, location_radius_km=radius),
            page=1,
        )

    if isinstance(action, SetLocationFilter):
        radius = state.nearby_radius_km if action.enabled else None
        return _with_filters(state, location_radius_km=radius)

    if isinstance(action, SetPage):
        return replace(state, page=max(1, action.page))

    if isinstance(action, ClearFilters):
        return replace(state, filters=FilterState(), page=1)

    return state
