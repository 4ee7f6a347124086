# excom_catalog/filters/distance.py

"""Great-circle distance between two coordinates."""

import math

from excom_catalog.models.product import Geopoint

EARTH_RADIUS_KM = 6371.0


def distance_km(a: Geopoint, b: Geopoint) -> float:
    """Haversine distance in kilometres.

    Callers must check that both points exist; non-finite input
    yields ``nan``.
    """
    dlat = math.radians(b.latitude - a.latitude)
    dlon = math.radians(b.longitude - a.longitude)
    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(a.latitude))
        * math.cos(math.radians(b.latitude))
        * math.sin(dlon / 2) ** 2
    )
    # Rounding can push h a hair outside [0, 1] for antipodal points
    h = min(max(h, 0.0), 1.0)
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def is_within(
    origin: Geopoint | None,
    point: Geopoint | None,
    radius_km: float,
) -> bool:
    """True when both points exist and lie at most *radius_km* apart."""
    if origin is None or point is None:
        return False
    return distance_km(origin, point) <= radius_km


def format_distance(km: float) -> str:
    """Render a distance as ``850m`` below one kilometre, else ``12.3km``."""
    if km < 1:
        return f"{round(km * 1000)}m"
    return f"{km:.1f}km"
