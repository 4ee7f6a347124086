# excom_catalog/services/geolocation.py

"""User location acquisition with timeout, cache and fallback policy."""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

from curl_cffi import requests as curl_requests

from excom_catalog.config.settings import Settings
from excom_catalog.models.product import Geopoint

logger = logging.getLogger("excom_catalog.geolocation")


class GeolocationFailure(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    UNSUPPORTED = "unsupported"


_NOTICES: dict[GeolocationFailure, str] = {
    GeolocationFailure.PERMISSION_DENIED: (
        "Location access denied. Showing results near the default location."
    ),
    GeolocationFailure.POSITION_UNAVAILABLE: (
        "Location information unavailable. Showing results near the "
        "default location."
    ),
    GeolocationFailure.TIMEOUT: (
        "Location request timed out. Showing results near the default "
        "location."
    ),
    GeolocationFailure.UNSUPPORTED: (
        "Location is not supported here. Showing results near the "
        "default location."
    ),
}


class GeolocationError(Exception):
    """Raised by a provider that cannot produce a position."""

    def __init__(
        self,
        reason: GeolocationFailure,
        message: str = "",
    ) -> None:
        super().__init__(message or reason.value)
        self.reason = reason


@dataclass(frozen=True)
class GeolocationResult:
    """Either a real fix or the fallback location with a reason code."""

    location: Geopoint
    reason: GeolocationFailure | None = None
    obtained_at: float = 0.0

    @property
    def ok(self) -> bool:
        return self.reason is None

    @property
    def notice(self) -> str | None:
        """Transient banner text for the user, ``None`` on success."""
        if self.reason is None:
            return None
        return _NOTICES[self.reason]


class LocationProvider(ABC):
    """Blocking source of the user's position."""

    @abstractmethod
    def current_position(self) -> Geopoint:
        """Return a position or raise :class:`GeolocationError`."""
        ...


class StaticLocationProvider(LocationProvider):
    """A fixed position, e.g. one passed on the command line."""

    def __init__(self, point: Geopoint) -> None:
        self.point = point

    def current_position(self) -> Geopoint:
        return self.point


class IpLocationProvider(LocationProvider):
    """Approximate position from an IP geolocation JSON endpoint.

    Understands both ``latitude``/``longitude`` and ``lat``/``lon``
    response shapes.
    """

    def __init__(self, url: str | None = None) -> None:
        self.url = url or Settings.GEOLOCATION_URL
        self.session = curl_requests.Session()

    def current_position(self) -> Geopoint:
        try:
            resp = self.session.get(
                self.url,
                headers={"Accept": "application/json"},
                timeout=Settings.GEOLOCATION_TIMEOUT,
            )
        except Exception as exc:
            raise GeolocationError(
                GeolocationFailure.POSITION_UNAVAILABLE, str(exc)
            ) from exc
        if resp.status_code != 200:
            raise GeolocationError(
                GeolocationFailure.POSITION_UNAVAILABLE,
                f"lookup returned HTTP {resp.status_code}",
            )
        try:
            data: Any = resp.json()
        except ValueError as exc:
            raise GeolocationError(
                GeolocationFailure.POSITION_UNAVAILABLE,
                "lookup returned invalid JSON",
            ) from exc
        if not isinstance(data, dict):
            data = {}
        point = Geopoint.parse(
            data.get("latitude", data.get("lat")),
            data.get("longitude", data.get("lon", data.get("lng"))),
        )
        if point is None:
            raise GeolocationError(
                GeolocationFailure.POSITION_UNAVAILABLE,
                "lookup response has no usable coordinates",
            )
        return point


def fallback_location() -> Geopoint:
    lat, lng = Settings.FALLBACK_LOCATION
    return Geopoint(lat, lng)


class GeolocationService:
    """Resolve the user's location once and remember it.

    A successful fix is reused for ``max_age`` seconds unless a refresh
    is forced.  Any failure resolves to the fallback location with a
    reason code; :meth:`locate` never raises.
    """

    def __init__(
        self,
        provider: LocationProvider | None = None,
        enabled: bool | None = None,
        timeout: float | None = None,
        max_age: float | None = None,
        fallback: Geopoint | None = None,
    ) -> None:
        self.provider = provider
        self.enabled = Settings.GEOLOCATION_ENABLED if enabled is None else enabled
        self.timeout = Settings.GEOLOCATION_TIMEOUT if timeout is None else timeout
        self.max_age = Settings.GEOLOCATION_MAX_AGE if max_age is None else max_age
        self.fallback = fallback or fallback_location()
        self._last_fix: GeolocationResult | None = None

    @property
    def last_fix(self) -> GeolocationResult | None:
        return self._last_fix

    def _fail(self, reason: GeolocationFailure) -> GeolocationResult:
        logger.warning(
            "Geolocation failed (%s), using fallback %s",
            reason.value,
            self.fallback,
        )
        return GeolocationResult(
            location=self.fallback,
            reason=reason,
            obtained_at=time.monotonic(),
        )

    async def locate(self, force_refresh: bool = False) -> GeolocationResult:
        now = time.monotonic()
        cached = self._last_fix
        if (
            not force_refresh
            and cached is not None
            and now - cached.obtained_at < self.max_age
        ):
            logger.debug("Reusing cached location %s", cached.location)
            return cached

        if not self.enabled:
            return self._fail(GeolocationFailure.PERMISSION_DENIED)
        if self.provider is None:
            return self._fail(GeolocationFailure.UNSUPPORTED)

        try:
            point = await asyncio.wait_for(
                asyncio.to_thread(self.provider.current_position),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            return self._fail(GeolocationFailure.TIMEOUT)
        except GeolocationError as exc:
            logger.info("Location provider error: %s", exc)
            return self._fail(exc.reason)
        except Exception:
            logger.error("Location provider crashed", exc_info=True)
            return self._fail(GeolocationFailure.POSITION_UNAVAILABLE)

        result = GeolocationResult(location=point, obtained_at=time.monotonic())
        self._last_fix = result
        logger.info("Location acquired: %s", point)
        return result
