# agrobridge/services/geolocation.py

"""One-shot resolution of the user's position."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol

from curl_cffi import requests as curl_requests

from agrobridge.config.settings import Settings
from agrobridge.errors import GeolocationError
from agrobridge.models.location import Location
from agrobridge.services.location_store import LocationStore

logger = logging.getLogger("agrobridge.geolocation")


class GeolocationProvider(Protocol):
    """Anything that can report the current position."""

    def locate(self) -> Location:
        """Return the current position or raise GeolocationError."""
        ...


class StaticGeolocationProvider:
    """Reports a fixed, pre-configured position."""

    def __init__(self, location: Location) -> None:
        self.location = location

    def locate(self) -> Location:
        return self.location


class IpGeolocationProvider:
    """Approximate the position from the public IP address."""

    def __init__(
        self,
        url: str | None = None,
        session: Any = None,
    ) -> None:
        self.settings = Settings()
        self.url = url or self.settings.GEOLOCATION_URL
        self.session = session or curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )

    def locate(self) -> Location:
        try:
            resp = self.session.get(
                self.url,
                headers=self.settings.DEFAULT_HEADERS,
                timeout=self.settings.GEOLOCATION_TIMEOUT,
            )
        except Exception as exc:
            raise GeolocationError(f"Lookup request failed: {exc}") from exc

        if resp.status_code != 200:
            raise GeolocationError(f"Lookup returned HTTP {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as exc:
            raise GeolocationError("Lookup returned invalid JSON") from exc

        if not isinstance(body, dict):
            raise GeolocationError("Lookup returned no position")
        lat = body.get("latitude", body.get("lat"))
        lng = body.get("longitude", body.get("lon"))
        try:
            location = Location(float(lng), float(lat))
        except (TypeError, ValueError) as exc:
            raise GeolocationError("Lookup returned no position") from exc
        if not location.is_usable:
            raise GeolocationError("Lookup returned a null position")
        return location


def default_provider(
    longitude: float | None = None,
    latitude: float | None = None,
) -> GeolocationProvider:
    """Pick the position source: explicit coordinates, env, then IP lookup."""
    if longitude is not None and latitude is not None:
        return StaticGeolocationProvider(Location(longitude, latitude))
    if Settings.ENV_LOCATION is not None:
        return StaticGeolocationProvider(Location(*Settings.ENV_LOCATION))
    return IpGeolocationProvider()


class GeolocationResolver:
    """Request the position exactly once and publish it.

    On failure the cart is cleared: without a position delivery
    eligibility cannot be computed, so its contents are treated as stale.
    There is no retry; the user can pick a location manually instead.
    """

    def __init__(
        self,
        provider: GeolocationProvider,
        store: LocationStore,
        clear_cart: Callable[[], object],
    ) -> None:
        self.provider = provider
        self.store = store
        self.clear_cart = clear_cart
        self._attempted: bool = False
        self._result: Location | None = None

    @property
    def attempted(self) -> bool:
        """Whether the provider has already been queried."""
        return self._attempted

    def _fail(self, exc: GeolocationError) -> None:
        logger.warning("Geolocation failed (%s); clearing cart", exc)
        self.clear_cart()

    def _publish(self, location: Location) -> Location:
        self._result = location
        self.store.set(location)
        return location

    def resolve(self) -> Location | None:
        """Resolve the position; later calls return the first outcome."""
        if self._attempted:
            return self._result
        self._attempted = True
        try:
            location = self.provider.locate()
        except GeolocationError as exc:
            self._fail(exc)
            return None
        return self._publish(location)

    async def resolve_async(self) -> Location | None:
        """Like :meth:`resolve`, with the lookup off the event loop.

        Subscribers are still notified on the loop's thread.
        """
        if self._attempted:
            return self._result
        self._attempted = True
        try:
            location = await asyncio.to_thread(self.provider.locate)
        except GeolocationError as exc:
            self._fail(exc)
            return None
        return self._publish(location)
