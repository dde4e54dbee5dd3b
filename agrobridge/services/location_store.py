# agrobridge/services/location_store.py

"""Observable store for the user's current location."""

import logging
from collections.abc import Callable

from agrobridge.models.location import Location

logger = logging.getLogger("agrobridge.location")

LocationListener = Callable[[Location], None]


class LocationStore:
    """Holds the current coordinate pair and notifies subscribers.

    Writers are the geolocation resolver and the manual location picker;
    readers are the paginators, which restart from page one on every
    published location.  Each :meth:`set` is a change event, even when the
    coordinates equal the previous ones.
    """

    def __init__(self, initial: Location | None = None) -> None:
        self._current: Location | None = initial
        self._listeners: list[LocationListener] = []

    @property
    def current(self) -> Location | None:
        """The last published location, if any."""
        return self._current

    def subscribe(self, listener: LocationListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def set(self, location: Location) -> None:
        """Publish *location* to every subscriber."""
        self._current = location
        logger.info(
            "User location set to lng=%.5f lat=%.5f",
            location.longitude,
            location.latitude,
        )
        for listener in list(self._listeners):
            try:
                listener(location)
            except Exception:
                logger.error(
                    "Location listener %r failed", listener, exc_info=True,
                )
