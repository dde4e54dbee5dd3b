# agrobridge/models/location.py

"""Geographic coordinate model."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Location:
    """A WGS84 longitude/latitude pair in degrees."""

    longitude: float
    latitude: float

    @property
    def is_usable(self) -> bool:
        """False when either coordinate is missing or zero."""
        return bool(self.longitude) and bool(self.latitude)

    def as_pair(self) -> list[float]:
        """Return ``[lng, lat]``, the GeoJSON coordinate order."""
        return [self.longitude, self.latitude]
