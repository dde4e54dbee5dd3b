# agrobridge/errors.py

"""Exception taxonomy for AgroBridge."""

from typing import Any


class AgroBridgeError(Exception):
    """Base class for all AgroBridge errors."""


class ProductIdentityError(AgroBridgeError):
    """A product record exposes no usable identity field."""

    def __init__(self, record: Any) -> None:
        self.record = record
        keys = (
            sorted(record) if isinstance(record, dict) else type(record).__name__
        )
        super().__init__(f"Product record has no identity (fields: {keys})")


class GeolocationError(AgroBridgeError):
    """The current position could not be determined."""
