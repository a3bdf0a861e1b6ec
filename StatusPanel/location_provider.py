"""Location capability abstractions - where the device is and what the place is called."""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional
from status_data import LocationCoords, LocationInfo


class LocationErrorCode(Enum):
    DENIED = "denied"
    UNSUPPORTED = "unsupported"
    TIMEOUT = "timeout"
    INVALID = "invalid"
    LOOKUP_FAILED = "lookup_failed"


class LocationError(Exception):
    """Exception raised when coordinates or the place name cannot be resolved."""

    def __init__(self, message: str, code: LocationErrorCode = LocationErrorCode.LOOKUP_FAILED):
        super().__init__(message)
        self.code = code


class LocationProvider(ABC):
    """Host capability that reports the device position, subject to permission."""

    @abstractmethod
    def get_position(self) -> LocationCoords:
        """
        Request the current device coordinates.

        Returns:
            LocationCoords: Device position

        Raises:
            LocationError: If permission is denied, the capability is
                unavailable or the request times out
        """
        pass


class GeocoderBase(ABC):
    """Abstract reverse geocoder."""

    @abstractmethod
    def reverse(self, coords: LocationCoords) -> LocationInfo:
        """
        Resolve coordinates to a place.

        Raises:
            LocationError: If the lookup fails
        """
        pass


class ConfiguredLocationProvider(LocationProvider):
    """Reports a fixed position taken from configuration."""

    def __init__(self, lat: float, lon: float, permission_granted: bool = True):
        self.lat = lat
        self.lon = lon
        self.permission_granted = permission_granted

    def get_position(self) -> LocationCoords:
        if not self.permission_granted:
            raise LocationError("Location permission denied", LocationErrorCode.DENIED)
        try:
            return LocationCoords(lat=float(self.lat), lng=float(self.lon))
        except (TypeError, ValueError) as e:
            raise LocationError(f"Invalid coordinates: {e}", LocationErrorCode.INVALID)


class UnsupportedLocationProvider(LocationProvider):
    """Used when the host has no way to know where it is."""

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason or "Geolocation is not supported"

    def get_position(self) -> LocationCoords:
        raise LocationError(self.reason, LocationErrorCode.UNSUPPORTED)
