"""Two-phase location resolution: device coordinates, then a place name."""
import logging
from location_provider import GeocoderBase, LocationError, LocationErrorCode, LocationProvider
from status_data import LocationCoords, LocationInfo


class LocationResolver:
    """
    Resolves where the device is, once per view lifetime.

    Phase one asks the location capability for coordinates; phase two
    turns them into a place name. A failed phase one means phase two is
    never attempted. Neither phase retries.
    """

    def __init__(self, provider: LocationProvider, geocoder: GeocoderBase):
        self.provider = provider
        self.geocoder = geocoder

    def resolve_coords(self) -> LocationCoords:
        """
        Phase one.

        Raises:
            LocationError: If the capability refuses or reports garbage
        """
        try:
            coords = self.provider.get_position()
        except ValueError as e:
            raise LocationError(f"Invalid coordinates: {e}", LocationErrorCode.INVALID)
        logging.info(f"Device coordinates: {coords.format()}")
        return coords

    def resolve_place(self, coords: LocationCoords) -> LocationInfo:
        """
        Phase two.

        Raises:
            LocationError: If the reverse lookup fails
        """
        return self.geocoder.reverse(coords)
