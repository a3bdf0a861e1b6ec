"""Nominatim (OpenStreetMap) reverse geocoder implementation."""
import logging
import requests
from location_provider import GeocoderBase, LocationError, LocationErrorCode
from status_data import LocationCoords, LocationInfo


class NominatimGeocoder(GeocoderBase):
    """
    Reverse geocoder using the Nominatim ``/reverse`` endpoint.

    Nominatim's usage policy requires every client to identify itself
    with a ``User-Agent`` header, so one must be supplied.
    """

    BASE_URL = "https://nominatim.openstreetmap.org"
    # Most to least specific settlement granularity
    PLACE_FIELDS = ("city", "town", "village")

    def __init__(self, user_agent: str, base_url: str = BASE_URL, timeout: int = 10):
        """
        Initialize the geocoder.

        Args:
            user_agent: Application identifier sent as ``User-Agent``
            base_url: Nominatim instance to query
            timeout: HTTP request timeout in seconds
        """
        if not user_agent:
            raise ValueError("Nominatim requires a User-Agent")
        self.user_agent = user_agent
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def reverse(self, coords: LocationCoords) -> LocationInfo:
        """
        Look up the place at the given coordinates.

        Returns:
            LocationInfo: City (or town, or village) and country

        Raises:
            LocationError: If the lookup fails
        """
        params = {"format": "json", "lat": coords.lat, "lon": coords.lng}
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}

        try:
            logging.info(f"Reverse geocoding {coords.format()}")
            response = requests.get(
                f"{self.base_url}/reverse",
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logging.error(f"Reverse geocoding timed out: {e}")
            raise LocationError(f"Reverse geocoding timed out: {str(e)}", LocationErrorCode.TIMEOUT)
        except requests.exceptions.RequestException as e:
            logging.error(f"Network error during reverse geocoding: {e}")
            raise LocationError(f"Network error: {str(e)}")

        if not response.ok:
            logging.error(f"Reverse geocoding failed with status {response.status_code}")
            raise LocationError(f"Reverse geocoding HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise LocationError(f"Malformed geocoder response: {str(e)}")

        if not isinstance(data, dict):
            raise LocationError("Geocoder response is not a JSON object")
        if "error" in data:
            raise LocationError(f"Geocoder error: {data['error']}")

        address = data.get("address") or {}
        if not isinstance(address, dict):
            raise LocationError("Geocoder address is not a JSON object")
        city = next((address[field] for field in self.PLACE_FIELDS if address.get(field)), None)
        info = LocationInfo(city=city, country=address.get("country"))
        logging.info(f"Resolved place: {info.place_name or 'unknown'}")
        return info
