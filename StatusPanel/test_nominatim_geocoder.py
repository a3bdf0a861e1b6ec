"""Tests for the Nominatim reverse geocoder."""
import pytest
import requests
from unittest.mock import Mock, patch
from nominatim_geocoder import NominatimGeocoder
from location_provider import LocationError, LocationErrorCode
from status_data import LocationCoords


@pytest.fixture
def geocoder():
    """Create geocoder instance."""
    return NominatimGeocoder(user_agent="status-panel-tests/1.0")


@pytest.fixture
def coords():
    return LocationCoords(lat=51.5074, lng=-0.1278)


def make_response(body, status=200):
    response = Mock()
    response.ok = 200 <= status < 300
    response.status_code = status
    response.json.return_value = body
    return response


def test_reverse_city(geocoder, coords):
    """Test parsing a response with a city."""
    body = {"address": {"city": "London", "country": "United Kingdom"}}
    with patch('nominatim_geocoder.requests.get') as mock_get:
        mock_get.return_value = make_response(body)

        info = geocoder.reverse(coords)

        assert info.city == "London"
        assert info.country == "United Kingdom"


def test_reverse_sends_user_agent_and_params(geocoder, coords):
    """Test the request shape required by Nominatim."""
    with patch('nominatim_geocoder.requests.get') as mock_get:
        mock_get.return_value = make_response({"address": {}})

        geocoder.reverse(coords)

        args, kwargs = mock_get.call_args
        assert args[0] == "https://nominatim.openstreetmap.org/reverse"
        assert kwargs["params"] == {"format": "json", "lat": 51.5074, "lon": -0.1278}
        assert kwargs["headers"]["User-Agent"] == "status-panel-tests/1.0"


@pytest.mark.parametrize("address,expected", [
    ({"town": "Hexham", "village": "Acomb"}, "Hexham"),
    ({"village": "Acomb"}, "Acomb"),
    ({"city": "York", "town": "Ignored"}, "York"),
    ({"hamlet": "Nowhere"}, None),
])
def test_reverse_place_granularity_fallback(geocoder, coords, address, expected):
    """Test city -> town -> village fallback."""
    with patch('nominatim_geocoder.requests.get') as mock_get:
        mock_get.return_value = make_response({"address": address})

        assert geocoder.reverse(coords).city == expected


def test_reverse_missing_address(geocoder, coords):
    """Test a response without an address block."""
    with patch('nominatim_geocoder.requests.get') as mock_get:
        mock_get.return_value = make_response({"display_name": "Somewhere"})

        info = geocoder.reverse(coords)

        assert info.city is None
        assert info.country is None


def test_reverse_error_body(geocoder, coords):
    """Test Nominatim's error object (e.g. over the sea)."""
    with patch('nominatim_geocoder.requests.get') as mock_get:
        mock_get.return_value = make_response({"error": "Unable to geocode"})

        with pytest.raises(LocationError) as exc_info:
            geocoder.reverse(coords)

        assert "Unable to geocode" in str(exc_info.value)
        assert exc_info.value.code is LocationErrorCode.LOOKUP_FAILED


def test_reverse_http_error(geocoder, coords):
    """Test handling of a rate-limited response."""
    with patch('nominatim_geocoder.requests.get') as mock_get:
        mock_get.return_value = make_response({}, status=429)

        with pytest.raises(LocationError) as exc_info:
            geocoder.reverse(coords)

        assert "429" in str(exc_info.value)


def test_reverse_timeout(geocoder, coords):
    """Test that a timeout is reported with its own code."""
    with patch('nominatim_geocoder.requests.get') as mock_get:
        mock_get.side_effect = requests.exceptions.Timeout("read timed out")

        with pytest.raises(LocationError) as exc_info:
            geocoder.reverse(coords)

        assert exc_info.value.code is LocationErrorCode.TIMEOUT


def test_reverse_network_error(geocoder, coords):
    """Test handling of transport errors."""
    with patch('nominatim_geocoder.requests.get') as mock_get:
        mock_get.side_effect = requests.exceptions.ConnectionError("DNS failure")

        with pytest.raises(LocationError) as exc_info:
            geocoder.reverse(coords)

        assert "Network error" in str(exc_info.value)


def test_user_agent_required():
    """Test that an empty User-Agent is refused up front."""
    with pytest.raises(ValueError):
        NominatimGeocoder(user_agent="")


def test_reverse_address_not_object(geocoder, coords):
    """Test a 2xx body whose address block has the wrong shape."""
    with patch('nominatim_geocoder.requests.get') as mock_get:
        mock_get.return_value = make_response({"address": ["x"]})

        with pytest.raises(LocationError) as exc_info:
            geocoder.reverse(coords)

        assert exc_info.value.code is LocationErrorCode.LOOKUP_FAILED
