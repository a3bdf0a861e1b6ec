"""Backend ``/api/hello`` provider implementation."""
import logging
import requests
from typing import Any, Dict
from status_provider import StatusProviderBase, NetworkError


class HelloApiProvider(StatusProviderBase):
    """
    Status provider polling the backend hello endpoint.

    The endpoint answers ``GET <base>/api/hello`` with
    ``{"message": str, "timestamp": ISO-8601 str, "environment": str}``.
    Anything other than a 2xx JSON object is treated as a failure.
    """

    ENDPOINT = "/api/hello"

    def __init__(self, base_url: str, timeout: int = 10):
        """
        Initialize the hello provider.

        Args:
            base_url: Backend base URL, e.g. "http://localhost:3001"
            timeout: HTTP request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.ENDPOINT}"

    def get_current(self) -> Dict[str, Any]:
        """
        Fetch the hello payload.

        Returns:
            Dict: Decoded response body

        Raises:
            NetworkError: If the request fails or the response is unusable
        """
        try:
            logging.info(f"Requesting status: {self.url}")
            response = requests.get(
                self.url,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logging.error(f"Network error during status request: {e}")
            raise NetworkError(f"Network error: {str(e)}")

        logging.info(f"Status response: {response.status_code}")

        if not response.ok:
            logging.error(f"Status request failed with status {response.status_code}")
            raise NetworkError(f"HTTP {response.status_code}")

        content_type = response.headers.get("Content-Type", "")
        if "json" not in content_type.lower():
            logging.error(f"Unexpected content type: {content_type!r}")
            raise NetworkError(f"Unexpected content type: {content_type or 'none'}")

        try:
            data = response.json()
        except ValueError as e:
            logging.error(f"Failed to decode status response: {e}")
            raise NetworkError(f"Malformed JSON: {str(e)}")

        if not isinstance(data, dict):
            raise NetworkError("Response is not a JSON object")

        logging.debug(f"Status payload keys: {list(data.keys())}")
        return data
