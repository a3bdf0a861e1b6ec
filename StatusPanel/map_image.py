"""Static map image reference and the observer that reports when it has loaded."""
import io
import logging
from abc import ABC, abstractmethod
from typing import Optional, Tuple

import requests
from PIL import Image, UnidentifiedImageError

from status_data import LocationCoords

MAP_URL_TEMPLATE = (
    "https://static-maps.yandex.ru/1.x/"
    "?ll={lng},{lat}&z=10&size=300,150&l=map&pt={lng},{lat},pm2blm"
)


def map_image_url(coords: LocationCoords, template: str = MAP_URL_TEMPLATE) -> str:
    """Build the map image URL centred and pinned on ``coords``."""
    return template.format(lat=coords.lat, lng=coords.lng)


class ImageLoadError(Exception):
    """Exception raised when an image cannot be loaded."""
    pass


class ImageLoadObserver(ABC):
    """Observes an image resource until it has loaded or failed."""

    @abstractmethod
    def load(self, url: str) -> Tuple[int, int]:
        """
        Block until the image at ``url`` is available.

        Returns:
            Tuple of (width, height) in pixels

        Raises:
            ImageLoadError: If the image cannot be fetched or decoded
        """
        pass


class PillowImageLoader(ImageLoadObserver):
    """
    Downloads an image and checks it decodes with Pillow.

    An image only counts as loaded once Pillow accepts the bytes, the same
    point at which a browser would fire the element's load event.
    """

    def __init__(self, timeout: int = 10, user_agent: Optional[str] = None):
        """
        Args:
            timeout: HTTP request timeout in seconds
            user_agent: Optional ``User-Agent`` header value
        """
        self.timeout = timeout
        self.user_agent = user_agent

    def load(self, url: str) -> Tuple[int, int]:
        headers = {"User-Agent": self.user_agent} if self.user_agent else {}
        try:
            logging.info(f"Loading map image: {url}")
            response = requests.get(url, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logging.error(f"Network error loading image: {e}")
            raise ImageLoadError(f"Network error: {str(e)}")

        if not response.ok:
            raise ImageLoadError(f"HTTP {response.status_code}")

        try:
            with Image.open(io.BytesIO(response.content)) as image:
                size = image.size
                image.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            logging.error(f"Map image is not a valid image: {e}")
            raise ImageLoadError(f"Invalid image data: {str(e)}")

        logging.info(f"Map image loaded ({size[0]}x{size[1]})")
        return size
