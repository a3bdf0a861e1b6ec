"""Status provider abstraction - allows swapping the backend the panel polls."""
from abc import ABC, abstractmethod
from typing import Any, Dict


class StatusProviderBase(ABC):
    """Abstract base class for the primary status resource."""

    @abstractmethod
    def get_current(self) -> Dict[str, Any]:
        """
        Fetch the current status payload.

        Returns:
            Dict: Decoded JSON object returned by the backend

        Raises:
            NetworkError: If the request fails, returns a non-success
                status or the body is not a well-formed JSON object
        """
        pass


class NetworkError(Exception):
    """Exception raised when the primary resource cannot be fetched."""
    pass
