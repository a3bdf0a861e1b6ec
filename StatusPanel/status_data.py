"""Status panel domain model - pure data structures independent of any transport."""
import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class ErrorSource(Enum):
    """Which data source an error belongs to."""
    PRIMARY = "primary"
    CACHE = "cache"
    LOCATION = "location"


@dataclass(frozen=True)
class ErrorState:
    """A user-visible error attached to one data source."""
    message: str
    source: ErrorSource


@dataclass(frozen=True)
class FetchResult:
    """
    Result of one primary fetch.

    ``is_stale`` is only ever true when ``payload`` was read back from the
    cache slot; live responses are always fresh.
    """
    payload: Optional[Dict[str, Any]]
    fetched_at: Optional[datetime] = None  # None for cached payloads
    is_stale: bool = False

    @property
    def message(self) -> Optional[str]:
        if not self.payload:
            return None
        message = self.payload.get("message")
        return str(message) if message is not None else None

    @property
    def environment(self) -> Optional[str]:
        if not self.payload:
            return None
        return self.payload.get("environment")

    @property
    def timestamp(self) -> Optional[datetime]:
        """Server timestamp parsed from the ISO-8601 ``timestamp`` field."""
        if not self.payload:
            return None
        raw = self.payload.get("timestamp")
        if not isinstance(raw, str) or not raw:
            return None
        # fromisoformat() only accepts a trailing "Z" from Python 3.11 on
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            return None


@dataclass(frozen=True)
class LocationCoords:
    """Device coordinates in decimal degrees."""
    lat: float
    lng: float

    def __post_init__(self):
        if not (math.isfinite(self.lat) and math.isfinite(self.lng)):
            raise ValueError(f"Coordinates must be finite: {self.lat}, {self.lng}")
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude out of range: {self.lat}")
        if not -180.0 <= self.lng <= 180.0:
            raise ValueError(f"Longitude out of range: {self.lng}")

    def format(self, digits: int = 4) -> str:
        return f"{self.lat:.{digits}f}, {self.lng:.{digits}f}"


@dataclass(frozen=True)
class LocationInfo:
    """Place resolved from coordinates by a reverse lookup."""
    city: Optional[str] = None
    country: Optional[str] = None

    @property
    def place_name(self) -> Optional[str]:
        parts = [part for part in (self.city, self.country) if part]
        return ", ".join(parts) if parts else None
