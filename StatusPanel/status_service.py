"""Status service with a durable last-good cache to fall back on."""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional
from status_provider import StatusProviderBase, NetworkError
from status_data import ErrorSource, ErrorState, FetchResult
from kv_store import CacheSlot


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FetchOutcome:
    """What one fetch attempt produced after the fallback policy ran."""
    result: Optional[FetchResult]
    error: Optional[ErrorState]


class StatusService:
    """
    Service that wraps a status provider with a one-slot durable cache.

    A fresh payload always overwrites the cache. When the provider fails,
    the cached payload is served instead and flagged stale; with nothing
    cached the failure is reported as is.
    """

    def __init__(
        self,
        provider: StatusProviderBase,
        cache: CacheSlot,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize status service.

        Args:
            provider: Status provider to poll
            cache: Slot holding the last good payload
            clock: Returns the current time, used for ``fetched_at``
        """
        self.provider = provider
        self.cache = cache
        self.clock = clock

    def fetch(self) -> FetchResult:
        """
        Fetch a fresh payload and persist it.

        Returns:
            FetchResult: Live payload, never stale

        Raises:
            NetworkError: If the provider fails
        """
        payload = self.provider.get_current()
        try:
            self.cache.save(payload)
        except (OSError, TypeError, ValueError) as e:
            # the live payload is still good, only persistence failed
            logging.warning(f"Could not persist payload to cache: {e}")
        logging.info("Status fetch successful")
        return FetchResult(payload=payload, fetched_at=self.clock(), is_stale=False)

    def fetch_with_fallback(self) -> FetchOutcome:
        """
        Fetch a fresh payload, falling back to the cache on failure.

        Returns:
            FetchOutcome: Fresh result and no error, stale result with a
                CACHE error, or no result with a PRIMARY error
        """
        try:
            return FetchOutcome(result=self.fetch(), error=None)
        except NetworkError as e:
            cause = str(e)
            logging.warning(f"Status fetch failed: {cause}")
        except Exception as e:
            cause = f"Unexpected error: {e}"
            logging.exception(f"Status fetch failed unexpectedly: {e}")

        cached = self.cache.load()
        if cached is not None:
            logging.warning("Serving cached payload")
            return FetchOutcome(
                result=FetchResult(payload=cached, fetched_at=None, is_stale=True),
                error=ErrorState(message=f"using cached data: {cause}", source=ErrorSource.CACHE),
            )

        logging.error("Status fetch failed and no cached payload is available")
        return FetchOutcome(
            result=None,
            error=ErrorState(message=cause, source=ErrorSource.PRIMARY),
        )
