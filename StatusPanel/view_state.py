"""
View state and its transition function.

Every asynchronous completion is turned into one event and applied with
``reduce(state, event)``, which returns a new immutable ``ViewState``.
Nothing mutates state in place, so overlapping completions cannot leave
it half-updated.
"""
import dataclasses
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from status_data import ErrorState, FetchResult, LocationCoords, LocationInfo


@dataclass(frozen=True)
class ViewState:
    loading: bool = False
    result: Optional[FetchResult] = None
    fetch_error: Optional[ErrorState] = None  # PRIMARY or CACHE
    last_updated: Optional[datetime] = None  # time of the last fresh fetch
    latest_seq: int = 0  # sequence number of the newest fetch started
    coords: Optional[LocationCoords] = None
    location: Optional[LocationInfo] = None
    location_error: Optional[ErrorState] = None
    map_url: Optional[str] = None
    map_loaded: bool = False
    map_error: Optional[str] = None


@dataclass(frozen=True)
class FetchStarted:
    seq: int


@dataclass(frozen=True)
class FetchSucceeded:
    seq: int
    result: FetchResult


@dataclass(frozen=True)
class FetchFailed:
    seq: int
    error: ErrorState
    cached: Optional[FetchResult] = None


@dataclass(frozen=True)
class CoordsResolved:
    coords: LocationCoords
    map_url: Optional[str] = None


@dataclass(frozen=True)
class PlaceResolved:
    info: LocationInfo


@dataclass(frozen=True)
class LocationFailed:
    error: ErrorState


@dataclass(frozen=True)
class MapImageLoaded:
    url: str


@dataclass(frozen=True)
class MapImageFailed:
    url: str
    message: str


Event = Union[
    FetchStarted, FetchSucceeded, FetchFailed,
    CoordsResolved, PlaceResolved, LocationFailed,
    MapImageLoaded, MapImageFailed,
]


def reduce(state: ViewState, event: Event) -> ViewState:
    """
    Apply one event to the state.

    Returns the same object when the event is ignored, so callers can use
    an identity check to detect "no change".
    """
    replace = dataclasses.replace

    if isinstance(event, FetchStarted):
        if event.seq <= state.latest_seq:
            return state
        return replace(state, loading=True, latest_seq=event.seq)

    if isinstance(event, FetchSucceeded):
        if event.seq != state.latest_seq:
            return state
        return replace(
            state,
            loading=False,
            result=event.result,
            fetch_error=None,
            last_updated=event.result.fetched_at,
        )

    if isinstance(event, FetchFailed):
        if event.seq != state.latest_seq:
            return state
        return replace(state, loading=False, result=event.cached, fetch_error=event.error)

    if isinstance(event, CoordsResolved):
        return replace(state, coords=event.coords, map_url=event.map_url,
                       map_loaded=False, map_error=None)

    if isinstance(event, PlaceResolved):
        return replace(state, location=event.info, location_error=None)

    if isinstance(event, LocationFailed):
        return replace(state, location_error=event.error)

    if isinstance(event, MapImageLoaded):
        if event.url != state.map_url:
            return state
        return replace(state, map_loaded=True, map_error=None)

    if isinstance(event, MapImageFailed):
        if event.url != state.map_url:
            return state
        return replace(state, map_loaded=False, map_error=event.message)

    raise TypeError(f"Unknown event: {event!r}")
