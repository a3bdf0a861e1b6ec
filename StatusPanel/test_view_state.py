"""Tests for the view state transition function."""
import pytest
from datetime import datetime, timezone
from status_data import ErrorSource, ErrorState, FetchResult, LocationCoords, LocationInfo
from view_state import (
    CoordsResolved, FetchFailed, FetchStarted, FetchSucceeded, LocationFailed,
    MapImageFailed, MapImageLoaded, PlaceResolved, ViewState, reduce,
)

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def fresh():
    return FetchResult(payload={"message": "ok"}, fetched_at=NOW)


@pytest.fixture
def cached():
    return FetchResult(payload={"message": "old"}, is_stale=True)


def started(seq=1, state=None):
    return reduce(state or ViewState(), FetchStarted(seq))


def test_fetch_started_sets_loading():
    """Test that starting a fetch raises the loading flag."""
    state = started(1)

    assert state.loading is True
    assert state.latest_seq == 1


def test_fetch_started_with_old_sequence_is_ignored():
    """Test that sequence numbers only move forward."""
    state = started(5)

    assert reduce(state, FetchStarted(3)) is state


def test_fetch_succeeded(fresh):
    """Test a fresh result clears loading and any fetch error."""
    state = started(1)
    state = reduce(state, FetchFailed(1, ErrorState("HTTP 500", ErrorSource.PRIMARY)))
    state = reduce(started(2, state), FetchSucceeded(2, fresh))

    assert state.loading is False
    assert state.result is fresh
    assert state.fetch_error is None
    assert state.last_updated == NOW


def test_fetch_failed_with_cache(fresh, cached):
    """Test that a cache fallback keeps last_updated from the last live fetch."""
    state = reduce(started(1), FetchSucceeded(1, fresh))
    error = ErrorState("using cached data: HTTP 500", ErrorSource.CACHE)
    state = reduce(started(2, state), FetchFailed(2, error, cached))

    assert state.loading is False
    assert state.result is cached
    assert state.fetch_error is error
    assert state.last_updated == NOW


def test_fetch_failed_without_cache_drops_payload(fresh):
    """Test that a failure with no cache shows no payload."""
    state = reduce(started(1), FetchSucceeded(1, fresh))
    state = reduce(started(2, state), FetchFailed(2, ErrorState("HTTP 500", ErrorSource.PRIMARY)))

    assert state.result is None


def test_superseded_completion_is_discarded(fresh):
    """Test that only the newest fetch may write the result."""
    state = started(2, started(1))

    assert reduce(state, FetchSucceeded(1, fresh)) is state
    assert reduce(state, FetchFailed(1, ErrorState("late", ErrorSource.PRIMARY))) is state


def test_location_events_leave_fetch_state_alone(fresh):
    """Test that location events never touch primary data."""
    state = reduce(started(1), FetchSucceeded(1, fresh))
    coords = LocationCoords(lat=51.5, lng=-0.12)

    state = reduce(state, CoordsResolved(coords, "map://x"))
    state = reduce(state, LocationFailed(ErrorState("HTTP 503", ErrorSource.LOCATION)))

    assert state.result is fresh
    assert state.fetch_error is None
    assert state.coords == coords
    assert state.location_error.source is ErrorSource.LOCATION


def test_fetch_events_leave_location_state_alone():
    """Test that primary failures never touch location data."""
    coords = LocationCoords(lat=51.5, lng=-0.12)
    state = reduce(ViewState(), CoordsResolved(coords, "map://x"))
    state = reduce(state, PlaceResolved(LocationInfo(city="London")))

    state = reduce(started(1, state), FetchFailed(1, ErrorState("HTTP 500", ErrorSource.PRIMARY)))

    assert state.coords == coords
    assert state.location.city == "London"
    assert state.location_error is None


def test_place_resolved_clears_location_error():
    """Test that a successful lookup clears an earlier location error."""
    state = reduce(ViewState(), LocationFailed(ErrorState("x", ErrorSource.LOCATION)))
    state = reduce(state, PlaceResolved(LocationInfo(country="France")))

    assert state.location_error is None


def test_map_events_match_current_url():
    """Test that map load events only apply to the current map."""
    state = reduce(ViewState(), CoordsResolved(LocationCoords(lat=1.0, lng=2.0), "map://current"))

    assert reduce(state, MapImageLoaded("map://other")) is state
    loaded = reduce(state, MapImageLoaded("map://current"))
    assert loaded.map_loaded is True
    failed = reduce(state, MapImageFailed("map://current", "HTTP 404"))
    assert failed.map_loaded is False
    assert failed.map_error == "HTTP 404"


def test_unknown_event():
    """Test that unknown events are a programming error."""
    with pytest.raises(TypeError):
        reduce(ViewState(), object())
