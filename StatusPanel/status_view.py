"""
The status view: polls the primary resource, resolves location once and
keeps a single ViewState that the layout renders.

All blocking work (HTTP, the location capability, image decoding) runs in
worker threads via ``asyncio.to_thread``; every state change happens back
on the event loop as one ``reduce()`` transition.
"""
import asyncio
import logging
from typing import Callable, Optional, Set

from location_provider import LocationError
from location_resolver import LocationResolver
from map_image import ImageLoadError, ImageLoadObserver, MAP_URL_TEMPLATE, map_image_url
from scheduler import ScheduledTask, Scheduler
from status_data import ErrorSource, ErrorState
from status_service import StatusService
from view_state import (
    CoordsResolved, Event, FetchFailed, FetchStarted, FetchSucceeded, LocationFailed,
    MapImageFailed, MapImageLoaded, PlaceResolved, ViewState, reduce,
)

DEFAULT_REFRESH_SECONDS = 30.0


class StatusView:
    """
    Owns the view state for one mount/unmount lifetime.

    Fetches are tagged with increasing sequence numbers and only the newest
    one may update the state. Completions that arrive after ``unmount()``,
    or that belong to an earlier mount, are dropped.
    """

    def __init__(
        self,
        service: StatusService,
        resolver: Optional[LocationResolver],
        scheduler: Scheduler,
        image_loader: Optional[ImageLoadObserver] = None,
        refresh_interval: float = DEFAULT_REFRESH_SECONDS,
        map_url_template: str = MAP_URL_TEMPLATE,
        on_change: Optional[Callable[[ViewState], None]] = None,
    ):
        """
        Args:
            service: Primary data fetcher
            resolver: Location resolver, or None to skip location entirely
            scheduler: Drives the polling timer
            image_loader: Reports when the map image has loaded, or None
                to show no map at all
            refresh_interval: Seconds between timer-driven fetches
            map_url_template: Map image URL template
            on_change: Called with the new state after every change
        """
        self.service = service
        self.resolver = resolver
        self.scheduler = scheduler
        self.image_loader = image_loader
        self.refresh_interval = refresh_interval
        self.map_url_template = map_url_template
        self.on_change = on_change

        self._state = ViewState()
        self._seq = 0
        self._generation = 0
        self._mounted = False
        self._timer: Optional[ScheduledTask] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def mounted(self) -> bool:
        return self._mounted

    def mount(self) -> None:
        """Start location resolution, the first fetch and the polling timer."""
        if self._mounted:
            raise RuntimeError("View is already mounted")
        self._mounted = True
        self._generation += 1
        self._state = ViewState()
        logging.info(f"Mounting status view (refresh every {self.refresh_interval}s)")

        if self.resolver is not None:
            self._spawn(self._run_location(self._generation))
        self._start_fetch()
        self._timer = self.scheduler.call_every(self.refresh_interval, self._on_tick)

    def unmount(self) -> None:
        """Stop polling. In-flight requests finish but can no longer touch the state."""
        if not self._mounted:
            return
        self._mounted = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        logging.info(f"Unmounted status view ({len(self._tasks)} request(s) still in flight)")

    def refresh(self) -> Optional[asyncio.Task]:
        """
        User-initiated refresh.

        Returns:
            The fetch task, or None when ignored because the view is not
            mounted or a fetch is already loading
        """
        if not self._mounted:
            logging.debug("Refresh ignored: view not mounted")
            return None
        if self._state.loading:
            logging.debug("Refresh ignored: fetch already in progress")
            return None
        return self._start_fetch()

    async def wait_idle(self) -> None:
        """Wait until every fetch, lookup and image load has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_tick(self) -> None:
        if self._mounted:
            self._start_fetch()

    def _start_fetch(self) -> asyncio.Task:
        self._seq += 1
        seq = self._seq
        logging.debug(f"Starting fetch #{seq}")
        self._dispatch(FetchStarted(seq), self._generation)
        return self._spawn(self._run_fetch(seq, self._generation))

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _dispatch(self, event: Event, generation: int) -> None:
        if not self._mounted or generation != self._generation:
            logging.debug(f"Discarding {type(event).__name__} for a torn-down view")
            return
        new_state = reduce(self._state, event)
        if new_state is self._state:
            logging.debug(f"Ignored stale {type(event).__name__}")
            return
        self._state = new_state
        if self.on_change is not None:
            self.on_change(new_state)

    async def _run_fetch(self, seq: int, generation: int) -> None:
        try:
            outcome = await asyncio.to_thread(self.service.fetch_with_fallback)
        except Exception as exc:
            logging.exception(f"Unexpected error during fetch #{seq}: {exc}")
            error = ErrorState(message=f"Unexpected error: {exc}", source=ErrorSource.PRIMARY)
            self._dispatch(FetchFailed(seq, error), generation)
            return

        if outcome.error is None:
            self._dispatch(FetchSucceeded(seq, outcome.result), generation)
        else:
            self._dispatch(FetchFailed(seq, outcome.error, outcome.result), generation)

    def _location_failed(self, message: str, generation: int) -> None:
        self._dispatch(LocationFailed(ErrorState(message, ErrorSource.LOCATION)), generation)

    async def _run_location(self, generation: int) -> None:
        try:
            coords = await asyncio.to_thread(self.resolver.resolve_coords)
        except LocationError as e:
            logging.warning(f"Location unavailable ({e.code.value}): {e}")
            self._location_failed(str(e), generation)
            return
        except Exception as exc:
            logging.exception(f"Unexpected error resolving coordinates: {exc}")
            self._location_failed(f"Unexpected error: {exc}", generation)
            return

        url = None
        if self.image_loader is not None:
            url = map_image_url(coords, self.map_url_template)
        self._dispatch(CoordsResolved(coords, url), generation)
        if url is not None:
            self._spawn(self._run_map_image(url, generation))

        try:
            info = await asyncio.to_thread(self.resolver.resolve_place, coords)
        except LocationError as e:
            logging.warning(f"Place lookup failed: {e}")
            self._location_failed(str(e), generation)
            return
        except Exception as exc:
            logging.exception(f"Unexpected error during place lookup: {exc}")
            self._location_failed(f"Unexpected error: {exc}", generation)
            return
        self._dispatch(PlaceResolved(info), generation)

    async def _run_map_image(self, url: str, generation: int) -> None:
        try:
            await asyncio.to_thread(self.image_loader.load, url)
        except ImageLoadError as e:
            logging.warning(f"Map image failed to load: {e}")
            self._dispatch(MapImageFailed(url, str(e)), generation)
            return
        except Exception as exc:
            logging.exception(f"Unexpected error loading map image: {exc}")
            self._dispatch(MapImageFailed(url, f"Unexpected error: {exc}"), generation)
            return
        self._dispatch(MapImageLoaded(url), generation)
