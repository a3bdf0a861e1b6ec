"""Repeating timers behind a small interface so the view can be driven in tests."""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional


class ScheduledTask(ABC):
    """Handle for a repeating callback."""

    @abstractmethod
    def cancel(self) -> None:
        pass

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        pass


class Scheduler(ABC):
    """Runs a callback every ``interval`` seconds until the handle is cancelled."""

    @abstractmethod
    def call_every(self, interval: float, callback: Callable[[], None]) -> ScheduledTask:
        pass


class _AsyncioRepeatingTask(ScheduledTask):

    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float, callback: Callable[[], None]):
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._cancelled = False
        self._arm()

    def _arm(self) -> None:
        self._handle = self._loop.call_later(self._interval, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        # re-arm first so a failing callback does not stop the timer
        self._arm()
        try:
            self._callback()
        except Exception as exc:
            logging.exception(f"Scheduled callback failed: {exc}")

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class AsyncioScheduler(Scheduler):
    """Scheduler backed by ``loop.call_later`` on the running event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_every(self, interval: float, callback: Callable[[], None]) -> ScheduledTask:
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        loop = self._loop or asyncio.get_running_loop()
        logging.debug(f"Scheduling callback every {interval}s")
        return _AsyncioRepeatingTask(loop, interval, callback)
