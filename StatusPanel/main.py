"""Terminal status panel for the hello backend."""
import argparse
import asyncio
import logging
import os
import signal
import sys
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from hello_api_provider import HelloApiProvider
from kv_store import CacheSlot, JsonFileStore, KeyValueStore, MemoryStore
from layout import calculate_layout, render_panel
from location_provider import ConfiguredLocationProvider, LocationProvider, UnsupportedLocationProvider
from location_resolver import LocationResolver
from map_image import PillowImageLoader
from nominatim_geocoder import NominatimGeocoder
from scheduler import AsyncioScheduler
from status_service import StatusService
from status_view import StatusView
from view_state import ViewState

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_LOG_FILE = os.path.join(BASE_DIR, "status-panel.log")
DEFAULT_CACHE_FILE = os.path.join(os.path.expanduser("~"), ".status-panel-cache.json")
DEFAULT_BASE_URL = "http://localhost:3001"
DEFAULT_USER_AGENT = "status-panel/0.1"


@dataclass
class AppConfig:
    base_url: str
    lat: Optional[float]
    lon: Optional[float]
    user_agent: str
    geocoder_url: str


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser("Terminal status panel")
    parser.add_argument("--base-url", default=None, help="Backend base URL (overrides STATUS_API_BASE)")
    parser.add_argument("--refresh", type=float, default=30.0, help="Seconds between refreshes")
    parser.add_argument("--timeout", type=int, default=10, help="HTTP timeout in seconds")
    parser.add_argument("--cache-file", default=DEFAULT_CACHE_FILE,
                        help="File holding the last good payload ('' keeps it in memory)")
    parser.add_argument("--no-location", action="store_true", help="Deny access to the device location")
    parser.add_argument("--no-map", action="store_true", help="Do not load the map image")
    parser.add_argument("--once", action="store_true", help="Fetch once, print the panel and exit")
    parser.add_argument("--log-file", default=DEFAULT_LOG_FILE)
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def setup_logging(log_file: str, verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr),
            logging.FileHandler(log_file)
        ]
    )


def load_config(base_url_override: Optional[str] = None) -> AppConfig:
    load_dotenv(find_dotenv(usecwd=True))
    base_url = base_url_override or os.getenv("STATUS_API_BASE", DEFAULT_BASE_URL)
    lat = os.getenv("STATUS_LAT")
    lon = os.getenv("STATUS_LON")
    user_agent = os.getenv("GEOCODER_USER_AGENT", DEFAULT_USER_AGENT)
    geocoder_url = os.getenv("GEOCODER_URL", NominatimGeocoder.BASE_URL)

    if bool(lat) != bool(lon):
        raise SystemExit("Set both STATUS_LAT and STATUS_LON, or neither")

    lat_val = lon_val = None
    if lat and lon:
        try:
            lat_val = float(lat)
            lon_val = float(lon)
        except ValueError as exc:
            raise SystemExit(f"Invalid coordinates: {exc}") from exc

    if not user_agent:
        raise SystemExit("GEOCODER_USER_AGENT must not be empty")

    logging.info("Configuration loaded: base_url=%s lat=%s lon=%s", base_url, lat_val, lon_val)
    return AppConfig(base_url=base_url, lat=lat_val, lon=lon_val,
                     user_agent=user_agent, geocoder_url=geocoder_url)


def build_location_provider(config: AppConfig, args: argparse.Namespace) -> LocationProvider:
    if config.lat is None or config.lon is None:
        return UnsupportedLocationProvider("No device coordinates configured")
    return ConfiguredLocationProvider(config.lat, config.lon, permission_granted=not args.no_location)


def build_view(config: AppConfig, args: argparse.Namespace, on_change=None) -> StatusView:
    store: KeyValueStore = JsonFileStore(args.cache_file) if args.cache_file else MemoryStore()
    service = StatusService(
        provider=HelloApiProvider(config.base_url, timeout=args.timeout),
        cache=CacheSlot(store),
    )
    resolver = LocationResolver(
        provider=build_location_provider(config, args),
        geocoder=NominatimGeocoder(config.user_agent, base_url=config.geocoder_url, timeout=args.timeout),
    )
    image_loader = None if args.no_map else PillowImageLoader(timeout=args.timeout, user_agent=config.user_agent)
    view = StatusView(
        service=service,
        resolver=resolver,
        scheduler=AsyncioScheduler(),
        image_loader=image_loader,
        refresh_interval=max(args.refresh, 1.0),
        on_change=on_change,
    )
    logging.info("Status view ready (refresh=%ss, cache=%s)", view.refresh_interval, args.cache_file or "memory")
    return view


def print_panel(state: ViewState) -> None:
    print(render_panel(calculate_layout(state)))
    print()
    sys.stdout.flush()


async def run(config: AppConfig, args: argparse.Namespace) -> None:
    loop = asyncio.get_running_loop()
    stop = asyncio.Event()

    if args.once:
        view = build_view(config, args)
        view.mount()
        await view.wait_idle()
        print_panel(view.state)
        view.unmount()
        return

    view = build_view(config, args, on_change=print_panel)

    def request_stop(signum):
        logging.info("Received signal %s, shutting down", signum)
        stop.set()

    def on_input():
        sys.stdin.readline()
        if view.refresh() is None:
            logging.info("Refresh ignored while a fetch is in progress")

    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, request_stop, signum)
        except NotImplementedError:  # pragma: no cover - Windows event loop
            pass

    reading_stdin = False
    if sys.stdin is not None and sys.stdin.isatty():
        try:
            loop.add_reader(sys.stdin, on_input)
            reading_stdin = True
            print("Press Enter to refresh, Ctrl+C to quit.")
        except (NotImplementedError, ValueError):  # pragma: no cover
            logging.debug("Stdin refresh not available on this event loop")

    view.mount()
    try:
        await stop.wait()
    finally:
        if reading_stdin:
            loop.remove_reader(sys.stdin)
        view.unmount()
        await view.wait_idle()
        logging.info("Status panel stopped")


def main(argv=None) -> None:
    args = parse_args(argv)
    setup_logging(args.log_file, args.verbose)
    config = load_config(args.base_url)
    try:
        asyncio.run(run(config, args))
    except KeyboardInterrupt:
        logging.info("Stopping status panel")


if __name__ == "__main__":
    main()
