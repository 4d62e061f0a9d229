"""
GridNav - Tactical Grid Navigator
Command Line Interface
Command line access to the grid reference codec, navigation math and the
offline tile prefetcher.
"""
import argparse
from pathlib import Path
from typing import List, Optional, Tuple

from cache_registry import CacheRegistry
from coordinates import GeoCoordinate, is_valid_coordinate
from grid_reference import format_grid_reference, parse_grid_reference
from logger import LogLevel, get_logger, setup_logger
from navigation import bearing_to_compass, distance_meters, format_distance, initial_bearing_degrees
from position_feed import coordinate_from_signal
from tile_cache import OfflineTileStore, UrlTileFetcher
from tile_prefetch import PrefetchEventKind, TilePrefetcher, plan_zone
from zones import MAP_LAYERS, ZONES, get_layer, get_zone, registry_key

VERSION = "GridNav 1.0.0"


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="gridnav",
        description="GridNav - Tactical Grid Navigator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gridnav grid 28.6139 77.2090             # Grid reference for a WGS84 position
  gridnav parse 43 0722460 3167150         # WGS84 position for a grid reference
  gridnav distance 28.61 77.20 28.70 77.10 # Distance and bearing between points
  gridnav plan zone_ia dark                # Count the tiles a zone needs
  gridnav prefetch zone_ia dark            # Download a zone for offline use
  gridnav replay track.json --goto 43 0722460 3167150
                                           # Replay recorded fixes towards a grid
  gridnav --debug zones                    # List zones with debug logging
        """
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=VERSION
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        help="Custom directory for log files"
    )
    commands = parser.add_subparsers(dest="command", required=True)
    grid = commands.add_parser("grid", help="Format a WGS84 position as a grid reference")
    grid.add_argument("lat", type=float)
    grid.add_argument("lng", type=float)
    parse = commands.add_parser("parse", help="Parse a grid reference to WGS84")
    parse.add_argument("zone")
    parse.add_argument("easting")
    parse.add_argument("northing")
    distance = commands.add_parser("distance", help="Great-circle distance and bearing")
    for name in ("lat1", "lng1", "lat2", "lng2"):
        distance.add_argument(name, type=float)
    for name, help_text in (("plan", "Count the tiles covering a zone"),
                            ("prefetch", "Download a zone's tiles for offline use")):
        command = commands.add_parser(name, help=help_text)
        command.add_argument("zone", choices=sorted(ZONES))
        command.add_argument("layer", choices=sorted(MAP_LAYERS))
        if name == "prefetch":
            command.add_argument("--cache-dir", type=str, help="Directory for tiles and the cache registry")
            command.add_argument("--background", action="store_true",
                                 help="Download on a Qt worker thread")
            command.add_argument("--timeout", type=float, default=3.0,
                                 help="Per-tile request timeout in seconds (default: 3)")
    commands.add_parser("zones", help="List the zone catalog")
    replay = commands.add_parser("replay", help="Replay recorded fixes through a navigation session")
    replay.add_argument("feed", help="JSON file of recorded fixes or tracks")
    replay.add_argument("--goto", nargs=3, metavar=("ZONE", "EASTING", "NORTHING"),
                        help="Navigate to a grid reference during the replay")
    return parser.parse_args(argv)


def cmd_grid(args: argparse.Namespace) -> int:
    grid = format_grid_reference(GeoCoordinate(args.lat, args.lng))
    if grid is None:
        print("No grid reference for that position")
        return 1
    print(grid.as_text())
    return 0


def cmd_parse(args: argparse.Namespace) -> int:
    coord = parse_grid_reference(args.zone, args.easting, args.northing)
    if coord is None:
        print("Invalid grid reference")
        return 1
    print(f"{coord.lat:.6f} {coord.lng:.6f}")
    return 0


def cmd_distance(args: argparse.Namespace) -> int:
    start = GeoCoordinate(args.lat1, args.lng1)
    end = GeoCoordinate(args.lat2, args.lng2)
    if not (is_valid_coordinate(start) and is_valid_coordinate(end)):
        print("Invalid coordinates")
        return 1
    bearing = initial_bearing_degrees(start, end)
    print(f"{format_distance(distance_meters(start, end))} {bearing:.1f} deg {bearing_to_compass(bearing)}")
    return 0


def cmd_plan(args: argparse.Namespace) -> int:
    zone, layer = get_zone(args.zone), get_layer(args.layer)
    tiles = plan_zone(zone, layer)
    print(f"{zone.name} [{layer.key}]: {len(tiles)} tiles "
          f"(zoom {zone.min_zoom_for_cache}-{zone.max_zoom_for_cache})")
    return 0


def _qt_application():
    from PySide6.QtCore import QCoreApplication
    return QCoreApplication.instance() or QCoreApplication([])


def _print_progress(completed: int, total: int, failed: int):
    print(f"\r{completed}/{total} tiles ({failed} failed)", end="", flush=True)


def _prefetch_on_thread(prefetcher: TilePrefetcher, zone, layer) -> Tuple[PrefetchEventKind, str]:
    from prefetch_thread import PrefetchThread
    app = _qt_application()
    thread = PrefetchThread(prefetcher, zone, layer)
    outcome = []
    thread.progress.connect(_print_progress)
    thread.finished_with.connect(lambda kind, message: outcome.append((PrefetchEventKind(kind), message)))
    thread.start()
    try:
        while not thread.wait(100):
            app.processEvents()
    except KeyboardInterrupt:
        thread.cancel()
        thread.wait()
        raise
    app.processEvents()
    return outcome[-1]


def _prefetch_inline(prefetcher: TilePrefetcher, zone, layer) -> Tuple[PrefetchEventKind, str]:
    final = None
    for event in prefetcher.execute(zone, layer):
        if event.kind is PrefetchEventKind.PROGRESS:
            _print_progress(event.completed, event.total, event.failed)
        final = event
    return final.kind, final.message


def cmd_prefetch(args: argparse.Namespace) -> int:
    zone, layer = get_zone(args.zone), get_layer(args.layer)
    base = Path(args.cache_dir) if args.cache_dir else Path.home() / "GridNav"
    registry = CacheRegistry(base / "cached_zones.json")
    fetcher = UrlTileFetcher(timeout=args.timeout, store=OfflineTileStore(base / "map_tiles"))
    prefetcher = TilePrefetcher(registry, fetcher)
    run = _prefetch_on_thread if args.background else _prefetch_inline
    try:
        with get_logger().timer(f"prefetch {registry_key(zone.key, layer.key)}"):
            kind, message = run(prefetcher, zone, layer)
    except KeyboardInterrupt:
        prefetcher.cancel()
        print("\nDownload cancelled")
        return 130
    print()
    print(message)
    return 0 if kind in (PrefetchEventKind.SUCCEEDED, PrefetchEventKind.ALREADY_CACHED) else 1


def _format_readout(readout) -> str:
    grid = readout.grid_reference.as_text() if readout.grid_reference else "no grid"
    line = f"{grid}  {readout.position.lat:.5f} {readout.position.lng:.5f}"
    if readout.target_name is not None:
        bearing = readout.bearing_to_target
        line += (f"  -> {readout.target_name} {format_distance(readout.distance_to_target)} "
                 f"{bearing:.0f} deg {bearing_to_compass(bearing)}")
    if readout.leg_advanced:
        line += "  [waypoint reached]"
    return line


def cmd_replay(args: argparse.Namespace) -> int:
    from position_providers import ReplayPositionProvider
    from session import NavigationSession
    _qt_application()
    session = NavigationSession()
    if args.goto and not session.go_to_grid(*args.goto):
        print("Invalid grid reference")
        return 1
    session.start_tracking()
    provider = ReplayPositionProvider.from_feed(args.feed, interval_ms=None)

    def on_fix(lat, lng, horizontal, vertical):
        readout = session.on_position(coordinate_from_signal(lat, lng, horizontal, vertical))
        if readout is not None:
            print(_format_readout(readout))

    provider.position_updated.connect(on_fix)
    replayed = sum(1 for _ in provider.replay())
    if replayed == 0:
        print("No valid fixes in feed")
        return 1
    state = session.navigator.state.value
    print(f"Replayed {replayed} fixes, tracked {format_distance(session.track.total_distance)}, route {state}")
    return 0


def cmd_zones(args: argparse.Namespace) -> int:
    for key, zone in ZONES.items():
        zooms = f"zoom {zone.min_zoom_for_cache}-{zone.max_zoom_for_cache}" if zone.cacheable else "no offline area"
        print(f"{key:<10} {zone.name} ({zooms})")
    return 0


COMMANDS = {
    "grid": cmd_grid,
    "parse": cmd_parse,
    "distance": cmd_distance,
    "plan": cmd_plan,
    "prefetch": cmd_prefetch,
    "zones": cmd_zones,
    "replay": cmd_replay,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the GridNav command line."""
    args = parse_arguments(argv)
    logger = setup_logger("gridnav", Path(args.log_dir) if args.log_dir else None)
    if args.debug:
        logger.set_log_level(LogLevel.DEBUG)
    try:
        return COMMANDS[args.command](args)
    except Exception as e:
        get_logger().critical(f"Command failed: {args.command}", exception=e)
        print(f"Error: {e}")
        return 1
    finally:
        logger.close()

