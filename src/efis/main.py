"""EFIS terrain command line tool.

Inspects tile addressing and queries the terrain cache against a tile
directory without the display. ``replay`` drives the terrain plugin
through the message queue the way the display loop does, one fix per
frame.

Typical usage:
    efis-terrain tile -10.5 100.5
    efis-terrain elevation --tile-dir data/terrain -10.5 100.5 --altitude 1500
    efis-terrain replay --tile-dir data/terrain track.csv
"""

import argparse
import csv
import sys
from pathlib import Path

from efis.core.config import ConfigError, ConfigLoader
from efis.core.logging_system import get_logger, initialize_logging, shutdown_logging
from efis.core.messaging import Message, MessageQueue, MessageTopic
from efis.core.plugin import PluginContext
from efis.core.resource_path import get_config_path, get_resource_path
from efis.plugins.terrain.terrain_plugin import TerrainPlugin
from efis.terrain import (
    DirectoryTileStore,
    InvalidCoordinateError,
    TerrainCache,
    TerrainSettings,
    is_valid_location,
    locate,
)
from efis.terrain.tiles import tile_local_index

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INVALID_COORDINATE = 2


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(prog="efis-terrain", description="EFIS terrain cache tool")
    parser.add_argument(
        "--config", help="Terrain configuration YAML (default: config/terrain.yaml)"
    )
    parser.add_argument("--log-config", help="Logging configuration YAML")
    sub = parser.add_subparsers(dest="command", required=True)

    tile = sub.add_parser("tile", help="Show the tile covering a coordinate")
    tile.add_argument("lat", type=float)
    tile.add_argument("lon", type=float)

    elevation = sub.add_parser("elevation", help="Load the window around a coordinate and query it")
    elevation.add_argument("--tile-dir", help="Directory holding tile files")
    elevation.add_argument("--altitude", type=float, help="MSL altitude in meters for AGL")
    elevation.add_argument("lat", type=float)
    elevation.add_argument("lon", type=float)

    replay = sub.add_parser("replay", help="Feed a lat,lon[,alt] CSV track through the cache")
    replay.add_argument("--tile-dir", help="Directory holding tile files")
    replay.add_argument(
        "--interval", type=float, default=1.0, help="Seconds between fixes (default: 1.0)"
    )
    replay.add_argument("track", type=Path)

    return parser


def load_config(args: argparse.Namespace) -> ConfigLoader:
    """Load the configuration for a synchronous command line run.

    ``config/terrain.yaml`` provides the defaults; ``--config`` is laid
    over it and ``--tile-dir`` wins over both.
    """
    default_path = get_config_path("terrain.yaml")
    config = ConfigLoader.load(default_path) if default_path.exists() else ConfigLoader()
    if args.config:
        config.merge(ConfigLoader.load(args.config))

    tile_dir = getattr(args, "tile_dir", None)
    if tile_dir:
        config.set("terrain.tile_dir", tile_dir)
    config.set("terrain.background", False)
    return config


def build_cache(settings: TerrainSettings) -> TerrainCache:
    """Create a cache over the configured tile directory."""
    store = DirectoryTileStore(get_resource_path(settings.tile_dir), settings.extension)
    return TerrainCache(store, settings)


def cmd_tile(args: argparse.Namespace) -> int:
    """Print the tile name and tile-local index of a coordinate."""
    if not is_valid_location(args.lat, args.lon):
        print(f"invalid location: {args.lat}, {args.lon}", file=sys.stderr)
        return EXIT_INVALID_COORDINATE

    tile = locate(args.lat, args.lon)
    row, col = tile_local_index(tile, args.lat, args.lon)
    print(f"tile: {tile.name}")
    print(f"file: {tile.filename()}")
    print(f"origin: lat={tile.lat} lon={tile.lon}")
    print(f"index: row={row} col={col}")
    return EXIT_OK


def cmd_elevation(args: argparse.Namespace) -> int:
    """Load the window around a coordinate and print the elevation."""
    if not is_valid_location(args.lat, args.lon):
        print(f"invalid location: {args.lat}, {args.lon}", file=sys.stderr)
        return EXIT_INVALID_COORDINATE

    cache = build_cache(TerrainSettings.from_config(load_config(args)))
    loaded = cache.reload(args.lat, args.lon)
    result = cache.elevation_at(args.lat, args.lon)

    print(f"tile: {locate(args.lat, args.lon).name}")
    print(f"elevation: {result.value}")
    print(f"valid: {result.valid}")
    if args.altitude is not None:
        agl = cache.agl_m(args.lat, args.lon, args.altitude)
        print(f"agl_m: {agl:.1f}" if agl is not None else "agl_m: unknown")
    if not loaded and cache.last_error is not None:
        print(f"error: {cache.last_error}", file=sys.stderr)
        return EXIT_ERROR
    return EXIT_OK


def read_track(path: Path) -> list[tuple[float, float, float | None]]:
    """Read a CSV track of ``lat,lon[,altitude_m]`` rows.

    Blank lines, ``#`` comments and a non-numeric header row are skipped.
    """
    fixes: list[tuple[float, float, float | None]] = []
    with path.open(newline="", encoding="utf-8") as f:
        for row in csv.reader(f):
            if not row or row[0].lstrip().startswith("#"):
                continue
            try:
                lat = float(row[0])
                lon = float(row[1])
                alt = float(row[2]) if len(row) > 2 and row[2].strip() else None
            except (IndexError, ValueError):
                logger.debug("Skipping track row: %s", row)
                continue
            fixes.append((lat, lon, alt))
    return fixes


def _print_terrain_row(message: Message) -> None:
    data = message.data
    agl = data["agl_m"]
    print(
        f"{data['latitude']:.5f},{data['longitude']:.5f},{data['elevation']},{data['valid']},"
        f"{'' if agl is None else f'{agl:.1f}'},{data['reload'] or ''}"
    )


def _log_terrain_status(message: Message) -> None:
    logger.info("Terrain status: %s", message.data)


def cmd_replay(args: argparse.Namespace) -> int:
    """Replay a recorded track through the terrain plugin, one fix per frame."""
    config = load_config(args)
    fixes = read_track(args.track)

    queue = MessageQueue()
    queue.subscribe(MessageTopic.TERRAIN_UPDATED, _print_terrain_row)
    queue.subscribe(MessageTopic.TERRAIN_STATUS, _log_terrain_status)

    plugin = TerrainPlugin()
    plugin.initialize(PluginContext(message_queue=queue, config=config.to_dict()))

    print("lat,lon,elevation,valid,agl_m,reload")
    try:
        for i, (lat, lon, alt) in enumerate(fixes):
            queue.publish(
                Message(
                    sender="replay",
                    recipients=["*"],
                    topic=MessageTopic.POSITION_UPDATED,
                    data={"latitude": lat, "longitude": lon, "altitude_m": alt},
                )
            )
            queue.process()
            try:
                plugin.update(args.interval if i else 0.0)
            except Exception as e:
                logger.error("Error updating plugin %s: %s", plugin.get_metadata().name, e)
                plugin.on_error(e)
                return EXIT_ERROR
            queue.process()
    finally:
        plugin.shutdown()
    return EXIT_OK


COMMANDS = {
    "tile": cmd_tile,
    "elevation": cmd_elevation,
    "replay": cmd_replay,
}


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``efis-terrain`` command."""
    args = build_parser().parse_args(argv)

    if args.log_config:
        initialize_logging(args.log_config, use_platform_dir=False)

    try:
        return COMMANDS[args.command](args)
    except InvalidCoordinateError as e:
        print(f"invalid coordinate: {e}", file=sys.stderr)
        return EXIT_INVALID_COORDINATE
    except ConfigError as e:
        print(f"configuration error: {e}", file=sys.stderr)
        return EXIT_ERROR
    finally:
        if args.log_config:
            shutdown_logging()


if __name__ == "__main__":
    sys.exit(main())
