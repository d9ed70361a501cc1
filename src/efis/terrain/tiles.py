"""Tile selection and naming.

The global grid is cut into tiles of 40 degrees of longitude by 50
degrees of latitude (4800 x 6000 samples). A tile is identified by its
top-left corner snapped down to the tile grid, and persisted as one
header-less file named after that corner, e.g. ``E100S10.DEM``.

Typical usage:
    from efis.terrain.tiles import locate

    tile = locate(-10.5, 100.5)
    print(tile.name)        # E100S10
    print(tile.filename())  # E100S10.DEM
"""

import math
from dataclasses import dataclass

from efis.terrain.grid import SAMPLES_PER_DEGREE, require_finite, to_tile_index

TILE_HEIGHT_DEG = 50
TILE_WIDTH_DEG = 40

TILE_ROWS = TILE_HEIGHT_DEG * SAMPLES_PER_DEGREE  # 6000
TILE_COLS = TILE_WIDTH_DEG * SAMPLES_PER_DEGREE  # 4800

DEFAULT_EXTENSION = ".DEM"


@dataclass(frozen=True)
class TileId:
    """Identifier of one dataset tile.

    Attributes:
        lat: Latitude of the tile's top-left (north-west) corner.
        lon: Longitude of the tile's top-left (north-west) corner.
    """

    lat: int
    lon: int

    @property
    def name(self) -> str:
        """Canonical compass-quadrant name, e.g. ``W180N90``."""
        ew = "W" if self.lon < 0 else "E"
        ns = "S" if self.lat < 0 else "N"
        return f"{ew}{abs(self.lon):03d}{ns}{abs(self.lat):02d}"

    def filename(self, extension: str = DEFAULT_EXTENSION) -> str:
        """Return the tile's file name with the given extension."""
        return f"{self.name}{extension}"

    def contains(self, latitude: float, longitude: float) -> bool:
        """Check whether a valid coordinate snaps to this tile."""
        return locate(latitude, longitude) == self

    def __str__(self) -> str:
        return self.name


def _normalize_longitude(longitude: float) -> float:
    # +180 and -180 are the same meridian; keep it on the W180 tile
    if longitude >= 180.0:
        return -180.0
    return longitude


def locate(latitude: float, longitude: float) -> TileId:
    """Find the tile covering a coordinate.

    Args:
        latitude: Latitude in degrees (-90 to 90).
        longitude: Longitude in degrees (-180 to 180).

    Returns:
        TileId of the covering tile.

    Raises:
        InvalidCoordinateError: If either value is not finite.

    Examples:
        >>> locate(-10.5, 100.5).name
        'E100S10'
        >>> locate(90.0, 180.0).name
        'W180N90'
    """
    require_finite(latitude, longitude)
    longitude = _normalize_longitude(longitude)

    tile_lat = 90 - math.floor((90 - latitude) / TILE_HEIGHT_DEG) * TILE_HEIGHT_DEG
    tile_lon = -180 + math.floor((longitude + 180) / TILE_WIDTH_DEG) * TILE_WIDTH_DEG
    return TileId(lat=int(tile_lat), lon=int(tile_lon))


def is_on_tile(tile: TileId | None, latitude: float, longitude: float) -> bool:
    """Check whether a coordinate lies on the given tile.

    Args:
        tile: Tile to test against, or None when nothing is loaded.
        latitude: Latitude in degrees.
        longitude: Longitude in degrees.

    Returns:
        True if the coordinate's snapped tile equals ``tile``.
    """
    if tile is None or not is_valid_location(latitude, longitude):
        return False
    return locate(latitude, longitude) == tile


def is_valid_location(latitude: float, longitude: float) -> bool:
    """Check whether a coordinate is usable for a terrain reload.

    The exact origin (0, 0) is what position sources report before they
    have a fix, so it is rejected along with out-of-range values.

    Args:
        latitude: Latitude in degrees.
        longitude: Longitude in degrees.

    Returns:
        True if the location may trigger a reload.
    """
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        return False
    if latitude == 0 and longitude == 0:
        return False
    if abs(latitude) > 90:
        return False
    if abs(longitude) > 180:
        return False
    return True


def tile_local_index(tile: TileId, latitude: float, longitude: float) -> tuple[int, int]:
    """Row/column of a coordinate relative to ``tile``'s origin.

    On the W180 tile a longitude of +180 addresses column 0, matching
    ``locate``.
    """
    if tile.lon == -180:
        longitude = _normalize_longitude(longitude)
    return to_tile_index(latitude, longitude, tile.lat, tile.lon)
