"""Global sample grid addressing.

The elevation dataset is a raster at 30 arc-second spacing, i.e. 120
samples per degree along both axes. A tile's top-left corner is the
origin of its local row/column space; rows grow southward and columns
grow eastward.

Typical usage:
    from efis.terrain.grid import to_tile_index

    row, col = to_tile_index(-10.5, 100.5, tile_lat=-10, tile_lon=100)
    # (60, 60)
"""

import math

from efis.terrain.errors import InvalidCoordinateError

SAMPLES_PER_DEGREE = 120

# 30 arc-seconds of latitude is half a nautical mile
NM_PER_SAMPLE = 60.0 / SAMPLES_PER_DEGREE

EARTH_RADIUS_NM = 3440.065


def require_finite(latitude: float, longitude: float) -> None:
    """Reject NaN and infinite coordinates.

    Args:
        latitude: Latitude in degrees.
        longitude: Longitude in degrees.

    Raises:
        InvalidCoordinateError: If either value is not finite.
    """
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise InvalidCoordinateError(f"Non-finite coordinate: ({latitude}, {longitude})")


def to_tile_index(
    latitude: float, longitude: float, tile_lat: float, tile_lon: float
) -> tuple[int, int]:
    """Map a coordinate to a row/column relative to a tile origin.

    No bounds check is applied: coordinates off the tile produce valid
    integers that may be negative (north or west of the origin) or beyond
    the tile dimensions.

    Args:
        latitude: Latitude in degrees.
        longitude: Longitude in degrees.
        tile_lat: Latitude of the tile's top-left corner.
        tile_lon: Longitude of the tile's top-left corner.

    Returns:
        (row, col) in samples from the tile origin.

    Raises:
        InvalidCoordinateError: If any input is not finite.

    Examples:
        >>> to_tile_index(-10.5, 100.5, -10, 100)
        (60, 60)
    """
    require_finite(latitude, longitude)
    require_finite(tile_lat, tile_lon)
    row = math.floor((tile_lat - latitude) * SAMPLES_PER_DEGREE)
    col = math.floor((longitude - tile_lon) * SAMPLES_PER_DEGREE)
    return row, col


def distance_nm(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two coordinates.

    Args:
        lat1: First latitude in degrees.
        lon1: First longitude in degrees.
        lat2: Second latitude in degrees.
        lon2: Second longitude in degrees.

    Returns:
        Distance in nautical miles.
    """
    phi1, lam1 = math.radians(lat1), math.radians(lon1)
    phi2, lam2 = math.radians(lat2), math.radians(lon2)

    dphi = phi2 - phi1
    dlam = lam2 - lam1
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
    c = 2 * math.asin(min(1.0, math.sqrt(a)))

    return c * EARTH_RADIUS_NM
