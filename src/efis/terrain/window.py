"""Square in-memory window of elevation samples.

The window holds ``size x size`` samples of one tile around the last
re-centering position. Its origin ``(x0, y0)`` is the tile-local column
and row of the window's top-left cell; a tile cell ``(row, col)`` lives
in window cell ``(row - y0, col - x0)``.

Typical usage:
    from efis.terrain.window import WindowBuffer

    window = WindowBuffer(size=600)
    window.recenter(-10.5, 100.5, locate(-10.5, 100.5))
    window.fill(NO_DATA)
    # ... TileLoader populates window.samples ...
    elevation = window.query(-10.5, 100.5)
"""

import math

import numpy as np
import numpy.typing as npt

from efis.terrain.grid import NM_PER_SAMPLE
from efis.terrain.tiles import TileId, tile_local_index

# Cell value meaning "nothing loaded here". Zero and negative samples in
# the dataset are also no-data and are never written over this.
NO_DATA = 0

# Returned for positions outside the resident window.
SENTINEL = -9999

DEFAULT_SIZE = 600


class WindowBuffer:
    """Fixed-size cache of int16 samples with a tile-relative origin.

    Examples:
        >>> window = WindowBuffer(size=4)
        >>> window.query(10.0, 10.0)
        -9999
    """

    def __init__(self, size: int = DEFAULT_SIZE, fill_value: int = NO_DATA) -> None:
        """Allocate the sample array.

        Args:
            size: Side length of the square window in samples.
            fill_value: Initial value of every cell.
        """
        if size <= 0:
            raise ValueError(f"Window size must be positive, got {size}")

        self.size = size
        self._samples: npt.NDArray[np.int16] = np.full((size, size), fill_value, dtype=np.int16)
        self._tile: TileId | None = None
        self._center: tuple[float, float] | None = None
        self._x0 = 0
        self._y0 = 0

    @property
    def samples(self) -> npt.NDArray[np.int16]:
        """Sample array indexed ``[row, col]`` in window coordinates."""
        return self._samples

    @property
    def tile(self) -> TileId | None:
        """Tile the window was last centred on, or None."""
        return self._tile

    @property
    def center(self) -> tuple[float, float] | None:
        """(latitude, longitude) the window was last centred on."""
        return self._center

    @property
    def origin(self) -> tuple[int, int]:
        """Tile-local (x0, y0) of the window's top-left cell."""
        return self._x0, self._y0

    def recenter(self, latitude: float, longitude: float, tile: TileId) -> None:
        """Move the window origin so that a position sits at its centre.

        Only the origin changes; the samples are left for the loader.

        Args:
            latitude: Latitude of the new centre in degrees.
            longitude: Longitude of the new centre in degrees.
            tile: Tile the window addresses.

        Raises:
            InvalidCoordinateError: If the coordinate is not finite.
        """
        row, col = tile_local_index(tile, latitude, longitude)
        half = self.size // 2

        self._tile = tile
        self._center = (latitude, longitude)
        self._x0 = col - half
        self._y0 = row - half

    def fill(self, value: int) -> None:
        """Set every cell to ``value``."""
        self._samples.fill(value)

    def is_resident(self, row: int, col: int) -> bool:
        """Check whether a tile-local cell falls inside the window."""
        return (
            self._x0 <= col < self._x0 + self.size
            and self._y0 <= row < self._y0 + self.size
        )

    def covers(self, latitude: float, longitude: float, margin_nm: float = 0.0) -> bool:
        """Check whether a position and a square margin around it are resident.

        A sample column narrows with cos(latitude), so the east-west
        margin spans more columns away from the equator. Both margins are
        capped just inside the window half-width.

        Args:
            latitude: Latitude in degrees.
            longitude: Longitude in degrees.
            margin_nm: Distance around the position that must be resident.

        Returns:
            True if every cell of the margin box is in the window.
        """
        tile = self._tile
        if tile is None:
            return False

        row, col = tile_local_index(tile, latitude, longitude)
        limit = max(self.size // 2 - 1, 0)
        margin_rows = min(math.ceil(margin_nm / NM_PER_SAMPLE), limit)
        cos_lat = math.cos(math.radians(latitude))
        if cos_lat > 0:
            margin_cols = min(math.ceil(margin_rows / cos_lat), limit)
        else:
            margin_cols = limit

        return self.is_resident(row - margin_rows, col - margin_cols) and self.is_resident(
            row + margin_rows, col + margin_cols
        )

    def query(self, latitude: float, longitude: float) -> int:
        """Look up the stored sample at a position.

        Args:
            latitude: Latitude in degrees.
            longitude: Longitude in degrees.

        Returns:
            The stored sample, or SENTINEL when the position is not
            resident (including when the window has never been centred).
        """
        tile = self._tile
        if tile is None or not (math.isfinite(latitude) and math.isfinite(longitude)):
            return SENTINEL

        row, col = tile_local_index(tile, latitude, longitude)
        by = row - self._y0
        bx = col - self._x0
        if 0 <= bx < self.size and 0 <= by < self.size:
            return int(self._samples[by, bx])
        return SENTINEL

    def sample_at(self, latitude: float, longitude: float) -> int | None:
        """Like ``query`` but with no-data folded into None.

        Returns:
            A positive elevation, or None when the position is not
            resident or the cell holds no data.
        """
        value = self.query(latitude, longitude)
        if value == SENTINEL or value <= NO_DATA:
            return None
        return value
