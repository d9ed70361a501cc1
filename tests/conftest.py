"""Pytest configuration and shared fixtures.

Terrain tests use a small synthetic tile (30 rows x 40 columns) at the
E100S10 tile origin so clipping against the tile edges is exercised with
windows larger than the tile.
"""

from collections.abc import Callable

import numpy as np
import pytest

from efis.terrain.grid import SAMPLES_PER_DEGREE
from efis.terrain.tiles import TileId

SMALL_ROWS = 30
SMALL_COLS = 40


@pytest.fixture
def tile_id() -> TileId:
    """Tile the synthetic data is placed on."""
    return TileId(lat=-10, lon=100)


@pytest.fixture
def tile_array() -> np.ndarray:
    """Synthetic tile where cell (row, col) holds row * 100 + col + 1."""
    rows = np.arange(SMALL_ROWS, dtype=np.int32)[:, np.newaxis]
    cols = np.arange(SMALL_COLS, dtype=np.int32)[np.newaxis, :]
    return (rows * 100 + cols + 1).astype(np.int16)


@pytest.fixture
def tile_bytes(tile_array: np.ndarray) -> bytes:
    """The synthetic tile as big-endian file contents."""
    return tile_array.astype(">i2").tobytes()


@pytest.fixture
def position_of(tile_id: TileId) -> Callable[[int, int], tuple[float, float]]:
    """Return a function giving the (lat, lon) centre of a tile cell."""

    def _position(row: int, col: int) -> tuple[float, float]:
        lat = tile_id.lat - (row + 0.5) / SAMPLES_PER_DEGREE
        lon = tile_id.lon + (col + 0.5) / SAMPLES_PER_DEGREE
        return lat, lon

    return _position
