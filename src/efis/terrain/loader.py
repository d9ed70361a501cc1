"""Partial tile reads into a WindowBuffer.

A tile file is a header-less, row-major matrix of 16-bit signed samples.
Only the rectangle where the window overlaps the tile is read: for each
overlapping row the loader skips to the first needed column, reads the
run of samples in one call and writes the positive ones into the window.

Typical usage:
    from efis.terrain.loader import TileLoader

    loader = TileLoader(byte_order="big")
    with open("terrain/E100S10.DEM", "rb") as f:
        report = loader.load(f, window)
    print(f"{report.samples_written} samples in {report.elapsed_s:.3f}s")
"""

import logging
import time
from dataclasses import dataclass
from typing import BinaryIO

import numpy as np

from efis.terrain.errors import TileUnavailableError, TruncatedReadError
from efis.terrain.tiles import TILE_COLS, TILE_ROWS, TileId
from efis.terrain.window import WindowBuffer

logger = logging.getLogger(__name__)

BYTES_PER_SAMPLE = 2

_SKIP_CHUNK = 1 << 16

_BYTE_ORDERS = {"big": ">", "little": "<"}


@dataclass
class LoadReport:
    """Outcome of a tile load.

    Attributes:
        tile: Tile the window was centred on.
        bounds: Clipped tile-local rectangle (x1, y1, x2, y2), or None
            when the window lies entirely off the tile.
        rows_read: Number of tile rows read.
        samples_written: Number of positive samples stored in the window.
        elapsed_s: Wall time spent reading.
    """

    tile: TileId | None
    bounds: tuple[int, int, int, int] | None
    rows_read: int = 0
    samples_written: int = 0
    elapsed_s: float = 0.0

    @property
    def off_tile(self) -> bool:
        """True when nothing of the window overlapped the tile."""
        return self.bounds is None


def clip_window(
    x0: int, y0: int, size: int, cols: int = TILE_COLS, rows: int = TILE_ROWS
) -> tuple[int, int, int, int] | None:
    """Intersect a window with the tile extent.

    Args:
        x0: Tile-local column of the window's left edge.
        y0: Tile-local row of the window's top edge.
        size: Window side length in samples.
        cols: Tile width in samples.
        rows: Tile height in samples.

    Returns:
        (x1, y1, x2, y2) half-open bounds, or None if empty.

    Examples:
        >>> clip_window(-240, -240, 600)
        (0, 0, 360, 360)
    """
    x1 = max(x0, 0)
    x2 = min(x0 + size, cols)
    y1 = max(y0, 0)
    y2 = min(y0 + size, rows)

    if x1 >= x2 or y1 >= y2:
        return None
    return x1, y1, x2, y2


class TileLoader:
    """Reads the window's overlap with a tile from a byte source.

    Examples:
        >>> loader = TileLoader(cols=4800, rows=6000, byte_order="big")
        >>> report = loader.load(stream, window)
    """

    def __init__(
        self, cols: int = TILE_COLS, rows: int = TILE_ROWS, byte_order: str = "big"
    ) -> None:
        """Initialize the loader for a tile geometry.

        Args:
            cols: Tile width in samples.
            rows: Tile height in samples.
            byte_order: "big" or "little", as stored in the dataset.

        Raises:
            ValueError: If the geometry or byte order is invalid.
        """
        if cols <= 0 or rows <= 0:
            raise ValueError(f"Tile dimensions must be positive, got {cols}x{rows}")
        if byte_order not in _BYTE_ORDERS:
            raise ValueError(f"Unknown byte order: {byte_order}")

        self.cols = cols
        self.rows = rows
        self.byte_order = byte_order
        self._dtype = np.dtype(f"{_BYTE_ORDERS[byte_order]}i2")

    @property
    def tile_size_bytes(self) -> int:
        """Expected length of a complete tile file."""
        return self.cols * self.rows * BYTES_PER_SAMPLE

    def load(self, source: BinaryIO, window: WindowBuffer) -> LoadReport:
        """Populate ``window`` from an open tile.

        The window must already be recentred; its origin decides which
        bytes are read. Cells outside the tile and cells whose sample is
        zero or negative keep their current value.

        Args:
            source: Open binary stream positioned at the start of the tile.
            window: Recentred window to write into.

        Returns:
            LoadReport describing what was read.

        Raises:
            TruncatedReadError: If the source ends early. Rows read before
                the end remain written.
            TileUnavailableError: If the source raises an I/O error.
        """
        start = time.perf_counter()
        x0, y0 = window.origin
        bounds = clip_window(x0, y0, window.size, self.cols, self.rows)
        report = LoadReport(tile=window.tile, bounds=bounds)

        if bounds is None:
            logger.debug("Window origin (%d, %d) lies off tile %s", x0, y0, window.tile)
            return report

        x1, y1, x2, y2 = bounds
        run_bytes = (x2 - x1) * BYTES_PER_SAMPLE
        expected = (y2 - y1) * run_bytes
        received = 0
        seekable = source.seekable()
        position = 0
        samples = window.samples

        try:
            for y in range(y1, y2):
                offset = (y * self.cols + x1) * BYTES_PER_SAMPLE
                if seekable:
                    source.seek(offset)
                else:
                    self._skip(source, offset - position, expected, received)
                data = source.read(run_bytes)
                position = offset + len(data)
                received += len(data)

                count = len(data) // BYTES_PER_SAMPLE
                if count:
                    values = np.frombuffer(data, dtype=self._dtype, count=count)
                    mask = values > 0
                    target = samples[y - y0, x1 - x0 : x1 - x0 + count]
                    np.copyto(target, values, where=mask, casting="same_kind")
                    report.samples_written += int(np.count_nonzero(mask))

                if len(data) < run_bytes:
                    raise TruncatedReadError(
                        f"Tile {window.tile} truncated at row {y}: "
                        f"read {received} of {expected} bytes",
                        expected=expected,
                        received=received,
                    )
                report.rows_read += 1
        except OSError as e:
            raise TileUnavailableError(f"I/O error reading tile {window.tile}: {e}") from e
        finally:
            report.elapsed_s = time.perf_counter() - start

        logger.debug(
            "Loaded %d rows / %d samples of %s in %.3fs",
            report.rows_read,
            report.samples_written,
            window.tile,
            report.elapsed_s,
        )
        return report

    @staticmethod
    def _skip(source: BinaryIO, count: int, expected: int, received: int) -> None:
        """Discard ``count`` bytes from a non-seekable stream."""
        while count > 0:
            chunk = source.read(min(count, _SKIP_CHUNK))
            if not chunk:
                raise TruncatedReadError(
                    f"Tile stream ended while skipping: read {received} of {expected} bytes",
                    expected=expected,
                    received=received,
                )
            count -= len(chunk)
