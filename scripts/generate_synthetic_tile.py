"""Generate a synthetic terrain tile for development.

Writes a full-size header-less tile (4800 x 6000 big-endian int16
samples) with rolling hills, a ridge and an ocean strip where samples are
zero, so the display can be exercised without the real dataset.

Usage:
    python scripts/generate_synthetic_tile.py -10.5 100.5
    python scripts/generate_synthetic_tile.py --out-dir data/terrain --byte-order little 45.0 -120.0

Output:
    - data/terrain/<TILE>.DEM: Synthetic tile covering the given coordinate
"""

import argparse
import logging
from pathlib import Path

import numpy as np

from efis.terrain.tiles import TILE_COLS, TILE_ROWS, locate

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def synthetic_elevation(rows: int = TILE_ROWS, cols: int = TILE_COLS, seed: int = 0) -> np.ndarray:
    """Build a synthetic elevation matrix in meters.

    Args:
        rows: Tile height in samples.
        cols: Tile width in samples.
        seed: Seed for the noise term.

    Returns:
        int16 array of shape (rows, cols). The western tenth is ocean (0).
    """
    rng = np.random.default_rng(seed)
    y = np.linspace(0.0, 1.0, rows, dtype=np.float32)[:, np.newaxis]
    x = np.linspace(0.0, 1.0, cols, dtype=np.float32)[np.newaxis, :]

    hills = 400.0 * (np.sin(12.0 * np.pi * x) * np.cos(9.0 * np.pi * y) + 1.0)
    ridge = 2500.0 * np.exp(-(((x - 0.6) / 0.05) ** 2))
    noise = rng.normal(0.0, 15.0, size=(rows, cols)).astype(np.float32)

    elevation = np.clip(hills + ridge + noise + 50.0, 1.0, 8000.0)
    elevation[:, : cols // 10] = 0
    return elevation.astype(np.int16)


def main() -> None:
    """Write a synthetic tile for the tile covering LAT LON."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("lat", type=float)
    parser.add_argument("lon", type=float)
    parser.add_argument("--out-dir", type=Path, default=Path("data/terrain"))
    parser.add_argument("--byte-order", choices=["big", "little"], default="big")
    parser.add_argument("--seed", type=int, default=0)
    args = parser.parse_args()

    tile = locate(args.lat, args.lon)
    args.out_dir.mkdir(parents=True, exist_ok=True)
    path = args.out_dir / tile.filename()

    dtype = ">i2" if args.byte_order == "big" else "<i2"
    synthetic_elevation(seed=args.seed).astype(dtype).tofile(path)

    logger.info("Wrote %s (%d bytes)", path, path.stat().st_size)


if __name__ == "__main__":
    main()
