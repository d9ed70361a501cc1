"""Tile storage accessors.

The cache never hard-codes where tiles live; it asks a tile store to open
a tile by its identifier. Stores report missing or unreadable tiles as
TileUnavailableError.

Typical usage:
    from efis.terrain.tile_store import DirectoryTileStore

    store = DirectoryTileStore("data/terrain")
    with store.open_tile(locate(-10.5, 100.5)) as f:
        loader.load(f, window)
"""

import io
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO

from efis.terrain.errors import TileUnavailableError
from efis.terrain.tiles import DEFAULT_EXTENSION, TileId

logger = logging.getLogger(__name__)


class ITileStore(ABC):
    """Abstract accessor for tile byte streams.

    Examples:
        >>> class MyStore(ITileStore):
        ...     def get_name(self) -> str:
        ...         return "my_store"
        ...     def open_tile(self, tile: TileId) -> BinaryIO:
        ...         return open(f"/tiles/{tile.filename()}", "rb")
    """

    @abstractmethod
    def get_name(self) -> str:
        """Get store name.

        Returns:
            Store identifier used in log messages.
        """

    @abstractmethod
    def open_tile(self, tile: TileId) -> BinaryIO:
        """Open a tile for binary reading.

        The caller owns the returned stream and must close it.

        Args:
            tile: Tile to open.

        Returns:
            Binary stream positioned at the first sample.

        Raises:
            TileUnavailableError: If the tile cannot be opened.
        """

    def has_tile(self, tile: TileId) -> bool:
        """Check whether a tile can be opened.

        Default implementation tries to open and close it.
        """
        try:
            stream = self.open_tile(tile)
        except TileUnavailableError:
            return False
        stream.close()
        return True


class DirectoryTileStore(ITileStore):
    """Tiles stored as ``<root>/<name><extension>`` files.

    Examples:
        >>> store = DirectoryTileStore("data/terrain")
        >>> store.path_for(TileId(lat=-10, lon=100))
        PosixPath('data/terrain/E100S10.DEM')
    """

    def __init__(self, root: str | Path, extension: str = DEFAULT_EXTENSION) -> None:
        """Initialize directory store.

        Args:
            root: Directory containing tile files.
            extension: File extension including the dot.
        """
        self.root = Path(root)
        self.extension = extension
        logger.info("DirectoryTileStore initialized (root=%s, extension=%s)", self.root, extension)

    def get_name(self) -> str:
        """Get store name."""
        return "directory"

    def path_for(self, tile: TileId) -> Path:
        """Resolve the file path of a tile.

        Prefers the canonical upper-case name and falls back to a
        lower-case file of the same name if only that exists.
        """
        path = self.root / tile.filename(self.extension)
        if not path.exists():
            lower = self.root / tile.filename(self.extension).lower()
            if lower.exists():
                return lower
        return path

    def open_tile(self, tile: TileId) -> BinaryIO:
        """Open a tile file."""
        path = self.path_for(tile)
        try:
            return path.open("rb")
        except OSError as e:
            raise TileUnavailableError(f"Cannot open tile {tile.name} at {path}: {e}") from e

    def has_tile(self, tile: TileId) -> bool:
        """Check whether the tile file exists."""
        return self.path_for(tile).is_file()


class InMemoryTileStore(ITileStore):
    """Tiles served from raw bytes held in memory.

    Useful for synthetic tiles in tests and demos.

    Examples:
        >>> store = InMemoryTileStore()
        >>> store.add_tile(TileId(lat=-10, lon=100), raw_bytes)
    """

    def __init__(self, tiles: dict[TileId, bytes] | None = None) -> None:
        self._tiles: dict[TileId, bytes] = dict(tiles or {})

    def get_name(self) -> str:
        """Get store name."""
        return "memory"

    def add_tile(self, tile: TileId, data: bytes) -> None:
        """Register the raw bytes of a tile."""
        self._tiles[tile] = data

    def open_tile(self, tile: TileId) -> BinaryIO:
        """Open an in-memory tile."""
        if tile not in self._tiles:
            raise TileUnavailableError(f"Tile not in memory store: {tile.name}")
        return io.BytesIO(self._tiles[tile])

    def has_tile(self, tile: TileId) -> bool:
        """Check whether the tile was added."""
        return tile in self._tiles
