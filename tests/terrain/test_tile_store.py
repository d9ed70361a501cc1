"""Tests for tile stores."""

from pathlib import Path

import pytest

from efis.terrain.errors import TileUnavailableError
from efis.terrain.tile_store import DirectoryTileStore, InMemoryTileStore
from efis.terrain.tiles import TileId


class TestDirectoryTileStore:
    """Test DirectoryTileStore."""

    def test_path_for(self, tmp_path: Path, tile_id: TileId) -> None:
        """Test canonical file naming."""
        store = DirectoryTileStore(tmp_path)
        assert store.path_for(tile_id) == tmp_path / "E100S10.DEM"
        assert store.get_name() == "directory"

    def test_open_tile(self, tmp_path: Path, tile_id: TileId) -> None:
        """Test opening an existing tile."""
        (tmp_path / "E100S10.DEM").write_bytes(b"\x00\x01\x00\x02")
        store = DirectoryTileStore(tmp_path)

        assert store.has_tile(tile_id)
        with store.open_tile(tile_id) as f:
            assert f.read() == b"\x00\x01\x00\x02"

    def test_lower_case_fallback(self, tmp_path: Path, tile_id: TileId) -> None:
        """Test that lower-case tile files are found."""
        (tmp_path / "e100s10.dem").write_bytes(b"\x00\x05")
        store = DirectoryTileStore(tmp_path)

        assert store.has_tile(tile_id)
        with store.open_tile(tile_id) as f:
            assert f.read() == b"\x00\x05"

    def test_custom_extension(self, tmp_path: Path, tile_id: TileId) -> None:
        """Test a non-default file extension."""
        store = DirectoryTileStore(tmp_path, extension=".bin")
        assert store.path_for(tile_id).name == "E100S10.bin"

    def test_missing_tile(self, tmp_path: Path, tile_id: TileId) -> None:
        """Test that missing files raise TileUnavailableError."""
        store = DirectoryTileStore(tmp_path)

        assert not store.has_tile(tile_id)
        with pytest.raises(TileUnavailableError, match="E100S10"):
            store.open_tile(tile_id)


class TestInMemoryTileStore:
    """Test InMemoryTileStore."""

    def test_open_tile(self, tile_id: TileId) -> None:
        """Test serving registered bytes."""
        store = InMemoryTileStore({tile_id: b"\x01\x02"})

        assert store.get_name() == "memory"
        assert store.has_tile(tile_id)
        assert store.open_tile(tile_id).read() == b"\x01\x02"

    def test_add_tile(self, tile_id: TileId) -> None:
        """Test registering a tile after construction."""
        store = InMemoryTileStore()
        assert not store.has_tile(tile_id)

        store.add_tile(tile_id, b"\x00\x07")
        assert store.has_tile(tile_id)

    def test_missing_tile(self, tile_id: TileId) -> None:
        """Test that unknown tiles raise TileUnavailableError."""
        with pytest.raises(TileUnavailableError):
            InMemoryTileStore().open_tile(tile_id)
