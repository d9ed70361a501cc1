"""Terrain elevation cache for the EFIS display."""

from efis.terrain.cache import ElevationResult, TerrainCache
from efis.terrain.errors import (
    InvalidCoordinateError,
    TerrainError,
    TileUnavailableError,
    TruncatedReadError,
)
from efis.terrain.grid import SAMPLES_PER_DEGREE, distance_nm, to_tile_index
from efis.terrain.loader import LoadReport, TileLoader, clip_window
from efis.terrain.reload_policy import ReloadPolicy, ReloadReason, ReloadState
from efis.terrain.settings import TerrainSettings
from efis.terrain.tile_store import DirectoryTileStore, InMemoryTileStore, ITileStore
from efis.terrain.tiles import TILE_COLS, TILE_ROWS, TileId, is_on_tile, is_valid_location, locate
from efis.terrain.window import NO_DATA, SENTINEL, WindowBuffer

__all__ = [
    "DirectoryTileStore",
    "ElevationResult",
    "ITileStore",
    "InMemoryTileStore",
    "InvalidCoordinateError",
    "LoadReport",
    "NO_DATA",
    "ReloadPolicy",
    "ReloadReason",
    "ReloadState",
    "SAMPLES_PER_DEGREE",
    "SENTINEL",
    "TILE_COLS",
    "TILE_ROWS",
    "TerrainCache",
    "TerrainError",
    "TerrainSettings",
    "TileId",
    "TileLoader",
    "TileUnavailableError",
    "TruncatedReadError",
    "WindowBuffer",
    "clip_window",
    "distance_nm",
    "is_on_tile",
    "is_valid_location",
    "locate",
    "to_tile_index",
]
