"""Exceptions raised by the terrain elevation subsystem.

Load errors are recovered inside the cache and surfaced as a validity
flag; coordinate errors suppress reloads. None of these are fatal.
"""


class TerrainError(Exception):
    """Base class for terrain subsystem errors."""


class InvalidCoordinateError(TerrainError, ValueError):
    """Raised when a latitude/longitude is non-finite or out of range."""


class TileUnavailableError(TerrainError):
    """Raised when a tile file is missing or cannot be read."""


class TruncatedReadError(TileUnavailableError):
    """Raised when a tile yields fewer bytes than its geometry requires.

    Attributes:
        expected: Number of bytes requested.
        received: Number of bytes actually read.
    """

    def __init__(self, message: str, expected: int, received: int) -> None:
        super().__init__(message)
        self.expected = expected
        self.received = received
