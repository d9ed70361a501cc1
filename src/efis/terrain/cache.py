"""Terrain elevation cache.

Serves constant-time elevation queries from a window of the global
elevation raster and re-pages that window as the aircraft moves.

Reloads build a fresh WindowBuffer and publish it with a single
reference swap, so a query always sees a window whose origin and
samples belong together. In background mode the load runs on one worker
thread; requests arriving during a load replace any queued request and
run after it, so loads never overlap.

Typical usage:
    from efis.terrain.cache import TerrainCache
    from efis.terrain.tile_store import DirectoryTileStore

    cache = TerrainCache(DirectoryTileStore("data/terrain"))
    cache.update(lat, lon)            # every tick
    result = cache.elevation_at(lat, lon)
    if result.valid:
        print(f"Terrain: {result.value}m")
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from efis.terrain.errors import TileUnavailableError, TruncatedReadError
from efis.terrain.loader import LoadReport, TileLoader
from efis.terrain.reload_policy import ReloadPolicy, ReloadReason, ReloadState
from efis.terrain.settings import TerrainSettings
from efis.terrain.tile_store import ITileStore
from efis.terrain.tiles import TileId, is_valid_location, locate
from efis.terrain.window import NO_DATA, SENTINEL, WindowBuffer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ElevationResult:
    """Elevation query result.

    Attributes:
        value: Stored sample, NO_DATA, or SENTINEL when not resident.
        valid: Whether the window fully reflects the current tile; reflects
            load state only, not whether this position was resident.
    """

    value: int
    valid: bool

    @property
    def has_data(self) -> bool:
        """True when value is a real (positive) elevation."""
        return self.value != SENTINEL and self.value > NO_DATA


class TerrainCache:
    """Owned, double-buffered terrain window with reload management.

    Examples:
        >>> cache = TerrainCache(store, TerrainSettings(background=False))
        >>> cache.reload(-10.5, 100.5)
        True
        >>> cache.elevation_at(-10.5, 100.5)
        ElevationResult(value=412, valid=True)
    """

    def __init__(
        self,
        store: ITileStore,
        settings: TerrainSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache. No tile is loaded until a reload.

        Args:
            store: Accessor used to open tiles.
            settings: Cache configuration (defaults if None).
            clock: Monotonic clock used for reload throttling.
        """
        self.settings = settings or TerrainSettings()
        self._store = store
        self._clock = clock
        self._loader = TileLoader(
            cols=self.settings.tile_cols,
            rows=self.settings.tile_rows,
            byte_order=self.settings.byte_order,
        )
        self._policy = ReloadPolicy(
            horizon_nm=self.settings.horizon_nm,
            threshold_nm=self.settings.reload_threshold_nm,
            check_interval_s=self.settings.check_interval_s,
            retry_interval_s=self.settings.retry_interval_s,
            clock=clock,
        )

        self._lock = threading.Lock()
        self._window = WindowBuffer(self.settings.buffer_size)
        self._valid = False
        self._loading = False
        self._pending: tuple[float, float] | None = None
        self._worker: threading.Thread | None = None
        self._idle = threading.Event()
        self._idle.set()
        self._closed = False

        self.last_report: LoadReport | None = None
        self.last_error: TileUnavailableError | None = None

        logger.info(
            "TerrainCache initialized (store=%s, buffer=%d, background=%s)",
            store.get_name(),
            self.settings.buffer_size,
            self.settings.background,
        )

    @property
    def valid(self) -> bool:
        """Whether the published window reflects a completed load."""
        return self._valid

    @property
    def is_loading(self) -> bool:
        """Whether a reload is in flight or queued."""
        with self._lock:
            return self._loading or self._pending is not None

    @property
    def window(self) -> WindowBuffer:
        """Currently published window (never written after publication)."""
        return self._window

    @property
    def tile(self) -> TileId | None:
        """Tile of the published window."""
        return self._window.tile

    @property
    def policy(self) -> ReloadPolicy:
        """Reload policy driving ``update``."""
        return self._policy

    @property
    def state(self) -> ReloadState:
        """Reload state machine state."""
        return self._policy.state

    def elevation_at(self, latitude: float, longitude: float) -> ElevationResult:
        """Query the elevation at a position.

        Never raises and never blocks on a load.

        Args:
            latitude: Latitude in degrees.
            longitude: Longitude in degrees.

        Returns:
            ElevationResult with the stored value (or SENTINEL) and the
            validity flag.
        """
        with self._lock:
            window = self._window
            valid = self._valid
        return ElevationResult(window.query(latitude, longitude), valid)

    def agl_m(self, latitude: float, longitude: float, altitude_m: float) -> float | None:
        """Height above ground for an MSL altitude.

        Args:
            latitude: Latitude in degrees.
            longitude: Longitude in degrees.
            altitude_m: Altitude above mean sea level in meters.

        Returns:
            Height above terrain in meters, or None when the terrain
            under the position is unknown.
        """
        result = self.elevation_at(latitude, longitude)
        if not result.valid or not result.has_data:
            return None
        return altitude_m - self.settings.to_meters(result.value)

    def update(
        self, latitude: float, longitude: float, now: float | None = None
    ) -> ReloadReason | None:
        """Check the reload policy for the current position.

        Call this from the periodic tick that receives positions.

        Args:
            latitude: Current latitude in degrees.
            longitude: Current longitude in degrees.
            now: Monotonic time in seconds (defaults to the cache clock).

        Returns:
            The reason a reload was started, or None.
        """
        if self._closed:
            return None

        with self._lock:
            reason = self._policy.evaluate(latitude, longitude, now, self._window)
        if reason is None:
            return None

        logger.info(
            "Terrain reload triggered (%s) at (%.4f, %.4f)", reason.value, latitude, longitude
        )
        self.reload(latitude, longitude, now)
        return reason

    def reload(self, latitude: float, longitude: float, now: float | None = None) -> bool:
        """Re-centre the window on a position and load it.

        Args:
            latitude: New centre latitude in degrees.
            longitude: New centre longitude in degrees.
            now: Monotonic time of the request (defaults to the cache clock).

        Returns:
            In synchronous mode, whether the load succeeded. In background
            mode, whether the load was scheduled.
        """
        if self._closed:
            return False
        if not is_valid_location(latitude, longitude):
            logger.debug("Ignoring reload for invalid location (%s, %s)", latitude, longitude)
            return False

        tile = locate(latitude, longitude)
        now = self._clock() if now is None else now
        if not self.settings.background:
            with self._lock:
                self._policy.begin(latitude, longitude, tile, now)
            try:
                return self._run_reload(latitude, longitude, tile)
            except Exception as e:
                self._abort_reload(tile, e)
                raise

        with self._lock:
            self._policy.begin(latitude, longitude, tile, now)
            self._pending = (latitude, longitude)
            self._valid = False
            if self._worker is not None:
                logger.debug("Reload queued behind in-flight load")
                return True
            self._idle.clear()
            self._worker = threading.Thread(
                target=self._worker_loop, name="terrain-reload", daemon=True
            )
            self._worker.start()
        return True

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until no reload is in flight.

        Returns:
            True if idle, False on timeout.
        """
        return self._idle.wait(timeout)

    def shutdown(self, timeout: float = 5.0) -> None:
        """Stop accepting reloads and wait for the worker to finish."""
        with self._lock:
            self._closed = True
            self._pending = None
            worker = self._worker

        if worker is not None:
            worker.join(timeout)
            if worker.is_alive():
                logger.warning("Terrain reload worker did not stop within %.1fs", timeout)

        logger.info("TerrainCache shutdown")

    def _worker_loop(self) -> None:
        while True:
            with self._lock:
                target = self._pending
                self._pending = None
                if target is None or self._closed:
                    self._worker = None
                    self._idle.set()
                    return
            lat, lon = target
            tile = locate(lat, lon)
            try:
                self._run_reload(lat, lon, tile)
            except Exception as e:
                logger.error("Terrain reload worker error on %s: %s", tile.name, e)
                self._abort_reload(tile, e)

    def _run_reload(self, latitude: float, longitude: float, tile: TileId) -> bool:
        with self._lock:
            self._valid = False
            self._loading = True

        logger.info("Loading terrain tile %s around (%.4f, %.4f)", tile.name, latitude, longitude)

        window = WindowBuffer(self.settings.buffer_size)
        window.recenter(latitude, longitude, tile)
        window.fill(NO_DATA)

        success = False
        try:
            try:
                with self._store.open_tile(tile) as stream:
                    report = self._loader.load(stream, window)
            except OSError as e:
                raise TileUnavailableError(f"Cannot read tile {tile.name}: {e}") from e
        except TruncatedReadError as e:
            logger.warning(
                "Terrain tile %s truncated: expected %d bytes, received %d",
                tile.name,
                e.expected,
                e.received,
            )
            self.last_error = e
            self._publish(window, success=False)
        except TileUnavailableError as e:
            logger.warning("Terrain tile %s unavailable: %s", tile.name, e)
            self.last_error = e
            with self._lock:
                self._loading = False
                self._complete(success=False)
        else:
            self.last_report = report
            self.last_error = None
            self._publish(window, success=True)
            success = True
            logger.info(
                "Terrain window %s loaded: %d rows, %d samples in %.3fs",
                tile.name,
                report.rows_read,
                report.samples_written,
                report.elapsed_s,
            )
        return success

    def _publish(self, window: WindowBuffer, success: bool) -> None:
        with self._lock:
            self._window = window
            # A queued request supersedes this window; stay invalid until it lands
            self._valid = success and self._pending is None
            self._loading = False
            self._complete(success)

    def _abort_reload(self, tile: TileId, error: Exception) -> None:
        # Unexpected failure inside a load; leave the cache idle and due for a retry
        unavailable = TileUnavailableError(f"Reload of {tile.name} failed: {error}")
        unavailable.__cause__ = error
        self.last_error = unavailable
        with self._lock:
            self._loading = False
            self._complete(success=False)

    def _complete(self, success: bool) -> None:
        # Caller holds the lock. A queued load keeps the policy in RELOADING.
        if self._pending is None:
            self._policy.complete(success)
