"""Decides when the terrain window must be re-centred and reloaded.

Two states: STABLE while the window covers the region ahead of the
aircraft, RELOADING while a load is in flight. A reload is triggered when
the look-ahead horizon would reach past the window, when the aircraft
crosses onto another tile, or when a failed load is due for a retry.
Evaluation is throttled by wall time rather than frame count.

Typical usage:
    policy = ReloadPolicy(horizon_nm=30.0, threshold_nm=75.0)
    reason = policy.evaluate(lat, lon)
    if reason is not None:
        policy.begin(lat, lon, locate(lat, lon))
        ok = load_window(...)
        policy.complete(ok)
"""

import time
from collections.abc import Callable
from enum import Enum

from efis.terrain.grid import distance_nm
from efis.terrain.tiles import TileId, is_on_tile, is_valid_location
from efis.terrain.window import WindowBuffer


class ReloadState(Enum):
    """Reload state machine states."""

    STABLE = "stable"
    RELOADING = "reloading"


class ReloadReason(Enum):
    """Why a reload was triggered."""

    INITIAL = "initial"  # Nothing loaded yet
    HORIZON = "horizon"  # Look-ahead would leave the window
    TILE_CHANGE = "tile_change"  # Position is on a different tile
    RETRY = "retry"  # Previous load failed


class ReloadPolicy:
    """Reload trigger logic for the terrain window.

    Attributes:
        horizon_nm: Look-ahead distance that must stay inside the window.
        threshold_nm: Distance from the window centre at which the
            horizon is considered to reach the window edge.
        check_interval_s: Minimum time between trigger evaluations.
        retry_interval_s: Delay before retrying after a failed load.

    Examples:
        >>> policy = ReloadPolicy(horizon_nm=30.0, threshold_nm=75.0)
        >>> policy.evaluate(-10.5, 100.5, now=0.0)
        <ReloadReason.INITIAL: 'initial'>
    """

    def __init__(
        self,
        horizon_nm: float = 30.0,
        threshold_nm: float = 75.0,
        check_interval_s: float = 1.0,
        retry_interval_s: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.horizon_nm = horizon_nm
        self.threshold_nm = threshold_nm
        self.check_interval_s = check_interval_s
        self.retry_interval_s = retry_interval_s
        self._clock = clock

        self._state = ReloadState.STABLE
        self._center: tuple[float, float] | None = None
        self._tile: TileId | None = None
        self._last_check: float | None = None
        self._last_attempt: float | None = None
        self._failed = False

    @property
    def state(self) -> ReloadState:
        """Current state."""
        return self._state

    @property
    def center(self) -> tuple[float, float] | None:
        """Centre of the last reload attempt."""
        return self._center

    @property
    def tile(self) -> TileId | None:
        """Tile of the last reload attempt."""
        return self._tile

    @property
    def failed(self) -> bool:
        """Whether the last reload attempt failed."""
        return self._failed

    def evaluate(
        self,
        latitude: float,
        longitude: float,
        now: float | None = None,
        window: WindowBuffer | None = None,
    ) -> ReloadReason | None:
        """Check whether the current position needs a reload.

        Args:
            latitude: Current latitude in degrees.
            longitude: Current longitude in degrees.
            now: Monotonic time in seconds (defaults to the policy clock).
            window: Published window. When given, a position whose
                horizon box is no longer resident also triggers HORIZON.

        Returns:
            The trigger reason, or None if no reload is needed, a load is
            already in flight, the check is throttled, or the location is
            not valid.
        """
        if self._state is ReloadState.RELOADING:
            return None
        if not is_valid_location(latitude, longitude):
            return None

        now = self._clock() if now is None else now
        if self._last_check is not None and now - self._last_check < self.check_interval_s:
            return None
        self._last_check = now

        if self._center is None:
            return ReloadReason.INITIAL

        dme = distance_nm(self._center[0], self._center[1], latitude, longitude)
        if dme + self.horizon_nm > self.threshold_nm:
            return ReloadReason.HORIZON

        if not is_on_tile(self._tile, latitude, longitude):
            return ReloadReason.TILE_CHANGE

        if (
            window is not None
            and not self._failed
            and window.tile == self._tile
            and not window.covers(latitude, longitude, self.horizon_nm)
        ):
            return ReloadReason.HORIZON

        if (
            self._failed
            and self._last_attempt is not None
            and now - self._last_attempt >= self.retry_interval_s
        ):
            return ReloadReason.RETRY

        return None

    def begin(
        self, latitude: float, longitude: float, tile: TileId, now: float | None = None
    ) -> None:
        """Enter RELOADING for a new window centre."""
        self._state = ReloadState.RELOADING
        self._center = (latitude, longitude)
        self._tile = tile
        self._last_attempt = self._clock() if now is None else now

    def complete(self, success: bool) -> None:
        """Return to STABLE after a load, remembering whether it failed."""
        self._state = ReloadState.STABLE
        self._failed = not success

    def reset(self) -> None:
        """Forget the loaded region so the next evaluation triggers INITIAL."""
        self._state = ReloadState.STABLE
        self._center = None
        self._tile = None
        self._last_check = None
        self._last_attempt = None
        self._failed = False
