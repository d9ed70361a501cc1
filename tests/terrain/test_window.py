"""Tests for the sample window."""

import math

import numpy as np
import pytest

from efis.terrain.tiles import TileId
from efis.terrain.window import NO_DATA, SENTINEL, WindowBuffer


class TestWindowBuffer:
    """Test window geometry and queries."""

    @pytest.fixture
    def window(self, tile_id: TileId) -> WindowBuffer:
        """Window of the reference size centred on the reference position."""
        window = WindowBuffer(size=600)
        window.recenter(-10.5, 100.5, tile_id)
        return window

    def test_initial_state(self) -> None:
        """Test a window that was never centred."""
        window = WindowBuffer(size=8)

        assert window.tile is None
        assert window.center is None
        assert window.samples.shape == (8, 8)
        assert window.samples.dtype == np.int16
        assert np.all(window.samples == NO_DATA)
        assert window.query(-10.5, 100.5) == SENTINEL

    def test_invalid_size(self) -> None:
        """Test that the size must be positive."""
        with pytest.raises(ValueError):
            WindowBuffer(size=0)

    def test_recenter_origin(self, window: WindowBuffer, tile_id: TileId) -> None:
        """Test origin of the reference window."""
        assert window.origin == (-240, -240)
        assert window.tile == tile_id
        assert window.center == (-10.5, 100.5)

    def test_recenter_keeps_samples(self, tile_id: TileId) -> None:
        """Test that re-centring leaves the samples alone."""
        window = WindowBuffer(size=4)
        window.fill(7)
        window.recenter(-10.5, 100.5, tile_id)
        assert np.all(window.samples == 7)

    def test_fill(self, window: WindowBuffer) -> None:
        """Test filling every cell."""
        window.fill(123)
        assert np.all(window.samples == 123)

    def test_query_center_cell(self, window: WindowBuffer) -> None:
        """Test that the centre position reads window cell (300, 300)."""
        window.samples[300, 300] = 1234
        assert window.query(-10.5, 100.5) == 1234

    def test_query_neighbour_cells(self, window: WindowBuffer) -> None:
        """Test that adjacent cells map to adjacent samples."""
        window.samples[301, 300] = 11
        window.samples[300, 301] = 22

        assert window.query(-10.5 - 1.5 / 120, 100.5) == 11
        assert window.query(-10.5, 100.5 + 1.5 / 120) == 22

    def test_query_outside_window(self, window: WindowBuffer) -> None:
        """Test that non-resident positions return the sentinel."""
        window.fill(500)

        # 300 samples east of the centre is the first column past the window
        assert window.query(-10.5, 100.5 + 300.5 / 120) == SENTINEL
        assert window.query(-20.0, 100.5) == SENTINEL
        assert window.query(-10.5, 100.5 + 299.5 / 120) == 500

    def test_query_non_finite(self, window: WindowBuffer) -> None:
        """Test that NaN queries return the sentinel instead of raising."""
        assert window.query(math.nan, 100.5) == SENTINEL

    def test_is_resident(self, window: WindowBuffer) -> None:
        """Test tile-local residency bounds."""
        assert window.is_resident(-240, -240)
        assert window.is_resident(359, 359)
        assert not window.is_resident(360, 0)
        assert not window.is_resident(0, -241)

    def test_covers_margin(self, window: WindowBuffer) -> None:
        """Test that the margin box around a position must be resident."""
        assert window.covers(-10.5, 100.5, 30.0)
        # 200 and 250 rows south of the centre, with a 60-row margin
        assert window.covers(-10.5 - 200 / 120, 100.5, 30.0)
        assert not window.covers(-10.5 - 250 / 120, 100.5, 30.0)
        assert window.covers(-10.5 - 250 / 120, 100.5)

    def test_covers_widens_columns_with_latitude(self) -> None:
        """Test that the east-west margin grows toward the poles."""
        tile = TileId(lat=90, lon=-20)
        lat = 60.0 - 0.5 / 120
        window = WindowBuffer(size=600)
        window.recenter(lat, 10.0 + 0.5 / 120, tile)
        assert window.origin == (3300, 3300)

        # Near 60N the 60-row margin spans 120 columns
        assert window.covers(lat, 10.0 + 100.5 / 120, 30.0)
        assert not window.covers(lat, 10.0 + 200.5 / 120, 30.0)

    def test_covers_caps_margin(self, window: WindowBuffer) -> None:
        """Test that a margin wider than the window still covers the centre."""
        assert window.covers(-10.5, 100.5, 1000.0)
        assert window.covers(-10.5, 100.5, 0.0)

    def test_covers_without_tile(self) -> None:
        """Test that a window that was never centred covers nothing."""
        assert not WindowBuffer(size=8).covers(-10.5, 100.5)

    def test_sample_at(self, window: WindowBuffer) -> None:
        """Test the optional view of the window."""
        window.samples[300, 300] = 812
        window.samples[300, 301] = NO_DATA

        assert window.sample_at(-10.5, 100.5) == 812
        assert window.sample_at(-10.5, 100.5 + 1.5 / 120) is None
        assert window.sample_at(-30.0, 100.5) is None
