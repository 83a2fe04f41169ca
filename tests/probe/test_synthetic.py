"""Synthetic surface probes: category lookup, vertical and horizontal rays."""

from __future__ import annotations

import numpy as np
import pytest

from autotrack.probe.models import NO_CATEGORY, SurfaceCategory
from autotrack.probe.synthetic import RasterProbe, RingTrackProbe

DOWN = np.array([0.0, 0.0, -1.0])
ANY = SurfaceCategory.TRACK | SurfaceCategory.GRASS | SurfaceCategory.WALL


class TestRingTrackProbe:
    def test_categories_by_radius(self):
        probe = RingTrackProbe(inner_radius=10.0, outer_radius=20.0, ground_radius=30.0)
        assert probe.category_at(0.0, 0.0) is SurfaceCategory.GRASS
        assert probe.category_at(15.0, 0.0) is SurfaceCategory.TRACK
        assert probe.category_at(0.0, -25.0) is SurfaceCategory.GRASS
        assert probe.category_at(40.0, 0.0) == NO_CATEGORY

    def test_walls_line_both_edges(self):
        probe = RingTrackProbe(inner_radius=10.0, outer_radius=20.0, wall_thickness=1.0)
        assert probe.category_at(9.5, 0.0) is SurfaceCategory.WALL
        assert probe.category_at(20.5, 0.0) is SurfaceCategory.WALL
        assert probe.category_at(8.0, 0.0) is SurfaceCategory.GRASS

    def test_rejects_inverted_radii(self):
        with pytest.raises(ValueError):
            RingTrackProbe(inner_radius=20.0, outer_radius=10.0)

    def test_vertical_probe_hits_ground(self):
        probe = RingTrackProbe(inner_radius=10.0, outer_radius=20.0, height=2.0)
        hit = probe.probe(np.array([15.0, 0.0, 12.0]), DOWN, 20.0, SurfaceCategory.TRACK)
        assert hit is not None
        np.testing.assert_allclose(hit.point, [15.0, 0.0, 2.0])
        np.testing.assert_allclose(hit.normal, [0.0, 0.0, 1.0])
        assert hit.distance == pytest.approx(10.0)
        assert hit.category is SurfaceCategory.TRACK

    def test_vertical_probe_respects_mask(self):
        probe = RingTrackProbe(inner_radius=10.0, outer_radius=20.0)
        assert probe.probe(np.array([0.0, 0.0, 10.0]), DOWN, 20.0, SurfaceCategory.TRACK) is None
        assert probe.probe(np.array([0.0, 0.0, 10.0]), DOWN, 20.0, SurfaceCategory.GRASS) is not None

    def test_vertical_probe_out_of_range(self):
        probe = RingTrackProbe(inner_radius=10.0, outer_radius=20.0)
        assert probe.probe(np.array([15.0, 0.0, 10.0]), DOWN, 5.0, SurfaceCategory.TRACK) is None

    def test_upward_probe_misses(self):
        probe = RingTrackProbe(inner_radius=10.0, outer_radius=20.0)
        up = np.array([0.0, 0.0, 1.0])
        assert probe.probe(np.array([15.0, 0.0, -1.0]), up, 5.0, ANY) is None

    def test_horizontal_probe_distance(self):
        """From r=15 toward +x the first grass is at r=20, five units away."""
        probe = RingTrackProbe(inner_radius=10.0, outer_radius=20.0, ground_radius=30.0)
        hit = probe.probe(
            np.array([15.0, 0.0, 0.3]), np.array([1.0, 0.0, 0.0]), 15.0, SurfaceCategory.GRASS
        )
        assert hit is not None
        assert hit.distance == pytest.approx(5.0, abs=0.01)
        np.testing.assert_allclose(hit.normal, [-1.0, 0.0, 0.0])

    def test_horizontal_probe_miss_within_range(self):
        probe = RingTrackProbe(inner_radius=10.0, outer_radius=20.0)
        hit = probe.probe(
            np.array([15.0, 0.0, 0.3]), np.array([1.0, 0.0, 0.0]), 3.0, SurfaceCategory.GRASS
        )
        assert hit is None

    def test_empty_mask_never_hits(self):
        probe = RingTrackProbe(inner_radius=10.0, outer_radius=20.0)
        assert probe.probe(np.array([15.0, 0.0, 5.0]), DOWN, 20.0, NO_CATEGORY) is None


class TestRasterProbe:
    def _grid(self) -> np.ndarray:
        # Column of track (code 1) between grass (2), wall (3) on the right edge.
        return np.array([
            [2, 1, 1, 2, 3],
            [2, 1, 1, 2, 3],
            [0, 1, 1, 2, 3],
        ])

    def test_codes_map_to_categories(self):
        probe = RasterProbe(self._grid(), cell_size=2.0)
        assert probe.category_at(0.5, 0.5) is SurfaceCategory.GRASS
        assert probe.category_at(2.5, 0.5) is SurfaceCategory.TRACK
        assert probe.category_at(9.0, 3.0) is SurfaceCategory.WALL
        assert probe.category_at(0.5, 5.0) == NO_CATEGORY

    def test_outside_grid_is_nothing(self):
        probe = RasterProbe(self._grid(), cell_size=1.0, origin=(-10.0, -10.0))
        assert probe.category_at(0.0, 0.0) == NO_CATEGORY

    def test_heights(self):
        heights = np.full((3, 5), 4.0)
        probe = RasterProbe(self._grid(), heights=heights)
        hit = probe.probe(np.array([1.5, 0.5, 10.0]), DOWN, 20.0, SurfaceCategory.TRACK)
        assert hit is not None
        assert hit.point[2] == pytest.approx(4.0)

    def test_unknown_code_rejected(self):
        with pytest.raises(ValueError, match="Unknown raster codes"):
            RasterProbe(np.array([[1, 7]]))

    def test_heights_shape_mismatch(self):
        with pytest.raises(ValueError):
            RasterProbe(self._grid(), heights=np.zeros((2, 2)))

    def test_from_file(self, tmp_path):
        path = tmp_path / "world.npy"
        np.save(path, self._grid())
        probe = RasterProbe.from_file(path, cell_size=2.0)
        assert probe.category_at(2.5, 0.5) is SurfaceCategory.TRACK
