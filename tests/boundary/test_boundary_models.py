"""Polyline and BoundarySet queries, wall segments."""

from __future__ import annotations

import numpy as np
import pytest

from autotrack.boundary.models import BoundaryRole, BoundarySet, Polyline, infer_closed
from autotrack.boundary.walls import wall_segments
from autotrack.geometry import vec3

SQUARE = np.array([[0, 0, 0], [10, 0, 0], [10, 10, 0], [0, 10, 0]], dtype=float)


def parallel_lines(gap_inner: float = 3.0, gap_outer: float = 4.0) -> BoundarySet:
    inner = Polyline(np.array([[-gap_inner, y, 0.0] for y in (-20.0, 0.0, 20.0)]))
    outer = Polyline(np.array([[gap_outer, y, 0.0] for y in (-20.0, 0.0, 20.0)]))
    return BoundarySet(outer=outer, inner=inner)


class TestPolyline:
    def test_segments_include_closing_pair_when_closed(self):
        assert len(Polyline(SQUARE, closed=True).segments()) == 4
        assert len(Polyline(SQUARE, closed=False).segments()) == 3

    def test_closest_point_on_segment_interior(self):
        line = Polyline(SQUARE, closed=True)
        point = line.closest_point(vec3(5, -2), max_distance=5.0)
        np.testing.assert_allclose(point, vec3(5, 0))

    def test_closest_point_uses_closing_segment(self):
        line = Polyline(SQUARE, closed=True)
        point = line.closest_point(vec3(-1, 5), max_distance=5.0)
        np.testing.assert_allclose(point, vec3(0, 5))
        open_point = Polyline(SQUARE).closest_point(vec3(-1, 5), max_distance=5.0)
        assert open_point is None

    def test_closest_point_beyond_range(self):
        assert Polyline(SQUARE).closest_point(vec3(50, 50), max_distance=5.0) is None

    def test_infer_closed(self):
        assert infer_closed(SQUARE, closure_distance=10.5)
        assert not infer_closed(SQUARE, closure_distance=10.0)
        assert not infer_closed(SQUARE[:2], closure_distance=100.0)


class TestBoundarySet:
    def test_closest_boundary_points(self):
        result = parallel_lines().closest_boundary_points(vec3(0, 5), max_distance=10.0)
        assert result is not None
        inner, outer = result
        np.testing.assert_allclose(inner, vec3(-3, 5))
        np.testing.assert_allclose(outer, vec3(4, 5))

    def test_both_sides_required(self):
        assert parallel_lines().closest_boundary_points(vec3(0, 5), max_distance=3.5) is None

    def test_empty_set_has_no_points(self):
        assert BoundarySet.empty().closest_boundary_points(vec3(0, 0)) is None

    def test_curve_by_role(self):
        boundaries = parallel_lines()
        assert boundaries.curve(BoundaryRole.INNER) is boundaries.inner
        assert boundaries.curve(BoundaryRole.OUTER) is boundaries.outer


class TestWallSegments:
    def test_closed_square(self):
        walls = wall_segments(Polyline(SQUARE, closed=True), height=4.0, thickness=0.5)
        assert len(walls) == 4
        np.testing.assert_allclose(walls[0].center, vec3(5, 0, 2))
        np.testing.assert_allclose(walls[0].direction, vec3(1, 0))
        assert walls[0].length == pytest.approx(10.0)
        assert walls[0].thickness == 0.5

    def test_open_polyline_skips_closing_segment(self):
        assert len(wall_segments(Polyline(SQUARE))) == 3

    def test_short_segments_skipped(self):
        pts = np.array([[0, 0, 0], [0.5, 0, 0], [5, 0, 0]], dtype=float)
        walls = wall_segments(Polyline(pts), min_length=1.0)
        assert len(walls) == 1
        assert walls[0].length == pytest.approx(4.5)
