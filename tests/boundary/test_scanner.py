"""Boundary scanner: grid sizing, edge detection, failure on featureless ground."""

from __future__ import annotations

import math

import numpy as np
import pytest

from autotrack.boundary.models import TrackSide
from autotrack.boundary.scanner import MIN_EDGE_CANDIDATES, BoundaryScanner
from autotrack.errors import InsufficientDataError
from autotrack.probe.models import SurfaceCategory
from autotrack.probe.synthetic import GroundProbe, RingTrackProbe
from autotrack.staging import drain


class UniformProbe(GroundProbe):
    """The same category everywhere."""

    def __init__(self, category: SurfaceCategory) -> None:
        super().__init__()
        self.category = category

    def category_at(self, x: float, y: float) -> SurfaceCategory:
        return self.category


def make_scanner(probe, radius: float = 25.0, resolution: float = 1.0) -> BoundaryScanner:
    return BoundaryScanner(probe, origin=np.zeros(3), radius=radius, resolution=resolution)


class TestBoundaryScanner:
    def test_grid_size_rounds_up(self):
        scanner = make_scanner(UniformProbe(SurfaceCategory.GRASS), radius=10.0, resolution=1.5)
        assert scanner.grid_size == math.ceil(20.0 / 1.5)

    def test_ring_edges_lie_on_both_boundaries(self):
        probe = RingTrackProbe(inner_radius=10.0, outer_radius=20.0, ground_radius=30.0)
        edges = drain(make_scanner(probe).scan())

        assert len(edges) >= MIN_EDGE_CANDIDATES
        radii = [math.hypot(e.position[0], e.position[1]) for e in edges]
        assert all(abs(r - 10.0) < 1.0 or abs(r - 20.0) < 1.0 for r in radii)
        assert any(abs(r - 10.0) < 1.0 for r in radii)
        assert any(abs(r - 20.0) < 1.0 for r in radii)

    def test_track_side_points_toward_track(self):
        """Along +x at y≈0 the outer edge on the left has track at +x."""
        probe = RingTrackProbe(inner_radius=10.0, outer_radius=20.0, ground_radius=30.0)
        edges = drain(make_scanner(probe).scan())
        left_outer = [
            e for e in edges
            if e.position[0] < -19.0 and abs(e.position[1]) < 0.5 and e.track_side
            in (TrackSide.LEFT, TrackSide.RIGHT)
        ]
        assert left_outer
        assert all(e.track_side is TrackSide.RIGHT for e in left_outer)

    def test_yields_once_per_column(self):
        probe = RingTrackProbe(inner_radius=10.0, outer_radius=20.0, ground_radius=30.0)
        scanner = make_scanner(probe)
        stage = scanner.scan()
        progress = []
        with pytest.raises(StopIteration):
            while True:
                progress.append(next(stage))
        assert len(progress) == scanner.grid_size + 1
        assert progress[-1] == pytest.approx(1.0)

    def test_featureless_ground_fails(self):
        with pytest.raises(InsufficientDataError) as excinfo:
            drain(make_scanner(UniformProbe(SurfaceCategory.GRASS), radius=5.0).scan())
        assert excinfo.value.stage == "scanning"

    def test_unknown_cells_do_not_create_edges(self):
        """Track next to empty space is not a boundary."""
        probe = RingTrackProbe(inner_radius=10.0, outer_radius=20.0, ground_radius=20.0)
        edges = drain(make_scanner(probe).scan())
        radii = [math.hypot(e.position[0], e.position[1]) for e in edges]
        assert all(abs(r - 10.0) < 1.0 for r in radii)
