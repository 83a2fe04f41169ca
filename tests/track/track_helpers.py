"""Shared builders for track-stage tests."""

from __future__ import annotations

import math

import numpy as np

from autotrack.boundary.models import BoundarySet, Polyline
from autotrack.geometry import WORLD_UP, Frame
from autotrack.probe.models import ProbeHit, SurfaceCategory
from autotrack.probe.synthetic import GroundProbe
from autotrack.track.models import Checkpoint


def circle_points(n: int, radius: float, z: float = 0.0) -> np.ndarray:
    """*n* CCW vertices on a circle around the origin, starting on +x."""
    angles = 2 * math.pi * np.arange(n) / n
    return np.column_stack([radius * np.cos(angles), radius * np.sin(angles), np.full(n, z)])


def ring_boundaries(inner_radius: float = 40.0, outer_radius: float = 55.0, n: int = 72) -> BoundarySet:
    return BoundarySet(
        outer=Polyline(circle_points(n, outer_radius), closed=True),
        inner=Polyline(circle_points(n, inner_radius), closed=True),
    )


def circle_checkpoints(n: int, radius: float, width: float = 10.0) -> list[Checkpoint]:
    """CCW checkpoints on a circle, facing along the direction of travel."""
    positions = circle_points(n, radius)
    result = []
    for i, p in enumerate(positions):
        tangent = np.array([-p[1], p[0], 0.0])
        result.append(Checkpoint(i, p.copy(), Frame.look_rotation(tangent, WORLD_UP), width))
    return result


def radius_of(point: np.ndarray) -> float:
    return math.hypot(float(point[0]), float(point[1]))


class DiscProbe(GroundProbe):
    """Flat track everywhere at radius >= *min_radius*, grass inside it."""

    def __init__(self, min_radius: float = 0.0) -> None:
        super().__init__(march_step=0.25)
        self.min_radius = min_radius

    def category_at(self, x: float, y: float) -> SurfaceCategory:
        if math.hypot(x, y) >= self.min_radius:
            return SurfaceCategory.TRACK
        return SurfaceCategory.GRASS


class SideProbe:
    """Reports sideways hits at fixed distances along +x and -x; nothing else."""

    def __init__(self, plus_x: float | None = None, minus_x: float | None = None) -> None:
        self.plus_x = plus_x
        self.minus_x = minus_x
        self.calls: list[tuple[np.ndarray, np.ndarray, float, SurfaceCategory]] = []

    def probe(self, origin, direction, max_distance, mask):
        self.calls.append((origin, direction, max_distance, mask))
        distance = self.plus_x if direction[0] > 0.5 else self.minus_x if direction[0] < -0.5 else None
        if distance is None or distance > max_distance:
            return None
        return ProbeHit(
            point=origin + direction * distance,
            normal=-direction,
            category=SurfaceCategory.GRASS,
            distance=distance,
        )
