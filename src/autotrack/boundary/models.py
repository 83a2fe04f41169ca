"""Boundary data structures."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

import numpy as np

from autotrack.geometry import closest_point_on_segment


class CellType(enum.Enum):
    """Classification of one scan-grid node."""

    TRACK = "track"
    GRASS = "grass"
    UNKNOWN = "unknown"


class TrackSide(enum.Enum):
    """Grid direction from an edge candidate toward the track cell."""

    LEFT = "left"    # track at -x
    RIGHT = "right"  # track at +x
    DOWN = "down"    # track at -y
    UP = "up"        # track at +y


class BoundaryRole(enum.Enum):
    INNER = "inner"
    OUTER = "outer"


@dataclass(eq=False)
class EdgeCandidate:
    """A detected track/grass transition between two adjacent grid nodes."""

    position: np.ndarray
    """Midpoint of the two probe hit points."""

    track_side: TrackSide
    """Which neighbour of the pair was track."""


@dataclass(eq=False)
class Polyline:
    """Ordered boundary vertices.

    ``closed`` is inferred, not guaranteed: see :func:`infer_closed`.
    """

    points: np.ndarray
    """Vertices, shape ``(N, 3)``."""

    closed: bool = False

    def __len__(self) -> int:
        return len(self.points)

    def length(self) -> float:
        """Sum of segment lengths, plus the closing segment when closed."""
        if len(self.points) < 2:
            return 0.0
        total = float(np.linalg.norm(np.diff(self.points, axis=0), axis=1).sum())
        if self.closed:
            total += float(np.linalg.norm(self.points[0] - self.points[-1]))
        return total

    def segments(self) -> list[tuple[np.ndarray, np.ndarray]]:
        """Consecutive vertex pairs, including the closing pair when closed."""
        pts = self.points
        pairs = [(pts[i], pts[i + 1]) for i in range(len(pts) - 1)]
        if self.closed and len(pts) > 2:
            pairs.append((pts[-1], pts[0]))
        return pairs

    def closest_point(self, position: np.ndarray, max_distance: float) -> np.ndarray | None:
        """Closest vertex or segment point within *max_distance*, else ``None``."""
        if len(self.points) == 0:
            return None
        best: np.ndarray | None = None
        best_sq = max_distance * max_distance

        d_sq = np.sum((self.points - position) ** 2, axis=1)
        i = int(np.argmin(d_sq))
        if d_sq[i] < best_sq:
            best_sq = float(d_sq[i])
            best = self.points[i].copy()

        for a, b in self.segments():
            candidate = closest_point_on_segment(position, a, b)
            diff = candidate - position
            dist_sq = float(np.dot(diff, diff))
            if dist_sq < best_sq:
                best_sq = dist_sq
                best = candidate
        return best


def infer_closed(points: np.ndarray, closure_distance: float) -> bool:
    """A polyline is taken as a loop when its endpoints are closer than *closure_distance*."""
    return len(points) > 2 and float(np.linalg.norm(points[-1] - points[0])) < closure_distance


@dataclass(eq=False)
class WallSegment:
    """One straight piece of boundary wall."""

    center: np.ndarray
    direction: np.ndarray
    length: float
    height: float
    thickness: float


@dataclass(eq=False)
class BoundarySet:
    """The published result of boundary scanning.

    ``inner`` and ``outer`` may be empty when fewer than two polylines
    survived; downstream extraction then fails explicitly.
    """

    outer: Polyline
    inner: Polyline
    extras: list[Polyline] = field(default_factory=list)
    walls: list[WallSegment] = field(default_factory=list)
    run_id: int = 0

    @classmethod
    def empty(cls) -> BoundarySet:
        return cls(outer=Polyline(np.empty((0, 3))), inner=Polyline(np.empty((0, 3))))

    def curve(self, role: BoundaryRole) -> Polyline:
        return self.inner if role is BoundaryRole.INNER else self.outer

    def all_polylines(self) -> list[Polyline]:
        return [p for p in (self.outer, self.inner) if len(p)] + list(self.extras)

    def closest_boundary_points(
        self, position: np.ndarray, max_distance: float = 50.0
    ) -> tuple[np.ndarray, np.ndarray] | None:
        """Return ``(inner_point, outer_point)`` if both lie within *max_distance*."""
        position = np.asarray(position, dtype=float)
        inner = self.inner.closest_point(position, max_distance)
        outer = self.outer.closest_point(position, max_distance)
        if inner is None or outer is None:
            return None
        return inner, outer
