"""Vector and frame primitives shared by all stages.

Convention: right-handed coordinates with ``z`` up.  A :class:`Frame`
stores ``forward``, ``right`` and ``up`` with ``right = forward × up`` and
``forward = up × right``; its rotation matrix has columns
``(right, forward, up)``.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy.spatial.transform import Rotation, Slerp

WORLD_UP = np.array([0.0, 0.0, 1.0])
WORLD_FORWARD = np.array([0.0, 1.0, 0.0])
WORLD_RIGHT = np.array([1.0, 0.0, 0.0])

# Squared-length threshold below which a direction is considered degenerate.
DEGENERATE_SQ = 1e-3


def vec3(x: float, y: float, z: float = 0.0) -> np.ndarray:
    return np.array([x, y, z], dtype=float)


def normalized(v: np.ndarray) -> np.ndarray:
    """Return *v* scaled to unit length, or the zero vector if *v* is ~zero."""
    n = float(np.linalg.norm(v))
    if n < 1e-12:
        return np.zeros(3)
    return v / n


def is_degenerate(v: np.ndarray) -> bool:
    return float(np.dot(v, v)) < DEGENERATE_SQ


def closest_point_on_segment(p: np.ndarray, a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Closest point to *p* on segment ``a→b`` (``a`` if the segment is a point)."""
    ab = b - a
    length_sq = float(np.dot(ab, ab))
    if length_sq < 1e-6:
        return a.copy()
    t = float(np.dot(p - a, ab)) / length_sq
    t = min(1.0, max(0.0, t))
    return a + t * ab


def segment_distance_sq(p: np.ndarray, a: np.ndarray, b: np.ndarray) -> float:
    d = p - closest_point_on_segment(p, a, b)
    return float(np.dot(d, d))


def unsigned_angle_deg(a: np.ndarray, b: np.ndarray) -> float:
    """Angle between two directions in degrees, ``[0, 180]``."""
    na, nb = normalized(a), normalized(b)
    cos = float(np.clip(np.dot(na, nb), -1.0, 1.0))
    return float(np.degrees(np.arccos(cos)))


def turn_sign(incoming: np.ndarray, outgoing: np.ndarray, axis: np.ndarray = WORLD_UP) -> float:
    """``+1`` for a counter-clockwise (left) turn about *axis*, ``-1`` for clockwise, 0 if straight."""
    return float(np.sign(np.dot(np.cross(incoming, outgoing), axis)))


@dataclass(eq=False)
class Frame:
    """Orthonormal orientation frame."""

    forward: np.ndarray
    right: np.ndarray
    up: np.ndarray

    @classmethod
    def look_rotation(cls, forward: np.ndarray, up: np.ndarray = WORLD_UP) -> Frame:
        """Frame that keeps *forward* and puts ``right`` perpendicular to *up*.

        Falls back to world axes when *forward* is degenerate or parallel to *up*.
        """
        f = normalized(forward)
        if is_degenerate(f):
            f = WORLD_FORWARD.copy()
        r = normalized(np.cross(f, up))
        if is_degenerate(r):
            r = normalized(np.cross(f, WORLD_FORWARD))
            if is_degenerate(r):
                r = WORLD_RIGHT.copy()
        u = normalized(np.cross(r, f))
        return cls(forward=f, right=r, up=u)

    @classmethod
    def from_normal(cls, forward: np.ndarray, normal: np.ndarray) -> Frame:
        """Frame whose ``up`` is *normal* and whose ``forward`` is *forward* projected off it.

        ``right = forward × normal``; ``forward = normal × right``.
        """
        n = normalized(normal)
        if is_degenerate(n):
            n = WORLD_UP.copy()
        r = normalized(np.cross(forward, n))
        if is_degenerate(r):
            return cls.look_rotation(forward)
        f = normalized(np.cross(n, r))
        return cls(forward=f, right=r, up=n)

    @classmethod
    def from_rotation(cls, rotation: Rotation) -> Frame:
        m = rotation.as_matrix()
        return cls(forward=m[:, 1].copy(), right=m[:, 0].copy(), up=m[:, 2].copy())

    def as_rotation(self) -> Rotation:
        return Rotation.from_matrix(np.column_stack([self.right, self.forward, self.up]))

    def copy(self) -> Frame:
        return Frame(self.forward.copy(), self.right.copy(), self.up.copy())


def slerp_frames(a: Frame, b: Frame, t: float) -> Frame:
    """Spherically interpolate between two frames, ``t`` in ``[0, 1]``."""
    t = min(1.0, max(0.0, t))
    keys = Rotation.concatenate([a.as_rotation(), b.as_rotation()])
    return Frame.from_rotation(Slerp([0.0, 1.0], keys)(t))
