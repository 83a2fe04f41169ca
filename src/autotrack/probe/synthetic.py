"""Synthetic surface probes for tests, demos and offline generation.

Both probes describe a world that is a height field with one surface
category per ``(x, y)`` location:

* vertical rays are answered by a column lookup at the ray's ``(x, y)``;
* any other ray is marched through the horizontal plane and hits the first
  location whose category is in the requested mask.  The hit distance is
  refined by bisection.
"""

from __future__ import annotations

import math
from pathlib import Path

import numpy as np

from autotrack.probe.models import NO_CATEGORY, ProbeHit, SurfaceCategory

_UP = np.array([0.0, 0.0, 1.0])
_BISECT_STEPS = 12

# Integer codes used by raster files.
RASTER_CODES: dict[int, SurfaceCategory] = {
    0: NO_CATEGORY,
    1: SurfaceCategory.TRACK,
    2: SurfaceCategory.GRASS,
    3: SurfaceCategory.WALL,
}


class GroundProbe:
    """Base class: subclasses provide :meth:`category_at` and optionally :meth:`height_at`.

    Args:
        march_step: Step length used when marching non-vertical rays.  Must be
            smaller than the thinnest feature a horizontal ray should detect.
    """

    def __init__(self, march_step: float = 0.05) -> None:
        if march_step <= 0:
            raise ValueError("march_step must be > 0")
        self.march_step = march_step

    # ------------------------------------------------------------------
    # World description (override)
    # ------------------------------------------------------------------

    def category_at(self, x: float, y: float) -> SurfaceCategory:
        raise NotImplementedError

    def height_at(self, x: float, y: float) -> float:
        return 0.0

    # ------------------------------------------------------------------
    # SurfaceProbe
    # ------------------------------------------------------------------

    def probe(
        self,
        origin: np.ndarray,
        direction: np.ndarray,
        max_distance: float,
        mask: SurfaceCategory,
    ) -> ProbeHit | None:
        origin = np.asarray(origin, dtype=float)
        direction = np.asarray(direction, dtype=float)
        length = float(np.linalg.norm(direction))
        if length < 1e-9 or max_distance <= 0 or not mask:
            return None
        direction = direction / length

        if abs(direction[2]) >= 0.999:
            return self._probe_vertical(origin, direction, max_distance, mask)
        return self._probe_march(origin, direction, max_distance, mask)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _probe_vertical(
        self,
        origin: np.ndarray,
        direction: np.ndarray,
        max_distance: float,
        mask: SurfaceCategory,
    ) -> ProbeHit | None:
        if direction[2] > 0:
            return None
        x, y = float(origin[0]), float(origin[1])
        category = self.category_at(x, y)
        if not category & mask:
            return None
        ground = self.height_at(x, y)
        distance = float(origin[2]) - ground
        if distance < 0 or distance > max_distance:
            return None
        return ProbeHit(
            point=np.array([x, y, ground]),
            normal=_UP.copy(),
            category=category,
            distance=distance,
        )

    def _probe_march(
        self,
        origin: np.ndarray,
        direction: np.ndarray,
        max_distance: float,
        mask: SurfaceCategory,
    ) -> ProbeHit | None:
        steps = int(math.ceil(max_distance / self.march_step))
        prev = 0.0
        for k in range(1, steps + 1):
            s = min(k * self.march_step, max_distance)
            p = origin + direction * s
            category = self.category_at(float(p[0]), float(p[1]))
            if category & mask:
                s = self._bisect(origin, direction, prev, s, mask)
                p = origin + direction * s
                return ProbeHit(
                    point=p,
                    normal=-direction,
                    category=self.category_at(float(p[0]), float(p[1])),
                    distance=s,
                )
            prev = s
        return None

    def _bisect(
        self,
        origin: np.ndarray,
        direction: np.ndarray,
        lo: float,
        hi: float,
        mask: SurfaceCategory,
    ) -> float:
        """Shrink ``[lo, hi]`` around the first in-mask location; return ``hi``."""
        for _ in range(_BISECT_STEPS):
            mid = 0.5 * (lo + hi)
            p = origin + direction * mid
            if self.category_at(float(p[0]), float(p[1])) & mask:
                hi = mid
            else:
                lo = mid
        return hi


class RingTrackProbe(GroundProbe):
    """Flat annular track centred on ``center`` and surrounded by grass.

    Args:
        inner_radius: Radius of the infield edge.
        outer_radius: Radius of the outside edge.
        ground_radius: Grass extends to this radius; beyond it nothing is hit.
        center: ``(x, y)`` centre of the ring.
        aspect: Stretch factor along ``y``; values other than 1 give an
            elliptical (asymmetric) track.
        wall_thickness: If > 0, barrier walls of this thickness line both
            edges on the grass side.
        height: Constant ground height.
    """

    def __init__(
        self,
        inner_radius: float = 40.0,
        outer_radius: float = 55.0,
        ground_radius: float = 70.0,
        center: tuple[float, float] = (0.0, 0.0),
        aspect: float = 1.0,
        wall_thickness: float = 0.0,
        height: float = 0.0,
        march_step: float = 0.05,
    ) -> None:
        super().__init__(march_step=march_step)
        if not 0 < inner_radius < outer_radius:
            raise ValueError("Require 0 < inner_radius < outer_radius")
        self.inner_radius = inner_radius
        self.outer_radius = outer_radius
        self.ground_radius = max(ground_radius, outer_radius + wall_thickness)
        self.center = center
        self.aspect = aspect
        self.wall_thickness = wall_thickness
        self.height = height

    def category_at(self, x: float, y: float) -> SurfaceCategory:
        r = math.hypot(x - self.center[0], (y - self.center[1]) / self.aspect)
        if self.inner_radius <= r <= self.outer_radius:
            return SurfaceCategory.TRACK
        if self.wall_thickness > 0 and (
            self.inner_radius - self.wall_thickness <= r < self.inner_radius
            or self.outer_radius < r <= self.outer_radius + self.wall_thickness
        ):
            return SurfaceCategory.WALL
        if r <= self.ground_radius:
            return SurfaceCategory.GRASS
        return NO_CATEGORY

    def height_at(self, x: float, y: float) -> float:
        return self.height


class RasterProbe(GroundProbe):
    """World described by a 2-D grid of category codes (see :data:`RASTER_CODES`).

    Row ``i`` / column ``j`` of *categories* covers
    ``x ∈ [x0 + j·cell, x0 + (j+1)·cell)`` and ``y ∈ [y0 + i·cell, y0 + (i+1)·cell)``.

    Args:
        categories: Integer array of shape ``(rows, cols)``.
        cell_size: Edge length of one cell in world units.
        origin: ``(x0, y0)`` world position of the corner of cell ``[0, 0]``.
        heights: Optional array of ground heights with the same shape.
    """

    def __init__(
        self,
        categories: np.ndarray,
        cell_size: float = 1.0,
        origin: tuple[float, float] = (0.0, 0.0),
        heights: np.ndarray | None = None,
        march_step: float | None = None,
    ) -> None:
        super().__init__(march_step=march_step or cell_size / 4.0)
        categories = np.asarray(categories)
        if categories.ndim != 2:
            raise ValueError("categories must be a 2-D array")
        unknown = set(np.unique(categories).tolist()) - set(RASTER_CODES)
        if unknown:
            raise ValueError(f"Unknown raster codes: {sorted(unknown)}")
        if heights is not None and np.shape(heights) != categories.shape:
            raise ValueError("heights must match the shape of categories")
        self.categories = categories
        self.cell_size = cell_size
        self.origin = origin
        self.heights = heights

    @classmethod
    def from_file(cls, path: str | Path, cell_size: float = 1.0,
                  origin: tuple[float, float] = (0.0, 0.0)) -> RasterProbe:
        """Load a category grid saved with ``numpy.save``."""
        return cls(np.load(path), cell_size=cell_size, origin=origin)

    def _cell(self, x: float, y: float) -> tuple[int, int] | None:
        j = int(math.floor((x - self.origin[0]) / self.cell_size))
        i = int(math.floor((y - self.origin[1]) / self.cell_size))
        rows, cols = self.categories.shape
        if 0 <= i < rows and 0 <= j < cols:
            return i, j
        return None

    def category_at(self, x: float, y: float) -> SurfaceCategory:
        cell = self._cell(x, y)
        if cell is None:
            return NO_CATEGORY
        return RASTER_CODES[int(self.categories[cell])]

    def height_at(self, x: float, y: float) -> float:
        if self.heights is None:
            return 0.0
        cell = self._cell(x, y)
        return 0.0 if cell is None else float(self.heights[cell])
