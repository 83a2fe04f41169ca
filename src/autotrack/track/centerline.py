"""Track centerline extraction from the inner and outer boundaries.

Pairs each vertex of the longer boundary with the nearest vertex of the other
boundary, drops the midpoint onto the driving surface and attaches an
orthonormal frame to every sample.
"""

from __future__ import annotations

import logging

import numpy as np

from autotrack.errors import InsufficientDataError
from autotrack.geometry import WORLD_FORWARD, WORLD_UP, Frame, is_degenerate, normalized
from autotrack.probe.models import SurfaceCategory, SurfaceProbe
from autotrack.staging import Stage
from autotrack.track.models import CenterlineSample

_logger = logging.getLogger(__name__)

_DOWN = np.array([0.0, 0.0, -1.0])

MIN_BOUNDARY_VERTICES = 3


def nearest_vertex(point: np.ndarray, vertices: np.ndarray) -> np.ndarray:
    """Closest vertex of *vertices* to *point* (linear scan)."""
    d_sq = np.sum((vertices - point) ** 2, axis=1)
    return vertices[int(np.argmin(d_sq))]


class CenterlineExtractor:
    """Extract an oriented, closed centerline from two boundary polylines.

    Algorithm:
    1. Use the boundary with more vertices as the *driver*.
    2. For every driver vertex take the midpoint to the nearest vertex of the
       other boundary.
    3. Probe straight down from above the midpoint; on a miss keep the raw
       midpoint and assume a vertical normal.
    4. Orient each sample toward the next one (wrapping), orthogonalised
       against its normal.

    Args:
        probe: World oracle used to find the surface under each midpoint.
        height_offset: The placement probe starts this far above the midpoint
            and travels twice as far down.
        track_mask: Categories the placement probe may land on.
        yield_every: Samples processed between cooperative yields.
    """

    def __init__(
        self,
        probe: SurfaceProbe,
        height_offset: float = 1.5,
        track_mask: SurfaceCategory = SurfaceCategory.TRACK,
        yield_every: int = 64,
    ) -> None:
        self.probe = probe
        self.height_offset = height_offset
        self.track_mask = track_mask
        self.yield_every = max(1, yield_every)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(self, inner: np.ndarray, outer: np.ndarray) -> Stage[list[CenterlineSample]]:
        """Extract centerline samples, one per driver vertex.

        Args:
            inner: Inner boundary vertices, shape ``(N, 3)``.
            outer: Outer boundary vertices, shape ``(M, 3)``.

        Returns:
            Ordered list of :class:`CenterlineSample` forming a closed loop.

        Raises:
            InsufficientDataError: If either boundary has fewer than 3 vertices
                or fewer than 2 samples result.
        """
        if len(inner) < MIN_BOUNDARY_VERTICES or len(outer) < MIN_BOUNDARY_VERTICES:
            raise InsufficientDataError(
                f"Invalid boundary data (inner: {len(inner)}, outer: {len(outer)} vertices); "
                f"need at least {MIN_BOUNDARY_VERTICES} each",
                stage="centerline_extraction",
            )

        driver, other = (inner, outer) if len(inner) >= len(outer) else (outer, inner)
        _logger.debug(
            "Using %s boundary (%d vertices) as driver",
            "inner" if driver is inner else "outer", len(driver),
        )

        # Pass 1: midpoints dropped onto the surface
        positions: list[np.ndarray] = []
        normals: list[np.ndarray] = []
        misses = 0
        for i, point in enumerate(driver):
            midpoint = (point + nearest_vertex(point, other)) / 2.0
            hit = self.probe.probe(
                midpoint + WORLD_UP * self.height_offset,
                _DOWN,
                self.height_offset * 2.0,
                self.track_mask,
            )
            if hit is not None:
                positions.append(hit.point)
                normals.append(normalized(hit.normal))
            else:
                positions.append(midpoint)
                normals.append(WORLD_UP.copy())
                misses += 1
            if (i + 1) % self.yield_every == 0:
                yield 0.5 * (i + 1) / len(driver)

        if misses:
            _logger.debug("Placement probe missed at %d of %d midpoints", misses, len(driver))
        if len(positions) < 2:
            raise InsufficientDataError(
                "Fewer than 2 centerline samples generated from boundaries",
                stage="centerline_extraction",
            )

        # Pass 2: frames
        samples = self._orient(positions, normals)
        yield 1.0
        _logger.info("Extracted %d centerline samples", len(samples))
        return samples

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _orient(
        self, positions: list[np.ndarray], normals: list[np.ndarray]
    ) -> list[CenterlineSample]:
        n = len(positions)
        samples: list[CenterlineSample] = []
        previous_forward = WORLD_FORWARD.copy()
        for i in range(n):
            forward = normalized(positions[(i + 1) % n] - positions[i])
            if is_degenerate(forward):
                forward = previous_forward if i > 0 else WORLD_FORWARD.copy()
            previous_forward = forward
            samples.append(CenterlineSample(
                position=positions[i],
                normal=normals[i],
                frame=Frame.from_normal(forward, normals[i]),
            ))
        return samples
