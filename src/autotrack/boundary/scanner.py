"""Grid scan for track/grass transitions."""

from __future__ import annotations

import logging
import math

import numpy as np

from autotrack.boundary.models import CellType, EdgeCandidate, TrackSide
from autotrack.errors import InsufficientDataError
from autotrack.probe.models import SurfaceCategory, SurfaceProbe
from autotrack.staging import Stage

_logger = logging.getLogger(__name__)

_DOWN = np.array([0.0, 0.0, -1.0])

MIN_EDGE_CANDIDATES = 10


class BoundaryScanner:
    """Sample a square grid around *origin* and report category transitions.

    Every node is classified by a downward probe (track mask first, grass mask
    only if the track probe missed).  Each node is compared with its ``+x`` and
    ``+y`` neighbours only, so every adjacent pair is examined exactly once.

    Args:
        probe: World oracle.
        origin: Centre of the scanned square.
        radius: Half the side length of the square.
        resolution: Grid spacing.
        height_offset: Rays start this far above the node.
        max_distance: Maximum downward ray length.
        track_mask: Categories counted as drivable surface.
        grass_mask: Categories counted as off-track surface.
    """

    def __init__(
        self,
        probe: SurfaceProbe,
        origin: np.ndarray,
        radius: float,
        resolution: float,
        height_offset: float = 10.0,
        max_distance: float = 20.0,
        track_mask: SurfaceCategory = SurfaceCategory.TRACK,
        grass_mask: SurfaceCategory = SurfaceCategory.GRASS,
    ) -> None:
        self.probe = probe
        self.origin = np.asarray(origin, dtype=float)
        self.radius = radius
        self.resolution = resolution
        self.height_offset = height_offset
        self.max_distance = max_distance
        self.track_mask = track_mask
        self.grass_mask = grass_mask

    @property
    def grid_size(self) -> int:
        return int(math.ceil(self.radius * 2.0 / self.resolution))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def scan(self) -> Stage[list[EdgeCandidate]]:
        """Scan the grid, yielding progress once per column.

        Returns:
            Edge candidates in discovery order (column-major, ``x`` then ``y``).

        Raises:
            InsufficientDataError: If fewer than ``MIN_EDGE_CANDIDATES`` were found.
        """
        n = self.grid_size
        _logger.info("Scanning %dx%d grid (resolution %.2f)", n + 1, n + 1, self.resolution)

        edges: list[EdgeCandidate] = []
        current = self._classify_column(0, n + 1)
        for x in range(n + 1):
            following = self._classify_column(x + 1, n)
            for y in range(n + 1):
                cell, hit = current[y]
                if cell is CellType.UNKNOWN:
                    continue
                for n_cell, n_hit, along_x in (
                    (*following[y], True),
                    (*current[y + 1], False),
                ):
                    if n_cell is CellType.UNKNOWN or n_cell is cell:
                        continue
                    edges.append(EdgeCandidate(
                        position=(hit + n_hit) / 2.0,
                        track_side=_track_side(cell is CellType.TRACK, along_x),
                    ))
            current = following + [self._classify(x + 1, n + 1)]
            yield (x + 1) / (n + 1)

        _logger.info("Grid scan complete: %d edge candidates", len(edges))
        if len(edges) < MIN_EDGE_CANDIDATES:
            raise InsufficientDataError(
                f"Found only {len(edges)} edge candidates (< {MIN_EDGE_CANDIDATES}). "
                "Check the category masks, scan radius and grid resolution; the track "
                "needs contrast against the surrounding surface.",
                stage="scanning",
            )
        return edges

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _classify_column(self, x: int, last_y: int) -> list[tuple[CellType, np.ndarray | None]]:
        return [self._classify(x, y) for y in range(last_y + 1)]

    def _classify(self, x: int, y: int) -> tuple[CellType, np.ndarray | None]:
        start = self.origin + np.array([
            x * self.resolution - self.radius,
            y * self.resolution - self.radius,
            self.height_offset,
        ])
        hit = self.probe.probe(start, _DOWN, self.max_distance, self.track_mask)
        if hit is not None:
            return CellType.TRACK, hit.point
        hit = self.probe.probe(start, _DOWN, self.max_distance, self.grass_mask)
        if hit is not None:
            return CellType.GRASS, hit.point
        return CellType.UNKNOWN, None


def _track_side(node_is_track: bool, along_x: bool) -> TrackSide:
    if node_is_track:
        return TrackSide.LEFT if along_x else TrackSide.DOWN
    return TrackSide.RIGHT if along_x else TrackSide.UP
