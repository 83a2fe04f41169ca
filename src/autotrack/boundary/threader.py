"""Chain unordered edge candidates into ordered polylines."""

from __future__ import annotations

import logging
import math
from collections import defaultdict

import numpy as np

from autotrack.boundary.models import EdgeCandidate
from autotrack.errors import InsufficientDataError
from autotrack.staging import Stage

_logger = logging.getLogger(__name__)

MIN_POLYLINE_VERTICES = 3


class BoundaryThreader:
    """Greedy nearest-neighbour chaining.

    Seeds are taken in candidate order.  From the chain head the closest
    unvisited candidate strictly within *connect_distance* is appended (ties go
    to the lower candidate index); a chain ends when no such candidate exists.
    Candidates are bucketed on a grid of cell size *connect_distance*, which
    only narrows the search: results match an exhaustive scan.

    Args:
        connect_distance: Maximum hop between consecutive vertices.
        yield_every: Number of appended vertices between cooperative yields.
    """

    def __init__(self, connect_distance: float, yield_every: int = 256) -> None:
        if connect_distance <= 0:
            raise ValueError("connect_distance must be > 0")
        self.connect_distance = connect_distance
        self.yield_every = max(1, yield_every)

    def thread(self, candidates: list[EdgeCandidate]) -> Stage[list[np.ndarray]]:
        """Return polylines as ``(N, 3)`` arrays, each with at least 3 vertices.

        Raises:
            InsufficientDataError: If no polyline survives.
        """
        points = np.array([c.position for c in candidates], dtype=float).reshape(-1, 3)
        total = len(points)
        threshold_sq = self.connect_distance ** 2

        buckets: dict[tuple[int, int], list[int]] = defaultdict(list)
        for i, p in enumerate(points):
            buckets[self._key(p)].append(i)

        used = np.zeros(total, dtype=bool)
        lines: list[list[int]] = []
        visited = 0

        for seed in range(total):
            if used[seed]:
                continue
            line: list[int] = []
            current = seed
            while current != -1:
                line.append(current)
                used[current] = True
                buckets[self._key(points[current])].remove(current)
                visited += 1
                if visited % self.yield_every == 0:
                    yield visited / total
                current = self._nearest_unused(points, buckets, current, threshold_sq)
            lines.append(line)

        polylines = [points[idx] for idx in lines if len(idx) >= MIN_POLYLINE_VERTICES]
        _logger.info(
            "Threaded %d candidates into %d polylines (%d kept)",
            total, len(lines), len(polylines),
        )
        if not polylines:
            raise InsufficientDataError(
                "Failed to order edge candidates into boundary lines", stage="threading"
            )
        return polylines

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _key(self, p: np.ndarray) -> tuple[int, int]:
        return (
            int(math.floor(p[0] / self.connect_distance)),
            int(math.floor(p[1] / self.connect_distance)),
        )

    def _nearest_unused(
        self,
        points: np.ndarray,
        buckets: dict[tuple[int, int], list[int]],
        current: int,
        threshold_sq: float,
    ) -> int:
        cx, cy = self._key(points[current])
        best = -1
        best_sq = threshold_sq
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                for j in buckets.get((cx + dx, cy + dy), ()):
                    diff = points[j] - points[current]
                    d_sq = float(np.dot(diff, diff))
                    if d_sq < best_sq or (d_sq == best_sq and best != -1 and j < best):
                        best_sq = d_sq
                        best = j
        return best
