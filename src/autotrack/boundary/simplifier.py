"""Ramer–Douglas–Peucker polyline simplification."""

from __future__ import annotations

import logging

import numpy as np

from autotrack.boundary.models import Polyline, infer_closed
from autotrack.geometry import segment_distance_sq

_logger = logging.getLogger(__name__)


def simplify(points: np.ndarray, tolerance: float) -> np.ndarray:
    """Simplify *points* (shape ``(N, 3)``) keeping every vertex needed for *tolerance*.

    Iterative, stack-based RDP.  The first and last vertices are always kept.
    A vertex is dropped only if it lies within *tolerance* of the chord segment
    that replaces it.

    Args:
        points: Ordered vertices.
        tolerance: Maximum allowed deviation of a dropped vertex.

    Returns:
        The retained vertices, in their original order.
    """
    points = np.asarray(points, dtype=float)
    if len(points) < 3:
        return points.copy()

    tolerance_sq = tolerance * tolerance
    keep = {0, len(points) - 1}
    stack = [(0, len(points) - 1)]

    while stack:
        first, last = stack.pop()
        max_sq = 0.0
        index = -1
        for i in range(first + 1, last):
            d_sq = segment_distance_sq(points[i], points[first], points[last])
            if d_sq > max_sq:
                max_sq = d_sq
                index = i
        if index != -1 and max_sq > tolerance_sq:
            keep.add(index)
            stack.append((first, index))
            stack.append((index, last))

    return points[sorted(keep)]


def simplify_polylines(
    raw: list[np.ndarray],
    tolerance: float,
    min_segment_length: float,
    closure_distance: float,
) -> list[Polyline]:
    """Simplify each raw polyline and drop those that end up too short.

    A simplified polyline survives if its length (closing segment included
    when it is inferred closed) is at least ``2 * min_segment_length``.
    Discovery order is preserved.
    """
    kept: list[Polyline] = []
    for i, points in enumerate(raw):
        reduced = simplify(points, tolerance)
        line = Polyline(reduced, closed=infer_closed(reduced, closure_distance))
        length = line.length()
        if length < 2.0 * min_segment_length:
            _logger.debug("Discarded polyline %d (length %.1f)", i, length)
            continue
        _logger.debug(
            "Simplified polyline %d: %d -> %d vertices (length %.1f)",
            i, len(points), len(reduced), length,
        )
        kept.append(line)
    return kept
