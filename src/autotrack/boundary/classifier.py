"""Assign simplified polylines to the inner and outer boundary roles.

Two modes exist:

``DISCOVERY_ORDER`` (default)
    First polyline in threading order becomes ``OUTER``, the second ``INNER``.
    Roles follow where the scan happened to meet each boundary first, not
    geometry, so they can come out swapped or land on a stray fragment.

``CONTAINMENT``
    The two polylines enclosing the largest areas are taken; the one that
    contains the other is ``OUTER``.
"""

from __future__ import annotations

import enum
import logging

import numpy as np

from autotrack.boundary.models import BoundarySet, Polyline

_logger = logging.getLogger(__name__)


class ClassificationMode(enum.Enum):
    DISCOVERY_ORDER = "discovery_order"
    CONTAINMENT = "containment"


def enclosed_area(points: np.ndarray) -> float:
    """Unsigned shoelace area of the ``x/y`` projection (implicitly closed)."""
    if len(points) < 3:
        return 0.0
    x, y = points[:, 0], points[:, 1]
    return 0.5 * abs(float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))))


def point_in_polygon(point: np.ndarray, polygon: np.ndarray) -> bool:
    """Even-odd ray test in the ``x/y`` plane."""
    px, py = float(point[0]), float(point[1])
    inside = False
    n = len(polygon)
    for i in range(n):
        x1, y1 = polygon[i, 0], polygon[i, 1]
        x2, y2 = polygon[(i + 1) % n, 0], polygon[(i + 1) % n, 1]
        if (y1 > py) != (y2 > py):
            x_cross = x1 + (py - y1) * (x2 - x1) / (y2 - y1)
            if px < x_cross:
                inside = not inside
    return inside


def _contains(outer: Polyline, inner: Polyline) -> bool:
    votes = sum(point_in_polygon(p, outer.points) for p in inner.points)
    return votes * 2 > len(inner.points)


class BoundaryClassifier:
    """Pick ``OUTER`` and ``INNER`` from the surviving polylines.

    Args:
        mode: See :class:`ClassificationMode`.
    """

    def __init__(self, mode: ClassificationMode = ClassificationMode.DISCOVERY_ORDER) -> None:
        self.mode = mode

    def classify(self, polylines: list[Polyline]) -> BoundarySet:
        """Build a :class:`BoundarySet`; roles left unfilled are empty polylines.

        Args:
            polylines: Simplified polylines in threading-discovery order.
        """
        result = BoundarySet.empty()
        if not polylines:
            return result

        if self.mode is ClassificationMode.CONTAINMENT:
            order = sorted(
                range(len(polylines)),
                key=lambda i: enclosed_area(polylines[i].points),
                reverse=True,
            )
            if len(order) >= 2:
                a, b = polylines[order[0]], polylines[order[1]]
                if _contains(b, a) and not _contains(a, b):
                    order[0], order[1] = order[1], order[0]
        else:
            order = list(range(len(polylines)))

        result.outer = polylines[order[0]]
        if len(order) > 1:
            result.inner = polylines[order[1]]
        result.extras = [polylines[i] for i in order[2:]]

        if len(polylines) < 2:
            _logger.warning("Only %d boundary polyline found; inner boundary is empty", len(polylines))
        _logger.info(
            "Classified boundaries (%s): outer=%d vertices, inner=%d vertices, %d extra",
            self.mode.value, len(result.outer), len(result.inner), len(result.extras),
        )
        return result
