"""Wall-segment geometry along boundary polylines."""

from __future__ import annotations

import numpy as np

from autotrack.boundary.models import Polyline, WallSegment
from autotrack.geometry import WORLD_UP


def wall_segments(
    polyline: Polyline,
    min_length: float = 1.0,
    height: float = 10.0,
    thickness: float = 0.2,
) -> list[WallSegment]:
    """One :class:`WallSegment` per polyline segment at least *min_length* long.

    The closing segment is included when the polyline is inferred closed.
    Segment centres are raised by half the wall height.
    """
    walls: list[WallSegment] = []
    for a, b in polyline.segments():
        direction = b - a
        length = float(np.linalg.norm(direction))
        if length < min_length:
            continue
        walls.append(WallSegment(
            center=(a + b) / 2.0 + WORLD_UP * (height / 2.0),
            direction=direction / length,
            length=length,
            height=height,
            thickness=thickness,
        ))
    return walls
