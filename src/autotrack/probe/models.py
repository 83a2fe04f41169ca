"""Surface probe interface and the records it returns."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Protocol

import numpy as np


class SurfaceCategory(enum.Flag):
    """Physical surface categories a probe can report.

    Members combine into masks, e.g. ``SurfaceCategory.GRASS | SurfaceCategory.WALL``.
    """

    TRACK = enum.auto()
    GRASS = enum.auto()
    WALL = enum.auto()


NO_CATEGORY = SurfaceCategory(0)


@dataclass(eq=False)
class ProbeHit:
    """Result of a successful probe."""

    point: np.ndarray
    """World-space hit position, shape ``(3,)``."""

    normal: np.ndarray
    """Unit surface normal at the hit, shape ``(3,)``."""

    category: SurfaceCategory
    """Single category of the surface that was hit."""

    distance: float
    """Distance travelled from the probe origin to :attr:`point`."""


class SurfaceProbe(Protocol):
    """Deterministic oracle that casts a ray against the physical world.

    Implementations must return identical results for identical arguments
    while the world geometry is unchanged.
    """

    def probe(
        self,
        origin: np.ndarray,
        direction: np.ndarray,
        max_distance: float,
        mask: SurfaceCategory,
    ) -> ProbeHit | None:
        """Cast from *origin* along *direction* and return the first hit in *mask*."""
        ...
