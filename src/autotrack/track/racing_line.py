"""Apex-shift racing-line heuristic.

Each checkpoint at a turn sharper than the threshold is moved toward the
inside of the turn by ``sin(angle / 2) × (width / 2) × apex_factor`` and
re-projected onto the driving surface.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from autotrack.boundary.models import BoundarySet
from autotrack.geometry import WORLD_UP, is_degenerate, normalized, turn_sign, unsigned_angle_deg
from autotrack.probe.models import SurfaceCategory, SurfaceProbe
from autotrack.staging import Stage
from autotrack.track.checkpoints import CheckpointDistributor
from autotrack.track.models import Checkpoint

_logger = logging.getLogger(__name__)

_DOWN = np.array([0.0, 0.0, -1.0])

# Courses this small are left as distributed.
MIN_CHECKPOINTS = 6


def apex_shift_magnitude(angle_deg: float, width: float, apex_factor: float) -> float:
    """Lateral shift for a turn of *angle_deg* on a track *width* wide.

    >>> round(apex_shift_magnitude(90.0, 10.0, 0.35), 3)
    1.237
    """
    return math.sin(math.radians(angle_deg) / 2.0) * (width / 2.0) * apex_factor


class RacingLineOptimizer:
    """Shift checkpoints toward turn apexes, then re-run refinement.

    Parameters
    ----------
    probe : SurfaceProbe
        Used to re-project shifted positions onto the surface.
    distributor : CheckpointDistributor
        Its :meth:`~CheckpointDistributor.refine` pass runs after shifting.
    apex_factor : float
        Fraction of the half-width a 180° turn would shift by.
    turn_angle_threshold : float
        Turns at or below this angle (degrees) are left alone.
    height_offset : float
        Re-projection probes start this far above the shifted point and
        travel twice as far down.
    track_mask : SurfaceCategory
        Categories a re-projection may land on.
    """

    def __init__(
        self,
        probe: SurfaceProbe,
        distributor: CheckpointDistributor,
        apex_factor: float = 0.35,
        turn_angle_threshold: float = 15.0,
        height_offset: float = 1.5,
        track_mask: SurfaceCategory = SurfaceCategory.TRACK,
        yield_every: int = 64,
    ) -> None:
        self.probe = probe
        self.distributor = distributor
        self.apex_factor = apex_factor
        self.turn_angle_threshold = turn_angle_threshold
        self.height_offset = height_offset
        self.track_mask = track_mask
        self.yield_every = max(1, yield_every)

    def optimize(self, checkpoints: list[Checkpoint], boundaries: BoundarySet) -> Stage[int]:
        """Shift *checkpoints* in place and return how many moved."""
        n = len(checkpoints)
        if n < MIN_CHECKPOINTS:
            _logger.debug("Skipping racing line: only %d checkpoints", n)
            return 0

        original = [cp.position.copy() for cp in checkpoints]
        shifted = 0
        for i, cp in enumerate(checkpoints):
            if i and i % self.yield_every == 0:
                yield 0.5 * i / n
            incoming = normalized(original[i] - original[i - 1])
            outgoing = normalized(original[(i + 1) % n] - original[i])
            if is_degenerate(incoming) or is_degenerate(outgoing):
                continue

            angle = unsigned_angle_deg(incoming, outgoing)
            if angle <= self.turn_angle_threshold:
                continue
            average = normalized(incoming + outgoing)
            sign = turn_sign(incoming, outgoing, WORLD_UP)
            if is_degenerate(average) or sign == 0.0:
                continue

            inside = sign * np.cross(WORLD_UP, average)
            magnitude = apex_shift_magnitude(angle, cp.width, self.apex_factor)
            landed = self._reproject(original[i] + inside * magnitude)
            if landed is None:
                landed = self._reproject(original[i] + inside * magnitude * 0.5)
            if landed is not None:
                cp.position = landed
                shifted += 1

        yield from self.distributor.refine(checkpoints, boundaries)
        _logger.info("Racing line shifted %d of %d checkpoints", shifted, n)
        return shifted

    def _reproject(self, point: np.ndarray) -> np.ndarray | None:
        hit = self.probe.probe(
            point + WORLD_UP * self.height_offset,
            _DOWN,
            self.height_offset * 2.0,
            self.track_mask,
        )
        return None if hit is None else hit.point
