"""Checkpoint distribution along the centerline, plus orientation and width refinement."""

from __future__ import annotations

import logging
import math

import numpy as np

from autotrack.boundary.models import BoundarySet
from autotrack.errors import InsufficientDataError
from autotrack.geometry import WORLD_FORWARD, WORLD_UP, Frame, is_degenerate, normalized, slerp_frames
from autotrack.probe.models import SurfaceCategory, SurfaceProbe
from autotrack.staging import Stage
from autotrack.track.models import CenterlineSample, Checkpoint

_logger = logging.getLogger(__name__)

MIN_CHECKPOINTS = 2
MIN_SEGMENT = 0.01
MIN_WIDTH = 1.0

# Side probes start slightly above the surface so they don't graze it.
SIDE_PROBE_LIFT = 0.3
SINGLE_HIT_SCALE = 1.8
SINGLE_HIT_FLOOR = 0.75


def loop_length(positions: np.ndarray) -> float:
    """Length of the closed loop through *positions*, closing segment included."""
    if len(positions) < 2:
        return 0.0
    closed = np.vstack([positions, positions[:1]])
    return float(np.linalg.norm(np.diff(closed, axis=0), axis=1).sum())


def checkpoint_spacing(
    total_length: float, target_count: int, min_spacing: float, max_spacing: float
) -> tuple[float, int]:
    """Return ``(spacing, count)`` for a loop of *total_length*.

    ``spacing = clamp(total / target, min, max)`` and
    ``count = max(2, floor(total / spacing))``.  The floor tolerates a
    relative error of 1e-9 so exact multiples are not lost to rounding.

    >>> checkpoint_spacing(298.0, 50, 5.0, 25.0)
    (5.96, 50)
    """
    spacing = min(max_spacing, max(min_spacing, total_length / target_count))
    count = max(MIN_CHECKPOINTS, math.floor(total_length / spacing * (1.0 + 1e-9)))
    return spacing, count


class CheckpointDistributor:
    """Place evenly spaced checkpoints on a centerline and measure the track width.

    Args:
        probe: World oracle for the sideways width probes.
        target_count: Desired number of checkpoints.
        min_spacing: Lower clamp for the distance between checkpoints.
        max_spacing: Upper clamp for the distance between checkpoints.
        default_width: Fallback width, also sets the search radius
            (``1.5 ×``) for width measurement.
        side_probe_mask: Categories that stop a sideways width probe.
        yield_every: Checkpoints processed between cooperative yields.
    """

    def __init__(
        self,
        probe: SurfaceProbe,
        target_count: int = 50,
        min_spacing: float = 5.0,
        max_spacing: float = 25.0,
        default_width: float = 10.0,
        side_probe_mask: SurfaceCategory = SurfaceCategory.GRASS | SurfaceCategory.WALL,
        yield_every: int = 64,
    ) -> None:
        self.probe = probe
        self.target_count = target_count
        self.min_spacing = min_spacing
        self.max_spacing = max_spacing
        self.default_width = default_width
        self.side_probe_mask = side_probe_mask
        self.yield_every = max(1, yield_every)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def distribute(
        self, samples: list[CenterlineSample], boundaries: BoundarySet
    ) -> Stage[list[Checkpoint]]:
        """Distribute checkpoints along *samples*, then refine them.

        Args:
            samples: Closed, oriented centerline.
            boundaries: Used for width measurement.

        Returns:
            Checkpoints indexed from 0 in the direction of travel.

        Raises:
            InsufficientDataError: If fewer than 2 checkpoints could be placed.
        """
        positions = np.array([s.position for s in samples], dtype=float).reshape(-1, 3)
        total = loop_length(positions)
        if len(samples) < 2 or total <= 0.0:
            raise InsufficientDataError(
                f"Centerline too short to distribute checkpoints ({len(samples)} samples)",
                stage="distributing",
            )

        spacing, count = checkpoint_spacing(total, self.target_count, self.min_spacing, self.max_spacing)
        _logger.debug(
            "Centerline length %.1f, spacing %.2f, placing %d checkpoints", total, spacing, count
        )

        checkpoints = [Checkpoint(0, positions[0].copy(), samples[0].frame.copy())]
        next_target = spacing
        accumulated = 0.0
        n = len(samples)
        for i in range(n):
            if len(checkpoints) >= count:
                break
            if i and i % self.yield_every == 0:
                yield 0.5 * i / n
            a, b = samples[i], samples[(i + 1) % n]
            segment = float(np.linalg.norm(b.position - a.position))
            if segment < MIN_SEGMENT:
                continue
            while len(checkpoints) < count and accumulated + segment >= next_target:
                t = (next_target - accumulated) / segment
                checkpoints.append(Checkpoint(
                    index=len(checkpoints),
                    position=a.position + (b.position - a.position) * t,
                    frame=slerp_frames(a.frame, b.frame, t),
                ))
                next_target += spacing
            accumulated += segment

        if len(checkpoints) < count:
            _logger.warning(
                "Centerline exhausted after %d of %d checkpoints", len(checkpoints), count
            )
        if len(checkpoints) < MIN_CHECKPOINTS:
            raise InsufficientDataError(
                f"Only {len(checkpoints)} checkpoint(s) could be placed", stage="distributing"
            )

        yield from self.refine(checkpoints, boundaries)
        _logger.info("Distributed %d checkpoints (spacing %.2f)", len(checkpoints), spacing)
        return checkpoints

    def refine(self, checkpoints: list[Checkpoint], boundaries: BoundarySet) -> Stage[None]:
        """Recompute every checkpoint's orientation and width in place.

        Forward is the average of the directions from the previous checkpoint
        and to the next one; right is kept horizontal.
        """
        n = len(checkpoints)
        positions = [cp.position.copy() for cp in checkpoints]
        for i, cp in enumerate(checkpoints):
            forward = self._neighbour_forward(
                positions[i - 1], positions[i], positions[(i + 1) % n], cp.frame.forward
            )
            cp.frame = Frame.look_rotation(forward, WORLD_UP)
            cp.width = self.measure_width(cp.position, cp.frame, boundaries)
            if (i + 1) % self.yield_every == 0:
                yield (i + 1) / n
        yield 1.0

    def measure_width(self, position: np.ndarray, frame: Frame, boundaries: BoundarySet) -> float:
        """Track width at *position*.

        Prefers the distance between the nearest inner and outer boundary
        points; otherwise probes sideways along ``±frame.right``:

        - both sides hit: sum of hit distances (floor 1.0)
        - one side hits: ``max(distance × 1.8, default × 0.75)``
        - no hits: the default width
        """
        search = self.default_width * 1.5
        nearest = boundaries.closest_boundary_points(position, search)
        if nearest is not None:
            inner, outer = nearest
            across = float(np.linalg.norm(outer - inner))
            if across > MIN_WIDTH:
                return max(across, MIN_WIDTH)

        origin = position + frame.up * SIDE_PROBE_LIFT
        distances = []
        for direction in (frame.right, -frame.right):
            hit = self.probe.probe(origin, direction, search, self.side_probe_mask)
            if hit is not None:
                distances.append(hit.distance)

        if len(distances) == 2:
            return max(distances[0] + distances[1], MIN_WIDTH)
        if len(distances) == 1:
            return max(distances[0] * SINGLE_HIT_SCALE, self.default_width * SINGLE_HIT_FLOOR)
        return self.default_width

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _neighbour_forward(
        previous: np.ndarray, current: np.ndarray, following: np.ndarray, fallback: np.ndarray
    ) -> np.ndarray:
        incoming = normalized(current - previous)
        outgoing = normalized(following - current)
        has_in = not is_degenerate(incoming)
        has_out = not is_degenerate(outgoing)

        if has_in and has_out:
            average = normalized(incoming + outgoing)
            if is_degenerate(average):
                return outgoing
            return average
        if has_in:
            return incoming
        if has_out:
            return outgoing
        if not is_degenerate(fallback):
            return fallback.copy()
        return WORLD_FORWARD.copy()
