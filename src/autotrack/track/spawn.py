"""Spawn-point generation from checkpoints, and assignment of spawn points to agents."""

from __future__ import annotations

import enum
import logging
import math
import random

import numpy as np

from autotrack.staging import Stage
from autotrack.track.models import Checkpoint, SpawnPoint, SpawnResult

_logger = logging.getLogger(__name__)


class SpawnPointGenerator:
    """Pick spawn points at roughly even checkpoint intervals.

    A slot whose checkpoint is within *min_separation* of the previous spawn
    point tries the following checkpoint once, then is skipped.  Skipped
    slots are reported through :attr:`SpawnResult.shortfall`.

    Args:
        count: Requested number of spawn points (clamped to the checkpoint count).
        min_separation: Minimum distance between consecutive spawn points.
        height_offset: Lift along the checkpoint's up axis.
    """

    def __init__(self, count: int = 8, min_separation: float = 20.0, height_offset: float = 0.2) -> None:
        self.count = count
        self.min_separation = min_separation
        self.height_offset = height_offset

    def generate(self, checkpoints: list[Checkpoint]) -> Stage[SpawnResult]:
        n = len(checkpoints)
        requested = min(self.count, n)
        result = SpawnResult(requested=requested)
        if requested <= 0:
            return result

        interval = n / requested if n > 1 and requested > 1 else 0.0
        for slot in range(requested):
            index = math.floor(slot * interval) % n
            cp = checkpoints[index]
            if result.points:
                last = result.points[-1].position
                if self._distance(cp, last) < self.min_separation:
                    alternative = checkpoints[(index + 1) % n]
                    if self._distance(alternative, last) < self.min_separation:
                        _logger.debug("Skipping spawn slot %d near checkpoint %d", slot, cp.index)
                        continue
                    cp = alternative
            result.points.append(SpawnPoint(
                position=cp.position + cp.up * self.height_offset,
                frame=cp.frame.copy(),
                checkpoint_index=cp.index,
            ))
            yield (slot + 1) / requested

        if result.shortfall:
            _logger.warning(
                "Generated only %d/%d spawn points (minimum separation %.1f)",
                len(result), requested, self.min_separation,
            )
        else:
            _logger.info("Generated %d spawn points", len(result))
        return result

    def _distance(self, cp: Checkpoint, position: np.ndarray) -> float:
        return float(np.linalg.norm(cp.position + cp.up * self.height_offset - position))


class AssignmentMode(enum.Enum):
    SEQUENTIAL = "sequential"
    RANDOM = "random"


class SpawnAssigner:
    """Hand out spawn points to agents.

    ``SEQUENTIAL`` gives agent ``k`` spawn point ``k mod len``; ``RANDOM``
    draws from a :class:`random.Random` seeded at construction.
    """

    def __init__(
        self,
        spawn_points: list[SpawnPoint],
        mode: AssignmentMode = AssignmentMode.SEQUENTIAL,
        seed: int | None = None,
    ) -> None:
        if not spawn_points:
            raise ValueError("SpawnAssigner needs at least one spawn point")
        self.spawn_points = spawn_points
        self.mode = mode
        self._rng = random.Random(seed)

    def assign(self, agent_index: int) -> SpawnPoint:
        if self.mode is AssignmentMode.RANDOM:
            return self._rng.choice(self.spawn_points)
        return self.spawn_points[agent_index % len(self.spawn_points)]
