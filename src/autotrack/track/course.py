"""Read-only queries over a generated checkpoint course."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from autotrack.track.models import CenterlineSample, Checkpoint, SpawnPoint, SpawnResult


@dataclass(eq=False)
class CheckpointCourse:
    """Checkpoints, centerline and spawn points published by one run.

    Checkpoint indices wrap: the checkpoint after the last one is index 0.
    """

    checkpoints: list[Checkpoint]
    centerline: list[CenterlineSample] = field(default_factory=list)
    spawns: SpawnResult = field(default_factory=SpawnResult)
    run_id: int = 0

    def __len__(self) -> int:
        return len(self.checkpoints)

    def checkpoint(self, index: int) -> Checkpoint | None:
        """Checkpoint at *index*, or ``None`` when out of range."""
        if 0 <= index < len(self.checkpoints):
            return self.checkpoints[index]
        return None

    def next(self, index: int) -> Checkpoint | None:
        if not self.checkpoints:
            return None
        return self.checkpoints[(index + 1) % len(self.checkpoints)]

    def previous(self, index: int) -> Checkpoint | None:
        if not self.checkpoints:
            return None
        return self.checkpoints[(index - 1) % len(self.checkpoints)]

    def nearest(self, position: np.ndarray) -> tuple[Checkpoint, int] | None:
        """Closest checkpoint to *position* and its index (lowest index on ties)."""
        if not self.checkpoints:
            return None
        positions = np.array([cp.position for cp in self.checkpoints])
        d_sq = np.sum((positions - np.asarray(position, dtype=float)) ** 2, axis=1)
        index = int(np.argmin(d_sq))
        return self.checkpoints[index], index

    def upcoming(self, index: int, count: int) -> list[Checkpoint]:
        """The *count* checkpoints after *index*, wrapping around the loop."""
        n = len(self.checkpoints)
        if n == 0 or count <= 0:
            return []
        return [self.checkpoints[(index + k) % n] for k in range(1, count + 1)]

    def spawn_points(self) -> list[SpawnPoint]:
        return list(self.spawns.points)
