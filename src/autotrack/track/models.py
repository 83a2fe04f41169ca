"""Track modeling data structures."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from autotrack.geometry import Frame


@dataclass(eq=False)
class CenterlineSample:
    """One oriented point on the track centerline.

    Samples form a closed loop: the last one connects back to the first.
    """

    position: np.ndarray
    """Surface point (or raw midpoint when the placement probe missed)."""

    normal: np.ndarray
    """Surface normal at :attr:`position`."""

    frame: Frame
    """Orientation; ``frame.up`` equals :attr:`normal`."""


@dataclass(eq=False)
class Checkpoint:
    """An indexed waypoint across the track.

    Indices are contiguous from 0 and follow the direction of travel; the
    last checkpoint is followed by checkpoint 0.
    """

    index: int
    """Position in the course (0-based)."""

    position: np.ndarray
    """World position on the driving surface."""

    frame: Frame
    """Orientation; ``frame.right`` spans the track."""

    width: float = 0.0
    """Track width at this checkpoint, in metres."""

    @property
    def forward(self) -> np.ndarray:
        return self.frame.forward

    @property
    def right(self) -> np.ndarray:
        return self.frame.right

    @property
    def up(self) -> np.ndarray:
        return self.frame.up


@dataclass(eq=False)
class SpawnPoint:
    """A start position derived from a checkpoint."""

    position: np.ndarray
    """Checkpoint position raised along the checkpoint's up axis."""

    frame: Frame
    """Copy of the checkpoint orientation."""

    checkpoint_index: int
    """Index of the checkpoint this spawn point was taken from."""


@dataclass(eq=False)
class SpawnResult:
    """Spawn points plus how many were asked for.

    Separation constraints can leave the generator short; the list is never
    padded to make up the difference.
    """

    points: list[SpawnPoint] = field(default_factory=list)
    requested: int = 0

    @property
    def shortfall(self) -> int:
        return max(0, self.requested - len(self.points))

    def __len__(self) -> int:
        return len(self.points)
