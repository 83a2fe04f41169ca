"""Centerline, checkpoints, racing line and spawn points."""

from autotrack.track.centerline import CenterlineExtractor
from autotrack.track.checkpoints import CheckpointDistributor, checkpoint_spacing, loop_length
from autotrack.track.course import CheckpointCourse
from autotrack.track.models import CenterlineSample, Checkpoint, SpawnPoint, SpawnResult
from autotrack.track.racing_line import RacingLineOptimizer, apex_shift_magnitude
from autotrack.track.spawn import AssignmentMode, SpawnAssigner, SpawnPointGenerator

__all__ = [
    "AssignmentMode",
    "CenterlineExtractor",
    "CenterlineSample",
    "Checkpoint",
    "CheckpointCourse",
    "CheckpointDistributor",
    "RacingLineOptimizer",
    "SpawnAssigner",
    "SpawnPoint",
    "SpawnPointGenerator",
    "SpawnResult",
    "apex_shift_magnitude",
    "checkpoint_spacing",
    "loop_length",
]
