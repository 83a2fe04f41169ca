"""Shared fixtures for web tests."""

from __future__ import annotations

import math

import numpy as np
import pytest
from fastapi.testclient import TestClient

from autotrack.boundary.models import BoundarySet, Polyline
from autotrack.geometry import WORLD_UP, Frame
from autotrack.storage.track_storage import TrackStorage
from autotrack.track.course import CheckpointCourse
from autotrack.track.models import Checkpoint, SpawnPoint, SpawnResult
from autotrack.web.app import app


@pytest.fixture
def client():
    """FastAPI test client."""
    with TestClient(app) as c:
        yield c


def ring(n: int, radius: float) -> np.ndarray:
    angles = 2 * math.pi * np.arange(n) / n
    return np.column_stack([radius * np.cos(angles), radius * np.sin(angles), np.zeros(n)])


def make_course(n: int = 12, radius: float = 25.0) -> CheckpointCourse:
    """CCW checkpoints on a circle with spawn points on every third one."""
    checkpoints = []
    for i, p in enumerate(ring(n, radius)):
        frame = Frame.look_rotation(np.array([-p[1], p[0], 0.0]), WORLD_UP)
        checkpoints.append(Checkpoint(i, p, frame, width=10.0))
    spawns = SpawnResult(
        points=[
            SpawnPoint(cp.position + cp.up * 0.2, cp.frame.copy(), cp.index)
            for cp in checkpoints[::3]
        ],
        requested=6,
    )
    return CheckpointCourse(checkpoints, spawns=spawns, run_id=1)


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "web_tracks.db")


@pytest.fixture
def saved_track(db_path):
    """Store one ring track; returns ``(db_path, track_id)``."""
    storage = TrackStorage(db_path)
    try:
        boundaries = BoundarySet(
            outer=Polyline(ring(24, 30.0), closed=True),
            inner=Polyline(ring(16, 20.0), closed=True),
            run_id=1,
        )
        track_id = storage.save_track("ring", boundaries, make_course())
    finally:
        storage.close()
    return db_path, track_id
