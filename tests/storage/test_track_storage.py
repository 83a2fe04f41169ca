"""Tests for TrackStorage."""

from __future__ import annotations

import numpy as np
import pytest

from autotrack.boundary.models import BoundarySet, Polyline
from autotrack.geometry import Frame, vec3
from autotrack.pipeline.config import GeneratorConfig
from autotrack.storage.track_storage import TrackStorage
from autotrack.track.course import CheckpointCourse
from autotrack.track.models import Checkpoint, SpawnPoint, SpawnResult


def square(half: float) -> np.ndarray:
    return np.array(
        [[-half, -half, 0.0], [half, -half, 0.0], [half, half, 0.0], [-half, half, 0.0]]
    )


def make_boundaries() -> BoundarySet:
    return BoundarySet(
        outer=Polyline(square(20.0), closed=True),
        inner=Polyline(square(10.0), closed=True),
        run_id=4,
    )


def make_course() -> CheckpointCourse:
    corners = square(15.0)
    checkpoints = []
    for i, p in enumerate(corners):
        frame = Frame.look_rotation(corners[(i + 1) % 4] - p)
        checkpoints.append(Checkpoint(i, p.copy(), frame, width=10.0 + i))
    spawn = SpawnPoint(checkpoints[2].position + vec3(0, 0, 0.2), checkpoints[2].frame.copy(), 2)
    return CheckpointCourse(checkpoints, spawns=SpawnResult([spawn], requested=3), run_id=4)


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "test_tracks.db")


@pytest.fixture
def storage(db_path):
    s = TrackStorage(db_path)
    yield s
    s.close()


def test_save_returns_increasing_ids(storage):
    first = storage.save_track("a", make_boundaries(), make_course())
    second = storage.save_track("b", make_boundaries(), make_course())
    assert second > first


def test_list_tracks_counts(storage):
    track_id = storage.save_track("ring", make_boundaries(), make_course())
    rows = storage.list_tracks()
    assert len(rows) == 1
    row = rows[0]
    assert row["id"] == track_id
    assert row["name"] == "ring"
    assert row["run_id"] == 4
    assert row["checkpoint_count"] == 4
    assert row["spawn_point_count"] == 1
    assert row["created_at"].endswith("Z")


def test_list_tracks_newest_first(storage):
    storage.save_track("old", make_boundaries(), make_course())
    storage.save_track("new", make_boundaries(), make_course())
    assert [r["name"] for r in storage.list_tracks()] == ["new", "old"]


def test_get_track_decodes_config(storage):
    config = GeneratorConfig(spawn_count=3)
    track_id = storage.save_track("ring", make_boundaries(), make_course(), config)
    track = storage.get_track(track_id)
    assert track["config"]["spawn_count"] == 3
    assert track["config"]["side_probe_mask"] == "GRASS|WALL"
    assert "config_json" not in track


def test_boundaries_round_trip(storage):
    boundaries = make_boundaries()
    track_id = storage.save_track("ring", boundaries, make_course())
    loaded = storage.load_boundaries(track_id)
    np.testing.assert_allclose(loaded.outer.points, boundaries.outer.points)
    np.testing.assert_allclose(loaded.inner.points, boundaries.inner.points)
    assert loaded.inner.closed and loaded.outer.closed
    assert loaded.run_id == 4


def test_course_round_trip(storage):
    course = make_course()
    track_id = storage.save_track("ring", make_boundaries(), course)
    loaded = storage.load_course(track_id)
    assert len(loaded) == 4
    for original, restored in zip(course.checkpoints, loaded.checkpoints):
        assert restored.index == original.index
        assert restored.width == pytest.approx(original.width)
        np.testing.assert_allclose(restored.position, original.position)
        np.testing.assert_allclose(restored.forward, original.forward)
        np.testing.assert_allclose(restored.right, original.right)
    spawns = loaded.spawn_points()
    assert [sp.checkpoint_index for sp in spawns] == [2]
    assert loaded.spawns.shortfall == 2


def test_persists_across_connections(db_path):
    first = TrackStorage(db_path)
    track_id = first.save_track("ring", make_boundaries(), make_course())
    first.close()
    second = TrackStorage(db_path)
    try:
        assert second.get_track(track_id)["name"] == "ring"
    finally:
        second.close()


def test_missing_track(storage):
    assert storage.get_track(99) is None
    assert storage.load_boundaries(99) is None
    assert storage.load_course(99) is None


def test_in_memory_database():
    s = TrackStorage(":memory:")
    try:
        assert s.list_tracks() == []
    finally:
        s.close()
