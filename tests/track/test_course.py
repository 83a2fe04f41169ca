from __future__ import annotations

import numpy as np
from track_helpers import circle_checkpoints

from autotrack.geometry import vec3
from autotrack.track.course import CheckpointCourse
from autotrack.track.models import SpawnPoint, SpawnResult


def make_course(n: int = 8) -> CheckpointCourse:
    checkpoints = circle_checkpoints(n, 50.0)
    spawn = SpawnPoint(checkpoints[0].position + vec3(0, 0, 0.2), checkpoints[0].frame.copy(), 0)
    return CheckpointCourse(checkpoints, spawns=SpawnResult([spawn], requested=2), run_id=3)


class TestCheckpointCourse:
    def test_len_and_lookup(self):
        course = make_course()
        assert len(course) == 8
        assert course.checkpoint(3).index == 3
        assert course.checkpoint(8) is None
        assert course.checkpoint(-1) is None

    def test_next_and_previous_wrap(self):
        course = make_course()
        assert course.next(7).index == 0
        assert course.next(2).index == 3
        assert course.previous(0).index == 7

    def test_nearest(self):
        course = make_course()
        cp, index = course.nearest(vec3(0.0, 49.0))
        assert index == 2
        assert cp is course.checkpoints[2]

    def test_upcoming_wraps(self):
        course = make_course()
        assert [cp.index for cp in course.upcoming(6, 3)] == [7, 0, 1]
        assert course.upcoming(0, 0) == []

    def test_spawn_points_are_a_copy(self):
        course = make_course()
        points = course.spawn_points()
        points.clear()
        assert len(course.spawn_points()) == 1
        assert course.spawns.shortfall == 1

    def test_empty_course(self):
        course = CheckpointCourse([])
        assert len(course) == 0
        assert course.next(0) is None
        assert course.previous(0) is None
        assert course.nearest(np.zeros(3)) is None
        assert course.upcoming(0, 5) == []
        assert course.spawn_points() == []
