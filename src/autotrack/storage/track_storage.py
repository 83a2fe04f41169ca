"""TrackStorage: persists generated tracks to SQLite.

Schema design notes:
  - ``tracks`` holds one row per saved run with the generating config as JSON.
  - Boundary vertices, checkpoints and spawn points live in their own tables
    keyed by ``(track_id, seq)`` so a track is read back in order with a
    single indexed scan.
  - Frames are stored as their three axes (forward, right, up) rather than a
    quaternion so rows can be inspected directly.
"""

from __future__ import annotations

import json
import sqlite3

import numpy as np

from autotrack.boundary.models import BoundaryRole, BoundarySet, Polyline
from autotrack.geometry import Frame
from autotrack.pipeline.config import GeneratorConfig
from autotrack.track.course import CheckpointCourse
from autotrack.track.models import Checkpoint, SpawnPoint, SpawnResult

_DDL = """
PRAGMA journal_mode = WAL;
PRAGMA synchronous  = NORMAL;

CREATE TABLE IF NOT EXISTS tracks (
    id              INTEGER PRIMARY KEY,
    name            TEXT    NOT NULL,
    run_id          INTEGER NOT NULL DEFAULT 0,
    inner_closed    INTEGER NOT NULL DEFAULT 0,
    outer_closed    INTEGER NOT NULL DEFAULT 0,
    spawn_requested INTEGER NOT NULL DEFAULT 0,
    created_at      TEXT    NOT NULL
                    DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    config_json     TEXT    NOT NULL DEFAULT '{}'
);

CREATE TABLE IF NOT EXISTS boundary_points (
    track_id INTEGER NOT NULL,
    role     TEXT    NOT NULL,
    seq      INTEGER NOT NULL,
    x        REAL    NOT NULL,
    y        REAL    NOT NULL,
    z        REAL    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_boundary_track
    ON boundary_points (track_id, role, seq);

CREATE TABLE IF NOT EXISTS checkpoints (
    track_id INTEGER NOT NULL,
    seq      INTEGER NOT NULL,
    x  REAL NOT NULL, y  REAL NOT NULL, z  REAL NOT NULL,
    fx REAL NOT NULL, fy REAL NOT NULL, fz REAL NOT NULL,
    rx REAL NOT NULL, ry REAL NOT NULL, rz REAL NOT NULL,
    ux REAL NOT NULL, uy REAL NOT NULL, uz REAL NOT NULL,
    width REAL NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_checkpoints_track
    ON checkpoints (track_id, seq);

CREATE TABLE IF NOT EXISTS spawn_points (
    track_id       INTEGER NOT NULL,
    seq            INTEGER NOT NULL,
    checkpoint_seq INTEGER NOT NULL,
    x  REAL NOT NULL, y  REAL NOT NULL, z  REAL NOT NULL,
    fx REAL NOT NULL, fy REAL NOT NULL, fz REAL NOT NULL,
    rx REAL NOT NULL, ry REAL NOT NULL, rz REAL NOT NULL,
    ux REAL NOT NULL, uy REAL NOT NULL, uz REAL NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_spawn_points_track
    ON spawn_points (track_id, seq);
"""

_INSERT_TRACK = """
INSERT INTO tracks (name, run_id, inner_closed, outer_closed, spawn_requested, config_json)
VALUES (?, ?, ?, ?, ?, ?)
"""

_INSERT_BOUNDARY_POINT = """
INSERT INTO boundary_points (track_id, role, seq, x, y, z) VALUES (?, ?, ?, ?, ?, ?)
"""

_INSERT_CHECKPOINT = """
INSERT INTO checkpoints (
    track_id, seq, x, y, z, fx, fy, fz, rx, ry, rz, ux, uy, uz, width
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

_INSERT_SPAWN_POINT = """
INSERT INTO spawn_points (
    track_id, seq, checkpoint_seq, x, y, z, fx, fy, fz, rx, ry, rz, ux, uy, uz
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

_SELECT_TRACKS = """
SELECT t.id, t.name, t.run_id, t.created_at, t.spawn_requested,
       (SELECT COUNT(*) FROM checkpoints  c WHERE c.track_id = t.id) AS checkpoint_count,
       (SELECT COUNT(*) FROM spawn_points s WHERE s.track_id = t.id) AS spawn_point_count
FROM   tracks t
ORDER  BY t.created_at DESC, t.id DESC
"""


def _frame_values(frame: Frame) -> tuple[float, ...]:
    return tuple(float(v) for axis in (frame.forward, frame.right, frame.up) for v in axis)


def _row_frame(row: sqlite3.Row) -> Frame:
    return Frame(
        forward=np.array([row["fx"], row["fy"], row["fz"]], dtype=float),
        right=np.array([row["rx"], row["ry"], row["rz"]], dtype=float),
        up=np.array([row["ux"], row["uy"], row["uz"]], dtype=float),
    )


class TrackStorage:
    """Stores and retrieves generated tracks from a SQLite database.

    Parameters
    ----------
    db_path:
        Path to the SQLite file.  Pass ``":memory:"`` for in-process testing.
    """

    def __init__(self, db_path: str = "tracks.db") -> None:
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        for stmt in _DDL.strip().split(";"):
            stmt = stmt.strip()
            if stmt:
                self._conn.execute(stmt)
        self._conn.commit()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def save_track(
        self,
        name: str,
        boundaries: BoundarySet,
        course: CheckpointCourse,
        config: GeneratorConfig | None = None,
    ) -> int:
        """Persist one generated track and return its id."""
        config_json = json.dumps((config or GeneratorConfig()).to_dict())
        with self._conn:
            cursor = self._conn.execute(
                _INSERT_TRACK,
                (
                    name,
                    course.run_id,
                    int(boundaries.inner.closed),
                    int(boundaries.outer.closed),
                    course.spawns.requested,
                    config_json,
                ),
            )
            track_id = cursor.lastrowid
            for role in BoundaryRole:
                self._conn.executemany(
                    _INSERT_BOUNDARY_POINT,
                    [
                        (track_id, role.value, seq, float(p[0]), float(p[1]), float(p[2]))
                        for seq, p in enumerate(boundaries.curve(role).points)
                    ],
                )
            self._conn.executemany(
                _INSERT_CHECKPOINT,
                [
                    (track_id, cp.index, *(float(v) for v in cp.position),
                     *_frame_values(cp.frame), float(cp.width))
                    for cp in course.checkpoints
                ],
            )
            self._conn.executemany(
                _INSERT_SPAWN_POINT,
                [
                    (track_id, seq, sp.checkpoint_index, *(float(v) for v in sp.position),
                     *_frame_values(sp.frame))
                    for seq, sp in enumerate(course.spawns.points)
                ],
            )
        return track_id  # type: ignore[return-value]

    def list_tracks(self) -> list[dict]:
        """Return summary rows for every stored track, newest first."""
        return [dict(r) for r in self._conn.execute(_SELECT_TRACKS).fetchall()]

    def get_track(self, track_id: int) -> dict | None:
        """Return the ``tracks`` row for *track_id* (config decoded), or None."""
        row = self._conn.execute("SELECT * FROM tracks WHERE id = ?", (track_id,)).fetchone()
        if row is None:
            return None
        result = dict(row)
        result["config"] = json.loads(result.pop("config_json"))
        return result

    def load_boundaries(self, track_id: int) -> BoundarySet | None:
        """Rebuild the inner and outer curves of *track_id* (walls and extras are not stored)."""
        track = self.get_track(track_id)
        if track is None:
            return None
        curves = {}
        for role in BoundaryRole:
            rows = self._conn.execute(
                "SELECT x, y, z FROM boundary_points WHERE track_id = ? AND role = ? ORDER BY seq",
                (track_id, role.value),
            ).fetchall()
            points = np.array([[r["x"], r["y"], r["z"]] for r in rows], dtype=float).reshape(-1, 3)
            curves[role] = Polyline(points, closed=bool(track[f"{role.value}_closed"]))
        return BoundarySet(
            outer=curves[BoundaryRole.OUTER],
            inner=curves[BoundaryRole.INNER],
            run_id=track["run_id"],
        )

    def load_course(self, track_id: int) -> CheckpointCourse | None:
        """Rebuild checkpoints and spawn points of *track_id* (the centerline is not stored)."""
        track = self.get_track(track_id)
        if track is None:
            return None
        checkpoints = [
            Checkpoint(
                index=r["seq"],
                position=np.array([r["x"], r["y"], r["z"]], dtype=float),
                frame=_row_frame(r),
                width=float(r["width"]),
            )
            for r in self._conn.execute(
                "SELECT * FROM checkpoints WHERE track_id = ? ORDER BY seq", (track_id,)
            ).fetchall()
        ]
        spawns = SpawnResult(
            points=[
                SpawnPoint(
                    position=np.array([r["x"], r["y"], r["z"]], dtype=float),
                    frame=_row_frame(r),
                    checkpoint_index=r["checkpoint_seq"],
                )
                for r in self._conn.execute(
                    "SELECT * FROM spawn_points WHERE track_id = ? ORDER BY seq", (track_id,)
                ).fetchall()
            ],
            requested=track["spawn_requested"],
        )
        return CheckpointCourse(checkpoints=checkpoints, spawns=spawns, run_id=track["run_id"])

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
