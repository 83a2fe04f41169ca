"""FastAPI read-only API over stored tracks."""

from __future__ import annotations

import os

import numpy as np
from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query

from autotrack.geometry import Frame
from autotrack.storage.track_storage import TrackStorage
from autotrack.track.course import CheckpointCourse
from autotrack.track.models import Checkpoint, SpawnPoint
from autotrack.web.schemas import (
    BoundariesResponse,
    BoundaryCurveModel,
    CheckpointModel,
    CheckpointsResponse,
    FrameModel,
    HealthResponse,
    NearestCheckpointResponse,
    SpawnPointModel,
    SpawnPointsResponse,
    TracksResponse,
    TrackSummary,
)

load_dotenv()  # loads .env from project root; must run before env vars are consumed

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

VERSION = "0.1.0"

app = FastAPI(title="autotrack", version=VERSION)

_DEFAULT_DB = os.environ.get("AUTOTRACK_DB", "tracks.db")


def _storage(db_path: str | None = None) -> TrackStorage:
    return TrackStorage(db_path or _DEFAULT_DB)


def _vec(v: np.ndarray) -> list[float]:
    return [float(c) for c in v]


def _frame(frame: Frame) -> FrameModel:
    return FrameModel(forward=_vec(frame.forward), right=_vec(frame.right), up=_vec(frame.up))


def _checkpoint(cp: Checkpoint) -> CheckpointModel:
    return CheckpointModel(
        index=cp.index, position=_vec(cp.position), frame=_frame(cp.frame), width=cp.width
    )


def _spawn_point(sp: SpawnPoint) -> SpawnPointModel:
    return SpawnPointModel(
        checkpoint_index=sp.checkpoint_index, position=_vec(sp.position), frame=_frame(sp.frame)
    )


def _load_course(track_id: int, db: str | None) -> CheckpointCourse:
    storage = _storage(db)
    try:
        course = storage.load_course(track_id)
    finally:
        storage.close()
    if course is None:
        raise HTTPException(status_code=404, detail="Track not found")
    return course


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok", version=VERSION)


@app.get("/api/tracks", response_model=TracksResponse)
def list_tracks(db: str | None = None) -> TracksResponse:
    """Return every stored track, newest first."""
    storage = _storage(db)
    try:
        rows = storage.list_tracks()
    finally:
        storage.close()
    return TracksResponse(tracks=[TrackSummary(**r) for r in rows])


@app.get("/api/tracks/{track_id}/boundaries", response_model=BoundariesResponse)
def boundaries(track_id: int, db: str | None = None) -> BoundariesResponse:
    storage = _storage(db)
    try:
        result = storage.load_boundaries(track_id)
    finally:
        storage.close()
    if result is None:
        raise HTTPException(status_code=404, detail="Track not found")
    return BoundariesResponse(
        track_id=track_id,
        inner=BoundaryCurveModel(
            closed=result.inner.closed, points=[_vec(p) for p in result.inner.points]
        ),
        outer=BoundaryCurveModel(
            closed=result.outer.closed, points=[_vec(p) for p in result.outer.points]
        ),
    )


@app.get("/api/tracks/{track_id}/checkpoints", response_model=CheckpointsResponse)
def checkpoints(track_id: int, db: str | None = None) -> CheckpointsResponse:
    course = _load_course(track_id, db)
    return CheckpointsResponse(
        track_id=track_id, checkpoints=[_checkpoint(cp) for cp in course.checkpoints]
    )


@app.get("/api/tracks/{track_id}/checkpoints/nearest", response_model=NearestCheckpointResponse)
def nearest_checkpoint(
    track_id: int, x: float, y: float, z: float = 0.0, db: str | None = None
) -> NearestCheckpointResponse:
    """Closest checkpoint to the world position ``(x, y, z)``."""
    course = _load_course(track_id, db)
    position = np.array([x, y, z], dtype=float)
    found = course.nearest(position)
    if found is None:
        raise HTTPException(status_code=404, detail="Track has no checkpoints")
    cp, index = found
    return NearestCheckpointResponse(
        track_id=track_id,
        index=index,
        distance=float(np.linalg.norm(cp.position - position)),
        checkpoint=_checkpoint(cp),
    )


@app.get("/api/tracks/{track_id}/checkpoints/{index}/upcoming", response_model=CheckpointsResponse)
def upcoming_checkpoints(
    track_id: int, index: int, count: int = Query(3, ge=1), db: str | None = None
) -> CheckpointsResponse:
    """The *count* checkpoints after *index*, wrapping around the loop."""
    course = _load_course(track_id, db)
    if course.checkpoint(index) is None:
        raise HTTPException(status_code=404, detail="Checkpoint not found")
    return CheckpointsResponse(
        track_id=track_id, checkpoints=[_checkpoint(cp) for cp in course.upcoming(index, count)]
    )


@app.get("/api/tracks/{track_id}/spawn-points", response_model=SpawnPointsResponse)
def spawn_points(track_id: int, db: str | None = None) -> SpawnPointsResponse:
    course = _load_course(track_id, db)
    return SpawnPointsResponse(
        track_id=track_id,
        requested=course.spawns.requested,
        shortfall=course.spawns.shortfall,
        spawn_points=[_spawn_point(sp) for sp in course.spawn_points()],
    )
