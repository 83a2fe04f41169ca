"""Pydantic response schemas for the track API."""

from __future__ import annotations

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    version: str


class TrackSummary(BaseModel):
    id: int
    name: str
    run_id: int
    created_at: str
    checkpoint_count: int
    spawn_point_count: int
    spawn_requested: int


class TracksResponse(BaseModel):
    tracks: list[TrackSummary]


class BoundaryCurveModel(BaseModel):
    closed: bool
    points: list[list[float]]


class BoundariesResponse(BaseModel):
    track_id: int
    inner: BoundaryCurveModel
    outer: BoundaryCurveModel


class FrameModel(BaseModel):
    forward: list[float]
    right: list[float]
    up: list[float]


class CheckpointModel(BaseModel):
    index: int
    position: list[float]
    frame: FrameModel
    width: float


class CheckpointsResponse(BaseModel):
    track_id: int
    checkpoints: list[CheckpointModel]


class NearestCheckpointResponse(BaseModel):
    track_id: int
    index: int
    distance: float
    checkpoint: CheckpointModel


class SpawnPointModel(BaseModel):
    checkpoint_index: int
    position: list[float]
    frame: FrameModel


class SpawnPointsResponse(BaseModel):
    track_id: int
    requested: int
    shortfall: int
    spawn_points: list[SpawnPointModel]
