"""/health endpoint."""

from __future__ import annotations


def test_health_status_200(client):
    resp = client.get("/health")
    assert resp.status_code == 200


def test_health_body(client):
    resp = client.get("/health")
    data = resp.json()
    assert data["status"] == "ok"
    assert data["version"] == "0.1.0"


def test_openapi_lists_track_routes(client):
    paths = client.get("/openapi.json").json()["paths"]
    assert "/api/tracks" in paths
    assert "/api/tracks/{track_id}/checkpoints/nearest" in paths
    assert "/api/tracks/{track_id}/spawn-points" in paths
