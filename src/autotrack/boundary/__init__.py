"""Boundary scanning, threading, simplification and classification."""

from autotrack.boundary.classifier import BoundaryClassifier, ClassificationMode
from autotrack.boundary.models import (
    BoundaryRole,
    BoundarySet,
    CellType,
    EdgeCandidate,
    Polyline,
    TrackSide,
    WallSegment,
)
from autotrack.boundary.scanner import BoundaryScanner
from autotrack.boundary.simplifier import simplify, simplify_polylines
from autotrack.boundary.threader import BoundaryThreader
from autotrack.boundary.walls import wall_segments

__all__ = [
    "BoundaryClassifier",
    "BoundaryRole",
    "BoundaryScanner",
    "BoundarySet",
    "BoundaryThreader",
    "CellType",
    "ClassificationMode",
    "EdgeCandidate",
    "Polyline",
    "TrackSide",
    "WallSegment",
    "simplify",
    "simplify_polylines",
    "wall_segments",
]
