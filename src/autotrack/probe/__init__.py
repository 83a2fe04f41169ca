"""Surface probing: the interface the pipeline samples the world through."""

from autotrack.probe.models import NO_CATEGORY, ProbeHit, SurfaceCategory, SurfaceProbe
from autotrack.probe.synthetic import GroundProbe, RasterProbe, RingTrackProbe

__all__ = [
    "NO_CATEGORY",
    "GroundProbe",
    "ProbeHit",
    "RasterProbe",
    "RingTrackProbe",
    "SurfaceCategory",
    "SurfaceProbe",
]
