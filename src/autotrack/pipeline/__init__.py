"""Configuration, stage FSM and the cooperative track generator."""

from autotrack.pipeline.config import GeneratorConfig, parse_mask
from autotrack.pipeline.generator import GenerationReport, TrackGenerator
from autotrack.pipeline.stages import GenerationStage, Readiness, ReadinessSignals

__all__ = [
    "GenerationReport",
    "GenerationStage",
    "GeneratorConfig",
    "Readiness",
    "ReadinessSignals",
    "TrackGenerator",
    "parse_mask",
]
