"""Generator configuration."""

from __future__ import annotations

import dataclasses
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from autotrack.boundary.classifier import ClassificationMode
from autotrack.errors import ConfigurationError
from autotrack.probe.models import NO_CATEGORY, SurfaceCategory

_logger = logging.getLogger(__name__)

ENV_PREFIX = "AUTOTRACK_"


@dataclass
class GeneratorConfig:
    """Every tunable of a generation run, with its default."""

    # Scanning
    scan_origin: tuple[float, float, float] = (0.0, 0.0, 0.0)
    scan_radius: float = 200.0
    grid_resolution: float = 1.5
    probe_height_offset: float = 10.0
    probe_max_distance: float = 20.0
    track_mask: SurfaceCategory = SurfaceCategory.TRACK
    grass_mask: SurfaceCategory = SurfaceCategory.GRASS

    # Threading, simplification, classification
    connect_distance_factor: float = 2.5   # × grid_resolution
    closed_loop_factor: float = 3.0        # × grid_resolution
    simplification_tolerance: float = 0.5
    min_segment_length: float = 1.0
    classification_mode: ClassificationMode = ClassificationMode.DISCOVERY_ORDER

    # Centerline and checkpoints
    placement_height_offset: float = 1.5
    target_checkpoint_count: int = 50
    min_checkpoint_spacing: float = 5.0
    max_checkpoint_spacing: float = 25.0
    default_checkpoint_width: float = 10.0
    side_probe_mask: SurfaceCategory = SurfaceCategory.GRASS | SurfaceCategory.WALL

    # Racing line
    optimize_racing_line: bool = True
    apex_factor: float = 0.35
    turn_angle_threshold: float = 15.0  # degrees

    # Spawn points
    generate_spawn_points: bool = True
    spawn_count: int = 8
    min_spawn_separation: float = 20.0
    spawn_height_offset: float = 0.2

    # Walls
    wall_height: float = 10.0
    wall_thickness: float = 0.2

    # Work done between cooperative yields
    yield_every: int = 128

    @property
    def connect_distance(self) -> float:
        return self.grid_resolution * self.connect_distance_factor

    @property
    def closure_distance(self) -> float:
        return self.grid_resolution * self.closed_loop_factor

    def validate(self) -> GeneratorConfig:
        """Raise :class:`ConfigurationError` on the first invalid setting.

        Returns *self* so calls can be chained.
        """
        positive = (
            "scan_radius", "grid_resolution", "probe_max_distance", "connect_distance_factor",
            "closed_loop_factor", "placement_height_offset", "min_checkpoint_spacing",
            "max_checkpoint_spacing", "default_checkpoint_width", "yield_every",
        )
        for name in positive:
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be > 0 (got {getattr(self, name)!r})")

        non_negative = (
            "probe_height_offset", "simplification_tolerance", "min_segment_length",
            "apex_factor", "turn_angle_threshold", "spawn_count", "min_spawn_separation",
            "spawn_height_offset", "wall_height", "wall_thickness",
        )
        for name in non_negative:
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must be >= 0 (got {getattr(self, name)!r})")

        if self.target_checkpoint_count <= 0:
            raise ConfigurationError("target_checkpoint_count must be > 0")
        if self.min_checkpoint_spacing > self.max_checkpoint_spacing:
            raise ConfigurationError(
                f"min_checkpoint_spacing ({self.min_checkpoint_spacing}) exceeds "
                f"max_checkpoint_spacing ({self.max_checkpoint_spacing})"
            )
        for name in ("track_mask", "grass_mask", "side_probe_mask"):
            if getattr(self, name) == NO_CATEGORY:
                raise ConfigurationError(f"{name} is empty")
        if self.track_mask & self.grass_mask:
            raise ConfigurationError("track_mask and grass_mask overlap")
        if len(self.scan_origin) != 3:
            raise ConfigurationError("scan_origin must have three components")
        return self

    def to_dict(self) -> dict[str, object]:
        """JSON-safe mapping; masks become ``"A|B"`` strings."""
        result: dict[str, object] = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if isinstance(value, SurfaceCategory):
                value = format_mask(value)
            elif isinstance(value, ClassificationMode):
                value = value.value
            elif isinstance(value, tuple):
                value = list(value)
            result[f.name] = value
        return result

    def replace(self, **changes: object) -> GeneratorConfig:
        """Copy with *changes* applied (not validated)."""
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> GeneratorConfig:
        """Build a config from ``AUTOTRACK_<FIELD>`` variables, defaults elsewhere.

        Masks are written as member names joined by ``|`` (``"GRASS|WALL"``),
        the scan origin as ``"x,y,z"``.
        """
        environ = os.environ if environ is None else environ
        changes: dict[str, object] = {}
        for f in dataclasses.fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            try:
                changes[f.name] = _parse(f.name, raw)
            except (KeyError, ValueError) as exc:
                raise ConfigurationError(f"Invalid {ENV_PREFIX}{f.name.upper()}={raw!r}") from exc
        if changes:
            _logger.debug("Config overrides from environment: %s", sorted(changes))
        return cls(**changes)


_BOOL_TRUE = {"1", "true", "yes", "on"}
_BOOL_FALSE = {"0", "false", "no", "off"}


def parse_mask(raw: str) -> SurfaceCategory:
    """``"GRASS|WALL"`` → ``SurfaceCategory.GRASS | SurfaceCategory.WALL``."""
    mask = NO_CATEGORY
    for name in raw.split("|"):
        if name.strip():
            mask |= SurfaceCategory[name.strip().upper()]
    return mask


def format_mask(mask: SurfaceCategory) -> str:
    return "|".join(member.name for member in SurfaceCategory if member in mask)


def _parse(name: str, raw: str) -> object:
    default = getattr(GeneratorConfig(), name)
    if isinstance(default, bool):
        value = raw.strip().lower()
        if value in _BOOL_TRUE:
            return True
        if value in _BOOL_FALSE:
            return False
        raise ValueError(raw)
    if isinstance(default, SurfaceCategory):
        return parse_mask(raw)
    if isinstance(default, ClassificationMode):
        return ClassificationMode(raw.strip().lower())
    if isinstance(default, tuple):
        return tuple(float(part) for part in raw.split(","))
    if isinstance(default, int):
        return int(raw)
    return float(raw)
