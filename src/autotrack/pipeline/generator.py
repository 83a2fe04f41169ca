"""TrackGenerator: the cooperative driver of the generation pipeline.

A run is one generator object that walks the stages in order and yields
after every slice of work.  The host advances it with :meth:`TrackGenerator.step`
(for example once per frame), drains it with :meth:`TrackGenerator.run`, or
awaits :meth:`TrackGenerator.run_async` inside an event loop.

Results are published as immutable snapshots:

* the :class:`~autotrack.boundary.models.BoundarySet` once threading completes;
* the :class:`~autotrack.track.course.CheckpointCourse` once the run is ``DONE``.

A failed or cancelled run never replaces a published snapshot: boundaries it
published early are withdrawn in favour of those of the last finished run.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import numpy as np

from autotrack.boundary import (
    BoundaryClassifier,
    BoundaryScanner,
    BoundarySet,
    BoundaryThreader,
    simplify_polylines,
    wall_segments,
)
from autotrack.errors import DependencyTimeoutError, InsufficientDataError, TrackGenerationError
from autotrack.pipeline.config import GeneratorConfig
from autotrack.pipeline.stages import GenerationStage, Readiness, ReadinessSignals
from autotrack.probe.models import SurfaceProbe
from autotrack.staging import Stage
from autotrack.track import (
    CenterlineExtractor,
    Checkpoint,
    CheckpointCourse,
    CheckpointDistributor,
    RacingLineOptimizer,
    SpawnPoint,
    SpawnPointGenerator,
    SpawnResult,
)

_logger = logging.getLogger(__name__)


@dataclass
class GenerationReport:
    """Outcome and counters of one run."""

    run_id: int
    state: GenerationStage = GenerationStage.IDLE
    failed_stage: GenerationStage | None = None
    error: TrackGenerationError | None = None
    edge_candidates: int = 0
    polylines: int = 0
    centerline_samples: int = 0
    checkpoints: int = 0
    racing_line_shifts: int = 0
    spawn_points: int = 0
    spawn_shortfall: int = 0

    @property
    def succeeded(self) -> bool:
        return self.state is GenerationStage.DONE


class TrackGenerator:
    """Drive boundary scanning through spawn-point generation for one world.

    Args:
        probe: World oracle shared by every stage.
        config: Initial configuration; each :meth:`start` may replace it.
    """

    def __init__(self, probe: SurfaceProbe, config: GeneratorConfig | None = None) -> None:
        self.probe = probe
        self.config = config or GeneratorConfig()
        self._state = GenerationStage.IDLE
        self._task: Stage[None] | None = None
        self._progress = 0.0
        self._run_id = 0
        self._report = GenerationReport(run_id=0)
        self._boundaries: BoundarySet | None = None
        self._committed_boundaries: BoundarySet | None = None
        self._course: CheckpointCourse | None = None
        self._signals = ReadinessSignals()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> GenerationStage:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._task is not None

    @property
    def progress(self) -> float:
        """Progress of the current stage, ``[0, 1]``."""
        return self._progress

    @property
    def report(self) -> GenerationReport:
        """Report of the most recent run (a run that is still going included)."""
        return self._report

    @property
    def has_scanned(self) -> bool:
        return self._signals.is_set(Readiness.BOUNDARIES)

    @property
    def is_initialized(self) -> bool:
        return self._signals.is_set(Readiness.CHECKPOINTS)

    @property
    def boundaries(self) -> BoundarySet | None:
        return self._boundaries

    @property
    def course(self) -> CheckpointCourse | None:
        return self._course

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def start(self, config: GeneratorConfig | None = None) -> bool:
        """Begin a new run unless one is in progress.

        Returns:
            ``True`` if a run was started, ``False`` if one was already running.

        Raises:
            ConfigurationError: If the configuration is invalid.  The
                generator is left in ``FAILED``.
        """
        if self.is_running:
            _logger.warning("Generation already in progress (run %d); ignoring start", self._run_id)
            return False

        if config is not None:
            self.config = config
        self._run_id += 1
        self._report = GenerationReport(run_id=self._run_id)
        self._committed_boundaries = self._boundaries
        try:
            self.config.validate()
        except TrackGenerationError as exc:
            self._fail(exc)
            raise

        self._task = self._pipeline(self._run_id, self.config)
        self._progress = 0.0
        _logger.info("Starting track generation run %d", self._run_id)
        return True

    def cancel(self) -> bool:
        """Abandon the in-flight run, if any.  Snapshots of finished runs are kept."""
        if self._task is None:
            return False
        self._task.close()
        self._task = None
        self._withdraw_partial()
        _logger.info("Cancelled run %d during %s", self._run_id, self._state.value)
        self._enter(GenerationStage.IDLE)
        self._report.state = GenerationStage.IDLE
        return True

    def regenerate(self, config: GeneratorConfig | None = None) -> bool:
        """Cancel any in-flight run and start over."""
        self.cancel()
        return self.start(config)

    def step(self) -> bool:
        """Advance the current run by one slice.

        Returns:
            ``True`` while the run has more work to do.
        """
        if self._task is None:
            return False
        try:
            self._progress = next(self._task)
        except StopIteration:
            self._task = None
            return False
        except TrackGenerationError as exc:
            self._task = None
            self._fail(exc)
            return False
        except Exception:
            self._task = None
            self._withdraw_partial()
            self._enter(GenerationStage.FAILED)
            self._report.state = GenerationStage.FAILED
            raise
        return True

    def run(self, config: GeneratorConfig | None = None) -> GenerationReport:
        """Start a run (unless one is in progress) and drain it."""
        if not self.is_running:
            self.start(config)
        while self.step():
            pass
        return self._report

    async def run_async(self, config: GeneratorConfig | None = None) -> GenerationReport:
        """Like :meth:`run`, but hands control back to the event loop after every slice."""
        if not self.is_running:
            self.start(config)
        while self.step():
            await asyncio.sleep(0)
        return self._report

    async def wait_until_ready(self, readiness: Readiness, timeout: float) -> None:
        """Wait until *readiness* has been published at least once.

        Raises:
            DependencyTimeoutError: If nothing was published within *timeout* seconds.
        """
        try:
            await asyncio.wait_for(self._signals.wait(readiness), timeout)
        except asyncio.TimeoutError:
            raise DependencyTimeoutError(
                f"{readiness.value} not ready after {timeout:.1f}s (state: {self._state.value})"
            ) from None

    # ------------------------------------------------------------------
    # Published data
    # ------------------------------------------------------------------

    def inner_boundary(self) -> np.ndarray:
        if self._boundaries is None:
            return np.empty((0, 3))
        return self._boundaries.inner.points

    def outer_boundary(self) -> np.ndarray:
        if self._boundaries is None:
            return np.empty((0, 3))
        return self._boundaries.outer.points

    def closest_boundary_points(
        self, position: np.ndarray, max_distance: float = 50.0
    ) -> tuple[np.ndarray, np.ndarray] | None:
        if self._boundaries is None:
            return None
        return self._boundaries.closest_boundary_points(position, max_distance)

    def checkpoints(self) -> list[Checkpoint]:
        return [] if self._course is None else list(self._course.checkpoints)

    def checkpoint(self, index: int) -> Checkpoint | None:
        return None if self._course is None else self._course.checkpoint(index)

    def next(self, index: int) -> Checkpoint | None:
        return None if self._course is None else self._course.next(index)

    def previous(self, index: int) -> Checkpoint | None:
        return None if self._course is None else self._course.previous(index)

    def nearest(self, position: np.ndarray) -> tuple[Checkpoint, int] | None:
        return None if self._course is None else self._course.nearest(position)

    def upcoming(self, index: int, count: int) -> list[Checkpoint]:
        return [] if self._course is None else self._course.upcoming(index, count)

    def spawn_points(self) -> list[SpawnPoint]:
        return [] if self._course is None else self._course.spawn_points()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _enter(self, state: GenerationStage) -> None:
        _logger.debug("Run %d: %s -> %s", self._run_id, self._state.value, state.value)
        self._state = state
        self._report.state = state
        self._progress = 0.0

    def _withdraw_partial(self) -> None:
        """Put back the boundaries of the last finished run if this run replaced them."""
        if self._boundaries is self._committed_boundaries:
            return
        _logger.info("Run %d: withdrawing boundaries of the unfinished run", self._run_id)
        self._boundaries = self._committed_boundaries
        if self._boundaries is None:
            self._signals.clear(Readiness.BOUNDARIES)

    def _fail(self, exc: TrackGenerationError) -> None:
        failed = self._state if self._state.is_running else None
        _logger.error(
            "Run %d failed%s: %s",
            self._run_id, f" during {failed.value}" if failed else "", exc,
        )
        self._report.failed_stage = failed
        self._report.error = exc
        self._withdraw_partial()
        self._enter(GenerationStage.FAILED)

    def _pipeline(self, run_id: int, config: GeneratorConfig) -> Stage[None]:
        report = self._report

        self._enter(GenerationStage.SCANNING)
        scanner = BoundaryScanner(
            self.probe,
            origin=np.asarray(config.scan_origin, dtype=float),
            radius=config.scan_radius,
            resolution=config.grid_resolution,
            height_offset=config.probe_height_offset,
            max_distance=config.probe_max_distance,
            track_mask=config.track_mask,
            grass_mask=config.grass_mask,
        )
        candidates = yield from scanner.scan()
        report.edge_candidates = len(candidates)

        self._enter(GenerationStage.THREADING)
        threader = BoundaryThreader(config.connect_distance, yield_every=config.yield_every)
        raw = yield from threader.thread(candidates)
        polylines = simplify_polylines(
            raw,
            tolerance=config.simplification_tolerance,
            min_segment_length=config.min_segment_length,
            closure_distance=config.closure_distance,
        )
        if not polylines:
            raise InsufficientDataError(
                "No boundary polyline survived simplification", stage="threading"
            )
        report.polylines = len(polylines)
        boundaries = BoundaryClassifier(config.classification_mode).classify(polylines)
        boundaries.run_id = run_id
        for polyline in boundaries.all_polylines():
            boundaries.walls.extend(wall_segments(
                polyline,
                min_length=config.min_segment_length,
                height=config.wall_height,
                thickness=config.wall_thickness,
            ))
        self._boundaries = boundaries
        self._signals.set(Readiness.BOUNDARIES)
        _logger.info(
            "Run %d: boundaries published (%d walls)", run_id, len(boundaries.walls)
        )
        yield 1.0

        self._enter(GenerationStage.CENTERLINE_EXTRACTION)
        extractor = CenterlineExtractor(
            self.probe,
            height_offset=config.placement_height_offset,
            track_mask=config.track_mask,
            yield_every=config.yield_every,
        )
        samples = yield from extractor.extract(boundaries.inner.points, boundaries.outer.points)
        report.centerline_samples = len(samples)

        self._enter(GenerationStage.DISTRIBUTING)
        distributor = CheckpointDistributor(
            self.probe,
            target_count=config.target_checkpoint_count,
            min_spacing=config.min_checkpoint_spacing,
            max_spacing=config.max_checkpoint_spacing,
            default_width=config.default_checkpoint_width,
            side_probe_mask=config.side_probe_mask,
            yield_every=config.yield_every,
        )
        checkpoints = yield from distributor.distribute(samples, boundaries)
        report.checkpoints = len(checkpoints)

        self._enter(GenerationStage.OPTIMIZING)
        if config.optimize_racing_line:
            optimizer = RacingLineOptimizer(
                self.probe,
                distributor,
                apex_factor=config.apex_factor,
                turn_angle_threshold=config.turn_angle_threshold,
                height_offset=config.placement_height_offset,
                track_mask=config.track_mask,
                yield_every=config.yield_every,
            )
            report.racing_line_shifts = yield from optimizer.optimize(checkpoints, boundaries)

        self._enter(GenerationStage.SPAWNING_POINTS)
        spawns = SpawnResult()
        if config.generate_spawn_points:
            spawner = SpawnPointGenerator(
                count=config.spawn_count,
                min_separation=config.min_spawn_separation,
                height_offset=config.spawn_height_offset,
            )
            spawns = yield from spawner.generate(checkpoints)
        report.spawn_points = len(spawns)
        report.spawn_shortfall = spawns.shortfall

        self._course = CheckpointCourse(
            checkpoints=checkpoints, centerline=samples, spawns=spawns, run_id=run_id
        )
        self._signals.set(Readiness.CHECKPOINTS)
        self._committed_boundaries = boundaries
        self._enter(GenerationStage.DONE)
        _logger.info(
            "Run %d done: %d checkpoints, %d spawn points", run_id, len(checkpoints), len(spawns)
        )
