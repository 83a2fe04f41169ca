"""Generate boundaries, checkpoints and spawn points for a world.

The world is either the built-in synthetic ring track or a category raster
saved with ``numpy.save`` (codes: 0 none, 1 track, 2 grass, 3 wall).
Settings not given on the command line come from ``AUTOTRACK_*`` variables
(``.env`` is honoured) and then from the built-in defaults.

Usage:
    uv run python scripts/generate_track.py
    uv run python scripts/generate_track.py --inner 40 --outer 55 --aspect 1.4
    uv run python scripts/generate_track.py --raster world.npy --cell-size 0.5
    uv run python scripts/generate_track.py --save tracks.db --name oval
"""

from __future__ import annotations

import argparse
import logging
import sys

from dotenv import load_dotenv

load_dotenv()

from autotrack.boundary.classifier import ClassificationMode  # noqa: E402
from autotrack.errors import ConfigurationError  # noqa: E402
from autotrack.pipeline.config import GeneratorConfig  # noqa: E402
from autotrack.pipeline.generator import TrackGenerator  # noqa: E402
from autotrack.probe.synthetic import RasterProbe, RingTrackProbe  # noqa: E402
from autotrack.storage.track_storage import TrackStorage  # noqa: E402


def _build_probe(args: argparse.Namespace):
    if args.raster:
        return RasterProbe.from_file(args.raster, cell_size=args.cell_size, origin=(args.x0, args.y0))
    return RingTrackProbe(
        inner_radius=args.inner,
        outer_radius=args.outer,
        ground_radius=args.outer + 15.0,
        aspect=args.aspect,
        wall_thickness=args.wall_thickness,
    )


def main() -> None:
    ap = argparse.ArgumentParser(description="autotrack: generate checkpoints from a surface probe")
    ap.add_argument("--raster", default="", help="Category raster (.npy); default is a ring track")
    ap.add_argument("--cell-size", type=float, default=1.0, help="Raster cell size in metres")
    ap.add_argument("--x0", type=float, default=0.0, help="Raster origin x")
    ap.add_argument("--y0", type=float, default=0.0, help="Raster origin y")
    ap.add_argument("--inner", type=float, default=40.0, help="Ring track inner radius")
    ap.add_argument("--outer", type=float, default=55.0, help="Ring track outer radius")
    ap.add_argument("--aspect", type=float, default=1.0, help="Ring track y stretch")
    ap.add_argument("--wall-thickness", type=float, default=0.0, help="Ring track barrier walls")
    ap.add_argument("--radius", type=float, default=None, help="Scan radius")
    ap.add_argument("--resolution", type=float, default=None, help="Scan grid resolution")
    ap.add_argument("--checkpoints", type=int, default=None, help="Target checkpoint count")
    ap.add_argument("--spawns", type=int, default=None, help="Spawn point count")
    ap.add_argument(
        "--mode",
        choices=[m.value for m in ClassificationMode],
        default=None,
        help="Boundary classification mode",
    )
    ap.add_argument("--no-racing-line", action="store_true", help="Skip apex shifting")
    ap.add_argument("--save", default="", help="SQLite database to store the result in")
    ap.add_argument("--name", default="track", help="Name of the stored track")
    ap.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = GeneratorConfig.from_env()
    except ConfigurationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(2)

    overrides = {
        "scan_radius": args.radius,
        "grid_resolution": args.resolution,
        "target_checkpoint_count": args.checkpoints,
        "spawn_count": args.spawns,
        "classification_mode": ClassificationMode(args.mode) if args.mode else None,
    }
    config = config.replace(**{k: v for k, v in overrides.items() if v is not None})
    if args.no_racing_line:
        config = config.replace(optimize_racing_line=False)
    if args.radius is None and not args.raster:
        config = config.replace(scan_radius=args.outer + 10.0)

    generator = TrackGenerator(_build_probe(args), config)
    try:
        report = generator.run()
    except ConfigurationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(2)

    print(f"Run {report.run_id}: {report.state.value}")
    print(f"  Edge candidates : {report.edge_candidates}")
    print(f"  Polylines       : {report.polylines}")
    print(f"  Centerline      : {report.centerline_samples} samples")
    print(f"  Checkpoints     : {report.checkpoints}")
    print(f"  Apex shifts     : {report.racing_line_shifts}")
    print(f"  Spawn points    : {report.spawn_points} (short by {report.spawn_shortfall})")

    if not report.succeeded:
        stage = report.failed_stage.value if report.failed_stage else "setup"
        print(f"ERROR during {stage}: {report.error}", file=sys.stderr)
        sys.exit(1)

    if args.save:
        storage = TrackStorage(args.save)
        try:
            track_id = storage.save_track(args.name, generator.boundaries, generator.course, config)
        finally:
            storage.close()
        print(f"Saved as track {track_id} in {args.save}")


if __name__ == "__main__":
    main()
