#!/usr/bin/env python3
"""
Command line entry point for the venue density pipeline.

    venue-density grid --study-area paris.geojson
    venue-density fetch --max-points 4500
    venue-density clean --study-area paris.geojson --districts quartiers.geojson
    venue-density density --districts quartiers.geojson

Every phase returns a status dict and logs its start and completion.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from . import config
from .analysis.cleaning import clean, read_clean_places, write_clean_places, write_report
from .analysis.density import aggregate, write_metrics
from .analysis.districts import load_districts
from .core.acquisition import AcquisitionLoop
from .core.places import PlacesFetcher
from .core.tiles import TileResultStore
from .errors import CheckpointError, VenueDensityError
from .models import BoundingRegion, GridConfig
from .spatial.area import filter_to_region, load_study_area
from .spatial.grid import generate_grid_from_config
from .utils.checkpoint import CsvJobStore
from .utils.logger import configure_logging, logger, setup_fault_log


def run_grid(
    radius: float = config.SAMPLING_RADIUS,
    study_area: Optional[Path] = None,
    overwrite: bool = False,
    checkpoint_file: Optional[Path] = None
) -> Dict[str, Any]:
    checkpoint_file = checkpoint_file or config.CHECKPOINT_FILE
    grid_config = GridConfig(
        region=BoundingRegion(**config.REGION),
        radius_meters=radius
    )
    points = generate_grid_from_config(grid_config)
    generated = len(points)
    if study_area is not None:
        points = filter_to_region(points, load_study_area(study_area))

    CsvJobStore(checkpoint_file).initialize(points, overwrite=overwrite)
    return {
        'generated_points': generated,
        'kept_points': len(points),
        'checkpoint_file': str(checkpoint_file)
    }


def run_fetch(
    max_points: Optional[int] = None,
    checkpoint_file: Optional[Path] = None,
    tiles_dir: Optional[Path] = None,
    fault_log_file: Optional[Path] = None
) -> Dict[str, Any]:
    checkpoint_file = checkpoint_file or config.CHECKPOINT_FILE
    if not Path(checkpoint_file).exists():
        raise CheckpointError(f"no checkpoint found at {checkpoint_file}; run the grid phase first")

    fetcher = PlacesFetcher(api_key=config.get_api_key())
    loop = AcquisitionLoop(
        job_store=CsvJobStore(checkpoint_file),
        fetcher=fetcher,
        sink=TileResultStore(tiles_dir or config.TILES_DIR),
        fault_log=setup_fault_log(fault_log_file or config.FAULT_LOG_FILE)
    )
    return loop.run(max_points=max_points)


def run_clean(
    study_area: Path,
    districts: Path,
    tiles_dir: Optional[Path] = None,
    output_file: Optional[Path] = None,
    report_file: Optional[Path] = None
) -> Dict[str, Any]:
    tiles_dir = tiles_dir or config.TILES_DIR
    output_file = output_file or config.CLEAN_PLACES_FILE
    report_file = report_file or config.CLEANING_REPORT_FILE
    result = clean(
        TileResultStore(tiles_dir).read_all(),
        load_study_area(study_area),
        load_districts(districts)
    )
    write_clean_places(result.places, output_file)
    write_report(result.report, report_file)
    return {
        'clean_places': len(result.places),
        'output_file': str(output_file),
        'report_file': str(report_file)
    }


def run_density(
    districts: Path,
    places_file: Optional[Path] = None,
    output_file: Optional[Path] = None
) -> Dict[str, Any]:
    places_file = places_file or config.CLEAN_PLACES_FILE
    output_file = output_file or config.DENSITY_METRICS_FILE
    metrics = aggregate(read_clean_places(places_file), load_districts(districts))
    write_metrics(metrics, output_file)
    return {
        'districts': len(metrics),
        'places': sum(m.count for m in metrics),
        'output_file': str(output_file)
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Venue acquisition and district density pipeline")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug output on the console")
    sub = parser.add_subparsers(dest="phase", required=True)

    grid = sub.add_parser("grid", help="Generate the sampling grid and initialize the checkpoint")
    grid.add_argument("--radius", type=float, default=config.SAMPLING_RADIUS, help="Search radius in meters")
    grid.add_argument("--study-area", type=Path, help="Vector file to clip the grid to")
    grid.add_argument("--overwrite", action="store_true", help="Replace an existing checkpoint")

    fetch = sub.add_parser("fetch", help="Fetch pending sampling points (resumes automatically)")
    fetch.add_argument("--max-points", type=int, help="Stop after this many points")

    cleaning = sub.add_parser("clean", help="Merge, deduplicate and district-tag tile results")
    cleaning.add_argument("--study-area", type=Path, required=True)
    cleaning.add_argument("--districts", type=Path, required=True)

    density = sub.add_parser("density", help="Compute per-district density metrics")
    density.add_argument("--districts", type=Path, required=True)

    return parser


def main(argv=None) -> Dict[str, Any]:
    """
    Parse arguments and run one phase of the pipeline.

    Returns:
        Dict with the phase status and its results or error
    """
    args = build_parser().parse_args(argv)

    config.ensure_directories()
    configure_logging(config.LOGS_DIR, level=logging.DEBUG if args.verbose else logging.INFO)

    logger.info(f"Starting phase {args.phase}", extra={
        "operation": args.phase,
        "config": config.get_config()
    })

    try:
        if args.phase == 'grid':
            results = run_grid(radius=args.radius, study_area=args.study_area, overwrite=args.overwrite)
        elif args.phase == 'fetch':
            results = run_fetch(max_points=args.max_points)
        elif args.phase == 'clean':
            results = run_clean(study_area=args.study_area, districts=args.districts)
        else:
            results = run_density(districts=args.districts)
    except VenueDensityError as e:
        logger.error(f"Phase {args.phase} failed: {str(e)}", extra={
            "operation": args.phase,
            "error": str(e),
            "status": "error"
        })
        return {'status': 'error', 'phase': args.phase, 'error': str(e)}

    logger.info(f"Phase {args.phase} completed successfully", extra={
        "operation": args.phase,
        "status": "completed",
        "results": results
    })
    return {'status': 'success', 'phase': args.phase, 'results': results}


def cli() -> None:
    outcome = main()
    print(json.dumps(outcome, indent=2, default=str))
    sys.exit(0 if outcome['status'] == 'success' else 1)


if __name__ == "__main__":
    cli()
