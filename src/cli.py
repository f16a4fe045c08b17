"""
Command-line entry point for the ensemble CUSUM sweep.

Reads a CSV of already-filtered report counts, runs the configured grid, and
prints the top-ranked entities.

Usage:
    python -m src.cli counts.csv --entity-columns neighbourhood sector --top-k 15
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import pandas as pd
from dotenv import load_dotenv

from src.core.config import GridAxis, config
from src.core.exceptions import ChangeDetectionError, ConfigurationError
from src.core.logging_config import setup_logging
from src.data.aggregation import aggregate_frame, summarize_series
from src.detection.engine import ChangeDetectionEngine
from src.detection.schema import DetectionReport

logger = logging.getLogger("src.cli")


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    detection = config.detection
    parser = argparse.ArgumentParser(description="Ensemble CUSUM change detection for monthly report counts")
    parser.add_argument("csv_path", help="CSV file with one row per (entity, period) count")
    parser.add_argument("--entity-columns", nargs="+", default=["neighbourhood"])
    parser.add_argument("--period-column", default="period")
    parser.add_argument("--count-column", default="count")
    parser.add_argument("--c-grid", nargs=3, type=float, metavar=("START", "STOP", "STEP"))
    parser.add_argument("--t-grid", nargs=3, type=float, metavar=("START", "STOP", "STEP"))
    parser.add_argument("--top-k", type=int, default=detection.top_k)
    parser.add_argument("--workers", type=int, default=detection.max_workers)
    parser.add_argument("--log-level", default=None, help="Overrides CUSUM_LOG_LEVEL for this run")
    return parser.parse_args(argv)


def _format_report(report: DetectionReport) -> str:
    lines = [
        f"{report.cell_count} grid cells, {report.eligible_count}/{report.entity_count} eligible entities, "
        f"{len(report.hits)} hits",
        f"Elbow suggests top {report.elbow}" if report.elbow is not None else "No entities flagged",
    ]
    for entry in report.selected:
        lines.append(f"{entry.order:>4}  {' / '.join(entry.entity):<40} {entry.votes:>6}")
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = _parse_args(argv)
    try:
        setup_logging("src", level=args.log_level)
    except ConfigurationError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    settings = config.detection.model_copy(deep=True)
    try:
        if args.c_grid:
            settings.c_grid = GridAxis(start=args.c_grid[0], stop=args.c_grid[1], step=args.c_grid[2])
        if args.t_grid:
            settings.t_grid = GridAxis(start=args.t_grid[0], stop=args.t_grid[1], step=args.t_grid[2])
    except ValueError as e:
        logger.error("Invalid grid bounds: %s", e)
        return 2
    settings.top_k = args.top_k
    settings.max_workers = args.workers

    try:
        engine = ChangeDetectionEngine(settings=settings)
        frame = pd.read_csv(args.csv_path)
    except (OSError, pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        logger.error("Cannot read %s: %s", args.csv_path, e)
        return 1
    except ChangeDetectionError as e:
        logger.error("Sweep failed: %s", e)
        return 1

    try:
        series_by_entity = aggregate_frame(
            frame,
            entity_columns=args.entity_columns,
            period_column=args.period_column,
            count_column=args.count_column,
        )
        logger.info("Loaded %s\n%s", args.csv_path, summarize_series(series_by_entity))
        report = engine.run_series(series_by_entity)
    except ChangeDetectionError as e:
        logger.error("Sweep failed: %s", e)
        return 1

    print(_format_report(report))
    return 0


if __name__ == "__main__":
    sys.exit(main())
