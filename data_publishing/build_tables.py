"""Build dashboard-ready comparison tables from benchmark report files.

This CLI loads llm-d benchmark reports (``*.json`` / ``*.yaml``) and writes
the tables the dashboard cards render:

- ``points.parquet``: one row per unique hardware/model/config/framework/
  sequence-length combination.
- ``frontier.parquet``: the Pareto-optimal subset for the chosen axes,
  ordered by the x axis for drawing.
- ``leaderboard.parquet``: scored and ranked rows.

Usage::

    python data_publishing/build_tables.py \\
      --reports-dir /path/to/nightly/reports \\
      --reports-dir /path/to/adhoc/reports \\
      --x-axis throughput_per_gpu --y-axis ttft_p50_ms \\
      --out-dir /path/to/output
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import pandas as pd

from llmd_bench.analysis.frontier import AXES, frontier_line
from llmd_bench.analysis.leaderboard import SORT_DIRS, SORT_KEYS
from llmd_bench.config import EngineConfig
from llmd_bench.records.points import ParetoPoints
from llmd_bench.sources import load_reports

logger = logging.getLogger(__name__)


def _load_points(reports_dirs: list[Path], config: EngineConfig) -> ParetoPoints:
    reports: list[dict] = []
    for d in reports_dirs:
        reports.extend(load_reports(d))
    logger.info("Loaded %d reports from %d directories", len(reports), len(reports_dirs))
    return ParetoPoints.from_reports(reports, config=config)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Build Pareto frontier and leaderboard tables from benchmark reports"
    )
    parser.add_argument(
        "--reports-dir",
        type=str,
        action="append",
        dest="reports_dirs",
        required=True,
        help="Report directory (can be specified multiple times)",
    )
    parser.add_argument(
        "--out-dir",
        type=str,
        required=True,
        help="Output directory for the parquet tables",
    )
    parser.add_argument("--x-axis", choices=sorted(AXES), default="throughput_per_gpu")
    parser.add_argument("--y-axis", choices=sorted(AXES), default="ttft_p50_ms")
    parser.add_argument("--sort-key", choices=SORT_KEYS, default="score")
    parser.add_argument("--sort-dir", choices=SORT_DIRS, default="desc")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Engine config YAML (scoring weights, percentile fallbacks, hardware specs)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    config = EngineConfig.from_yaml(args.config) if args.config else EngineConfig()
    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    points = _load_points([Path(d) for d in args.reports_dirs], config)

    points_df = points.to_dataframe()
    points_df.to_parquet(out_dir / "points.parquet", index=False)
    logger.info("Wrote points.parquet (%d rows)", len(points_df))

    frontier = frontier_line(points.frontier(args.x_axis, args.y_axis), args.x_axis)
    frontier_df = ParetoPoints(frontier).to_dataframe()
    frontier_df.to_parquet(out_dir / "frontier.parquet", index=False)
    logger.info(
        "Wrote frontier.parquet (%d rows, x=%s, y=%s)",
        len(frontier_df),
        args.x_axis,
        args.y_axis,
    )

    rows = points.leaderboard(args.sort_key, args.sort_dir)
    leaderboard_df = pd.DataFrame([r.to_dict() for r in rows])
    leaderboard_df.to_parquet(out_dir / "leaderboard.parquet", index=False)
    logger.info("Wrote leaderboard.parquet (%d rows)", len(leaderboard_df))

    logger.info("Done. Output directory: %s", out_dir)


if __name__ == "__main__":
    main()
